from __future__ import annotations

from typing import Optional

from django.db.models import Model
from django.db.models.signals import post_delete, post_save, pre_save
from django.dispatch import receiver

from roster.domain.models import Preacher, Unavailability
from roster.services.audit import emit_audit_event, snapshot_instance

# =========================

def _capture_before(model, instance: Model) -> Optional[dict]:
    if not instance.pk:
        return None
    old = model.objects.filter(pk=instance.pk).first()
    return snapshot_instance(old) if old else None

def _emit(entity_type: str, action: str, instance: Model, *, before=None, after=None) -> None:
    emit_audit_event(
        f"{entity_type}.{action}",
        entity_type,
        str(instance.pk),
        organization_id=str(instance.organization_id) if instance.organization_id else None,
        metadata={"before": before, "after": after},
    )

# ======== Unavailability ========

@receiver(pre_save, sender=Unavailability)
def _unavailability_pre_save(sender, instance: Unavailability, **kwargs):
    instance._before_snapshot = _capture_before(Unavailability, instance)

@receiver(post_save, sender=Unavailability)
def _unavailability_post_save(sender, instance: Unavailability, created: bool, **kwargs):
    action = "create" if created else "update"
    _emit("unavailability", action, instance,
          before=getattr(instance, "_before_snapshot", None), after=snapshot_instance(instance))

@receiver(post_delete, sender=Unavailability)
def _unavailability_post_delete(sender, instance: Unavailability, **kwargs):
    _emit("unavailability", "delete", instance, before=snapshot_instance(instance))

# ======== Preacher ========

@receiver(pre_save, sender=Preacher)
def _preacher_pre_save(sender, instance: Preacher, **kwargs):
    instance._before_snapshot = _capture_before(Preacher, instance)

@receiver(post_save, sender=Preacher)
def _preacher_post_save(sender, instance: Preacher, created: bool, **kwargs):
    action = "create" if created else "update"
    _emit("preacher", action, instance,
          before=getattr(instance, "_before_snapshot", None), after=snapshot_instance(instance))

@receiver(post_delete, sender=Preacher)
def _preacher_post_delete(sender, instance: Preacher, **kwargs):
    _emit("preacher", "delete", instance, before=snapshot_instance(instance))
