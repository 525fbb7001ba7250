from __future__ import annotations

import uuid

from django.contrib.auth.models import User
from django.db import models
from django.db.models import F, Q

from roster.domain.assignments import AssignmentStatus, empty_assignments  # noqa: F401

# =========================
# Choices canônicos
# =========================

class AccessLevel(models.TextChoices):
    ADMIN = "admin", "Administrador"
    LEADER = "leader", "Líder"
    VOLUNTEER = "volunteer", "Voluntário"

class PreacherType(models.TextChoices):
    INTERNO = "interno", "Interno"
    CONVIDADO = "convidado", "Convidado"

# =========================
# Modelos
# =========================

class Organization(models.Model):
    """Igreja (tenant). Nada é visível entre organizações."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=160)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Organização"
        verbose_name_plural = "Organizações"
        ordering = ["name"]

    def __str__(self):
        return self.name

class Ministry(models.Model):
    """Ministério: agrupa voluntários para elegibilidade e liderança."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name="ministries")
    name = models.CharField(max_length=120)
    icon = models.CharField(max_length=60, blank=True, null=True)
    whatsapp_group_link = models.URLField(blank=True, null=True)

    class Meta:
        verbose_name = "Ministério"
        verbose_name_plural = "Ministérios"
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(fields=("organization", "name"), name="uniq_ministry_org_name"),
        ]

    def __str__(self):
        return self.name

class EventType(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name="event_types")
    name = models.CharField(max_length=120)
    color = models.CharField(max_length=20, blank=True, null=True)

    class Meta:
        verbose_name = "Tipo de evento"
        verbose_name_plural = "Tipos de evento"
        ordering = ["name"]

    def __str__(self):
        return self.name

class Volunteer(models.Model):
    """Pessoa escalável de uma organização."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name="volunteers")
    user = models.OneToOneField(User, blank=True, null=True, on_delete=models.SET_NULL, related_name="volunteer")
    name = models.CharField(max_length=120, db_index=True)
    email = models.EmailField(blank=True, null=True)
    whatsapp = models.CharField(max_length=30, blank=True, null=True)
    access_level = models.CharField(
        max_length=12, choices=AccessLevel.choices, default=AccessLevel.VOLUNTEER, db_index=True
    )
    can_manage_preaching_schedule = models.BooleanField(default=False)
    accepts_notifications = models.BooleanField(default=True)
    ministries = models.ManyToManyField(Ministry, through="MinistryMembership", related_name="volunteers", blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Voluntário"
        verbose_name_plural = "Voluntários"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["organization", "access_level"], name="volunteer_org_access_idx"),
        ]

    def __str__(self):
        return self.name

class MinistryMembership(models.Model):
    volunteer = models.ForeignKey(Volunteer, on_delete=models.CASCADE, related_name="memberships")
    ministry = models.ForeignKey(Ministry, on_delete=models.CASCADE, related_name="memberships")
    is_leader = models.BooleanField(default=False)

    class Meta:
        verbose_name = "Participação em ministério"
        verbose_name_plural = "Participações em ministérios"
        constraints = [
            models.UniqueConstraint(fields=("volunteer", "ministry"), name="uniq_membership_volunteer_ministry"),
        ]

    def __str__(self):
        suffix = " (líder)" if self.is_leader else ""
        return f"{self.volunteer} @ {self.ministry}{suffix}"

class Preacher(models.Model):
    """Pregador interno ou convidado."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name="preachers")
    name = models.CharField(max_length=120)
    name_normalized = models.CharField(max_length=120, db_index=True)
    type = models.CharField(max_length=12, choices=PreacherType.choices, default=PreacherType.INTERNO)
    church = models.CharField(max_length=160, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Pregador"
        verbose_name_plural = "Pregadores"
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(fields=("organization", "name_normalized"), name="uniq_preacher_org_name"),
        ]

    def __str__(self):
        return self.name

class Unavailability(models.Model):
    """Período [start_date, end_date] (inclusivo) em que o voluntário não pode servir."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name="unavailabilities")
    volunteer = models.ForeignKey(Volunteer, on_delete=models.CASCADE, related_name="unavailabilities")
    start_date = models.DateField(db_index=True)
    end_date = models.DateField(db_index=True)
    reason = models.CharField(max_length=200, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Indisponibilidade"
        verbose_name_plural = "Indisponibilidades"
        ordering = ["start_date", "end_date"]
        constraints = [
            models.CheckConstraint(condition=Q(end_date__gte=F("start_date")), name="unavailability_range_valid"),
        ]
        indexes = [
            models.Index(fields=["volunteer", "start_date", "end_date"], name="unavail_vol_range_idx"),
        ]

    def __str__(self):
        return f"{self.volunteer} {self.start_date}..{self.end_date}"

class Service(models.Model):
    """Escala: um evento em uma data (sem horário) que precisa de voluntários.

    ``assignments`` guarda o payload JSON de atribuições; leia sempre via
    ``roster.domain.assignments.normalize_assignments``.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name="services")
    date = models.DateField(db_index=True)
    title = models.CharField(max_length=160, blank=True, null=True)
    event_type = models.ForeignKey(
        EventType, on_delete=models.SET_NULL, null=True, blank=True, related_name="services"
    )
    assignments = models.JSONField(default=empty_assignments, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Escala"
        verbose_name_plural = "Escalas"
        ordering = ["date", "created_at"]
        indexes = [
            models.Index(fields=["organization", "date"], name="service_org_date_idx"),
        ]

    def __str__(self):
        return f"{self.date} {self.title or ''}".strip()

class AuditEvent(models.Model):
    """Evento de auditoria emitido após mutações (best-effort)."""
    organization = models.ForeignKey(
        Organization, on_delete=models.SET_NULL, null=True, blank=True, related_name="audit_events"
    )
    actor = models.ForeignKey(
        Volunteer, on_delete=models.SET_NULL, null=True, blank=True, related_name="audit_events"
    )
    action = models.CharField(max_length=80, db_index=True)
    entity_type = models.CharField(max_length=50, db_index=True)
    entity_id = models.CharField(max_length=64, blank=True, null=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = "Auditoria"
        verbose_name_plural = "Auditorias"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["entity_type", "created_at"], name="audit_entity_created_idx"),
            models.Index(fields=["action", "created_at"], name="audit_action_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.created_at:%Y-%m-%d %H:%M:%S} | {self.entity_type}:{self.entity_id} | {self.action}"
