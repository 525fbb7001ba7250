from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional

from django.db import transaction
from django.forms.models import model_to_dict

from core.middleware import get_current_user
from roster.domain.models import AuditEvent, Volunteer
from roster.utils import _get_setting

log = logging.getLogger(__name__)

DEFAULT_EXCLUDE = {"id"}

def snapshot_instance(
    instance, *,
    include: Optional[Iterable[str]] = None,
    exclude: Iterable[str] = DEFAULT_EXCLUDE
) -> Dict[str, Any]:
    """Cria um snapshot serializável do estado atual de um modelo Django.

    Args:
        instance (Django Model): A instância a ser capturada.
        include (Optional[Iterable[str]], optional): Campos a incluir. Defaults to None.
        exclude (Iterable[str], optional): Campos a excluir. Defaults to DEFAULT_EXCLUDE.

    Returns:
        Dict[str, Any]: Os campos do modelo, com valores não-JSON convertidos em str.
    """
    if include:
        data = model_to_dict(instance, fields=list(include))
    else:
        data = model_to_dict(instance, exclude=list(exclude))
    return {
        k: v if isinstance(v, (str, int, float, bool, list, dict, type(None))) else str(v)
        for k, v in data.items()
    }

def _current_actor_id() -> Optional[str]:
    user = get_current_user()
    if user is None:
        return None
    volunteer = Volunteer.objects.filter(user=user).only("id").first()
    return str(volunteer.id) if volunteer else None

def audit_event(
    action: str,
    entity_type: str,
    entity_id: Optional[str] = None,
    *,
    organization_id: Optional[str] = None,
    actor_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditEvent:
    """Grava um evento de auditoria.

    Args:
        action (str): A ação (ex.: "service.volunteer.add").
        entity_type (str): O tipo da entidade afetada (ex.: "service").
        entity_id (Optional[str], optional): O ID da entidade. Defaults to None.
        organization_id (Optional[str], optional): A organização. Defaults to None.
        actor_id (Optional[str], optional): O voluntário autor. Se None, tenta obter do middleware. Defaults to None.
        metadata (Optional[Dict[str, Any]], optional): Dados extras. Defaults to None.

    Returns:
        AuditEvent: O evento criado.
    """
    return AuditEvent.objects.create(
        organization_id=organization_id,
        actor_id=actor_id or _current_actor_id(),
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        metadata=metadata or {},
    )

def emit_audit_event(
    action: str,
    entity_type: str,
    entity_id: Optional[str] = None,
    *,
    organization_id: Optional[str] = None,
    actor_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> None:
    """Agenda o evento para depois do commit. Falhas são registradas e nunca propagam."""
    payload = {
        "action": action,
        "entity_type": entity_type,
        "entity_id": str(entity_id) if entity_id is not None else None,
        "organization_id": str(organization_id) if organization_id is not None else None,
        "actor_id": str(actor_id) if actor_id is not None else _safe_current_actor_id(),
        "metadata": metadata or {},
    }
    transaction.on_commit(lambda: _dispatch(payload))

def _safe_current_actor_id() -> Optional[str]:
    try:
        return _current_actor_id()
    except Exception:
        log.exception("audit: falha ao resolver o autor atual")
        return None

def _dispatch(payload: Dict[str, Any]) -> None:
    from roster.tasks import record_audit_event

    try:
        if _get_setting("ROSTER_AUDIT_ASYNC", True):
            record_audit_event.delay(**payload)
        else:
            record_audit_event(**payload)
    except Exception:
        log.exception("audit: falha ao registrar %s (%s=%s)", payload["action"], payload["entity_type"], payload["entity_id"])
