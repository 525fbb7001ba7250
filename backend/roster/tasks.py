from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from celery import shared_task

from roster.services.audit import audit_event

log = logging.getLogger(__name__)

# =========================
# Tasks
# =========================

@shared_task(ignore_result=True)
def record_audit_event(
    action: str,
    entity_type: str,
    entity_id: Optional[str] = None,
    organization_id: Optional[str] = None,
    actor_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Optional[int]:
    """Persiste um evento de auditoria fora do caminho da requisição.

    Returns:
        Optional[int]: ID do evento criado, ou None se a gravação falhar.
    """
    try:
        event = audit_event(
            action,
            entity_type,
            entity_id,
            organization_id=organization_id,
            actor_id=actor_id,
            metadata=metadata,
        )
    except Exception:
        log.exception("record_audit_event: falha ao gravar %s (%s=%s)", action, entity_type, entity_id)
        return None
    log.info("record_audit_event: %s %s=%s", action, entity_type, entity_id)
    return event.id
