from __future__ import annotations

import calendar as pycal
import logging
from datetime import date, timedelta
from typing import Any, List, Optional

from django.core.exceptions import PermissionDenied
from django.db import transaction

from roster.domain.assignments import empty_assignments
from roster.domain.models import EventType, Organization, Service
from roster.domain.repositories import ProjectionRepository, ServiceRepository
from roster.domain.snapshots import CallerContext, display_title
from roster.exceptions import ServiceNotFound, ServiceValidationError
from roster.services.audit import emit_audit_event, snapshot_instance
from roster.services.permissions import can_delete_service

log = logging.getLogger(__name__)

RECURRENCE_NONE = "none"
RECURRENCE_DAILY = "daily"
RECURRENCE_WEEKLY = "weekly"
RECURRENCE_KINDS = (RECURRENCE_NONE, RECURRENCE_DAILY, RECURRENCE_WEEKLY)

DAILY_MAX_DAYS = 15
WEEKLY_MAX_MONTHS = 3

# ========= Utilidades =========

def _add_months(d: date, months: int) -> date:
    """Soma meses preservando o dia (limitado ao último dia do mês de destino)."""
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, pycal.monthrange(year, month)[1])
    return date(year, month, day)

def max_recurrence_end(start: date, kind: str) -> date:
    """Limite da série: 15 dias para diária, 3 meses para semanal."""
    if kind == RECURRENCE_DAILY:
        return start + timedelta(days=DAILY_MAX_DAYS)
    if kind == RECURRENCE_WEEKLY:
        return _add_months(start, WEEKLY_MAX_MONTHS)
    return start

def recurrence_dates(start: date, kind: str = RECURRENCE_NONE, end: Optional[date] = None) -> List[date]:
    """Datas de uma série recorrente, sempre começando em ``start``.

    Args:
        start (date): Primeira data.
        kind (str, optional): "none", "daily" ou "weekly". Defaults to "none".
        end (Optional[date], optional): Última data desejada (inclusiva); é
            limitada ao teto da recorrência. Defaults to None.

    Raises:
        ServiceValidationError: Se o tipo de recorrência for desconhecido.

    Returns:
        List[date]: As datas da série em ordem crescente.
    """
    if kind not in RECURRENCE_KINDS:
        raise ServiceValidationError(f"Recorrência inválida: {kind!r}.")
    if kind == RECURRENCE_NONE or end is None or end <= start:
        return [start]

    last = min(end, max_recurrence_end(start, kind))
    step = timedelta(days=1) if kind == RECURRENCE_DAILY else timedelta(weeks=1)
    dates = [start]
    cursor = start + step
    while cursor <= last:
        dates.append(cursor)
        cursor += step
    return dates

def service_display_title(service: Service) -> str:
    event_type_name = service.event_type.name if service.event_type_id and service.event_type else None
    return display_title(service.title, event_type_name, service.date)

# ========= Operações principais =========

@transaction.atomic
def create_services(
    organization: Organization,
    start: date,
    *,
    title: Optional[str] = None,
    event_type: Optional[EventType] = None,
    recurrence: str = RECURRENCE_NONE,
    end: Optional[date] = None,
    caller: Optional[CallerContext] = None,
) -> List[Service]:
    """Cria a escala (ou a série recorrente) com atribuições vazias.

    Args:
        organization (Organization): A organização dona das escalas.
        start (date): Data da primeira escala.
        title (Optional[str], optional): Nome próprio do evento. Defaults to None.
        event_type (Optional[EventType], optional): Tipo do evento. Defaults to None.
        recurrence (str, optional): "none", "daily" ou "weekly". Defaults to "none".
        end (Optional[date], optional): Fim da série. Defaults to None.
        caller (Optional[CallerContext], optional): Autor, para auditoria. Defaults to None.

    Raises:
        ServiceValidationError: Sem título e sem tipo, ou tipo de outra organização.

    Returns:
        List[Service]: As escalas criadas.
    """
    title = (title or "").strip() or None
    if title is None and event_type is None:
        raise ServiceValidationError("Informe um tipo ou nome para a escala.")
    if event_type is not None and event_type.organization_id != organization.id:
        raise ServiceValidationError("Tipo de evento não pertence à organização.")

    dates = recurrence_dates(start, recurrence, end)
    created = Service.objects.bulk_create([
        Service(
            organization=organization,
            date=d,
            title=title,
            event_type=event_type,
            assignments=empty_assignments(),
        )
        for d in dates
    ])

    log.info("create_services: org=%s recurrence=%s count=%d", organization.id, recurrence, len(created))
    emit_audit_event(
        "service.create",
        "service",
        str(created[0].id),
        organization_id=str(organization.id),
        actor_id=caller.volunteer_id if caller else None,
        metadata={
            "dates": [d.isoformat() for d in dates],
            "recurrence": recurrence,
            "title": title,
            "eventTypeId": str(event_type.id) if event_type else None,
        },
    )
    return created

@transaction.atomic
def delete_service(service_id: Any, caller: CallerContext) -> None:
    """Exclui a escala se o chamador puder.

    Raises:
        ServiceNotFound: Se a escala não existir na organização do chamador.
        PermissionDenied: Se o chamador não puder excluí-la.
    """
    service = ServiceRepository.get(service_id, caller.organization_id)
    if service is None:
        raise ServiceNotFound(service_id)

    snapshot = ProjectionRepository.service_snapshot(service)
    volunteers = ProjectionRepository.volunteer_profiles(caller.organization_id)
    if not can_delete_service(caller, snapshot, volunteers):
        raise PermissionDenied("Você não pode excluir esta escala.")

    before = snapshot_instance(service)
    service_pk = str(service.id)
    service.delete()
    log.info("delete_service: service=%s by=%s", service_pk, caller.volunteer_id)
    emit_audit_event(
        "service.delete",
        "service",
        service_pk,
        organization_id=caller.organization_id,
        actor_id=caller.volunteer_id,
        metadata={"before": before, "title": snapshot.title},
    )
