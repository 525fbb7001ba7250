"""Mutações do payload de atribuições de uma escala.

Cada operação é um read-modify-write dentro de ``transaction.atomic`` sobre a
linha relida com ``select_for_update``: nunca se confia em estado em memória
de quem chamou. O evento de auditoria sai depois do commit e não bloqueia a
operação.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Tuple

from django.db import transaction

from roster.domain import assignments as ops
from roster.domain.assignments import AssignmentStatus, NormalizedAssignments, normalize_assignments
from roster.domain.models import Preacher, Service
from roster.domain.repositories import (
    ProjectionRepository,
    ServiceRepository,
    UnavailabilityRepository,
    VolunteerRepository,
)
from roster.domain.snapshots import CallerContext
from roster.exceptions import (
    AssignmentNotFound,
    InvalidAssignmentStatus,
    PreacherNotFound,
    SameDayConflict,
    VolunteerNotFound,
    VolunteerUnavailable,
)
from roster.services.audit import emit_audit_event
from roster.services.conflicts import prospective_conflicts
from roster.services.suggestion import Suggestion
from roster.utils import _get_setting

log = logging.getLogger(__name__)

AUTO_SCHEDULE_NOTE = "auto_schedule"

# =========================
# Helpers
# =========================

def _org(caller: Optional[CallerContext]) -> Optional[str]:
    return caller.organization_id if caller else None

def _actor(caller: Optional[CallerContext]) -> Optional[str]:
    return caller.volunteer_id if caller else None

def _persist(service: Service, updated: NormalizedAssignments) -> None:
    service.assignments = ops.build_assignments_payload(updated)
    service.save(update_fields=["assignments"])

def _audit(action: str, service: Service, caller: Optional[CallerContext], **metadata: Any) -> None:
    emit_audit_event(
        action,
        "service",
        str(service.id),
        organization_id=str(service.organization_id),
        actor_id=_actor(caller),
        metadata={"date": service.date.isoformat(), **metadata},
    )

def auto_schedule_note() -> str:
    return _get_setting("ROSTER_AUTO_SCHEDULE_NOTE", AUTO_SCHEDULE_NOTE)

# =========================
# Service Layer
# =========================

class AssignmentService:
    """Serviço de negócio para operações de atribuição."""

    @staticmethod
    def check_can_add(service: Service, volunteer_id: Any, *, force: bool = False) -> None:
        """Bloqueios do caminho interativo.

        Indisponibilidade é bloqueio definitivo (sem override); conflito no
        mesmo dia pode ser ignorado com ``force``.

        Raises:
            VolunteerUnavailable: janela de indisponibilidade cobre a data.
            SameDayConflict: voluntário já está em outra escala no dia (e not force).
        """
        window = UnavailabilityRepository.for_volunteer_on(volunteer_id, service.date).first()
        if window is not None:
            raise VolunteerUnavailable(volunteer_id, window.start_date, window.end_date, window.reason)
        if force:
            return
        target = ProjectionRepository.service_snapshot(service)
        same_day = ProjectionRepository.day_snapshots(service.organization_id, service.date)
        titles = prospective_conflicts(str(volunteer_id), target, same_day)
        if titles:
            raise SameDayConflict(str(volunteer_id), titles)

    @staticmethod
    @transaction.atomic
    def add_volunteer(
        service_id: Any,
        volunteer_id: Any,
        *,
        caller: Optional[CallerContext] = None,
        force: bool = False,
    ) -> NormalizedAssignments:
        """Adiciona o voluntário como pending. Sem efeito se já estiver na escala."""
        service = ServiceRepository.get_for_update(service_id, _org(caller))
        current = normalize_assignments(service.assignments)
        if ops.find_volunteer_assignment(current, volunteer_id) is not None:
            return current
        if VolunteerRepository.get(volunteer_id, service.organization_id) is None:
            raise VolunteerNotFound(volunteer_id)

        AssignmentService.check_can_add(service, volunteer_id, force=force)

        updated = ops.add_volunteer(current, volunteer_id)
        _persist(service, updated)
        _audit("service.volunteer.add", service, caller, volunteerId=str(volunteer_id), forced=force)
        return updated

    @staticmethod
    @transaction.atomic
    def remove_volunteer(
        service_id: Any,
        volunteer_id: Any,
        *,
        caller: Optional[CallerContext] = None,
    ) -> NormalizedAssignments:
        """Remove o voluntário; remover quem não está na escala não é erro."""
        service = ServiceRepository.get_for_update(service_id, _org(caller))
        current = normalize_assignments(service.assignments)
        updated = ops.remove_volunteer(current, volunteer_id)
        if updated == current:
            return current
        _persist(service, updated)
        _audit("service.volunteer.remove", service, caller, volunteerId=str(volunteer_id))
        return updated

    @staticmethod
    @transaction.atomic
    def update_status(
        service_id: Any,
        volunteer_id: Any,
        status: str,
        *,
        note: Optional[str] = None,
        caller: Optional[CallerContext] = None,
    ) -> NormalizedAssignments:
        """Atualiza o status; a nota é gravada em 'declined' e removida nos demais."""
        if status not in AssignmentStatus.values:
            raise InvalidAssignmentStatus(status)
        service = ServiceRepository.get_for_update(service_id, _org(caller))
        current = normalize_assignments(service.assignments)
        try:
            updated = ops.set_volunteer_status(current, volunteer_id, status, note=note)
        except LookupError:
            raise AssignmentNotFound(service_id, volunteer_id) from None
        _persist(service, updated)
        _audit("service.volunteer.status", service, caller, volunteerId=str(volunteer_id), status=status)
        return updated

    @staticmethod
    @transaction.atomic
    def apply_suggestions(
        service_id: Any,
        suggestions: Iterable[Suggestion],
        *,
        caller: Optional[CallerContext] = None,
    ) -> Tuple[NormalizedAssignments, List[str]]:
        """Aplica as sugestões sobre a lista relida do banco.

        IDs que não são voluntários da organização, que não pertencem ao
        ministério da sugestão ou que estão indisponíveis na data são descartados.

        Returns:
            Tuple[NormalizedAssignments, List[str]]: (payload final, IDs efetivamente adicionados)
        """
        service = ServiceRepository.get_for_update(service_id, _org(caller))

        wanted: List[str] = []
        rejected: List[str] = []
        for suggestion in suggestions:
            for vid in suggestion.suggested_volunteer_ids:
                if vid in wanted or vid in rejected:
                    continue
                if AssignmentService._eligible_for_apply(service, suggestion.ministry_id, vid):
                    wanted.append(vid)
                else:
                    rejected.append(vid)

        current = normalize_assignments(service.assignments)
        updated, added = ops.merge_suggested(current, wanted, note=auto_schedule_note())
        skipped = len(wanted) - len(added)
        if rejected:
            log.warning("apply_suggestions: service=%s rejected=%s", service.id, rejected)
        if not added:
            return current, []
        _persist(service, updated)
        _audit("service.auto_schedule.apply", service, caller, volunteerIds=added, skipped=skipped, rejected=rejected)
        log.info("apply_suggestions: service=%s added=%d skipped=%d", service.id, len(added), skipped)
        return updated, added

    @staticmethod
    def _eligible_for_apply(service: Service, ministry_id: str, volunteer_id: str) -> bool:
        volunteer = VolunteerRepository.get(volunteer_id, service.organization_id)
        if volunteer is None:
            return False
        if not volunteer.memberships.filter(ministry_id=ministry_id).exists():
            return False
        return not UnavailabilityRepository.for_volunteer_on(volunteer.id, service.date).exists()

    @staticmethod
    @transaction.atomic
    def add_preacher(
        service_id: Any,
        preacher_id: Any,
        *,
        caller: Optional[CallerContext] = None,
    ) -> NormalizedAssignments:
        """Adiciona o pregador (com o nome copiado do cadastro). Idempotente."""
        service = ServiceRepository.get_for_update(service_id, _org(caller))
        current = normalize_assignments(service.assignments)
        if str(preacher_id) in ops.assigned_preacher_ids(current):
            return current
        preacher = Preacher.objects.filter(organization_id=service.organization_id, id=preacher_id).first()
        if preacher is None:
            raise PreacherNotFound(preacher_id)
        updated = ops.add_preacher(current, preacher.id, preacher.name)
        _persist(service, updated)
        _audit("service.preacher.add", service, caller, preacherId=str(preacher.id))
        return updated

    @staticmethod
    @transaction.atomic
    def remove_preacher(
        service_id: Any,
        preacher_id: Any,
        *,
        caller: Optional[CallerContext] = None,
    ) -> NormalizedAssignments:
        service = ServiceRepository.get_for_update(service_id, _org(caller))
        current = normalize_assignments(service.assignments)
        updated = ops.remove_preacher(current, preacher_id)
        if updated == current:
            return current
        _persist(service, updated)
        _audit("service.preacher.remove", service, caller, preacherId=str(preacher_id))
        return updated
