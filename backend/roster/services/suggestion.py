from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from django.db import transaction

from roster.domain.repositories import ProjectionRepository
from roster.domain.snapshots import (
    CallerContext,
    MinistryRef,
    ServiceSnapshot,
    UnavailabilityWindow,
    VolunteerProfile,
)
from roster.exceptions import SuggestionRequestInvalid
from roster.services.availability import AvailabilityIndex
from roster.services.conflicts import DayBookings
from roster.services.history import VolunteerHistory, composite_score, score_breakdown, score_volunteer
from roster.services.permissions import can_manage

log = logging.getLogger(__name__)

# ===== Data Classes =====

@dataclass(frozen=True)
class SlotRequest:
    """Pedido de N vagas para um ministério em uma escala."""
    ministry_id: str
    slots: int

@dataclass
class Suggestion:
    ministry_id: str
    ministry_name: str
    requested_slots: int
    suggested_volunteer_ids: List[str] = field(default_factory=list)
    missing_slots: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ministryId": self.ministry_id,
            "ministryName": self.ministry_name,
            "requestedSlots": self.requested_slots,
            "suggestedVolunteerIds": list(self.suggested_volunteer_ids),
            "missingSlots": self.missing_slots,
        }

@dataclass
class CandidateScore:
    """Pontuação e estado de um candidato para um ministério na escala."""
    volunteer: VolunteerProfile
    history: Optional[VolunteerHistory]
    score: float
    blocked: bool = False
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        history = self.history
        return {
            "volunteerId": self.volunteer.id,
            "name": self.volunteer.name,
            "score": round(self.score, 2),
            "components": score_breakdown(history) if history else None,
            "history": {
                "totalAssignments": history.total_assignments,
                "confirmedAssignments": history.confirmed_assignments,
                "declinedAssignments": history.declined_assignments,
                "recentAssignments8w": history.recent_assignments_8w,
                "daysSinceLastAssignment": history.days_since_last_assignment,
            } if history else None,
            "blocked": self.blocked,
            "reason": self.reason,
        }

# ===== Engine =====

def validate_requests(requests: Sequence[SlotRequest]) -> None:
    """Rejeita pedidos sem nenhuma vaga antes de qualquer cálculo."""
    if sum(max(0, r.slots) for r in requests) <= 0:
        raise SuggestionRequestInvalid("Informe ao menos uma vaga para gerar sugestões.")

class SuggestionEngine:
    """Sugere voluntários por ministério para uma escala.

    Opera sobre um snapshot imutável (escalas, voluntários, indisponibilidades);
    nada é gravado aqui.
    """

    def __init__(
        self,
        target: ServiceSnapshot,
        volunteers: Iterable[VolunteerProfile],
        services: Iterable[ServiceSnapshot],
        unavailability: Iterable[UnavailabilityWindow],
        ministries: Iterable[MinistryRef] = (),
    ):
        self.target = target
        self.volunteers = list(volunteers)
        self.services = list(services)
        self.availability = AvailabilityIndex(unavailability)
        self.bookings = DayBookings(self.services)
        self.ministries = {str(m.id): m for m in ministries}
        self._history_cache: Dict[str, VolunteerHistory] = {}

    def suggest(self, requests: Sequence[SlotRequest], caller: CallerContext) -> List[Suggestion]:
        """Gera as sugestões na ordem dos pedidos.

        Um voluntário é sugerido para no máximo um ministério por chamada.
        Ministérios que o chamador não pode gerenciar são omitidos em silêncio.
        """
        validate_requests(requests)
        taken: Set[str] = set()
        results: List[Suggestion] = []
        for req in requests:
            if req.slots <= 0:
                continue
            ministry_id = str(req.ministry_id)
            if not can_manage(caller, ministry_id):
                log.info("suggest: ministério %s ignorado (sem permissão para %s)", ministry_id, caller.volunteer_id)
                continue
            ranked = self.rank_candidates(ministry_id, exclude=taken)
            chosen = [c.volunteer.id for c in ranked[: req.slots]]
            taken.update(chosen)
            results.append(Suggestion(
                ministry_id=ministry_id,
                ministry_name=self._ministry_name(ministry_id),
                requested_slots=req.slots,
                suggested_volunteer_ids=chosen,
                missing_slots=max(0, req.slots - len(chosen)),
            ))
        return results

    def rank_candidates(self, ministry_id: str, exclude: Iterable[str] = ()) -> List[CandidateScore]:
        """Candidatos elegíveis em ordem decrescente de pontuação (sort estável)."""
        excluded = set(exclude)
        valid: List[CandidateScore] = []
        for volunteer in self.volunteers:
            blocked, _ = self._check_blocks(volunteer, ministry_id, excluded)
            if not blocked:
                valid.append(self._score_volunteer(volunteer))
        valid.sort(key=lambda c: c.score, reverse=True)
        return valid

    def preview(self, ministry_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        """Ranking para exibição: elegíveis primeiro, depois os membros bloqueados com o motivo."""
        valid = self.rank_candidates(ministry_id)
        blocked: List[CandidateScore] = []
        for volunteer in self.volunteers:
            if not volunteer.belongs_to(ministry_id):
                continue
            is_blocked, reason = self._check_blocks(volunteer, ministry_id, set())
            if is_blocked:
                blocked.append(CandidateScore(volunteer=volunteer, history=None, score=0, blocked=True, reason=reason))
        blocked.sort(key=lambda c: c.volunteer.name)
        return [c.to_dict() for c in (valid + blocked)[:limit]]

    def _check_blocks(self, volunteer: VolunteerProfile, ministry_id: str, taken: Set[str]) -> Tuple[bool, Optional[str]]:
        """Verifica se o voluntário está impedido para este ministério nesta escala."""
        if not volunteer.belongs_to(ministry_id):
            return True, "fora do ministério"
        if self.target.has_volunteer(volunteer.id):
            return True, "já está nesta escala"
        if volunteer.id in taken:
            return True, "sugerido para outro ministério"
        if self.availability.is_unavailable(volunteer.id, self.target.date):
            return True, "indisponível na data"
        if self.bookings.is_booked_elsewhere(volunteer.id, self.target):
            return True, "já escalado no mesmo dia"
        return False, None

    def _score_volunteer(self, volunteer: VolunteerProfile) -> CandidateScore:
        history = self._history_cache.get(volunteer.id)
        if history is None:
            history = score_volunteer(volunteer.id, self.target.date, self.services)
            self._history_cache[volunteer.id] = history
        return CandidateScore(volunteer=volunteer, history=history, score=composite_score(history))

    def _ministry_name(self, ministry_id: str) -> str:
        ministry = self.ministries.get(ministry_id)
        return ministry.name if ministry else ""

# ===== Suggestion Functions =====

def build_engine(service_id: str, organization_id: str) -> SuggestionEngine:
    """Monta o motor com as leituras feitas numa única transação.

    Em READ COMMITTED cada consulta enxerga o seu próprio snapshot; o que
    for gravado é revalidado sob lock em ``AssignmentService.apply_suggestions``.
    """
    with transaction.atomic():
        snap = ProjectionRepository.organization_snapshot(service_id, organization_id)
    return SuggestionEngine(
        target=snap.target,
        volunteers=snap.volunteers,
        services=snap.services,
        unavailability=snap.unavailability,
        ministries=snap.ministries,
    )

def suggest_for_service(service_id: str, requests: Sequence[SlotRequest], caller: CallerContext) -> List[Suggestion]:
    """Sugere voluntários para uma escala persistida.

    Raises:
        SuggestionRequestInvalid: nenhum pedido com vagas.
        ServiceNotFound: escala inexistente na organização do chamador.
    """
    validate_requests(requests)
    engine = build_engine(service_id, caller.organization_id)
    suggestions = engine.suggest(requests, caller)
    log.info(
        "suggest_for_service: service=%s ministries=%d suggested=%d missing=%d",
        service_id,
        len(suggestions),
        sum(len(s.suggested_volunteer_ids) for s in suggestions),
        sum(s.missing_slots for s in suggestions),
    )
    return suggestions
