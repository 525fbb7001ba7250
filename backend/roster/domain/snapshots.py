from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import FrozenSet, Optional

from roster.domain.assignments import NormalizedAssignments, find_volunteer_assignment, assigned_volunteer_ids

WEEKDAYS_PT = (
    "segunda-feira",
    "terça-feira",
    "quarta-feira",
    "quinta-feira",
    "sexta-feira",
    "sábado",
    "domingo",
)

def display_title(title: Optional[str], event_type_name: Optional[str], day: date) -> str:
    """Título exibido: título próprio, senão nome do tipo, senão 'domingo 05/10'."""
    if title and title.strip():
        return title.strip()
    if event_type_name:
        return event_type_name
    return f"{WEEKDAYS_PT[day.weekday()]} {day:%d/%m}"

# =========================
# Snapshots (somente leitura durante um cálculo)
# =========================

@dataclass(frozen=True)
class ServiceSnapshot:
    id: str
    date: date
    title: str
    assignments: NormalizedAssignments = field(default_factory=NormalizedAssignments, compare=False)
    organization_id: Optional[str] = None

    @property
    def volunteer_ids(self) -> FrozenSet[str]:
        return frozenset(assigned_volunteer_ids(self.assignments))

    def has_volunteer(self, volunteer_id: str) -> bool:
        return find_volunteer_assignment(self.assignments, volunteer_id) is not None

    def status_of(self, volunteer_id: str) -> Optional[str]:
        item = find_volunteer_assignment(self.assignments, volunteer_id)
        return item.get("status") if item is not None else None

@dataclass(frozen=True)
class VolunteerProfile:
    id: str
    name: str
    access_level: str = "volunteer"
    ministry_ids: FrozenSet[str] = frozenset()
    leader_ministry_ids: FrozenSet[str] = frozenset()

    def belongs_to(self, ministry_id: str) -> bool:
        return str(ministry_id) in self.ministry_ids

@dataclass(frozen=True)
class UnavailabilityWindow:
    volunteer_id: str
    start_date: date
    end_date: date
    reason: Optional[str] = None
    id: Optional[str] = None

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

@dataclass(frozen=True)
class MinistryRef:
    id: str
    name: str

@dataclass(frozen=True)
class CallerContext:
    """Quem está chamando: fornecido pela camada de identidade, nunca calculado aqui."""
    volunteer_id: Optional[str]
    organization_id: Optional[str]
    access_level: str = "volunteer"
    leader_ministry_ids: FrozenSet[str] = frozenset()
    can_manage_preaching_schedule: bool = False

    @property
    def is_admin(self) -> bool:
        return self.access_level == "admin"

    @property
    def is_leader(self) -> bool:
        return self.access_level == "leader" or bool(self.leader_ministry_ids)
