from __future__ import annotations

from typing import Any, Dict, Iterable, List, Set

from roster.domain.snapshots import ServiceSnapshot
from roster.utils import _get_setting

CONFLICT_PREVIEW_LIMIT = 3

# =========================
# Detecção
# =========================

def _same_day_others(target: ServiceSnapshot, services: Iterable[ServiceSnapshot]) -> List[ServiceSnapshot]:
    return [s for s in services if s.date == target.date and s.id != target.id]

def find_same_day_conflicts(
    target: ServiceSnapshot,
    services: Iterable[ServiceSnapshot],
) -> Dict[str, Set[str]]:
    """Voluntários da escala alvo que também estão em outra escala no mesmo dia.

    Qualquer status conta. Voluntários sem conflito ficam fora do resultado, e o
    resultado nunca é truncado (o corte é só na prévia, ver conflict_preview).

    Returns:
        Dict[str, Set[str]]: volunteer_id -> títulos das outras escalas do dia.
    """
    others = _same_day_others(target, services)
    conflicts: Dict[str, Set[str]] = {}
    for volunteer_id in target.volunteer_ids:
        titles = {s.title for s in others if s.has_volunteer(volunteer_id)}
        if titles:
            conflicts[volunteer_id] = titles
    return conflicts

def prospective_conflicts(
    volunteer_id: str,
    target: ServiceSnapshot,
    services: Iterable[ServiceSnapshot],
) -> Set[str]:
    """Títulos das OUTRAS escalas do dia em que o candidato já está escalado."""
    vid = str(volunteer_id)
    return {s.title for s in _same_day_others(target, services) if s.has_volunteer(vid)}

class DayBookings:
    """Índice data -> {volunteer_id: títulos}, montado uma vez por cálculo."""

    def __init__(self, services: Iterable[ServiceSnapshot]):
        self._by_date: Dict[Any, List[ServiceSnapshot]] = {}
        for s in services:
            self._by_date.setdefault(s.date, []).append(s)

    def titles_for(self, volunteer_id: str, target: ServiceSnapshot) -> Set[str]:
        return prospective_conflicts(volunteer_id, target, self._by_date.get(target.date, ()))

    def is_booked_elsewhere(self, volunteer_id: str, target: ServiceSnapshot) -> bool:
        return bool(self.titles_for(volunteer_id, target))

# =========================
# Prévia para a interface
# =========================

def conflict_preview(conflicts: Dict[str, Set[str]], limit: int | None = None) -> Dict[str, Any]:
    """Resume o mapa de conflitos: poucos exemplos por voluntário + excedente."""
    if limit is None:
        limit = int(_get_setting("ROSTER_CONFLICT_PREVIEW_LIMIT", CONFLICT_PREVIEW_LIMIT))
    volunteers = []
    total = 0
    for volunteer_id in sorted(conflicts):
        titles = sorted(conflicts[volunteer_id])
        total += len(titles)
        volunteers.append({
            "volunteerId": volunteer_id,
            "examples": titles[:limit],
            "overflow": max(0, len(titles) - limit),
        })
    return {"total": total, "volunteers": volunteers}
