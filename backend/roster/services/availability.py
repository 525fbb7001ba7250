from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Optional

from roster.domain.snapshots import UnavailabilityWindow


def find_unavailability(
    volunteer_id: str,
    day: date,
    windows: Iterable[UnavailabilityWindow],
) -> Optional[UnavailabilityWindow]:
    """Retorna a indisponibilidade do voluntário que cobre a data, se houver.

    Havendo mais de uma, devolve a de menor start_date (empate: menor end_date,
    depois a ordem de entrada), para que o resultado seja determinístico.
    """
    target = str(volunteer_id)
    matches = [w for w in windows if str(w.volunteer_id) == target and w.covers(day)]
    if not matches:
        return None
    return min(matches, key=lambda w: (w.start_date, w.end_date))

def is_unavailable(volunteer_id: str, day: date, windows: Iterable[UnavailabilityWindow]) -> bool:
    return find_unavailability(volunteer_id, day, windows) is not None

class AvailabilityIndex:
    """Indexa as janelas por voluntário para consultas repetidas no mesmo cálculo."""

    def __init__(self, windows: Iterable[UnavailabilityWindow]):
        self._by_volunteer: Dict[str, List[UnavailabilityWindow]] = {}
        for w in windows:
            self._by_volunteer.setdefault(str(w.volunteer_id), []).append(w)

    def blocking_window(self, volunteer_id: str, day: date) -> Optional[UnavailabilityWindow]:
        return find_unavailability(volunteer_id, day, self._by_volunteer.get(str(volunteer_id), ()))

    def is_unavailable(self, volunteer_id: str, day: date) -> bool:
        return self.blocking_window(volunteer_id, day) is not None
