from __future__ import annotations

from datetime import date
from typing import Dict, Optional, Set


class RosterError(Exception):
    """Erro de domínio da escala."""


class ServiceNotFound(RosterError):
    def __init__(self, service_id):
        super().__init__(f"Escala {service_id} não encontrada.")
        self.service_id = service_id


class AssignmentNotFound(RosterError):
    def __init__(self, service_id, volunteer_id):
        super().__init__(f"Voluntário {volunteer_id} não está na escala {service_id}.")
        self.service_id = service_id
        self.volunteer_id = volunteer_id


class InvalidAssignmentStatus(RosterError):
    def __init__(self, status):
        super().__init__(f"Status inválido: {status!r}.")
        self.status = status


class VolunteerUnavailable(RosterError):
    """Voluntário com indisponibilidade cobrindo a data. Não admite override."""

    def __init__(self, volunteer_id, start_date: date, end_date: date, reason: Optional[str] = None):
        super().__init__(
            f"Voluntário {volunteer_id} indisponível de {start_date.isoformat()} a {end_date.isoformat()}."
        )
        self.volunteer_id = volunteer_id
        self.start_date = start_date
        self.end_date = end_date
        self.reason = reason


class SameDayConflict(RosterError):
    """Voluntário já escalado em outro evento no mesmo dia. Admite override (force)."""

    def __init__(self, volunteer_id, titles: Set[str]):
        super().__init__(f"Voluntário {volunteer_id} já está escalado no mesmo dia.")
        self.volunteer_id = volunteer_id
        self.titles = set(titles)

    def as_conflicts(self) -> Dict[str, Set[str]]:
        return {str(self.volunteer_id): self.titles}


class SuggestionRequestInvalid(RosterError):
    pass


class ServiceValidationError(RosterError):
    pass


class VolunteerNotFound(RosterError):
    def __init__(self, volunteer_id):
        super().__init__(f"Voluntário {volunteer_id} não encontrado.")
        self.volunteer_id = volunteer_id


class PreacherNotFound(RosterError):
    def __init__(self, preacher_id):
        super().__init__(f"Pregador {preacher_id} não encontrado.")
        self.preacher_id = preacher_id
