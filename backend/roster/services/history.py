"""Histórico e pontuação de voluntários para o ranking de sugestões.

Funções puras: recebem a data de corte e o snapshot de escalas explicitamente
(sem "hoje" implícito). A pontuação composta é::

    equilíbrio + confiabilidade + recência - penalidade por recusas

e os pesos abaixo não são configuráveis.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, Optional

from roster.domain.assignments import AssignmentStatus
from roster.domain.snapshots import ServiceSnapshot

RECENT_WINDOW = timedelta(weeks=8)
NEVER_ASSIGNED_DAYS = 999

BALANCE_BASE = 40
BALANCE_STEP = 6
RELIABILITY_WEIGHT = 25
NEW_VOLUNTEER_RELIABILITY = 12
RECENCY_CAP = 20
RECENCY_SATURATION_DAYS = 60
DECLINE_STEP = 2
DECLINE_CAP = 20

@dataclass(frozen=True)
class VolunteerHistory:
    """Estatísticas de um voluntário antes da data de corte."""
    volunteer_id: str
    total_assignments: int = 0
    confirmed_assignments: int = 0
    declined_assignments: int = 0
    recent_assignments_8w: int = 0
    days_since_last_assignment: int = NEVER_ASSIGNED_DAYS
    last_assignment_date: Optional[date] = None

def score_volunteer(volunteer_id: str, cutoff: date, services: Iterable[ServiceSnapshot]) -> VolunteerHistory:
    """Calcula o histórico do voluntário considerando só escalas anteriores a `cutoff`.

    Args:
        volunteer_id (str): O voluntário avaliado.
        cutoff (date): Data da escala sendo montada (exclusiva).
        services (Iterable[ServiceSnapshot]): Todas as escalas da organização.

    Returns:
        VolunteerHistory: Contagens, carga nas últimas 8 semanas e dias desde a última escala.
    """
    vid = str(volunteer_id)
    recent_start = cutoff - RECENT_WINDOW
    total = confirmed = declined = recent = 0
    last: Optional[date] = None

    for s in services:
        if s.date >= cutoff:
            continue
        status = s.status_of(vid)
        if status is None:
            continue
        total += 1
        if status == AssignmentStatus.CONFIRMED:
            confirmed += 1
        elif status == AssignmentStatus.DECLINED:
            declined += 1
        if s.date >= recent_start:
            recent += 1
        if last is None or s.date > last:
            last = s.date

    return VolunteerHistory(
        volunteer_id=vid,
        total_assignments=total,
        confirmed_assignments=confirmed,
        declined_assignments=declined,
        recent_assignments_8w=recent,
        days_since_last_assignment=(cutoff - last).days if last else NEVER_ASSIGNED_DAYS,
        last_assignment_date=last,
    )

# =========================
# Pontuação
# =========================

def balance_score(history: VolunteerHistory) -> float:
    return max(0, BALANCE_BASE - history.recent_assignments_8w * BALANCE_STEP)

def reliability_score(history: VolunteerHistory) -> float:
    if history.total_assignments > 0:
        return (history.confirmed_assignments / history.total_assignments) * RELIABILITY_WEIGHT
    return NEW_VOLUNTEER_RELIABILITY

def recency_score(history: VolunteerHistory) -> float:
    # nunca escalado: recência não pontua
    if history.last_assignment_date is None:
        return 0
    return min(RECENCY_CAP, (history.days_since_last_assignment / RECENCY_SATURATION_DAYS) * RECENCY_CAP)

def decline_penalty(history: VolunteerHistory) -> float:
    return min(DECLINE_CAP, history.declined_assignments * DECLINE_STEP)

def score_breakdown(history: VolunteerHistory) -> Dict[str, float]:
    return {
        "balance": balance_score(history),
        "reliability": reliability_score(history),
        "recency": recency_score(history),
        "decline_penalty": decline_penalty(history),
    }

def composite_score(history: VolunteerHistory) -> float:
    parts = score_breakdown(history)
    return parts["balance"] + parts["reliability"] + parts["recency"] - parts["decline_penalty"]
