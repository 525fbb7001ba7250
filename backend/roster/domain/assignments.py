"""Payload de atribuições de uma escala (Service.assignments).

O campo é JSON e convive com dois formatos persistidos:

* legado: lista simples de atribuições de voluntários;
* estruturado: ``{"volunteers": [...], "preachers": [...]}``.

Toda leitura passa por :func:`normalize_assignments`, que decide o formato uma
única vez e devolve sempre :class:`NormalizedAssignments`. Toda escrita passa por
:func:`build_assignments_payload`, que emite somente o formato estruturado.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from django.db import models

PREACHER_ROLE = "pregador"

# =========================
# Choices
# =========================

class AssignmentStatus(models.TextChoices):
    PENDING = "pending", "Pendente"
    CONFIRMED = "confirmed", "Confirmado"
    DECLINED = "declined", "Recusou"

class PayloadShape(Enum):
    EMPTY = "empty"
    LEGACY_LIST = "legacy_list"
    STRUCTURED = "structured"
    MALFORMED = "malformed"

# =========================
# Forma canônica
# =========================

@dataclass
class NormalizedAssignments:
    """Forma canônica em memória: as duas listas sempre presentes."""
    volunteers: List[Dict[str, Any]] = field(default_factory=list)
    preachers: List[Dict[str, Any]] = field(default_factory=list)

    def to_payload(self) -> Dict[str, List[Dict[str, Any]]]:
        return build_assignments_payload(self)

def empty_assignments() -> Dict[str, List[Any]]:
    """Payload padrão de uma escala nova."""
    return {"volunteers": [], "preachers": []}

def classify_payload(raw: Any) -> PayloadShape:
    if raw is None:
        return PayloadShape.EMPTY
    if isinstance(raw, (list, tuple)):
        return PayloadShape.LEGACY_LIST
    if isinstance(raw, Mapping) and ("volunteers" in raw or "preachers" in raw):
        return PayloadShape.STRUCTURED
    return PayloadShape.MALFORMED

def _list_or_empty(value: Any) -> List[Any]:
    return list(value) if isinstance(value, list) else []

def normalize_assignments(raw: Any) -> NormalizedAssignments:
    """Converte qualquer payload persistido na forma canônica. Nunca lança exceção."""
    shape = classify_payload(raw)
    if shape is PayloadShape.LEGACY_LIST:
        return NormalizedAssignments(volunteers=list(raw), preachers=[])
    if shape is PayloadShape.STRUCTURED:
        return NormalizedAssignments(
            volunteers=_list_or_empty(raw.get("volunteers")),
            preachers=_list_or_empty(raw.get("preachers")),
        )
    return NormalizedAssignments()

def build_assignments_payload(normalized: NormalizedAssignments) -> Dict[str, List[Dict[str, Any]]]:
    """Serializa a forma canônica para persistência (sempre estruturado)."""
    return {
        "volunteers": list(normalized.volunteers),
        "preachers": list(normalized.preachers),
    }

# =========================
# Leitura
# =========================

def _volunteer_id(item: Any) -> Optional[str]:
    if not isinstance(item, Mapping):
        return None
    vid = item.get("volunteerId")
    return str(vid) if vid is not None else None

def _preacher_id(item: Any) -> Optional[str]:
    if not isinstance(item, Mapping):
        return None
    pid = item.get("preacherId")
    return str(pid) if pid is not None else None

def assigned_volunteer_ids(normalized: NormalizedAssignments) -> List[str]:
    """IDs dos voluntários escalados, na ordem do payload e sem repetição."""
    seen: List[str] = []
    for item in normalized.volunteers:
        vid = _volunteer_id(item)
        if vid is not None and vid not in seen:
            seen.append(vid)
    return seen

def assigned_preacher_ids(normalized: NormalizedAssignments) -> List[str]:
    return [pid for pid in (_preacher_id(p) for p in normalized.preachers) if pid is not None]

def find_volunteer_assignment(normalized: NormalizedAssignments, volunteer_id: Any) -> Optional[Dict[str, Any]]:
    target = str(volunteer_id)
    for item in normalized.volunteers:
        if _volunteer_id(item) == target:
            return item
    return None

def assignment_stats(normalized: NormalizedAssignments) -> Dict[str, int]:
    """Contagem de atribuições por status."""
    statuses = [item.get("status") for item in normalized.volunteers if isinstance(item, Mapping)]
    confirmed = statuses.count(AssignmentStatus.CONFIRMED)
    declined = statuses.count(AssignmentStatus.DECLINED)
    total = len(normalized.volunteers)
    return {
        "total": total,
        "confirmed": confirmed,
        "declined": declined,
        "pending": total - confirmed - declined,
    }

def staffing_state(stats: Dict[str, int]) -> str:
    """Resumo da escala: empty / complete / partial / pending."""
    if stats["total"] == 0:
        return "empty"
    if stats["confirmed"] == stats["total"]:
        return "complete"
    if stats["confirmed"] > 0:
        return "partial"
    return "pending"

# =========================
# Operações puras (retornam nova instância)
# =========================

def add_volunteer(
    normalized: NormalizedAssignments,
    volunteer_id: Any,
    *,
    note: Optional[str] = None,
) -> NormalizedAssignments:
    """Acrescenta o voluntário como pending. Sem efeito se já presente."""
    if find_volunteer_assignment(normalized, volunteer_id) is not None:
        return normalized
    entry: Dict[str, Any] = {"volunteerId": str(volunteer_id), "status": AssignmentStatus.PENDING.value}
    if note is not None:
        entry["note"] = note
    return NormalizedAssignments(
        volunteers=[*normalized.volunteers, entry],
        preachers=list(normalized.preachers),
    )

def remove_volunteer(normalized: NormalizedAssignments, volunteer_id: Any) -> NormalizedAssignments:
    target = str(volunteer_id)
    return NormalizedAssignments(
        volunteers=[item for item in normalized.volunteers if _volunteer_id(item) != target],
        preachers=list(normalized.preachers),
    )

def set_volunteer_status(
    normalized: NormalizedAssignments,
    volunteer_id: Any,
    status: str,
    note: Optional[str] = None,
) -> NormalizedAssignments:
    """Atualiza o status; a nota só sobrevive em 'declined'.

    Raises:
        ValueError: status fora de AssignmentStatus.
        LookupError: voluntário não está na escala.
    """
    if status not in AssignmentStatus.values:
        raise ValueError(status)
    target = str(volunteer_id)
    found = False
    volunteers: List[Any] = []
    for item in normalized.volunteers:
        if _volunteer_id(item) != target:
            volunteers.append(item)
            continue
        found = True
        updated = {k: v for k, v in item.items() if k != "note"}
        updated["status"] = AssignmentStatus(status).value
        if status == AssignmentStatus.DECLINED:
            updated["note"] = note if note is not None else ""
        volunteers.append(updated)
    if not found:
        raise LookupError(target)
    return NormalizedAssignments(volunteers=volunteers, preachers=list(normalized.preachers))

def merge_suggested(
    normalized: NormalizedAssignments,
    volunteer_ids: Iterable[Any],
    note: str,
) -> Tuple[NormalizedAssignments, List[str]]:
    """Acrescenta sugestões ainda ausentes, marcadas com a nota de origem."""
    current = set(assigned_volunteer_ids(normalized))
    added: List[str] = []
    volunteers = list(normalized.volunteers)
    for vid in volunteer_ids:
        vid = str(vid)
        if vid in current:
            continue
        volunteers.append({"volunteerId": vid, "status": AssignmentStatus.PENDING.value, "note": note})
        current.add(vid)
        added.append(vid)
    return NormalizedAssignments(volunteers=volunteers, preachers=list(normalized.preachers)), added

def add_preacher(
    normalized: NormalizedAssignments,
    preacher_id: Any,
    name: str,
    role: str = PREACHER_ROLE,
) -> NormalizedAssignments:
    if str(preacher_id) in assigned_preacher_ids(normalized):
        return normalized
    entry = {"preacherId": str(preacher_id), "name": name, "role": role}
    return NormalizedAssignments(
        volunteers=list(normalized.volunteers),
        preachers=[*normalized.preachers, entry],
    )

def remove_preacher(normalized: NormalizedAssignments, preacher_id: Any) -> NormalizedAssignments:
    target = str(preacher_id)
    return NormalizedAssignments(
        volunteers=list(normalized.volunteers),
        preachers=[p for p in normalized.preachers if _preacher_id(p) != target],
    )
