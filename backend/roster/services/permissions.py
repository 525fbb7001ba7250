from __future__ import annotations

from typing import Mapping

from roster.domain.snapshots import CallerContext, ServiceSnapshot, VolunteerProfile

# =========================
# Predicado central
# =========================

def can_manage(caller: CallerContext, ministry_id: str) -> bool:
    """Admin gerencia qualquer ministério; os demais só os que lideram."""
    if caller.is_admin:
        return True
    return str(ministry_id) in caller.leader_ministry_ids

# =========================
# Regras derivadas
# =========================

def can_manage_services(caller: CallerContext) -> bool:
    return caller.is_admin or caller.is_leader

def can_delete_service(
    caller: CallerContext,
    service: ServiceSnapshot,
    volunteers: Mapping[str, VolunteerProfile],
) -> bool:
    """Admin sempre; líder se a escala estiver vazia ou se todos os voluntários
    escalados pertencerem a algum ministério que ele lidera."""
    if caller.is_admin:
        return True
    if not caller.is_leader:
        return False
    assigned = service.volunteer_ids
    if not assigned:
        return True
    if not caller.leader_ministry_ids:
        return False
    for volunteer_id in assigned:
        profile = volunteers.get(volunteer_id)
        if profile is None:
            return False
        if not any(can_manage(caller, mid) for mid in profile.ministry_ids):
            return False
    return True

def can_manage_preachers(caller: CallerContext) -> bool:
    return caller.is_admin or caller.can_manage_preaching_schedule

def can_respond(caller: CallerContext, volunteer_id: str) -> bool:
    """Voluntário responde só pela própria atribuição; admin/líder por qualquer uma."""
    if can_manage_services(caller):
        return True
    return caller.volunteer_id is not None and str(caller.volunteer_id) == str(volunteer_id)
