from datetime import date, timedelta

import pytest

from roster.domain.assignments import normalize_assignments
from roster.domain.snapshots import (
    CallerContext,
    MinistryRef,
    ServiceSnapshot,
    UnavailabilityWindow,
    VolunteerProfile,
)
from roster.exceptions import SuggestionRequestInvalid
from roster.services.suggestion import SlotRequest, SuggestionEngine

DAY = date(2025, 10, 5)
ADMIN = CallerContext(volunteer_id="adm", organization_id="org", access_level="admin")
MINISTRIES = [MinistryRef(id="m1", name="Louvor"), MinistryRef(id="m2", name="Mídia")]

def _vol(vid, *ministries):
    return VolunteerProfile(id=vid, name=vid.upper(), ministry_ids=frozenset(ministries))

def _svc(sid, *volunteer_ids, d=DAY, title=None, status="pending"):
    raw = [{"volunteerId": v, "status": status} for v in volunteer_ids]
    return ServiceSnapshot(id=sid, date=d, title=title or sid, assignments=normalize_assignments(raw))

def _engine(volunteers, services=(), unavailability=(), target=None):
    target = target or _svc("alvo")
    return SuggestionEngine(
        target=target,
        volunteers=volunteers,
        services=[target, *services],
        unavailability=unavailability,
        ministries=MINISTRIES,
    )

def test_full_slate_and_missing_slots():
    engine = _engine([_vol("a", "m1"), _vol("b", "m1"), _vol("c", "m2")])
    [full] = engine.suggest([SlotRequest("m1", 2)], ADMIN)
    assert sorted(full.suggested_volunteer_ids) == ["a", "b"]
    assert full.missing_slots == 0

    [short] = engine.suggest([SlotRequest("m1", 3)], ADMIN)
    assert sorted(short.suggested_volunteer_ids) == ["a", "b"]
    assert short.missing_slots == 1
    assert short.ministry_name == "Louvor"

def test_volunteer_is_suggested_for_one_ministry_only():
    engine = _engine([_vol("a", "m1", "m2"), _vol("b", "m2")])
    first, second = engine.suggest([SlotRequest("m1", 1), SlotRequest("m2", 2)], ADMIN)
    assert first.suggested_volunteer_ids == ["a"]
    assert second.suggested_volunteer_ids == ["b"]
    assert second.missing_slots == 1

def test_unavailable_volunteer_never_suggested():
    window = UnavailabilityWindow(volunteer_id="a", start_date=DAY, end_date=DAY + timedelta(days=3))
    engine = _engine([_vol("a", "m1"), _vol("b", "m1")], unavailability=[window])
    [result] = engine.suggest([SlotRequest("m1", 2)], ADMIN)
    assert result.suggested_volunteer_ids == ["b"]
    assert result.missing_slots == 1

def test_excludes_assigned_and_same_day_booked():
    target = _svc("alvo", "a")
    noite = _svc("noite", "b", title="Culto da noite")
    engine = _engine([_vol("a", "m1"), _vol("b", "m1"), _vol("c", "m1")], services=[noite], target=target)
    [result] = engine.suggest([SlotRequest("m1", 3)], ADMIN)
    assert result.suggested_volunteer_ids == ["c"]

def test_rested_volunteer_ranks_first():
    busy = [_svc(f"s{i}", "a", d=DAY - timedelta(weeks=i + 1), status="confirmed") for i in range(4)]
    engine = _engine([_vol("a", "m1"), _vol("b", "m1")], services=busy)
    [result] = engine.suggest([SlotRequest("m1", 1)], ADMIN)
    assert result.suggested_volunteer_ids == ["b"]

def test_ties_keep_input_order():
    engine = _engine([_vol("z", "m1"), _vol("a", "m1")])
    ranked = engine.rank_candidates("m1")
    assert [c.volunteer.id for c in ranked] == ["z", "a"]

def test_leader_only_gets_own_ministries():
    leader = CallerContext(volunteer_id="l", organization_id="org", leader_ministry_ids=frozenset({"m2"}))
    engine = _engine([_vol("a", "m1"), _vol("b", "m2")])
    results = engine.suggest([SlotRequest("m1", 1), SlotRequest("m2", 1)], leader)
    assert [r.ministry_id for r in results] == ["m2"]

def test_non_positive_slots_are_skipped_but_total_must_be_positive():
    engine = _engine([_vol("a", "m1")])
    results = engine.suggest([SlotRequest("m2", 0), SlotRequest("m1", 1)], ADMIN)
    assert [r.ministry_id for r in results] == ["m1"]
    with pytest.raises(SuggestionRequestInvalid):
        engine.suggest([SlotRequest("m1", 0)], ADMIN)
    with pytest.raises(SuggestionRequestInvalid):
        engine.suggest([], ADMIN)

def test_preview_lists_blocked_members_with_reason():
    window = UnavailabilityWindow(volunteer_id="b", start_date=DAY, end_date=DAY)
    engine = _engine([_vol("a", "m1"), _vol("b", "m1"), _vol("c", "m2")], unavailability=[window])
    rows = engine.preview("m1")
    assert [r["volunteerId"] for r in rows] == ["a", "b"]
    assert rows[0]["blocked"] is False and rows[0]["score"] == 52
    assert rows[1]["reason"] == "indisponível na data"
