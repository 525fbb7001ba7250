import pytest

from roster.domain.assignments import (
    NormalizedAssignments,
    PayloadShape,
    add_preacher,
    add_volunteer,
    assigned_volunteer_ids,
    assignment_stats,
    build_assignments_payload,
    classify_payload,
    merge_suggested,
    normalize_assignments,
    remove_volunteer,
    set_volunteer_status,
    staffing_state,
)

def test_legacy_list_is_migrated_to_structured():
    raw = [{"volunteerId": "v1", "status": "confirmed"}]
    assert classify_payload(raw) is PayloadShape.LEGACY_LIST
    normalized = normalize_assignments(raw)
    assert build_assignments_payload(normalized) == {
        "volunteers": [{"volunteerId": "v1", "status": "confirmed"}],
        "preachers": [],
    }

@pytest.mark.parametrize("raw", [None, 42, "texto", {"outra": "coisa"}, {"volunteers": "x", "preachers": None}])
def test_malformed_payloads_normalize_to_empty(raw):
    normalized = normalize_assignments(raw)
    assert normalized.volunteers == []
    assert normalized.preachers == []

def test_structured_missing_key_defaults_to_empty_list():
    normalized = normalize_assignments({"volunteers": [{"volunteerId": "v1", "status": "pending"}]})
    assert normalized.preachers == []
    assert assigned_volunteer_ids(normalized) == ["v1"]

def test_normalize_is_idempotent_over_payload():
    raw = {"volunteers": [{"volunteerId": "v1", "status": "pending"}], "preachers": [
        {"preacherId": "p1", "name": "Pr. Paulo", "role": "pregador"}
    ]}
    once = build_assignments_payload(normalize_assignments(raw))
    assert build_assignments_payload(normalize_assignments(once)) == once == raw

def test_add_volunteer_is_noop_when_present():
    base = normalize_assignments([{"volunteerId": "v1", "status": "confirmed"}])
    assert add_volunteer(base, "v1") is base
    updated = add_volunteer(base, "v2")
    assert updated.volunteers[-1] == {"volunteerId": "v2", "status": "pending"}
    assert len(base.volunteers) == 1

def test_remove_absent_volunteer_keeps_payload():
    base = normalize_assignments([{"volunteerId": "v1", "status": "pending"}])
    assert remove_volunteer(base, "v9") == base
    assert remove_volunteer(base, "v1").volunteers == []

def test_decline_then_reconfirm_drops_note():
    state = normalize_assignments([{"volunteerId": "v1", "status": "pending"}])
    state = set_volunteer_status(state, "v1", "declined", note="travel")
    assert state.volunteers == [{"volunteerId": "v1", "status": "declined", "note": "travel"}]
    state = set_volunteer_status(state, "v1", "confirmed")
    assert state.volunteers == [{"volunteerId": "v1", "status": "confirmed"}]

def test_set_status_errors():
    state = normalize_assignments([{"volunteerId": "v1", "status": "pending"}])
    with pytest.raises(ValueError):
        set_volunteer_status(state, "v1", "maybe")
    with pytest.raises(LookupError):
        set_volunteer_status(state, "v2", "confirmed")

def test_merge_suggested_skips_present_and_marks_note():
    state = normalize_assignments([{"volunteerId": "v1", "status": "confirmed"}])
    merged, added = merge_suggested(state, ["v1", "v2", "v2", "v3"], note="auto_schedule")
    assert added == ["v2", "v3"]
    assert merged.volunteers[0] == {"volunteerId": "v1", "status": "confirmed"}
    assert merged.volunteers[1] == {"volunteerId": "v2", "status": "pending", "note": "auto_schedule"}

def test_add_preacher_keeps_volunteers():
    state = normalize_assignments([{"volunteerId": "v1", "status": "pending"}])
    updated = add_preacher(state, "p1", "Pr. Paulo")
    assert updated.preachers == [{"preacherId": "p1", "name": "Pr. Paulo", "role": "pregador"}]
    assert updated.volunteers == state.volunteers
    assert add_preacher(updated, "p1", "Outro") is updated

def test_stats_and_staffing_state():
    assert staffing_state(assignment_stats(NormalizedAssignments())) == "empty"
    state = normalize_assignments([
        {"volunteerId": "v1", "status": "confirmed"},
        {"volunteerId": "v2", "status": "pending"},
        {"volunteerId": "v3", "status": "declined"},
    ])
    stats = assignment_stats(state)
    assert stats == {"total": 3, "confirmed": 1, "declined": 1, "pending": 1}
    assert staffing_state(stats) == "partial"
    done = normalize_assignments([{"volunteerId": "v1", "status": "confirmed"}])
    assert staffing_state(assignment_stats(done)) == "complete"
