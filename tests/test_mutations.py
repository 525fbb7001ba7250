from datetime import timedelta

import pytest

from roster.domain.models import Preacher, Service, Unavailability
from roster.domain.repositories import ProjectionRepository
from roster.exceptions import (
    AssignmentNotFound,
    InvalidAssignmentStatus,
    PreacherNotFound,
    SameDayConflict,
    ServiceNotFound,
    VolunteerNotFound,
    VolunteerUnavailable,
)
from roster.services.mutations import AssignmentService
from roster.services.suggestion import Suggestion

from conftest import SUNDAY

def _stored(service):
    return Service.objects.get(pk=service.pk).assignments

@pytest.mark.django_db
def test_add_volunteer_is_idempotent(make_service, make_volunteer, louvor):
    service = make_service()
    ana = make_volunteer("Ana", louvor)
    AssignmentService.add_volunteer(service.id, ana.id)
    AssignmentService.add_volunteer(service.id, ana.id)
    assert _stored(service) == {"volunteers": [{"volunteerId": str(ana.id), "status": "pending"}], "preachers": []}

@pytest.mark.django_db
def test_add_volunteer_rewrites_legacy_payload(make_service, make_volunteer):
    ana = make_volunteer("Ana")
    bia = make_volunteer("Bia")
    service = make_service(assignments=[{"volunteerId": str(ana.id), "status": "confirmed"}])
    AssignmentService.add_volunteer(service.id, bia.id)
    stored = _stored(service)
    assert stored["preachers"] == []
    assert [v["volunteerId"] for v in stored["volunteers"]] == [str(ana.id), str(bia.id)]

@pytest.mark.django_db
def test_unavailability_blocks_even_with_force(org, make_service, make_volunteer):
    service = make_service()
    ana = make_volunteer("Ana")
    Unavailability.objects.create(organization=org, volunteer=ana, start_date=SUNDAY - timedelta(days=1),
                                  end_date=SUNDAY, reason="viagem")
    with pytest.raises(VolunteerUnavailable) as exc:
        AssignmentService.add_volunteer(service.id, ana.id, force=True)
    assert exc.value.reason == "viagem"
    assert _stored(service)["volunteers"] == []

@pytest.mark.django_db
def test_same_day_conflict_can_be_forced(make_service, make_volunteer):
    ana = make_volunteer("Ana")
    make_service(title="Culto da noite", assignments=[{"volunteerId": str(ana.id), "status": "confirmed"}])
    manha = make_service(title="Culto da manhã")

    with pytest.raises(SameDayConflict) as exc:
        AssignmentService.add_volunteer(manha.id, ana.id)
    assert exc.value.titles == {"Culto da noite"}

    AssignmentService.add_volunteer(manha.id, ana.id, force=True)
    assert _stored(manha)["volunteers"][0]["volunteerId"] == str(ana.id)

@pytest.mark.django_db
def test_unknown_ids_raise(make_service, make_volunteer):
    service = make_service()
    with pytest.raises(ServiceNotFound):
        AssignmentService.add_volunteer("00000000-0000-0000-0000-000000000000", make_volunteer("Ana").id)
    with pytest.raises(VolunteerNotFound):
        AssignmentService.add_volunteer(service.id, "00000000-0000-0000-0000-000000000000")
    with pytest.raises(PreacherNotFound):
        AssignmentService.add_preacher(service.id, "00000000-0000-0000-0000-000000000000")

@pytest.mark.django_db
def test_remove_volunteer_absent_is_noop(make_service, make_volunteer):
    ana = make_volunteer("Ana")
    service = make_service(assignments=[{"volunteerId": str(ana.id), "status": "pending"}])
    AssignmentService.remove_volunteer(service.id, "outro")
    assert _stored(service) == [{"volunteerId": str(ana.id), "status": "pending"}]
    AssignmentService.remove_volunteer(service.id, ana.id)
    assert _stored(service) == {"volunteers": [], "preachers": []}

@pytest.mark.django_db
def test_update_status_decline_then_confirm(make_service, make_volunteer):
    ana = make_volunteer("Ana")
    service = make_service(assignments={"volunteers": [{"volunteerId": str(ana.id), "status": "pending"}]})
    AssignmentService.update_status(service.id, ana.id, "declined", note="travel")
    assert _stored(service)["volunteers"] == [{"volunteerId": str(ana.id), "status": "declined", "note": "travel"}]
    AssignmentService.update_status(service.id, ana.id, "confirmed")
    assert _stored(service)["volunteers"] == [{"volunteerId": str(ana.id), "status": "confirmed"}]

    with pytest.raises(InvalidAssignmentStatus):
        AssignmentService.update_status(service.id, ana.id, "maybe")
    with pytest.raises(AssignmentNotFound):
        AssignmentService.update_status(service.id, "outro", "confirmed")

@pytest.mark.django_db
def test_apply_suggestions_marks_note_and_skips_present(make_service, make_volunteer, louvor, admin):
    ana = make_volunteer("Ana", louvor)
    bia = make_volunteer("Bia", louvor)
    service = make_service(assignments=[{"volunteerId": str(ana.id), "status": "confirmed"}])
    caller = ProjectionRepository.caller_context(admin)
    suggestion = Suggestion(ministry_id=str(louvor.id), ministry_name="Louvor", requested_slots=2,
                            suggested_volunteer_ids=[str(ana.id), str(bia.id)])

    _, added = AssignmentService.apply_suggestions(service.id, [suggestion], caller=caller)

    assert added == [str(bia.id)]
    assert _stored(service)["volunteers"] == [
        {"volunteerId": str(ana.id), "status": "confirmed"},
        {"volunteerId": str(bia.id), "status": "pending", "note": "auto_schedule"},
    ]

@pytest.mark.django_db
def test_apply_suggestions_drops_ineligible_ids(org, make_service, make_volunteer, louvor, midia, admin):
    ana = make_volunteer("Ana", louvor)
    bia = make_volunteer("Bia", louvor)
    caio = make_volunteer("Caio", midia)
    Unavailability.objects.create(organization=org, volunteer=ana, start_date=SUNDAY, end_date=SUNDAY)
    service = make_service()
    caller = ProjectionRepository.caller_context(admin)
    suggestion = Suggestion(ministry_id=str(louvor.id), ministry_name="Louvor", requested_slots=4,
                            suggested_volunteer_ids=[str(ana.id), str(caio.id),
                                                     "00000000-0000-0000-0000-000000000001", str(bia.id)])

    _, added = AssignmentService.apply_suggestions(service.id, [suggestion], caller=caller)

    assert added == [str(bia.id)]
    assert [v["volunteerId"] for v in _stored(service)["volunteers"]] == [str(bia.id)]

@pytest.mark.django_db
def test_preachers_snapshot_name(org, make_service):
    service = make_service()
    paulo = Preacher.objects.create(organization=org, name="Pr. Paulo", name_normalized="pr. paulo")
    AssignmentService.add_preacher(service.id, paulo.id)
    assert _stored(service)["preachers"] == [{"preacherId": str(paulo.id), "name": "Pr. Paulo", "role": "pregador"}]
    AssignmentService.remove_preacher(service.id, paulo.id)
    assert _stored(service)["preachers"] == []
