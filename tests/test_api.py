from datetime import timedelta

import pytest

from roster.domain.models import AccessLevel, Preacher, Service, Unavailability

from conftest import SUNDAY

def _login(api_client, volunteer):
    api_client.force_authenticate(user=volunteer.user)
    return api_client

@pytest.mark.django_db
def test_requires_authentication(api_client):
    resp = api_client.get("/api/v1/services/")
    assert resp.status_code in (401, 403)

@pytest.mark.django_db
def test_user_without_volunteer_profile_is_forbidden(api_client, django_user_model):
    api_client.force_authenticate(user=django_user_model.objects.create_user("solto", "s@example.com", "pw"))
    assert api_client.get("/api/v1/services/").status_code == 403

@pytest.mark.django_db
def test_list_normalizes_legacy_payloads(api_client, admin, make_service):
    make_service(assignments=[{"volunteerId": "v1", "status": "confirmed"}])
    make_service(d=SUNDAY + timedelta(days=7), title="Outro")
    resp = _login(api_client, admin).get("/api/v1/services/", {"end": SUNDAY.isoformat()})
    assert resp.status_code == 200
    [item] = resp.json()
    assert item["assignments"] == {"volunteers": [{"volunteerId": "v1", "status": "confirmed"}], "preachers": []}
    assert item["state"] == "complete"

@pytest.mark.django_db
def test_create_recurring_services(api_client, admin, culto):
    resp = _login(api_client, admin).post("/api/v1/services/", {
        "date": SUNDAY.isoformat(),
        "eventTypeId": str(culto.id),
        "recurrence": "weekly",
        "endDate": (SUNDAY + timedelta(weeks=2)).isoformat(),
    }, format="json")
    assert resp.status_code == 201
    assert [s["displayTitle"] for s in resp.json()] == ["Culto de Domingo"] * 3

@pytest.mark.django_db
def test_plain_volunteer_cannot_create(api_client, make_volunteer):
    ana = make_volunteer("Ana", username="ana")
    resp = _login(api_client, ana).post("/api/v1/services/", {"date": SUNDAY.isoformat(), "title": "X"}, format="json")
    assert resp.status_code == 403

@pytest.mark.django_db
def test_add_volunteer_conflict_then_force(api_client, admin, make_service, make_volunteer):
    ana = make_volunteer("Ana")
    make_service(title="Culto da noite", assignments=[{"volunteerId": str(ana.id), "status": "pending"}])
    manha = make_service(title="Culto da manhã")
    client = _login(api_client, admin)
    url = f"/api/v1/services/{manha.id}/volunteers/"

    resp = client.post(url, {"volunteerId": str(ana.id)}, format="json")
    assert resp.status_code == 409
    assert resp.json()["conflicts"]["volunteers"][0]["examples"] == ["Culto da noite"]

    resp = client.post(url, {"volunteerId": str(ana.id), "force": True}, format="json")
    assert resp.status_code == 201
    assert resp.json()["assignments"]["volunteers"] == [{"volunteerId": str(ana.id), "status": "pending"}]

    detail = client.get(f"/api/v1/services/{manha.id}/").json()
    assert detail["conflicts"]["total"] == 1

@pytest.mark.django_db
def test_add_unavailable_volunteer_returns_window(api_client, org, admin, make_service, make_volunteer):
    ana = make_volunteer("Ana")
    Unavailability.objects.create(organization=org, volunteer=ana, start_date=SUNDAY, end_date=SUNDAY, reason="viagem")
    service = make_service()
    resp = _login(api_client, admin).post(
        f"/api/v1/services/{service.id}/volunteers/", {"volunteerId": str(ana.id), "force": True}, format="json"
    )
    assert resp.status_code == 409
    assert resp.json()["unavailability"]["reason"] == "viagem"

@pytest.mark.django_db
def test_volunteer_responds_only_for_self(api_client, make_service, make_volunteer):
    ana = make_volunteer("Ana", username="ana")
    bia = make_volunteer("Bia")
    service = make_service(assignments=[
        {"volunteerId": str(ana.id), "status": "pending"},
        {"volunteerId": str(bia.id), "status": "pending"},
    ])
    client = _login(api_client, ana)
    base = f"/api/v1/services/{service.id}/volunteers"

    resp = client.patch(f"{base}/{ana.id}/status/", {"status": "declined", "note": "travel"}, format="json")
    assert resp.status_code == 200
    assert resp.json()["assignments"]["volunteers"][0] == {
        "volunteerId": str(ana.id), "status": "declined", "note": "travel"
    }
    assert client.patch(f"{base}/{bia.id}/status/", {"status": "confirmed"}, format="json").status_code == 403
    assert client.patch(f"{base}/{ana.id}/status/", {"status": "talvez"}, format="json").status_code == 400

@pytest.mark.django_db
def test_suggest_and_apply(api_client, make_volunteer, make_service, louvor, midia):
    lider = make_volunteer("Líder", louvor, leader_of=(louvor,), access_level=AccessLevel.LEADER, username="lider")
    ana = make_volunteer("Ana", louvor)
    make_volunteer("Caio", midia)
    service = make_service()
    client = _login(api_client, lider)

    resp = client.post(f"/api/v1/services/{service.id}/suggestions/", {"requests": [
        {"ministryId": str(louvor.id), "slots": 2},
        {"ministryId": str(midia.id), "slots": 1},
    ]}, format="json")
    assert resp.status_code == 200
    [suggestion] = resp.json()["suggestions"]
    assert suggestion["ministryId"] == str(louvor.id)
    assert set(suggestion["suggestedVolunteerIds"]) == {str(lider.id), str(ana.id)}
    assert suggestion["missingSlots"] == 0

    resp = client.post(f"/api/v1/services/{service.id}/suggestions/apply/", {"suggestions": [
        {"ministryId": suggestion["ministryId"], "suggestedVolunteerIds": suggestion["suggestedVolunteerIds"]},
    ]}, format="json")
    assert resp.status_code == 200
    notes = {v["note"] for v in Service.objects.get(pk=service.pk).assignments["volunteers"]}
    assert notes == {"auto_schedule"}

    forbidden = client.post(f"/api/v1/services/{service.id}/suggestions/apply/", {"suggestions": [
        {"ministryId": str(midia.id), "suggestedVolunteerIds": []},
    ]}, format="json")
    assert forbidden.status_code == 403

@pytest.mark.django_db
def test_apply_ignores_ids_outside_ministry_or_unavailable(api_client, org, make_volunteer, make_service, louvor, midia):
    lider = make_volunteer("Líder", louvor, leader_of=(louvor,), access_level=AccessLevel.LEADER, username="lider")
    ana = make_volunteer("Ana", louvor)
    caio = make_volunteer("Caio", midia)
    Unavailability.objects.create(organization=org, volunteer=ana, start_date=SUNDAY, end_date=SUNDAY)
    service = make_service()

    resp = _login(api_client, lider).post(f"/api/v1/services/{service.id}/suggestions/apply/", {"suggestions": [
        {"ministryId": str(louvor.id), "suggestedVolunteerIds": [
            str(ana.id), str(caio.id), "00000000-0000-0000-0000-000000000001", str(lider.id),
        ]},
    ]}, format="json")

    assert resp.status_code == 200
    stored = Service.objects.get(pk=service.pk).assignments["volunteers"]
    assert [v["volunteerId"] for v in stored] == [str(lider.id)]

@pytest.mark.django_db
def test_suggestions_need_positive_slots(api_client, admin, make_service, louvor):
    service = make_service()
    resp = _login(api_client, admin).post(f"/api/v1/services/{service.id}/suggestions/", {"requests": [
        {"ministryId": str(louvor.id), "slots": 0},
    ]}, format="json")
    assert resp.status_code == 400

@pytest.mark.django_db
def test_add_preacher_by_name_creates_registry_entry(api_client, org, admin, make_service):
    service = make_service()
    client = _login(api_client, admin)
    resp = client.post(f"/api/v1/services/{service.id}/preachers/",
                       {"name": "Pr. João", "type": "convidado", "church": "Igreja Irmã"}, format="json")
    assert resp.status_code == 201
    preacher = Preacher.objects.get(organization=org)
    assert resp.json()["assignments"]["preachers"] == [
        {"preacherId": str(preacher.id), "name": "Pr. João", "role": "pregador"}
    ]
    resp = client.delete(f"/api/v1/services/{service.id}/preachers/{preacher.id}/")
    assert resp.json()["assignments"]["preachers"] == []

@pytest.mark.django_db
def test_delete_service_and_missing_service(api_client, admin, make_service):
    service = make_service()
    client = _login(api_client, admin)
    assert client.delete(f"/api/v1/services/{service.id}/").status_code == 204
    assert client.get(f"/api/v1/services/{service.id}/").status_code == 404

@pytest.mark.django_db
def test_my_schedules_lists_assigned_services(api_client, make_service, make_volunteer):
    ana = make_volunteer("Ana", username="ana")
    make_service(assignments=[{"volunteerId": str(ana.id), "status": "confirmed"}])
    make_service(title="Sem Ana")
    resp = _login(api_client, ana).get("/api/v1/me/schedules/", {"start": SUNDAY.isoformat()})
    assert resp.status_code == 200
    [item] = resp.json()
    assert item["myStatus"] == "confirmed"
