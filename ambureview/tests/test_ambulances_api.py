"""
Ambulance API tests: fleet CRUD, check-in, workflow and crew scoping.
"""

import pytest
from sqlalchemy import select

from ambureview.app.models.ambulance import Ambulance
from ambureview.app.models.incident import Incident
from ambureview.app.models.incident_enums import IncidentType
from ambureview.app.models.user import User

AMBULANCE_PAYLOAD = {
    "code": "AMB-10",
    "plate": "9999-KLM",
    "name": "Bravo 10",
    "model": "Renault Master",
    "year": 2021,
    "vehicle_type": "SVB",
}


@pytest.mark.asyncio
async def test_create_ambulance(client, admin_headers):
    response = await client.post("/v1/ambulances", json=AMBULANCE_PAYLOAD, headers=admin_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["code"] == "AMB-10"
    assert data["daily_check_completed"] is False
    assert data["inventory_completed"] is False


@pytest.mark.asyncio
async def test_duplicate_code_and_plate_conflict(client, admin_headers, ambulance):
    same_code = {**AMBULANCE_PAYLOAD, "code": ambulance.code}
    response = await client.post("/v1/ambulances", json=same_code, headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_CONFLICT_001"

    same_plate = {**AMBULANCE_PAYLOAD, "plate": ambulance.plate}
    response = await client.post("/v1/ambulances", json=same_plate, headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["details"]["field"] == "plate"


@pytest.mark.asyncio
async def test_crew_cannot_create_ambulance(client, crew_headers):
    response = await client.post("/v1/ambulances", json=AMBULANCE_PAYLOAD, headers=crew_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_get_missing_ambulance(client, admin_headers):
    response = await client.get("/v1/ambulances/999", headers=admin_headers)

    assert response.status_code == 404
    body = response.json()
    assert body["error_code"] == "ERR_NOT_FOUND_001"
    assert body["message"] == "Ambulance with ID 999 not found"


@pytest.mark.asyncio
async def test_update_ambulance(client, coordinator_headers, ambulance):
    response = await client.patch(
        f"/v1/ambulances/{ambulance.id}", json={"name": "Alfa Uno"}, headers=coordinator_headers
    )

    assert response.status_code == 200
    assert response.json()["name"] == "Alfa Uno"
    assert response.json()["plate"] == ambulance.plate


@pytest.mark.asyncio
async def test_list_is_scoped_for_crew(client, crew_headers, admin_headers, ambulance, db_session):
    db_session.add(Ambulance(code="AMB-02", plate="5678-DEF"))
    await db_session.commit()

    staff_view = await client.get("/v1/ambulances", headers=admin_headers)
    crew_view = await client.get("/v1/ambulances", headers=crew_headers)

    assert len(staff_view.json()) == 2
    assert [a["id"] for a in crew_view.json()] == [ambulance.id]


@pytest.mark.asyncio
async def test_crew_cannot_read_other_ambulance(client, crew_headers, db_session):
    other = Ambulance(code="AMB-03", plate="0000-ZZZ")
    db_session.add(other)
    await db_session.commit()

    response = await client.get(f"/v1/ambulances/{other.id}", headers=crew_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_check_in_records_kilometers(client, crew, crew_headers, ambulance):
    response = await client.post(
        f"/v1/ambulances/{ambulance.id}/check-in", json={"kilometers": 152340}, headers=crew_headers
    )

    assert response.status_code == 200
    data = response.json()
    assert data["last_known_kilometers"] == 152340
    assert data["last_check_in_by_user_id"] == crew.id
    assert data["last_check_in_date"] is not None


@pytest.mark.asyncio
async def test_full_workflow_cycle(client, crew_headers, ambulance):
    """Completing the four stages in order closes the cycle and reopens it."""
    base = f"/v1/ambulances/{ambulance.id}/workflow"

    for stage, unlocked in (
        ("dailyCheck", "mechanical"),
        ("mechanical", "cleaning"),
        ("cleaning", "inventory"),
    ):
        response = await client.post(f"{base}/{stage}", json={"status": True}, headers=crew_headers)
        assert response.status_code == 200
        snapshot = await client.get(base, headers=crew_headers)
        assert snapshot.json()["unlocked_screen"] == unlocked

    response = await client.post(f"{base}/inventory", json={"status": True}, headers=crew_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["daily_check_completed"] is False
    assert data["mechanical_review_completed"] is False
    assert data["cleaning_completed"] is False
    assert data["inventory_completed"] is False
    assert data["last_inventory_check"] is not None

    snapshot = await client.get(base, headers=crew_headers)
    assert snapshot.json()["unlocked_screen"] == "dailyCheck"


@pytest.mark.asyncio
async def test_invalidating_stage_clears_later_ones(client, admin_headers, ambulance):
    base = f"/v1/ambulances/{ambulance.id}/workflow"
    for stage in ("dailyCheck", "mechanical", "cleaning"):
        await client.post(f"{base}/{stage}", json={"status": True}, headers=admin_headers)

    response = await client.post(f"{base}/mechanical", json={"status": False}, headers=admin_headers)

    data = response.json()
    assert data["daily_check_completed"] is True
    assert data["mechanical_review_completed"] is False
    assert data["cleaning_completed"] is False


@pytest.mark.asyncio
async def test_out_of_order_stage_is_rejected(client, admin_headers, ambulance):
    response = await client.post(
        f"/v1/ambulances/{ambulance.id}/workflow/cleaning", json={"status": True}, headers=admin_headers
    )

    assert response.status_code == 409
    body = response.json()
    assert body["error_code"] == "ERR_WORKFLOW_001"
    assert body["message"] == "Stage 'cleaning' cannot be completed before 'dailyCheck'"


@pytest.mark.asyncio
async def test_unknown_stage_is_bad_request(client, admin_headers, ambulance):
    response = await client.post(
        f"/v1/ambulances/{ambulance.id}/workflow/foo", json={"status": True}, headers=admin_headers
    )

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_BAD_REQUEST_001"


@pytest.mark.asyncio
async def test_stage_on_missing_ambulance(client, admin_headers):
    response = await client.post(
        "/v1/ambulances/999/workflow/dailyCheck", json={"status": True}, headers=admin_headers
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_status_summary(client, crew_headers, ambulance):
    response = await client.get(f"/v1/ambulances/{ambulance.id}/status", headers=crew_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["workflow"]["unlocked_screen"] == "dailyCheck"
    assert data["expired_items"] == 0
    assert data["active_incidents"] == 0


@pytest.mark.asyncio
async def test_delete_detaches_incidents_and_unassigns_crew(client, admin_headers, ambulance, crew, db_session):
    incident = Incident(ambulance_id=ambulance.id, type=IncidentType.DAMAGE, title="Dented bumper")
    db_session.add(incident)
    await db_session.commit()
    incident_id = incident.id
    ambulance_id = ambulance.id
    crew_id = crew.id

    response = await client.delete(f"/v1/ambulances/{ambulance_id}", headers=admin_headers)
    assert response.status_code == 204

    db_session.expire_all()
    kept = await db_session.get(Incident, incident_id)
    assert kept is not None
    assert kept.ambulance_id is None

    user = (await db_session.execute(select(User).where(User.id == crew_id))).scalar_one()
    assert user.assigned_ambulance_id is None

    response = await client.get(f"/v1/ambulances/{ambulance_id}", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_null_code_or_plate_is_rejected(client, admin_headers, ambulance):
    code = await client.patch(f"/v1/ambulances/{ambulance.id}", json={"code": None}, headers=admin_headers)
    plate = await client.patch(f"/v1/ambulances/{ambulance.id}", json={"plate": None}, headers=admin_headers)
    cleared = await client.patch(f"/v1/ambulances/{ambulance.id}", json={"model": None}, headers=admin_headers)

    assert code.status_code == 422
    assert plate.status_code == 422
    assert cleared.status_code == 200
    assert cleared.json()["code"] == "AMB-01"
    assert cleared.json()["model"] is None
