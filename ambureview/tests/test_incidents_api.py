"""
Incident API tests: manual creation, lifecycle transitions, scoping.
"""

from datetime import datetime, timedelta

import pytest

from ambureview.app.models.material import Material, InventoryItem


def incident_payload(ambulance_id, **fields):
    payload = {
        "ambulance_id": ambulance_id,
        "type": "DAMAGE",
        "severity": "HIGH",
        "title": "Rear door does not latch",
        "description": "Door opens while driving",
    }
    payload.update(fields)
    return payload


@pytest.mark.asyncio
async def test_create_defaults_responsible_to_creator(client, crew, crew_headers, ambulance):
    response = await client.post("/v1/incidents", json=incident_payload(ambulance.id), headers=crew_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "OPEN"
    assert data["responsible_id"] == crew.id
    assert data["created_by_id"] == crew.id


@pytest.mark.asyncio
async def test_create_notifies_assigned_crew(client, crew_headers, ambulance):
    await client.post("/v1/incidents", json=incident_payload(ambulance.id), headers=crew_headers)

    notifications = await client.get("/v1/notifications", headers=crew_headers)

    assert notifications.status_code == 200
    titles = [n["title"] for n in notifications.json()]
    assert titles == ["[HIGH] Rear door does not latch"]


@pytest.mark.asyncio
async def test_create_for_missing_ambulance(client, admin_headers):
    response = await client.post("/v1/incidents", json=incident_payload(404), headers=admin_headers)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_item_must_belong_to_ambulance(client, admin_headers, ambulance, db_session):
    other = await client.post("/v1/ambulances", json={"code": "AMB-30", "plate": "3030-CCC"}, headers=admin_headers)
    material = Material(name="Collarín cervical")
    db_session.add(material)
    await db_session.flush()
    item = InventoryItem(ambulance_id=other.json()["id"], material_id=material.id, quantity=2)
    db_session.add(item)
    await db_session.commit()

    response = await client.post(
        "/v1/incidents",
        json=incident_payload(ambulance.id, type="MISSING", inventory_item_id=item.id),
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_BAD_REQUEST_001"


@pytest.mark.asyncio
async def test_status_lifecycle(client, admin_headers, ambulance):
    created = await client.post("/v1/incidents", json=incident_payload(ambulance.id), headers=admin_headers)
    url = f"/v1/incidents/{created.json()['id']}"

    skipped = await client.patch(url, json={"status": "RESOLVED"}, headers=admin_headers)
    assert skipped.status_code == 409
    assert skipped.json()["details"] == {"from": "OPEN", "to": "RESOLVED"}

    in_progress = await client.patch(url, json={"status": "IN_PROGRESS"}, headers=admin_headers)
    assert in_progress.json()["status"] == "IN_PROGRESS"
    assert in_progress.json()["resolved_at"] is None

    resolved = await client.patch(url, json={"status": "RESOLVED"}, headers=admin_headers)
    assert resolved.json()["status"] == "RESOLVED"
    assert resolved.json()["resolved_at"] is not None

    closed = await client.patch(url, json={"status": "CLOSED"}, headers=admin_headers)
    assert closed.json()["status"] == "CLOSED"

    reopened = await client.patch(url, json={"status": "OPEN"}, headers=admin_headers)
    assert reopened.status_code == 409


@pytest.mark.asyncio
async def test_open_incident_can_close_directly(client, admin_headers, ambulance):
    created = await client.post("/v1/incidents", json=incident_payload(ambulance.id), headers=admin_headers)

    response = await client.patch(
        f"/v1/incidents/{created.json()['id']}", json={"status": "CLOSED", "severity": "LOW"}, headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["status"] == "CLOSED"
    assert response.json()["severity"] == "LOW"


@pytest.mark.asyncio
async def test_filters_and_stats(client, admin_headers, ambulance):
    await client.post("/v1/incidents", json=incident_payload(ambulance.id), headers=admin_headers)
    await client.post(
        "/v1/incidents",
        json=incident_payload(ambulance.id, type="MAINTENANCE", severity="LOW", title="Oil change due"),
        headers=admin_headers,
    )

    maintenance = await client.get("/v1/incidents", params={"type": "MAINTENANCE"}, headers=admin_headers)
    open_ones = await client.get("/v1/incidents", params={"status": "OPEN"}, headers=admin_headers)
    stats = await client.get("/v1/incidents/stats", headers=admin_headers)

    assert [i["title"] for i in maintenance.json()] == ["Oil change due"]
    assert len(open_ones.json()) == 2
    data = stats.json()
    assert data["total"] == 2
    assert data["by_type"]["DAMAGE"] == 1
    assert data["by_severity"]["LOW"] == 1
    assert data["overdue"] == 0


@pytest.mark.asyncio
async def test_overdue_incidents(client, admin_headers, ambulance):
    past_due = (datetime.utcnow() - timedelta(days=1)).isoformat()
    future_due = (datetime.utcnow() + timedelta(days=1)).isoformat()
    late = await client.post(
        "/v1/incidents", json=incident_payload(ambulance.id, due_date=past_due), headers=admin_headers
    )
    await client.post(
        "/v1/incidents", json=incident_payload(ambulance.id, due_date=future_due, title="Not yet"), headers=admin_headers
    )

    response = await client.get("/v1/incidents/overdue", headers=admin_headers)

    assert [i["id"] for i in response.json()] == [late.json()["id"]]


@pytest.mark.asyncio
async def test_crew_cannot_touch_other_ambulance_incidents(client, admin_headers, crew_headers, ambulance):
    other = await client.post("/v1/ambulances", json={"code": "AMB-31", "plate": "3131-DDD"}, headers=admin_headers)
    foreign = await client.post("/v1/incidents", json=incident_payload(other.json()["id"]), headers=admin_headers)
    await client.post("/v1/incidents", json=incident_payload(ambulance.id), headers=admin_headers)

    listing = await client.get("/v1/incidents", headers=crew_headers)
    assert {i["ambulance_id"] for i in listing.json()} == {ambulance.id}

    direct = await client.get(f"/v1/incidents/{foreign.json()['id']}", headers=crew_headers)
    assert direct.status_code == 403

    update = await client.patch(
        f"/v1/incidents/{foreign.json()['id']}", json={"status": "CLOSED"}, headers=crew_headers
    )
    assert update.status_code == 403


@pytest.mark.asyncio
async def test_null_title_is_rejected(client, admin_headers, ambulance):
    created = await client.post("/v1/incidents", json=incident_payload(ambulance.id), headers=admin_headers)
    url = f"/v1/incidents/{created.json()['id']}"

    title = await client.patch(url, json={"title": None}, headers=admin_headers)
    description = await client.patch(url, json={"description": None}, headers=admin_headers)

    assert title.status_code == 422
    assert description.status_code == 200
    assert description.json()["title"] == "Rear door does not latch"
