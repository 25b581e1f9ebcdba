"""
Alert API tests: scoping and the central store stream.
"""

import pytest


@pytest.fixture
async def fleet(client, admin_headers, ambulance):
    other = await client.post("/v1/ambulances", json={"code": "AMB-40", "plate": "4040-EEE"}, headers=admin_headers)
    space = await client.post("/v1/ampulario/spaces", json={"name": "Armario A"}, headers=admin_headers)
    await client.post(
        "/v1/ampulario/materials",
        json={"space_id": space.json()["id"], "name": "Atropina", "dose": "1mg", "route": "IV/IM",
              "quantity": 0, "min_stock": 5},
        headers=admin_headers,
    )
    return {"ambulance": ambulance, "other_id": other.json()["id"]}


@pytest.mark.asyncio
async def test_staff_sees_fleet_and_central_alerts(client, admin_headers, fleet):
    response = await client.get("/v1/alerts", headers=admin_headers)

    assert response.status_code == 200
    ids = [a["id"] for a in response.json()]
    assert f"alert-dailycheck-{fleet['ambulance'].id}" in ids
    assert f"alert-dailycheck-{fleet['other_id']}" in ids
    assert any(i.startswith("alert-lowstock-central-") for i in ids)
    # high severity first
    assert response.json()[0]["type"] == "low_stock_central"


@pytest.mark.asyncio
async def test_staff_can_exclude_central_alerts(client, admin_headers, fleet):
    response = await client.get(
        "/v1/alerts", params={"ambulance_id": fleet["other_id"], "include_central": False}, headers=admin_headers
    )

    assert [a["id"] for a in response.json()] == [f"alert-dailycheck-{fleet['other_id']}"]


@pytest.mark.asyncio
async def test_crew_only_sees_own_ambulance(client, crew_headers, fleet):
    response = await client.get("/v1/alerts", headers=crew_headers)

    alerts = response.json()
    assert {a["ambulance_id"] for a in alerts} == {fleet["ambulance"].id}
    assert not any(a["type"] == "low_stock_central" for a in alerts)


@pytest.mark.asyncio
async def test_crew_cannot_ask_for_other_ambulance(client, crew_headers, fleet):
    response = await client.get("/v1/alerts", params={"ambulance_id": fleet["other_id"]}, headers=crew_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_incident_alerts_follow_incident_state(client, admin_headers, ambulance):
    created = await client.post(
        "/v1/incidents",
        json={"ambulance_id": ambulance.id, "type": "DAMAGE", "severity": "CRITICAL", "title": "Broken stretcher"},
        headers=admin_headers,
    )
    incident_id = created.json()["id"]

    before = await client.get("/v1/alerts", params={"ambulance_id": ambulance.id}, headers=admin_headers)
    assert f"alert-incident-{incident_id}" in [a["id"] for a in before.json()]

    await client.patch(f"/v1/incidents/{incident_id}", json={"status": "CLOSED"}, headers=admin_headers)

    after = await client.get("/v1/alerts", params={"ambulance_id": ambulance.id}, headers=admin_headers)
    assert f"alert-incident-{incident_id}" not in [a["id"] for a in after.json()]
