"""
Checklist API tests: templates, ordered items, runs and per-item answers.
"""

import pytest


@pytest.fixture
async def template(client, admin_headers):
    response = await client.post(
        "/v1/checklists/templates",
        json={
            "name": "Revisión diaria",
            "periodicity": "DAILY",
            "items": [
                {"label": "Pastillas de freno", "type": "OKKO", "category": "Frenos"},
                {"label": "Presión neumático", "type": "NUMBER", "category": "Neumáticos"},
                {"label": "Observaciones", "type": "TEXT", "required": False},
            ],
        },
        headers=admin_headers,
    )
    assert response.status_code == 201
    return response.json()


async def _run(client, headers, ambulance_id, template_id):
    return await client.post(
        "/v1/checklists", json={"ambulance_id": ambulance_id, "template_id": template_id}, headers=headers
    )


@pytest.mark.asyncio
async def test_create_template_orders_items(template):
    assert template["checklists"] == 0
    assert template["active"] is True
    assert [(i["label"], i["position"], i["required"]) for i in template["items"]] == [
        ("Pastillas de freno", 0, True),
        ("Presión neumático", 1, True),
        ("Observaciones", 2, False),
    ]


@pytest.mark.asyncio
async def test_template_management_is_staff_only(client, crew_headers, template):
    create = await client.post("/v1/checklists/templates", json={"name": "Semanal"}, headers=crew_headers)
    listing = await client.get("/v1/checklists/templates", headers=crew_headers)

    assert create.status_code == 403
    assert [t["id"] for t in listing.json()] == [template["id"]]


@pytest.mark.asyncio
async def test_template_names_are_unique(client, admin_headers, template):
    response = await client.post(
        "/v1/checklists/templates", json={"name": "REVISIÓN DIARIA"}, headers=admin_headers
    )

    assert response.status_code == 409
    assert response.json()["details"] == {"field": "name"}


@pytest.mark.asyncio
async def test_items_append_and_close_gap(client, admin_headers, template):
    added = await client.post(
        f"/v1/checklists/templates/{template['id']}/items", json={"label": "Luces de cruce"}, headers=admin_headers
    )
    assert added.status_code == 201
    assert added.json()["position"] == 3

    removed = await client.delete(f"/v1/checklists/items/{template['items'][0]['id']}", headers=admin_headers)
    assert removed.status_code == 204

    current = (await client.get(f"/v1/checklists/templates/{template['id']}", headers=admin_headers)).json()
    assert [(i["label"], i["position"]) for i in current["items"]] == [
        ("Presión neumático", 0),
        ("Observaciones", 1),
        ("Luces de cruce", 2),
    ]


@pytest.mark.asyncio
async def test_crew_runs_checklist_on_own_ambulance(client, admin_headers, crew_headers, ambulance, template):
    other = await client.post("/v1/ambulances", json={"code": "AMB-02", "plate": "5678-DEF"}, headers=admin_headers)

    own = await _run(client, crew_headers, ambulance.id, template["id"])
    foreign = await _run(client, crew_headers, other.json()["id"], template["id"])

    assert own.status_code == 201
    data = own.json()
    assert data["status"] == "PENDING"
    assert data["template_name"] == "Revisión diaria"
    assert len(data["items"]) == 3
    assert data["responses"] == []
    assert foreign.status_code == 403


@pytest.mark.asyncio
async def test_answers_are_validated_and_upserted(client, crew_headers, ambulance, template):
    checklist_id = (await _run(client, crew_headers, ambulance.id, template["id"])).json()["id"]
    brakes, pressure, _ = (i["id"] for i in template["items"])
    url = f"/v1/checklists/{checklist_id}/responses"

    bad_okko = await client.put(f"{url}/{brakes}", json={"value": "maybe"}, headers=crew_headers)
    bad_number = await client.put(f"{url}/{pressure}", json={"value": "low"}, headers=crew_headers)
    assert bad_okko.status_code == 400
    assert bad_number.status_code == 400

    first = await client.put(f"{url}/{brakes}", json={"value": "ko", "notes": "Worn"}, headers=crew_headers)
    assert first.json()["value"] == "KO"
    again = await client.put(f"{url}/{brakes}", json={"value": "OK"}, headers=crew_headers)
    assert again.json()["id"] == first.json()["id"]

    responses = (await client.get(url, headers=crew_headers)).json()
    assert [(r["item_id"], r["value"], r["notes"]) for r in responses] == [(brakes, "OK", None)]

    checklist = (await client.get(f"/v1/checklists/{checklist_id}", headers=crew_headers)).json()
    assert checklist["status"] == "IN_PROGRESS"


@pytest.mark.asyncio
async def test_item_must_belong_to_template(client, admin_headers, crew_headers, ambulance, template):
    other = await client.post(
        "/v1/checklists/templates",
        json={"name": "Semanal", "periodicity": "WEEKLY", "items": [{"label": "Extintor"}]},
        headers=admin_headers,
    )
    checklist_id = (await _run(client, crew_headers, ambulance.id, template["id"])).json()["id"]

    response = await client.put(
        f"/v1/checklists/{checklist_id}/responses/{other.json()['items'][0]['id']}",
        json={"value": "OK"},
        headers=crew_headers,
    )

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_BAD_REQUEST_001"


@pytest.mark.asyncio
async def test_completion_requires_required_answers(client, crew_headers, ambulance, template):
    checklist_id = (await _run(client, crew_headers, ambulance.id, template["id"])).json()["id"]
    brakes, pressure, notes = (i["id"] for i in template["items"])
    url = f"/v1/checklists/{checklist_id}"

    await client.put(f"{url}/responses/{brakes}", json={"value": "OK"}, headers=crew_headers)
    early = await client.patch(url, json={"status": "COMPLETED"}, headers=crew_headers)
    assert early.status_code == 400
    assert early.json()["details"] == {"missing_item_ids": [pressure]}

    await client.put(f"{url}/responses/{pressure}", json={"value": "2.4"}, headers=crew_headers)
    completed = await client.patch(url, json={"status": "COMPLETED"}, headers=crew_headers)
    assert completed.status_code == 200
    assert completed.json()["status"] == "COMPLETED"

    late = await client.put(f"{url}/responses/{notes}", json={"value": "Sin novedad"}, headers=crew_headers)
    assert late.status_code == 409


@pytest.mark.asyncio
async def test_template_in_use_cannot_be_deleted(client, admin_headers, crew_headers, ambulance, template):
    checklist_id = (await _run(client, crew_headers, ambulance.id, template["id"])).json()["id"]
    await client.put(
        f"/v1/checklists/{checklist_id}/responses/{template['items'][0]['id']}", json={"value": "OK"},
        headers=crew_headers,
    )

    template_delete = await client.delete(f"/v1/checklists/templates/{template['id']}", headers=admin_headers)
    item_delete = await client.delete(f"/v1/checklists/items/{template['items'][0]['id']}", headers=admin_headers)
    assert template_delete.status_code == 409
    assert template_delete.json()["details"] == {"checklists": 1}
    assert item_delete.status_code == 409

    crew_delete = await client.delete(f"/v1/checklists/{checklist_id}", headers=crew_headers)
    assert crew_delete.status_code == 403
    assert (await client.delete(f"/v1/checklists/{checklist_id}", headers=admin_headers)).status_code == 204
    assert (await client.delete(f"/v1/checklists/templates/{template['id']}", headers=admin_headers)).status_code == 204


@pytest.mark.asyncio
async def test_inactive_template_cannot_be_run(client, admin_headers, crew_headers, ambulance, template):
    await client.patch(f"/v1/checklists/templates/{template['id']}", json={"active": False}, headers=admin_headers)

    response = await _run(client, crew_headers, ambulance.id, template["id"])
    active_only = await client.get("/v1/checklists/templates", params={"active": True}, headers=crew_headers)

    assert response.status_code == 400
    assert active_only.json() == []


@pytest.mark.asyncio
async def test_null_template_fields_are_rejected(client, admin_headers, template):
    response = await client.patch(
        f"/v1/checklists/templates/{template['id']}", json={"name": None}, headers=admin_headers
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_crew_listing_is_scoped(client, admin_headers, crew_headers, ambulance, template):
    other = await client.post("/v1/ambulances", json={"code": "AMB-02", "plate": "5678-DEF"}, headers=admin_headers)
    other_id = other.json()["id"]
    own = await _run(client, crew_headers, ambulance.id, template["id"])
    await _run(client, admin_headers, other_id, template["id"])

    crew_view = await client.get("/v1/checklists", headers=crew_headers)
    staff_view = await client.get("/v1/checklists", params={"ambulance_id": other_id}, headers=admin_headers)
    forbidden = await client.get("/v1/checklists", params={"ambulance_id": other_id}, headers=crew_headers)

    assert [c["id"] for c in crew_view.json()] == [own.json()["id"]]
    assert [c["ambulance_id"] for c in staff_view.json()] == [other_id]
    assert forbidden.status_code == 403


@pytest.mark.asyncio
async def test_ambulance_delete_removes_its_checklists(client, admin_headers, ambulance, template):
    checklist_id = (await _run(client, admin_headers, ambulance.id, template["id"])).json()["id"]
    await client.put(
        f"/v1/checklists/{checklist_id}/responses/{template['items'][0]['id']}", json={"value": "OK"},
        headers=admin_headers,
    )

    response = await client.delete(f"/v1/ambulances/{ambulance.id}", headers=admin_headers)

    assert response.status_code == 204
    assert (await client.get(f"/v1/checklists/{checklist_id}", headers=admin_headers)).status_code == 404


@pytest.mark.asyncio
async def test_checklist_actions_are_audited(client, admin_headers, crew_headers, ambulance, template):
    checklist_id = (await _run(client, crew_headers, ambulance.id, template["id"])).json()["id"]

    audit = await client.get(
        "/v1/audit", params={"entity": "checklist", "entity_id": checklist_id}, headers=admin_headers
    )

    assert [entry["action"] for entry in audit.json()] == ["CHECKLIST_CREATED"]
