"""
User management tests: role hierarchy, deactivation, ambulance assignment.
"""

import pytest

from ambureview.app.models.enums import UserRole


def new_user(username, **fields):
    payload = {
        "username": username,
        "email": f"{username}@ambureview.es",
        "password": "secret123",
        "full_name": username.title(),
    }
    payload.update(fields)
    return payload


@pytest.mark.asyncio
async def test_coordinator_creates_crew(client, coordinator_headers, ambulance):
    response = await client.post(
        "/v1/users", json=new_user("tes1", assigned_ambulance_id=ambulance.id), headers=coordinator_headers
    )

    assert response.status_code == 201
    data = response.json()
    assert data["role"] == "USER"
    assert data["is_active"] is True
    assert data["assigned_ambulance_id"] == ambulance.id
    assert "hashed_password" not in data


@pytest.mark.asyncio
async def test_only_admin_grants_admin(client, admin_headers, coordinator_headers):
    denied = await client.post("/v1/users", json=new_user("boss", role="ADMIN"), headers=coordinator_headers)
    allowed = await client.post("/v1/users", json=new_user("boss", role="ADMIN"), headers=admin_headers)

    assert denied.status_code == 403
    assert denied.json()["error_code"] == "ERR_PERM_001"
    assert allowed.status_code == 201


@pytest.mark.asyncio
async def test_crew_cannot_manage_users(client, crew_headers):
    create = await client.post("/v1/users", json=new_user("sneaky"), headers=crew_headers)
    listing = await client.get("/v1/users", headers=crew_headers)

    assert create.status_code == 403
    assert listing.status_code == 403


@pytest.mark.asyncio
async def test_duplicate_username_and_email(client, admin_headers):
    await client.post("/v1/users", json=new_user("tes2"), headers=admin_headers)

    same_name = await client.post(
        "/v1/users", json=new_user("tes2", email="other@ambureview.es"), headers=admin_headers
    )
    same_email = await client.post(
        "/v1/users", json=new_user("tes3", email="tes2@ambureview.es"), headers=admin_headers
    )

    assert same_name.status_code == 409
    assert same_name.json()["details"] == {"field": "username"}
    assert same_email.status_code == 409
    assert same_email.json()["details"] == {"field": "email"}


@pytest.mark.asyncio
async def test_invalid_email_is_rejected(client, admin_headers):
    response = await client.post("/v1/users", json=new_user("tes4", email="not-an-email"), headers=admin_headers)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_filters_by_role(client, admin, admin_headers, coordinator, crew):
    response = await client.get("/v1/users", params={"role": "USER"}, headers=admin_headers)

    assert [u["username"] for u in response.json()] == ["crew"]


@pytest.mark.asyncio
async def test_role_change_is_audited(client, admin_headers, crew):
    response = await client.patch(f"/v1/users/{crew.id}", json={"role": "COORDINATOR"}, headers=admin_headers)
    assert response.json()["role"] == "COORDINATOR"

    audit = await client.get(
        "/v1/audit", params={"entity": "user", "entity_id": crew.id}, headers=admin_headers
    )
    assert audit.json()[0]["action"] == "ROLE_CHANGED"


@pytest.mark.asyncio
async def test_coordinator_cannot_modify_admin(client, admin, coordinator_headers):
    response = await client.patch(f"/v1/users/{admin.id}", json={"full_name": "Renamed"}, headers=coordinator_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_password_change_is_not_audited_in_clear(client, admin_headers, crew):
    await client.patch(f"/v1/users/{crew.id}", json={"password": "new-secret"}, headers=admin_headers)

    login = await client.post("/v1/auth/login", json={"username": "crew", "password": "new-secret"})
    audit = await client.get(
        "/v1/audit", params={"entity": "user", "entity_id": crew.id, "action": "USER_UPDATED"}, headers=admin_headers
    )

    assert login.status_code == 200
    payload = audit.json()[0]["payload"]
    assert "password" not in payload
    assert payload["password_changed"] is True


@pytest.mark.asyncio
async def test_deactivation_revokes_sessions(client, admin_headers, crew, crew_headers):
    before = await client.get("/v1/auth/me", headers=crew_headers)
    assert before.status_code == 200

    response = await client.delete(f"/v1/users/{crew.id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    after = await client.get("/v1/auth/me", headers=crew_headers)
    assert after.status_code == 401

    still_listed = await client.get(f"/v1/users/{crew.id}", headers=admin_headers)
    assert still_listed.status_code == 200


@pytest.mark.asyncio
async def test_reactivation_restores_access(client, admin_headers, crew, crew_headers):
    await client.delete(f"/v1/users/{crew.id}", headers=admin_headers)

    await client.patch(f"/v1/users/{crew.id}", json={"is_active": True}, headers=admin_headers)

    response = await client.get("/v1/auth/me", headers=crew_headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_cannot_deactivate_self(client, admin, admin_headers):
    response = await client.delete(f"/v1/users/{admin.id}", headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_BAD_REQUEST_001"


@pytest.mark.asyncio
async def test_assign_and_unassign_ambulance(client, admin_headers, make_user, ambulance):
    user = await make_user("tes5", UserRole.USER)

    assigned = await client.post(
        f"/v1/users/{user.id}/assign-ambulance", json={"ambulance_id": ambulance.id}, headers=admin_headers
    )
    assert assigned.json()["assigned_ambulance_id"] == ambulance.id

    missing = await client.post(
        f"/v1/users/{user.id}/assign-ambulance", json={"ambulance_id": 999}, headers=admin_headers
    )
    assert missing.status_code == 404

    unassigned = await client.post(f"/v1/users/{user.id}/unassign-ambulance", headers=admin_headers)
    assert unassigned.json()["assigned_ambulance_id"] is None


@pytest.mark.asyncio
async def test_unknown_user(client, admin_headers):
    response = await client.get("/v1/users/4242", headers=admin_headers)

    assert response.status_code == 404
    assert response.json()["message"] == "User with ID 4242 not found"


@pytest.mark.asyncio
async def test_null_role_is_rejected(client, admin_headers, crew):
    response = await client.patch(f"/v1/users/{crew.id}", json={"role": None}, headers=admin_headers)

    assert response.status_code == 422
    assert (await client.get(f"/v1/users/{crew.id}", headers=admin_headers)).json()["role"] == "USER"
