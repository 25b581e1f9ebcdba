"""
Authentication tests: login, current user, logout and token revocation.
"""

import pytest

from ambureview.app.models.enums import UserRole


@pytest.mark.asyncio
async def test_login_with_username_or_email(client, make_user, ambulance):
    user = await make_user("driver1", UserRole.USER, assigned_ambulance_id=ambulance.id)

    by_username = await client.post("/v1/auth/login", json={"username": "driver1", "password": "secret123"})
    by_email = await client.post(
        "/v1/auth/login", json={"username": "driver1@ambureview.es", "password": "secret123"}
    )

    assert by_username.status_code == 200
    data = by_username.json()
    assert data["token_type"] == "bearer"
    assert data["user_id"] == user.id
    assert data["role"] == "USER"
    assert data["assigned_ambulance_id"] == ambulance.id
    assert by_email.status_code == 200


@pytest.mark.asyncio
async def test_login_rejects_bad_credentials(client, make_user):
    await make_user("driver2")

    wrong_password = await client.post("/v1/auth/login", json={"username": "driver2", "password": "nope"})
    unknown_user = await client.post("/v1/auth/login", json={"username": "ghost", "password": "secret123"})

    assert wrong_password.status_code == 401
    assert wrong_password.json()["message"] == "Invalid credentials"
    assert unknown_user.status_code == 401


@pytest.mark.asyncio
async def test_inactive_user_cannot_login(client, make_user):
    await make_user("retired", is_active=False)

    response = await client.post("/v1/auth/login", json={"username": "retired", "password": "secret123"})

    assert response.status_code == 403
    assert response.json()["message"] == "Inactive user account"


@pytest.mark.asyncio
async def test_me_reflects_current_assignment(client, make_user, headers_for, ambulance, db_session):
    user = await make_user("driver3")
    headers = headers_for(user)

    before = await client.get("/v1/auth/me", headers=headers)
    assert before.json()["assigned_ambulance_id"] is None

    user.assigned_ambulance_id = ambulance.id
    await db_session.commit()

    after = await client.get("/v1/auth/me", headers=headers)
    assert after.status_code == 200
    assert after.json()["username"] == "driver3"
    assert after.json()["assigned_ambulance_id"] == ambulance.id


@pytest.mark.asyncio
async def test_logout_revokes_token(client, make_user):
    await make_user("driver4")
    login = await client.post("/v1/auth/login", json={"username": "driver4", "password": "secret123"})
    headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

    logout = await client.post("/v1/auth/logout", headers=headers)
    assert logout.status_code == 200
    assert logout.json() == {"status": "success", "revoked": True}

    reused = await client.get("/v1/auth/me", headers=headers)
    assert reused.status_code == 401


@pytest.mark.asyncio
async def test_garbage_token_is_rejected(client):
    response = await client.get("/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_attempts_are_audited(client, make_user, admin_headers):
    await make_user("driver5")
    await client.post("/v1/auth/login", json={"username": "driver5", "password": "bad"})
    await client.post("/v1/auth/login", json={"username": "driver5", "password": "secret123"})

    response = await client.get("/v1/audit", headers=admin_headers)

    actions = [entry["action"] for entry in response.json()]
    assert "LOGIN_FAILED" in actions
    assert "LOGIN_SUCCESS" in actions
