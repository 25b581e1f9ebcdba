"""
Configuration store tests.
"""

import pytest

from ambureview.app.services.config_defaults import DEFAULT_STORAGE_LOCATIONS, STORAGE_LOCATIONS_KEY
from ambureview.app.services.config_store import config_store
from ambureview.app.core.exceptions import ResourceNotFoundError


@pytest.mark.asyncio
async def test_defaults_are_served_when_unset(client, crew_headers):
    response = await client.get("/v1/config/storage-locations", headers=crew_headers)

    assert response.status_code == 200
    assert response.json()["locations"] == DEFAULT_STORAGE_LOCATIONS


@pytest.mark.asyncio
async def test_staff_replaces_storage_locations(client, coordinator_headers, crew_headers):
    locations = ["Mochila Roja", "Cajón 1"]

    update = await client.put(
        "/v1/config/storage-locations", json={"locations": locations}, headers=coordinator_headers
    )
    denied = await client.put(
        "/v1/config/storage-locations", json={"locations": []}, headers=crew_headers
    )
    current = await client.get("/v1/config/storage-locations", headers=crew_headers)

    assert update.status_code == 200
    assert denied.status_code == 403
    assert current.json()["locations"] == locations


@pytest.mark.asyncio
async def test_notification_email_is_staff_only(client, admin_headers, crew_headers):
    initial = await client.get("/v1/config/notification-email", headers=admin_headers)
    assert initial.json() == {"email": None}

    await client.put("/v1/config/notification-email", json={"email": "base@ambureview.es"}, headers=admin_headers)

    current = await client.get("/v1/config/notification-email", headers=admin_headers)
    denied = await client.get("/v1/config/notification-email", headers=crew_headers)
    invalid = await client.put("/v1/config/notification-email", json={"email": "nope"}, headers=admin_headers)

    assert current.json() == {"email": "base@ambureview.es"}
    assert denied.status_code == 403
    assert invalid.status_code == 422


@pytest.mark.asyncio
async def test_review_template_drives_empty_reviews(client, admin_headers, crew_headers, ambulance):
    template = [{"name": "Frenos", "category": "Seguridad"}, {"name": "Luces", "category": "Seguridad"}]
    await client.put("/v1/config/mechanical-review-items", json={"items": template}, headers=admin_headers)
    await client.post(
        f"/v1/ambulances/{ambulance.id}/daily-checks",
        json={"fuel_level": "FULL", "tyre_pressure": "OK", "documents": "PRESENT", "ipad_status": "OPERATIONAL"},
        headers=crew_headers,
    )

    response = await client.post(
        f"/v1/ambulances/{ambulance.id}/mechanical-reviews", json={}, headers=crew_headers
    )

    assert response.status_code == 201
    assert [(i["name"], i["category"]) for i in response.json()["items"]] == [
        ("Frenos", "Seguridad"),
        ("Luces", "Seguridad"),
    ]


@pytest.mark.asyncio
async def test_config_update_is_audited(client, admin_headers):
    await client.put("/v1/config/storage-locations", json={"locations": ["A"]}, headers=admin_headers)

    response = await client.get("/v1/audit", params={"action": "CONFIG_UPDATED"}, headers=admin_headers)

    assert response.json()[0]["payload"] == {"key": STORAGE_LOCATIONS_KEY, "value": ["A"]}


@pytest.mark.asyncio
async def test_store_caches_and_copies(db_session):
    first = await config_store.get(db_session, STORAGE_LOCATIONS_KEY)
    first.append("Mutated locally")

    second = await config_store.get(db_session, STORAGE_LOCATIONS_KEY)

    assert second == DEFAULT_STORAGE_LOCATIONS


@pytest.mark.asyncio
async def test_store_bootstrap_and_unknown_keys(db_session):
    assert await config_store.bootstrap(db_session) == 3
    assert await config_store.bootstrap(db_session) == 0

    with pytest.raises(ResourceNotFoundError):
        await config_store.get(db_session, "no_such_key")
