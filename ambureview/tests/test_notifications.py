"""
Notification tests: dispatcher channels, realtime fan-out, in-app endpoints.
"""

import json

import pytest

from ambureview.app.models.enums import UserRole
from ambureview.app.models.notification import NotificationType
from ambureview.app.services.config_defaults import NOTIFICATION_EMAIL_KEY
from ambureview.app.services.config_store import config_store
from ambureview.app.services.notification_service import (
    NotificationDispatcher, NotificationService, resolve_recipients, render_email
)
from ambureview.app.services.realtime import ConnectionManager


class FakeWebSocket:
    def __init__(self, broken=False):
        self.broken = broken
        self.sent = []

    async def send_text(self, text):
        if self.broken:
            raise RuntimeError("connection reset")
        self.sent.append(json.loads(text))


class FakeMailer:
    def __init__(self, fail_for=()):
        self.fail_for = set(fail_for)
        self.sent = []

    async def __call__(self, to_email, subject, html_body):
        if to_email in self.fail_for:
            raise OSError("mailbox unavailable")
        self.sent.append((to_email, subject))
        return True


# --- ConnectionManager ---

@pytest.mark.asyncio
async def test_connection_manager_fans_out_per_ambulance():
    manager = ConnectionManager()
    first, second, elsewhere = FakeWebSocket(), FakeWebSocket(), FakeWebSocket()
    await manager.connect(1, first)
    await manager.connect(1, second)
    await manager.connect(2, elsewhere)

    delivered = await manager.send_to_ambulance(1, {"type": "INFO", "data": {"n": 1}})

    assert delivered == 2
    assert first.sent == [{"type": "INFO", "data": {"n": 1}}]
    assert second.sent == first.sent
    assert elsewhere.sent == []


@pytest.mark.asyncio
async def test_connection_manager_drops_dead_sockets():
    manager = ConnectionManager()
    alive, dead = FakeWebSocket(), FakeWebSocket(broken=True)
    await manager.connect(1, alive)
    await manager.connect(1, dead)

    assert await manager.send_to_ambulance(1, {"type": "INFO"}) == 1
    assert manager.connection_count(1) == 1

    await manager.disconnect(1, alive)
    assert manager.connection_count(1) == 0
    assert await manager.send_to_ambulance(1, {"type": "INFO"}) == 0


# --- Dispatcher ---

@pytest.mark.asyncio
async def test_recipients_fall_back_to_staff(db_session, admin, coordinator, ambulance, make_user):
    await make_user("inactive_admin", UserRole.ADMIN, is_active=False)

    recipients = await resolve_recipients(db_session, ambulance.id)

    assert [u.username for u in recipients] == ["admin", "coordinator"]


@pytest.mark.asyncio
async def test_recipients_prefer_assigned_crew(db_session, admin, crew, ambulance):
    recipients = await resolve_recipients(db_session, ambulance.id)

    assert [u.id for u in recipients] == [crew.id]


@pytest.mark.asyncio
async def test_dispatch_delivers_on_every_channel(db_session, crew, ambulance):
    connections = ConnectionManager()
    socket = FakeWebSocket()
    await connections.connect(ambulance.id, socket)
    mailer = FakeMailer()
    await config_store.set(db_session, NOTIFICATION_EMAIL_KEY, "base@ambureview.es")
    dispatcher = NotificationDispatcher(connections=connections, send_email=mailer)

    counts = await dispatcher.dispatch(
        db_session, [crew], NotificationType.WARNING,
        {"title": "Oxygen low", "message": "Replace bottle", "ambulance_id": ambulance.id},
    )
    await db_session.commit()

    assert counts == {"in_app": 1, "email": 2, "realtime": 1}
    assert [to for to, _ in mailer.sent] == ["crew@ambureview.es", "base@ambureview.es"]
    assert mailer.sent[0][1] == "Oxygen low - AmbuReview"
    assert socket.sent[0]["type"] == "WARNING"

    rows = await NotificationService.list_for_user(db_session, crew.id)
    assert [(n.title, n.type) for n in rows] == [("Oxygen low", NotificationType.WARNING)]


@pytest.mark.asyncio
async def test_email_failure_does_not_abort_dispatch(db_session, admin, coordinator):
    mailer = FakeMailer(fail_for={"admin@ambureview.es"})
    dispatcher = NotificationDispatcher(connections=ConnectionManager(), send_email=mailer)

    counts = await dispatcher.dispatch(
        db_session, [admin, coordinator], NotificationType.INFO, {"title": "Hello", "message": "World"}
    )

    assert counts == {"in_app": 2, "email": 1, "realtime": 0}


@pytest.mark.asyncio
async def test_expiry_alert_wording(db_session, crew, ambulance):
    dispatcher = NotificationDispatcher(connections=ConnectionManager(), send_email=FakeMailer())

    await dispatcher.send_expiry_alert(db_session, ambulance.id, "Adrenalina", 2)
    await dispatcher.send_expiry_alert(db_session, ambulance.id, "Atropina", -1)
    await db_session.commit()

    rows = await NotificationService.list_for_user(db_session, crew.id)
    messages = sorted(n.message for n in rows)
    assert messages == [
        "Adrenalina in Alfa 1 (1234-ABC) expires in 2 day(s)",
        "Atropina in Alfa 1 (1234-ABC) has expired",
    ]
    assert all(n.type == NotificationType.EXPIRY_ALERT for n in rows)


def test_render_email_escapes_content():
    body = render_email("<b>Alert</b>", ["Check <script>"])

    assert "&lt;b&gt;Alert&lt;/b&gt;" in body
    assert "<script>" not in body


# --- Endpoints ---

@pytest.mark.asyncio
async def test_mark_read_endpoints(client, crew, crew_headers, db_session):
    first = await NotificationService.create_notification(db_session, crew.id, "One", "First")
    await NotificationService.create_notification(db_session, crew.id, "Two", "Second")
    await db_session.commit()

    single = await client.patch(f"/v1/notifications/{first.id}/read", headers=crew_headers)
    assert single.status_code == 200

    unread = await client.get("/v1/notifications", params={"unread_only": True}, headers=crew_headers)
    assert [n["title"] for n in unread.json()] == ["Two"]

    everything = await client.patch("/v1/notifications/read-all", headers=crew_headers)
    assert everything.json() == {"status": "success", "count": 1}

    missing = await client.patch("/v1/notifications/9999/read", headers=crew_headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_cannot_read_someone_elses_notification(client, admin, crew_headers, db_session):
    foreign = await NotificationService.create_notification(db_session, admin.id, "Private", "Admins only")
    await db_session.commit()

    response = await client.patch(f"/v1/notifications/{foreign.id}/read", headers=crew_headers)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_admin_broadcast(client, admin_headers, coordinator, crew, coordinator_headers):
    response = await client.post(
        "/v1/admin/notifications/broadcast",
        json={"title": "Maintenance", "message": "Server restart at 22:00", "role_filter": "USER"},
        headers=admin_headers,
    )
    assert response.json() == {"status": "success", "recipients": 1}

    denied = await client.post(
        "/v1/admin/notifications/broadcast",
        json={"title": "x", "message": "y"},
        headers=coordinator_headers,
    )
    assert denied.status_code == 403


@pytest.mark.asyncio
async def test_test_email_is_skipped_without_smtp(client, admin_headers):
    response = await client.post(
        "/v1/admin/notifications/test-email", json={"email": "ops@ambureview.es"}, headers=admin_headers
    )

    assert response.json()["status"] == "skipped"
