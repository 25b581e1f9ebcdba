"""
Scheduled job pass tests.

The runner is driven directly with the test session factory and a
recording dispatcher so the notification step can be inspected and made
to fail on demand.
"""

from datetime import date, datetime, timedelta

import pytest
from sqlalchemy import select

from ambureview.app.models.incident import Incident
from ambureview.app.models.incident_enums import IncidentType, IncidentSeverity, IncidentStatus
from ambureview.app.models.inventory_enums import InventoryStatus
from ambureview.app.models.material import Material, InventoryItem
from ambureview.app.services.job_runner import JobRunner

TODAY = date(2024, 3, 10)
NOW = datetime(2024, 3, 10, 2, 0)


class RecordingDispatcher:
    """Stands in for NotificationDispatcher; optionally fails for some incidents."""

    def __init__(self, fail_for=()):
        self.fail_for = set(fail_for)
        self.incidents = []
        self.expiry_warnings = []

    async def send_incident_alert(self, db, incident):
        if incident.id in self.fail_for:
            raise RuntimeError("SMTP relay unreachable")
        self.incidents.append(incident.id)
        return {"in_app": 1, "email": 0, "realtime": 0}

    async def send_expiry_alert(self, db, ambulance_id, material_name, days_until_expiry):
        self.expiry_warnings.append((ambulance_id, material_name, days_until_expiry))
        return {"in_app": 1, "email": 0, "realtime": 0}


@pytest.fixture
async def stocked_ambulance(db_session, ambulance, crew):
    """
    One ambulance with five items:
      expired     - expired two days ago
      low         - 1 unit against a minimum of 5
      soon        - expires in 2 days
      later       - expires in 5 days
      stale_low   - stored LOW although it is well stocked
    """
    materials = {}
    for name in ("Suero", "Gasas", "Adrenalina", "Guantes", "Vendas"):
        material = Material(name=name)
        db_session.add(material)
        materials[name] = material
    await db_session.flush()

    def item(material, **kwargs):
        values = {"quantity": 10, "min_stock": 2, "status": InventoryStatus.OK}
        values.update(kwargs)
        row = InventoryItem(ambulance_id=ambulance.id, material_id=material.id, **values)
        db_session.add(row)
        return row

    items = {
        "expired": item(materials["Suero"], expiry_date=TODAY - timedelta(days=2)),
        "low": item(materials["Gasas"], quantity=1, min_stock=5),
        "soon": item(materials["Adrenalina"], expiry_date=TODAY + timedelta(days=2)),
        "later": item(materials["Guantes"], expiry_date=TODAY + timedelta(days=5)),
        "stale_low": item(materials["Vendas"], status=InventoryStatus.LOW),
    }
    await db_session.commit()
    return {name: row.id for name, row in items.items()}


async def _incidents(session_factory):
    async with session_factory() as db:
        result = await db.execute(select(Incident).order_by(Incident.id))
        return result.scalars().all()


async def _item(session_factory, item_id):
    async with session_factory() as db:
        return await db.get(InventoryItem, item_id)


@pytest.mark.asyncio
async def test_daily_pass_marks_statuses_and_opens_incidents(session_factory, stocked_ambulance, crew):
    dispatcher = RecordingDispatcher()
    runner = JobRunner(session_factory=session_factory, dispatcher=dispatcher)

    report = await runner.run_daily_pass(today=TODAY, now=NOW)

    assert report.marked_expired == 1
    assert report.marked_low == 1
    assert report.expiry_incidents_created == 2
    assert report.low_stock_incidents_created == 1
    assert report.statuses_corrected == 1
    assert report.notifications_sent == 3
    assert report.notification_failures == 0

    assert (await _item(session_factory, stocked_ambulance["expired"])).status == InventoryStatus.EXPIRED
    assert (await _item(session_factory, stocked_ambulance["low"])).status == InventoryStatus.LOW
    assert (await _item(session_factory, stocked_ambulance["stale_low"])).status == InventoryStatus.OK

    incidents = {i.inventory_item_id: i for i in await _incidents(session_factory)}
    assert set(incidents) == {stocked_ambulance["soon"], stocked_ambulance["later"], stocked_ambulance["low"]}

    soon = incidents[stocked_ambulance["soon"]]
    assert soon.type == IncidentType.EXPIRED
    assert soon.severity == IncidentSeverity.HIGH
    assert soon.due_date == NOW + timedelta(days=1)
    assert soon.responsible_id == crew.id

    later = incidents[stocked_ambulance["later"]]
    assert later.severity == IncidentSeverity.MEDIUM
    assert later.due_date == NOW + timedelta(days=3)

    low = incidents[stocked_ambulance["low"]]
    assert low.type == IncidentType.MISSING
    assert low.severity == IncidentSeverity.HIGH
    assert low.due_date == NOW + timedelta(days=2)
    assert low.status == IncidentStatus.OPEN

    assert sorted(dispatcher.incidents) == sorted(report.created_incident_ids)


@pytest.mark.asyncio
async def test_daily_pass_is_idempotent(session_factory, stocked_ambulance):
    runner = JobRunner(session_factory=session_factory, dispatcher=RecordingDispatcher())

    first = await runner.run_daily_pass(today=TODAY, now=NOW)
    second = await runner.run_daily_pass(today=TODAY, now=NOW)

    assert len(first.created_incident_ids) == 3
    assert second.created_incident_ids == []
    assert second.marked_expired == 0
    assert second.marked_low == 0
    assert second.statuses_corrected == 0
    assert len(await _incidents(session_factory)) == 3


@pytest.mark.asyncio
async def test_closed_incident_does_not_block_new_one(session_factory, stocked_ambulance):
    runner = JobRunner(session_factory=session_factory, dispatcher=RecordingDispatcher())
    await runner.run_daily_pass(today=TODAY, now=NOW)

    async with session_factory() as db:
        result = await db.execute(
            select(Incident).where(Incident.inventory_item_id == stocked_ambulance["low"])
        )
        incident = result.scalar_one()
        incident.status = IncidentStatus.CLOSED
        await db.commit()

    report = await runner.run_daily_pass(today=TODAY, now=NOW)

    assert report.low_stock_incidents_created == 1
    assert report.expiry_incidents_created == 0


@pytest.mark.asyncio
async def test_notification_failure_does_not_undo_incidents(session_factory, stocked_ambulance):
    # Incident ids are assigned in creation order: soon, later, low
    dispatcher = RecordingDispatcher(fail_for={1})
    runner = JobRunner(session_factory=session_factory, dispatcher=dispatcher)

    report = await runner.run_daily_pass(today=TODAY, now=NOW)

    assert report.notification_failures == 1
    assert report.notifications_sent == 2
    assert dispatcher.incidents == [2, 3]
    assert len(await _incidents(session_factory)) == 3


@pytest.mark.asyncio
async def test_handle_daily_pass_never_raises(mocker):
    runner = JobRunner(dispatcher=RecordingDispatcher())
    mocker.patch.object(runner, "run_daily_pass", side_effect=RuntimeError("database gone"))

    assert await runner.handle_daily_pass() is None


@pytest.mark.asyncio
async def test_hourly_pass_warns_for_items_expiring_within_three_days(session_factory, stocked_ambulance, ambulance):
    dispatcher = RecordingDispatcher()
    runner = JobRunner(session_factory=session_factory, dispatcher=dispatcher)

    report = await runner.run_hourly_pass(today=TODAY, now=NOW)

    assert report.items_expiring == 1
    assert report.warnings_sent == 1
    assert dispatcher.expiry_warnings == [(ambulance.id, "Adrenalina", 2)]


@pytest.mark.asyncio
async def test_trigger_daily_job_endpoint(client, coordinator_headers, stocked_ambulance):
    response = await client.post("/v1/jobs/daily", headers=coordinator_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["job"] == "daily"
    assert body["status"] == "completed"
    assert "created_incident_ids" in body["report"]


@pytest.mark.asyncio
async def test_crew_cannot_trigger_jobs(client, crew_headers):
    response = await client.post("/v1/jobs/hourly", headers=crew_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_item_expiring_today_is_not_yet_expired(session_factory, db_session, ambulance):
    material = Material(name="Atropina")
    db_session.add(material)
    await db_session.flush()
    today_item = InventoryItem(
        ambulance_id=ambulance.id, material_id=material.id, quantity=4, expiry_date=TODAY, status=InventoryStatus.OK
    )
    yesterday_item = InventoryItem(
        ambulance_id=ambulance.id, material_id=material.id, quantity=4, batch="L2",
        expiry_date=TODAY - timedelta(days=1), status=InventoryStatus.OK
    )
    db_session.add_all([today_item, yesterday_item])
    await db_session.commit()
    today_id, yesterday_id = today_item.id, yesterday_item.id

    runner = JobRunner(session_factory=session_factory, dispatcher=RecordingDispatcher())
    report = await runner.run_daily_pass(today=TODAY, now=NOW)

    assert report.marked_expired == 1
    assert (await _item(session_factory, today_id)).status == InventoryStatus.OK
    assert (await _item(session_factory, yesterday_id)).status == InventoryStatus.EXPIRED

    incidents = await _incidents(session_factory)
    assert [(i.inventory_item_id, i.severity) for i in incidents] == [(today_id, IncidentSeverity.HIGH)]
