"""
Scheduled Job Runner.

Daily pass, in this fixed order:
    1. mark expired items EXPIRED
    2. mark under-minimum items LOW
    3. open EXPIRED incidents for OK items expiring within 7 days
    4. open MISSING incidents for LOW items
    5. re-derive every item status (consistency pass)
    6. notify for each incident created in this run

Hourly pass: re-send expiry warnings for OK items expiring within 3 days.

Each step commits before the next one runs. A pass that fails is logged by
`handle_*` and retried only by the next tick. Incident creation is
deduplicated per (item, type) against OPEN/IN_PROGRESS incidents, so a
second run over unchanged data creates nothing.
"""

import asyncio
import logging
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ambureview.app.db.session import AsyncSessionLocal
from ambureview.app.domain.incidents.transitions import (
    expiry_incident_severity, expiry_incident_due_date,
    low_stock_incident_severity, low_stock_incident_due_date,
)
from ambureview.app.domain.inventory.status import apply_status, days_until
from ambureview.app.models.incident import Incident
from ambureview.app.models.incident_enums import IncidentType, IncidentStatus, ACTIVE_INCIDENT_STATUSES
from ambureview.app.models.inventory_enums import InventoryStatus
from ambureview.app.models.material import InventoryItem, Material
from ambureview.app.models.user import User
from ambureview.app.schemas.job import DailyPassReport, HourlyPassReport
from ambureview.app.services.notification_service import NotificationDispatcher, notification_dispatcher

logger = logging.getLogger(__name__)

INCIDENT_LOOKAHEAD_DAYS = 7
WARNING_LOOKAHEAD_DAYS = 3


class JobRunner:
    """
    Runs the daily and hourly passes against a session factory.

    A pass holds an in-process lock for its whole duration, so a manual
    trigger waits for a scheduled tick of the same pass (and vice versa).
    """

    def __init__(self, session_factory=AsyncSessionLocal, dispatcher: NotificationDispatcher = notification_dispatcher):
        self.session_factory = session_factory
        self.dispatcher = dispatcher
        self._daily_lock = asyncio.Lock()
        self._hourly_lock = asyncio.Lock()

    # --- Daily pass ---

    async def run_daily_pass(self, today: Optional[date] = None, now: Optional[datetime] = None) -> DailyPassReport:
        now = now or datetime.utcnow()
        today = today or now.date()

        async with self._daily_lock:
            logger.info("Starting daily pass for %s", today)
            report = DailyPassReport(run_date=today, started_at=now)

            async with self.session_factory() as db:
                report.marked_expired = await self._mark_expired(db, today)
                report.marked_low = await self._mark_low_stock(db, today)

                expiry_ids = await self._create_expiry_incidents(db, today, now)
                low_stock_ids = await self._create_low_stock_incidents(db, now)
                report.expiry_incidents_created = len(expiry_ids)
                report.low_stock_incidents_created = len(low_stock_ids)
                report.created_incident_ids = expiry_ids + low_stock_ids

                report.statuses_corrected = await self._recompute_statuses(db, today)

                sent, failed = await self._dispatch_incidents(db, report.created_incident_ids)
                report.notifications_sent = sent
                report.notification_failures = failed

            report.finished_at = datetime.utcnow()
            logger.info(
                "Daily pass completed: expired=%d low=%d incidents=%d corrected=%d notified=%d failed=%d",
                report.marked_expired, report.marked_low, len(report.created_incident_ids),
                report.statuses_corrected, report.notifications_sent, report.notification_failures
            )
            return report

    async def handle_daily_pass(self) -> Optional[DailyPassReport]:
        """Scheduler entry point: never raises."""
        try:
            return await self.run_daily_pass()
        except Exception:
            logger.exception("Daily pass failed")
            return None

    async def _mark_expired(self, db: AsyncSession, today: date) -> int:
        # Same boundary as derive_status: an item is usable through its expiry date
        result = await db.execute(
            select(InventoryItem).where(
                InventoryItem.expiry_date.is_not(None),
                InventoryItem.expiry_date < today,
                InventoryItem.status != InventoryStatus.EXPIRED
            )
        )
        items = result.scalars().all()
        for item in items:
            item.status = InventoryStatus.EXPIRED
        await db.commit()
        logger.info("Marked %d items as expired", len(items))
        return len(items)

    async def _mark_low_stock(self, db: AsyncSession, today: date) -> int:
        result = await db.execute(
            select(InventoryItem).where(
                InventoryItem.min_stock > 0,
                InventoryItem.quantity <= InventoryItem.min_stock,
                InventoryItem.status != InventoryStatus.LOW,
                InventoryItem.status != InventoryStatus.EXPIRED
            )
        )
        items = result.scalars().all()
        for item in items:
            item.status = InventoryStatus.LOW
        await db.commit()
        logger.info("Marked %d items as low stock", len(items))
        return len(items)

    async def _has_active_incident(self, db: AsyncSession, item_id: int, incident_type: IncidentType) -> bool:
        result = await db.execute(
            select(Incident.id).where(
                Incident.inventory_item_id == item_id,
                Incident.type == incident_type,
                Incident.status.in_(ACTIVE_INCIDENT_STATUSES)
            ).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def _first_assigned_user_id(self, db: AsyncSession, ambulance_id: int) -> Optional[int]:
        result = await db.execute(
            select(User.id).where(
                User.assigned_ambulance_id == ambulance_id,
                User.is_active == True
            ).order_by(User.id).limit(1)
        )
        return result.scalar_one_or_none()

    async def _create_expiry_incidents(self, db: AsyncSession, today: date, now: datetime) -> List[int]:
        horizon = today + timedelta(days=INCIDENT_LOOKAHEAD_DAYS)
        result = await db.execute(
            select(InventoryItem, Material)
            .join(Material, Material.id == InventoryItem.material_id)
            .where(
                InventoryItem.expiry_date.is_not(None),
                InventoryItem.expiry_date >= today,
                InventoryItem.expiry_date <= horizon,
                InventoryItem.status == InventoryStatus.OK
            )
            .order_by(InventoryItem.id)
        )
        rows = result.all()

        created = []
        for item, material in rows:
            if await self._has_active_incident(db, item.id, IncidentType.EXPIRED):
                continue

            days = days_until(item.expiry_date, today)
            severity = expiry_incident_severity(item.expiry_date, today)
            incident = Incident(
                ambulance_id=item.ambulance_id,
                inventory_item_id=item.id,
                type=IncidentType.EXPIRED,
                severity=severity,
                status=IncidentStatus.OPEN,
                title=f"Material expiring soon: {material.name}",
                description=f"{material.name} expires in {days} day(s) ({item.expiry_date.isoformat()})",
                responsible_id=await self._first_assigned_user_id(db, item.ambulance_id),
                due_date=expiry_incident_due_date(severity, now),
            )
            db.add(incident)
            await db.flush()
            created.append(incident.id)

        await db.commit()
        logger.info("Created %d expiry incidents (%d candidates)", len(created), len(rows))
        return created

    async def _create_low_stock_incidents(self, db: AsyncSession, now: datetime) -> List[int]:
        result = await db.execute(
            select(InventoryItem, Material)
            .join(Material, Material.id == InventoryItem.material_id)
            .where(
                InventoryItem.status == InventoryStatus.LOW,
                InventoryItem.min_stock > 0,
                InventoryItem.quantity <= InventoryItem.min_stock
            )
            .order_by(InventoryItem.id)
        )
        rows = result.all()

        created = []
        for item, material in rows:
            if await self._has_active_incident(db, item.id, IncidentType.MISSING):
                continue

            incident = Incident(
                ambulance_id=item.ambulance_id,
                inventory_item_id=item.id,
                type=IncidentType.MISSING,
                severity=low_stock_incident_severity(item.quantity, item.min_stock),
                status=IncidentStatus.OPEN,
                title=f"Low stock: {material.name}",
                description=f"{material.name} is low on stock. Current: {item.quantity}, min: {item.min_stock}",
                responsible_id=await self._first_assigned_user_id(db, item.ambulance_id),
                due_date=low_stock_incident_due_date(now),
            )
            db.add(incident)
            await db.flush()
            created.append(incident.id)

        await db.commit()
        logger.info("Created %d low stock incidents (%d candidates)", len(created), len(rows))
        return created

    async def _recompute_statuses(self, db: AsyncSession, today: date) -> int:
        result = await db.execute(select(InventoryItem))
        corrected = 0
        for item in result.scalars().all():
            previous = item.status
            if apply_status(item, today) != previous:
                corrected += 1
        await db.commit()
        logger.info("Status consistency pass corrected %d items", corrected)
        return corrected

    async def _dispatch_incidents(self, db: AsyncSession, incident_ids: List[int]) -> Tuple[int, int]:
        sent = failed = 0
        for incident_id in incident_ids:
            try:
                incident = await db.get(Incident, incident_id, populate_existing=True)
                await self.dispatcher.send_incident_alert(db, incident)
                await db.commit()
                sent += 1
            except Exception:
                logger.exception("Notification for incident %s failed", incident_id)
                await db.rollback()
                failed += 1
        return sent, failed

    # --- Hourly pass ---

    async def run_hourly_pass(self, today: Optional[date] = None, now: Optional[datetime] = None) -> HourlyPassReport:
        now = now or datetime.utcnow()
        today = today or now.date()

        async with self._hourly_lock:
            logger.info("Starting hourly pass for %s", today)
            report = HourlyPassReport(run_date=today, started_at=now)
            horizon = today + timedelta(days=WARNING_LOOKAHEAD_DAYS)

            async with self.session_factory() as db:
                result = await db.execute(
                    select(InventoryItem.id, InventoryItem.ambulance_id, InventoryItem.expiry_date, Material.name)
                    .join(Material, Material.id == InventoryItem.material_id)
                    .where(
                        InventoryItem.expiry_date.is_not(None),
                        InventoryItem.expiry_date >= today,
                        InventoryItem.expiry_date <= horizon,
                        InventoryItem.status == InventoryStatus.OK
                    )
                    .order_by(InventoryItem.id)
                )
                rows = result.all()
                report.items_expiring = len(rows)

                for item_id, ambulance_id, expiry_date, material_name in rows:
                    try:
                        await self.dispatcher.send_expiry_alert(
                            db, ambulance_id, material_name, days_until(expiry_date, today)
                        )
                        await db.commit()
                        report.warnings_sent += 1
                    except Exception:
                        logger.exception("Expiry warning for item %s failed", item_id)
                        await db.rollback()
                        report.warning_failures += 1

            report.finished_at = datetime.utcnow()
            if report.items_expiring:
                logger.info(
                    "Hourly pass completed: sent expiry warnings for %d of %d items",
                    report.warnings_sent, report.items_expiring
                )
            return report

    async def handle_hourly_pass(self) -> Optional[HourlyPassReport]:
        """Scheduler entry point: never raises."""
        try:
            return await self.run_hourly_pass()
        except Exception:
            logger.exception("Hourly pass failed")
            return None


job_runner = JobRunner()


def get_job_runner() -> JobRunner:
    """FastAPI dependency (overridden in tests)."""
    return job_runner
