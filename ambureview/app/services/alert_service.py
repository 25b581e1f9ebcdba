"""
Alert Service.

Loads fleet state through the repository and runs the pure derivation.
Nothing here is cached or persisted.
"""

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ambureview.app.domain.alerts.derivation import Alert, derive_alerts, derive_central_alerts
from ambureview.app.repositories.fleet_repository import FleetRepository


class AlertService:

    @staticmethod
    async def list_alerts(
        db: AsyncSession,
        ambulance_id: Optional[int] = None,
        include_central: bool = True,
        today: Optional[date] = None,
        now: Optional[datetime] = None
    ) -> List[Alert]:
        now = now or datetime.utcnow()
        today = today or now.date()
        repo = FleetRepository(db)

        ambulances = await repo.list_ambulances(ambulance_id)
        ambulance_ids = [a.id for a in ambulances]
        stock = await repo.list_stock(ambulance_ids)
        incidents = await repo.list_active_incidents(ambulance_ids if ambulance_id is not None else None)

        central = []
        if include_central:
            central = derive_central_alerts(
                await repo.list_central_materials(), await repo.space_names(), today, now
            )

        return derive_alerts(ambulances, stock, incidents, today, now=now, central=central)
