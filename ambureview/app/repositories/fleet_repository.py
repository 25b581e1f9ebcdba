"""
Read-side repository for fleet state.

Gathers everything the alert engine needs in a few explicit queries so the
derivation itself stays pure.
"""

from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ambureview.app.domain.alerts.derivation import StockView
from ambureview.app.models.ambulance import Ambulance
from ambureview.app.models.ampulario import AmpularioMaterial, Space
from ambureview.app.models.incident import Incident
from ambureview.app.models.incident_enums import ACTIVE_INCIDENT_STATUSES
from ambureview.app.models.material import InventoryItem, Material


class FleetRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_ambulances(self, ambulance_id: Optional[int] = None) -> List[Ambulance]:
        stmt = select(Ambulance).order_by(Ambulance.id)
        if ambulance_id is not None:
            stmt = stmt.where(Ambulance.id == ambulance_id)
        return list((await self.db.scalars(stmt)).all())

    async def list_stock(self, ambulance_ids: List[int]) -> List[StockView]:
        if not ambulance_ids:
            return []
        stmt = (
            select(InventoryItem, Material)
            .join(Material, Material.id == InventoryItem.material_id)
            .where(InventoryItem.ambulance_id.in_(ambulance_ids))
            .order_by(InventoryItem.id)
        )
        rows = (await self.db.execute(stmt)).all()
        return [
            StockView(
                id=item.id,
                ambulance_id=item.ambulance_id,
                name=material.name,
                kind=material.kind,
                quantity=item.quantity,
                min_stock=item.min_stock,
                expiry_date=item.expiry_date,
                equipment_status=item.equipment_status,
            )
            for item, material in rows
        ]

    async def list_active_incidents(self, ambulance_ids: Optional[List[int]] = None) -> List[Incident]:
        stmt = select(Incident).where(Incident.status.in_(ACTIVE_INCIDENT_STATUSES)).order_by(Incident.id)
        if ambulance_ids is not None:
            stmt = stmt.where(Incident.ambulance_id.in_(ambulance_ids))
        return list((await self.db.scalars(stmt)).all())

    async def list_central_materials(self, space_id: Optional[int] = None) -> List[AmpularioMaterial]:
        stmt = select(AmpularioMaterial).order_by(AmpularioMaterial.id)
        if space_id is not None:
            stmt = stmt.where(AmpularioMaterial.space_id == space_id)
        return list((await self.db.scalars(stmt)).all())

    async def space_names(self) -> Dict[int, str]:
        rows = (await self.db.execute(select(Space.id, Space.name))).all()
        return {space_id: name for space_id, name in rows}
