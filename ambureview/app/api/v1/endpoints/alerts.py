"""
Alert API Endpoints.

Alerts are derived from current fleet state on every request.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ambureview.app.core.dependencies import get_current_user
from ambureview.app.core.guards import AmbulanceAccessGuard
from ambureview.app.db.session import get_db
from ambureview.app.schemas.alert import AlertResponse
from ambureview.app.services.alert_service import AlertService

router = APIRouter(prefix="/alerts", tags=["Alerts"])
ambulance_guard = AmbulanceAccessGuard()


@router.get("", response_model=List[AlertResponse])
async def list_alerts(
    ambulance_id: Optional[int] = None,
    include_central: bool = Query(True, description="Merge central store alerts"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Workflow, stock, expiry and open-incident alerts, sorted by severity
    (high first) and then most recent first.

    Crew users only see their own ambulance and never the central stream.
    """
    assigned = ambulance_guard.filter_by_access(current_user)
    if assigned is not None:
        if ambulance_id is not None:
            ambulance_guard.enforce(ambulance_id, current_user)
        ambulance_id = assigned
        include_central = False

    alerts = await AlertService.list_alerts(db, ambulance_id, include_central)
    return [AlertResponse.model_validate(alert) for alert in alerts]
