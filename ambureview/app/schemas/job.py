"""
Job pass report schemas.
"""

from pydantic import BaseModel
from datetime import datetime, date
from typing import List, Optional


class DailyPassReport(BaseModel):
    run_date: date
    started_at: datetime
    finished_at: Optional[datetime] = None
    marked_expired: int = 0
    marked_low: int = 0
    expiry_incidents_created: int = 0
    low_stock_incidents_created: int = 0
    statuses_corrected: int = 0
    notifications_sent: int = 0
    notification_failures: int = 0
    created_incident_ids: List[int] = []


class HourlyPassReport(BaseModel):
    run_date: date
    started_at: datetime
    finished_at: Optional[datetime] = None
    items_expiring: int = 0
    warnings_sent: int = 0
    warning_failures: int = 0


class JobTriggerResponse(BaseModel):
    job: str
    status: str
    report: dict
