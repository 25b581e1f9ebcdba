"""
Incident lifecycle rules.

Incidents move OPEN -> IN_PROGRESS -> RESOLVED -> CLOSED, and may be
closed directly from OPEN or IN_PROGRESS. Nothing leaves CLOSED.
"""

from datetime import date, datetime, timedelta
from typing import Optional

from ambureview.app.core.exceptions import ConflictError
from ambureview.app.models.incident_enums import IncidentStatus, IncidentSeverity

ALLOWED_TRANSITIONS = {
    IncidentStatus.OPEN: {IncidentStatus.IN_PROGRESS, IncidentStatus.CLOSED},
    IncidentStatus.IN_PROGRESS: {IncidentStatus.RESOLVED, IncidentStatus.CLOSED},
    IncidentStatus.RESOLVED: {IncidentStatus.CLOSED},
    IncidentStatus.CLOSED: set(),
}


def apply_transition(incident, new_status: IncidentStatus, now: Optional[datetime] = None):
    current = incident.status
    if new_status == current:
        return incident

    if new_status not in ALLOWED_TRANSITIONS[current]:
        raise ConflictError(
            f"Cannot move incident from {current.value} to {new_status.value}",
            details={"from": current.value, "to": new_status.value}
        )

    incident.status = new_status
    if new_status == IncidentStatus.RESOLVED:
        incident.resolved_at = now or datetime.utcnow()
    return incident


def expiry_incident_severity(expiry_date: date, today: date) -> IncidentSeverity:
    """CRITICAL once expired, HIGH within 3 days, MEDIUM within 7."""
    days = (expiry_date - today).days
    if days < 0:
        return IncidentSeverity.CRITICAL
    if days <= 3:
        return IncidentSeverity.HIGH
    return IncidentSeverity.MEDIUM


def expiry_incident_due_date(severity: IncidentSeverity, now: datetime) -> datetime:
    """Urgent incidents are due next day, the rest in three days."""
    if severity in (IncidentSeverity.CRITICAL, IncidentSeverity.HIGH):
        return now + timedelta(days=1)
    return now + timedelta(days=3)


def low_stock_incident_severity(quantity: int, min_stock: int) -> IncidentSeverity:
    if quantity == 0:
        return IncidentSeverity.CRITICAL
    if quantity <= min_stock / 2:
        return IncidentSeverity.HIGH
    return IncidentSeverity.MEDIUM


def low_stock_incident_due_date(now: datetime) -> datetime:
    return now + timedelta(days=2)
