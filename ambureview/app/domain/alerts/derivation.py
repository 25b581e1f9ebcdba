"""
Alert Derivation Engine.

Alerts are an ephemeral projection of current fleet state, recomputed on
every read and never persisted. Three streams are merged:

1. Ambulance alerts: one pending-workflow alert per ambulance (most urgent
   stage only), low stock, expired and expiring consumables.
2. Incident alerts: open/in-progress incidents projected onto the same shape.
3. Central alerts: expiry and low stock in the ampulario.

Output is a total order: severity (high, medium, low), then most recent
first. Equal keys keep derivation order.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Optional

from ambureview.app.domain.inventory.status import days_until, effective_quantity
from ambureview.app.models.incident_enums import IncidentSeverity, ACTIVE_INCIDENT_STATUSES
from ambureview.app.models.inventory_enums import MaterialKind, EquipmentStatus

SEVERITY_RANK = {"high": 0, "medium": 1, "low": 2}

# Ambulance consumables warn this many days before expiry
EXPIRY_WARNING_DAYS = 7
# Central store warns later, its stock rotates faster
CENTRAL_EXPIRY_WARNING_DAYS = 3

INCIDENT_SEVERITY_MAP = {
    IncidentSeverity.CRITICAL: "high",
    IncidentSeverity.HIGH: "high",
    IncidentSeverity.MEDIUM: "medium",
    IncidentSeverity.LOW: "low",
}


@dataclass(frozen=True)
class Alert:
    id: str
    type: str
    message: str
    severity: str
    created_at: datetime
    ambulance_id: Optional[int] = None
    material_id: Optional[int] = None
    space_id: Optional[int] = None
    incident_id: Optional[int] = None


@dataclass(frozen=True)
class StockView:
    """Inventory item joined with its catalogue material."""
    id: int
    ambulance_id: int
    name: str
    kind: MaterialKind
    quantity: int
    min_stock: Optional[int]
    expiry_date: Optional[date]
    equipment_status: Optional[EquipmentStatus] = None


def sort_alerts(alerts: Iterable[Alert]) -> List[Alert]:
    """Severity first, then most recent first (both sorts are stable)."""
    ordered = sorted(alerts, key=lambda a: a.created_at, reverse=True)
    return sorted(ordered, key=lambda a: SEVERITY_RANK[a.severity])


def _label(ambulance) -> str:
    return ambulance.name or ambulance.code


def workflow_alert(ambulance, now: datetime) -> Optional[Alert]:
    """Only the single most urgent pending stage produces an alert."""
    label = _label(ambulance)
    if not ambulance.daily_check_completed:
        last = ambulance.last_daily_check.date().isoformat() if ambulance.last_daily_check else "never"
        return Alert(
            id=f"alert-dailycheck-{ambulance.id}",
            type="daily_check_pending",
            message=f"Daily vehicle check pending for {label}. Last: {last}",
            severity="medium",
            created_at=now,
            ambulance_id=ambulance.id,
        )
    elif not ambulance.mechanical_review_completed:
        return Alert(
            id=f"alert-mr-{ambulance.id}",
            type="review_pending",
            message=f"Mechanical review pending for {label}.",
            severity="medium",
            created_at=now,
            ambulance_id=ambulance.id,
        )
    elif not ambulance.cleaning_completed:
        return Alert(
            id=f"alert-cl-{ambulance.id}",
            type="cleaning_pending",
            message=f"Cleaning pending for {label}.",
            severity="medium",
            created_at=now,
            ambulance_id=ambulance.id,
        )
    return None


def low_stock_alert(stock: StockView, label: str, now: datetime) -> Optional[Alert]:
    if stock.min_stock is None:
        return None

    if stock.kind == MaterialKind.NON_CONSUMABLE:
        current = effective_quantity(stock.kind, stock.quantity, stock.equipment_status)
        if current >= stock.min_stock:
            return None
        return Alert(
            id=f"alert-lowstock-amb-noncons-{stock.id}",
            type="low_stock_ambulance",
            message=(
                f"Equipment alert: {stock.name} in {label}. "
                f"Status: {stock.equipment_status.value if stock.equipment_status else 'unknown'}. Expected min: {stock.min_stock}."
            ),
            severity="high" if current == 0 else "medium",
            created_at=now,
            ambulance_id=stock.ambulance_id,
            material_id=stock.id,
        )

    if stock.quantity > stock.min_stock:
        return None
    return Alert(
        id=f"alert-lowstock-amb-cons-{stock.id}",
        type="low_stock_ambulance",
        message=f"Low stock: {stock.name} in {label}. Current: {stock.quantity}, min: {stock.min_stock}.",
        severity="high" if stock.quantity == 0 and stock.min_stock > 0 else "medium",
        created_at=now,
        ambulance_id=stock.ambulance_id,
        material_id=stock.id,
    )


def expiry_alert(stock: StockView, label: str, today: date, now: datetime) -> Optional[Alert]:
    if stock.kind != MaterialKind.CONSUMABLE or stock.expiry_date is None:
        return None

    days = days_until(stock.expiry_date, today)
    if days < 0:
        return Alert(
            id=f"alert-exp-{stock.id}",
            type="expired_material",
            message=f"{stock.name} in {label} expired on {stock.expiry_date.isoformat()}.",
            severity="high",
            created_at=now,
            ambulance_id=stock.ambulance_id,
            material_id=stock.id,
        )
    if days <= EXPIRY_WARNING_DAYS:
        return Alert(
            id=f"alert-expsoon-{stock.id}",
            type="expiring_soon",
            message=f"{stock.name} in {label} expires on {stock.expiry_date.isoformat()} (in {days} day(s)).",
            severity="medium",
            created_at=now,
            ambulance_id=stock.ambulance_id,
            material_id=stock.id,
        )
    return None


def incident_alert(incident) -> Optional[Alert]:
    if incident.status not in ACTIVE_INCIDENT_STATUSES:
        return None
    return Alert(
        id=f"alert-incident-{incident.id}",
        type="incident_open",
        message=incident.title,
        severity=INCIDENT_SEVERITY_MAP[incident.severity],
        created_at=incident.created_at,
        ambulance_id=incident.ambulance_id,
        material_id=incident.inventory_item_id,
        incident_id=incident.id,
    )


def derive_ambulance_alerts(
    ambulances,
    materials: Iterable[StockView],
    today: date,
    now: datetime,
) -> List[Alert]:
    """Workflow, low-stock and expiry alerts, unsorted, in derivation order."""
    alerts: List[Alert] = []
    by_ambulance = {}
    for stock in materials:
        by_ambulance.setdefault(stock.ambulance_id, []).append(stock)

    for ambulance in ambulances:
        label = _label(ambulance)
        pending = workflow_alert(ambulance, now)
        if pending:
            alerts.append(pending)

        stock_rows = by_ambulance.get(ambulance.id, [])
        for stock in stock_rows:
            alert = low_stock_alert(stock, label, now)
            if alert:
                alerts.append(alert)
        for stock in stock_rows:
            alert = expiry_alert(stock, label, today, now)
            if alert:
                alerts.append(alert)

    return alerts


def derive_alerts(
    ambulances,
    materials: Iterable[StockView],
    incidents,
    today: date,
    now: Optional[datetime] = None,
    central: Iterable[Alert] = (),
) -> List[Alert]:
    """
    Derive the sorted alert list for a set of ambulances.

    Args:
        ambulances: Ambulance rows (workflow flags are read)
        materials: Stock views for those ambulances
        incidents: Incident rows; only OPEN/IN_PROGRESS ones are projected
        today: Calendar date used for expiry arithmetic
        now: Derivation timestamp stamped on derived alerts
        central: Already derived central-store alerts to merge in
    """
    now = now or datetime.utcnow()
    alerts = derive_ambulance_alerts(ambulances, materials, today, now)
    for incident in incidents:
        alert = incident_alert(incident)
        if alert:
            alerts.append(alert)
    alerts.extend(central)
    return sort_alerts(alerts)


def derive_central_alerts(materials, space_names: dict, today: date, now: Optional[datetime] = None) -> List[Alert]:
    """Alerts for ampulario materials (expiry within 3 days, low stock)."""
    now = now or datetime.utcnow()
    alerts: List[Alert] = []

    for material in materials:
        space_name = space_names.get(material.space_id, "unknown space")

        if material.expiry_date is not None:
            days = days_until(material.expiry_date, today)
            if days < 0:
                alerts.append(Alert(
                    id=f"alert-amp-exp-{material.id}",
                    type="ampulario_expired_material",
                    message=(
                        f"Central store: {material.name} in {space_name} "
                        f"expired on {material.expiry_date.isoformat()}."
                    ),
                    severity="high",
                    created_at=now,
                    material_id=material.id,
                    space_id=material.space_id,
                ))
            elif days <= CENTRAL_EXPIRY_WARNING_DAYS:
                alerts.append(Alert(
                    id=f"alert-amp-expsoon-{material.id}",
                    type="ampulario_expiring_soon",
                    message=(
                        f"Central store: {material.name} in {space_name} expires in {days} day(s) "
                        f"on {material.expiry_date.isoformat()}."
                    ),
                    severity="medium",
                    created_at=now,
                    material_id=material.id,
                    space_id=material.space_id,
                ))

        if material.min_stock is not None and material.quantity <= material.min_stock:
            alerts.append(Alert(
                id=f"alert-lowstock-central-{material.id}",
                type="low_stock_central",
                message=(
                    f"Low stock in central store: {material.name} in {space_name}. "
                    f"Current: {material.quantity}, min: {material.min_stock}."
                ),
                severity="high" if material.quantity == 0 and material.min_stock > 0 else "medium",
                created_at=now,
                material_id=material.id,
                space_id=material.space_id,
            ))

    return sort_alerts(alerts)
