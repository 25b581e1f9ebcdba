"""
Inventory status derivation.

`derive_status` is the single source of truth for the stored `status`
column of ambulance items and central-store materials. Precedence:
EXPIRED > LOW > OK.
"""

from datetime import date
from typing import Optional

from ambureview.app.models.inventory_enums import (
    InventoryStatus, EquipmentStatus, MaterialKind, KitMaterialStatus
)

# A kit material is low below this share of its target quantity
KIT_LOW_RATIO = 0.2


def derive_status(
    quantity: int,
    min_stock: Optional[int],
    expiry_date: Optional[date],
    today: date,
) -> InventoryStatus:
    if expiry_date is not None and expiry_date < today:
        return InventoryStatus.EXPIRED
    if min_stock is not None and min_stock > 0 and quantity <= min_stock:
        return InventoryStatus.LOW
    return InventoryStatus.OK


def apply_status(item, today: date) -> InventoryStatus:
    """Re-derive and store the status of an item-like object."""
    item.status = derive_status(item.quantity, item.min_stock, item.expiry_date, today)
    return item.status


def days_until(expiry_date: date, today: date) -> int:
    return (expiry_date - today).days


def effective_quantity(kind: MaterialKind, quantity: int, equipment_status: Optional[EquipmentStatus]) -> int:
    """
    Quantity used for low-stock checks.

    Non-consumable equipment counts as one unit while operational and zero
    otherwise, regardless of the stored quantity.
    """
    if kind == MaterialKind.NON_CONSUMABLE:
        return 1 if equipment_status == EquipmentStatus.OPERATIONAL else 0
    return quantity


def kit_material_status(quantity: int, target_quantity: int) -> KitMaterialStatus:
    if quantity <= 0:
        return KitMaterialStatus.OUT
    if target_quantity > 0 and quantity < target_quantity * KIT_LOW_RATIO:
        return KitMaterialStatus.LOW
    return KitMaterialStatus.OK


def kit_overall_status(statuses) -> str:
    """critical if any material is out, warning if any is low, else ok."""
    statuses = list(statuses)
    if KitMaterialStatus.OUT in statuses:
        return "critical"
    if KitMaterialStatus.LOW in statuses:
        return "warning"
    return "ok"
