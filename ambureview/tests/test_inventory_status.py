"""
Stock status derivation tests.
"""

from datetime import date, timedelta

import pytest

from ambureview.app.domain.inventory.status import (
    derive_status, effective_quantity, kit_material_status, kit_overall_status
)
from ambureview.app.models.inventory_enums import (
    InventoryStatus, MaterialKind, EquipmentStatus, KitMaterialStatus
)

TODAY = date(2024, 3, 10)


@pytest.mark.parametrize("quantity, min_stock, expiry, expected", [
    (10, 5, None, InventoryStatus.OK),
    (5, 5, None, InventoryStatus.LOW),
    (0, 5, None, InventoryStatus.LOW),
    (0, 0, None, InventoryStatus.OK),
    (0, None, None, InventoryStatus.OK),
    (10, 5, TODAY, InventoryStatus.OK),
    (10, 5, TODAY - timedelta(days=1), InventoryStatus.EXPIRED),
    (1, 5, TODAY - timedelta(days=1), InventoryStatus.EXPIRED),
])
def test_derive_status(quantity, min_stock, expiry, expected):
    assert derive_status(quantity, min_stock, expiry, TODAY) == expected


def test_expiry_day_itself_is_not_expired():
    assert derive_status(3, None, TODAY, TODAY) == InventoryStatus.OK
    assert derive_status(3, None, TODAY, TODAY + timedelta(days=1)) == InventoryStatus.EXPIRED


def test_non_consumable_counts_one_when_operational():
    assert effective_quantity(MaterialKind.NON_CONSUMABLE, 4, EquipmentStatus.OPERATIONAL) == 1
    assert effective_quantity(MaterialKind.NON_CONSUMABLE, 4, EquipmentStatus.NEEDS_REPAIR) == 0
    assert effective_quantity(MaterialKind.NON_CONSUMABLE, 4, None) == 0
    assert effective_quantity(MaterialKind.CONSUMABLE, 4, None) == 4


@pytest.mark.parametrize("quantity, target, expected", [
    (0, 10, KitMaterialStatus.OUT),
    (1, 10, KitMaterialStatus.LOW),
    (2, 10, KitMaterialStatus.OK),
    (3, 0, KitMaterialStatus.OK),
])
def test_kit_material_status(quantity, target, expected):
    assert kit_material_status(quantity, target) == expected


def test_kit_overall_status():
    assert kit_overall_status([KitMaterialStatus.OK, KitMaterialStatus.OUT, KitMaterialStatus.LOW]) == "critical"
    assert kit_overall_status([KitMaterialStatus.OK, KitMaterialStatus.LOW]) == "warning"
    assert kit_overall_status([KitMaterialStatus.OK]) == "ok"
    assert kit_overall_status([]) == "ok"
