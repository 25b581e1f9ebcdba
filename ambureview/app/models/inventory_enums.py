"""
Inventory-related enumerations.
"""

import enum


class MaterialKind(str, enum.Enum):
    """Catalogue material kind."""
    CONSUMABLE = "CONSUMABLE"  # Counted stock, may expire
    NON_CONSUMABLE = "NON_CONSUMABLE"  # Equipment tracked by serial number


class InventoryStatus(str, enum.Enum):
    """Derived stock status (precedence: EXPIRED > LOW > OK)."""
    OK = "OK"
    LOW = "LOW"
    EXPIRED = "EXPIRED"


class EquipmentStatus(str, enum.Enum):
    """Operational state of non-consumable equipment."""
    OPERATIONAL = "OPERATIONAL"
    NEEDS_REPAIR = "NEEDS_REPAIR"
    OUT_OF_SERVICE = "OUT_OF_SERVICE"


class MaterialRoute(str, enum.Enum):
    """Administration route of central-store medication."""
    IV_IM = "IV/IM"
    NEBULIZER = "Nebulizador"
    ORAL = "Oral"


class KitMaterialStatus(str, enum.Enum):
    """Stock state of a USVB kit material against its target quantity."""
    OK = "ok"
    LOW = "low"
    OUT = "out"


class KitCategory(str, enum.Enum):
    """Closed set of USVB kit categories (drives the icon shown by clients)."""
    BACKPACK = "BACKPACK"
    PPE = "PPE"
    MEDICATION = "MEDICATION"
    FLUIDS = "FLUIDS"
    SUCTION = "SUCTION"
    AIRWAY = "AIRWAY"
    OXYGEN = "OXYGEN"
    RESUSCITATION = "RESUSCITATION"
    HYGIENE = "HYGIENE"
    DIAGNOSTIC = "DIAGNOSTIC"
    WOUND_CARE = "WOUND_CARE"
    IMMOBILIZATION = "IMMOBILIZATION"
    RESCUE = "RESCUE"
    CONSUMABLES = "CONSUMABLES"
    OTHER = "OTHER"
