"""
Review and checklist enumerations.
"""

import enum


class ChecklistItemStatus(str, enum.Enum):
    """Result of a single checklist item."""
    OK = "OK"
    REPAIR = "Repair"
    NOT_APPLICABLE = "N/A"


class FuelLevel(str, enum.Enum):
    FULL = "FULL"
    THREE_QUARTERS = "3/4"
    HALF = "1/2"
    QUARTER = "1/4"
    RESERVE = "RESERVE"
    EMPTY = "EMPTY"


class TyrePressureStatus(str, enum.Enum):
    OK = "OK"
    LOW = "LOW"
    HIGH = "HIGH"
    CHECK = "CHECK"


class PresenceStatus(str, enum.Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"


class DeviceStatus(str, enum.Enum):
    OPERATIONAL = "OPERATIONAL"
    DEFECTIVE = "DEFECTIVE"
    ABSENT = "ABSENT"


class ChecklistPeriodicity(str, enum.Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"


class ChecklistItemType(str, enum.Enum):
    """How a checklist item is answered: OK/KO, a number or free text."""
    OKKO = "OKKO"
    NUMBER = "NUMBER"
    TEXT = "TEXT"


class ChecklistStatus(str, enum.Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
