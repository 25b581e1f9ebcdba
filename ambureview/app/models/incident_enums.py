"""
Incident-related enumerations.
"""

import enum


class IncidentType(str, enum.Enum):
    """Incident type enumeration."""
    MISSING = "MISSING"  # Stock below minimum
    EXPIRED = "EXPIRED"  # Material expired or about to expire
    DAMAGE = "DAMAGE"
    MAINTENANCE = "MAINTENANCE"


class IncidentSeverity(str, enum.Enum):
    """Incident severity enumeration."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class IncidentStatus(str, enum.Enum):
    """Incident status enumeration."""
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


# Statuses that still require action; deduplication only looks at these
ACTIVE_INCIDENT_STATUSES = (IncidentStatus.OPEN, IncidentStatus.IN_PROGRESS)
