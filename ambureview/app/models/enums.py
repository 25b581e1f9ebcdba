"""
User roles enumeration.

Defines the role types for the ambulance fleet management system.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        ADMIN: System-level access, including manual job triggers
        COORDINATOR: Manages the fleet, central store, kits and users
        USER: Ambulance crew member, restricted to the assigned ambulance
    """
    ADMIN = "ADMIN"
    COORDINATOR = "COORDINATOR"
    USER = "USER"
