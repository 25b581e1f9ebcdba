"""
User database model.

Crew members, coordinators and administrators of the ambulance service.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, ForeignKey
from ambureview.app.db.session import Base
from ambureview.app.models.enums import UserRole


class User(Base):
    """
    User model for authentication and user management.

    Users are never hard-deleted; deactivation keeps audit rows and
    incident responsibles valid.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(100), unique=True, index=True, nullable=False)
    full_name = Column(String(200), nullable=True)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False)

    # Crew users operate a single ambulance
    assigned_ambulance_id = Column(
        Integer, ForeignKey("ambulances.id", use_alter=True, name="fk_users_assigned_ambulance"),
        index=True, nullable=True
    )

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role='{self.role.value}')>"
