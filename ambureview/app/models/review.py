"""
Workflow stage records owned by an ambulance.

Each submission is a point-in-time record; history is kept and the newest
record per ambulance is the current one.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, Enum, ForeignKey
from ambureview.app.db.session import Base
from ambureview.app.models.review_enums import (
    FuelLevel, TyrePressureStatus, PresenceStatus, DeviceStatus
)


class DailyVehicleCheck(Base):
    """Start-of-shift vehicle check (completes the dailyCheck stage)."""
    __tablename__ = "daily_vehicle_checks"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    ambulance_id = Column(Integer, ForeignKey("ambulances.id"), nullable=False, index=True)
    performed_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    fuel_level = Column(Enum(FuelLevel), nullable=False)
    tyre_pressure = Column(Enum(TyrePressureStatus), nullable=False)
    documents = Column(Enum(PresenceStatus), nullable=False)
    ipad_status = Column(Enum(DeviceStatus), nullable=False)
    pax_bag = Column(Enum(PresenceStatus), nullable=True)
    pax_folder = Column(Enum(PresenceStatus), nullable=True)

    # Exterior damage notes, one per corner of the vehicle
    front_left_notes = Column(Text, nullable=True)
    front_right_notes = Column(Text, nullable=True)
    rear_left_notes = Column(Text, nullable=True)
    rear_right_notes = Column(Text, nullable=True)

    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<DailyVehicleCheck(id={self.id}, ambulance={self.ambulance_id})>"


class MechanicalReview(Base):
    """
    Mechanical review with an ordered checklist.

    `items` holds a list of {name, category, status, notes} dicts.
    """
    __tablename__ = "mechanical_reviews"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    ambulance_id = Column(Integer, ForeignKey("ambulances.id"), nullable=False, index=True)
    performed_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    items = Column(JSON, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<MechanicalReview(id={self.id}, ambulance={self.ambulance_id})>"


class CleaningLog(Base):
    __tablename__ = "cleaning_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    ambulance_id = Column(Integer, ForeignKey("ambulances.id"), nullable=False, index=True)
    performed_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    materials_used = Column(JSON, nullable=True)  # list of product names
    observations = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<CleaningLog(id={self.id}, ambulance={self.ambulance_id})>"
