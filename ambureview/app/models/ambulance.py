"""
Ambulance database model.

Holds vehicle metadata, the last check-in and the four workflow flags of
the daily review cycle together with their completion timestamps.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from ambureview.app.db.session import Base


class Ambulance(Base):
    __tablename__ = "ambulances"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Identity
    code = Column(String(50), unique=True, index=True, nullable=False)
    plate = Column(String(20), unique=True, index=True, nullable=False)
    name = Column(String(200), nullable=True)

    # Vehicle metadata
    model = Column(String(100), nullable=True)
    year = Column(Integer, nullable=True)
    vehicle_type = Column(String(50), nullable=True)  # e.g. SVB, SVA, USVB

    # Last check-in
    last_known_kilometers = Column(Integer, nullable=True)
    last_check_in_by_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    last_check_in_date = Column(DateTime, nullable=True)

    # Workflow flags (always a prefix of dailyCheck -> mechanical -> cleaning -> inventory)
    daily_check_completed = Column(Boolean, default=False, nullable=False)
    mechanical_review_completed = Column(Boolean, default=False, nullable=False)
    cleaning_completed = Column(Boolean, default=False, nullable=False)
    inventory_completed = Column(Boolean, default=False, nullable=False)

    last_daily_check = Column(DateTime, nullable=True)
    last_mechanical_review = Column(DateTime, nullable=True)
    last_cleaning = Column(DateTime, nullable=True)
    last_inventory_check = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Ambulance(id={self.id}, code='{self.code}', plate='{self.plate}')>"
