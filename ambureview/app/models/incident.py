"""
Incident database model.

Durable, actionable record opened by the scheduled job or by staff.
Incidents are never deleted, only status-transitioned.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, Enum, ForeignKey
from ambureview.app.db.session import Base
from ambureview.app.models.incident_enums import IncidentType, IncidentSeverity, IncidentStatus


class Incident(Base):
    __tablename__ = "incidents"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Detached (set to NULL) when the ambulance or item is deleted
    ambulance_id = Column(Integer, ForeignKey("ambulances.id"), nullable=True, index=True)
    inventory_item_id = Column(Integer, ForeignKey("inventory_items.id"), nullable=True, index=True)

    type = Column(Enum(IncidentType), nullable=False, index=True)
    severity = Column(Enum(IncidentSeverity), default=IncidentSeverity.MEDIUM, nullable=False)
    status = Column(Enum(IncidentStatus), default=IncidentStatus.OPEN, nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    responsible_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    due_date = Column(DateTime, nullable=True)
    resolved_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Incident(id={self.id}, type='{self.type.value}', status='{self.status.value}')>"
