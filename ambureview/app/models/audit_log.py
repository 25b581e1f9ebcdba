"""
Audit Log Database Model.

Append-only trail of every create/update/delete on ambulances, users and
material entities, plus authentication events.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, JSON
from ambureview.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model.

    Rows are never updated or deleted.
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for system actions)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_username = Column(String(100), nullable=True)

    # What action was performed, on which entity
    action = Column(String(100), nullable=False, index=True)
    entity = Column(String(100), nullable=True, index=True)
    entity_id = Column(Integer, nullable=True, index=True)

    payload = Column(JSON, nullable=True)

    # IP address for login tracking
    ip_address = Column(String(50), nullable=True)

    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', entity={self.entity}:{self.entity_id})>"
