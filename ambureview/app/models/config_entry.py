"""
Key/value configuration rows (storage locations, checklist templates, ...).
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, JSON
from ambureview.app.db.session import Base


class ConfigEntry(Base):
    __tablename__ = "config_entries"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    key = Column(String(100), unique=True, index=True, nullable=False)
    value = Column(JSON, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<ConfigEntry(key='{self.key}')>"
