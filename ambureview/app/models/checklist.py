"""
Configurable checklist models.

A template is an ordered list of items. A checklist is one run of a
template against an ambulance, and holds at most one response per item.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, Enum, ForeignKey, UniqueConstraint
from ambureview.app.db.session import Base
from ambureview.app.models.review_enums import ChecklistPeriodicity, ChecklistItemType, ChecklistStatus


class ChecklistTemplate(Base):
    __tablename__ = "checklist_templates"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(200), unique=True, nullable=False)
    periodicity = Column(Enum(ChecklistPeriodicity), default=ChecklistPeriodicity.DAILY, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<ChecklistTemplate(id={self.id}, name='{self.name}')>"


class ChecklistItem(Base):
    __tablename__ = "checklist_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    template_id = Column(Integer, ForeignKey("checklist_templates.id"), nullable=False, index=True)
    label = Column(String(255), nullable=False)
    type = Column(Enum(ChecklistItemType), default=ChecklistItemType.OKKO, nullable=False)
    category = Column(String(100), nullable=True)
    required = Column(Boolean, default=True, nullable=False)
    position = Column(Integer, default=0, nullable=False)

    def __repr__(self):
        return f"<ChecklistItem(id={self.id}, template={self.template_id}, label='{self.label}')>"


class Checklist(Base):
    __tablename__ = "checklists"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    template_id = Column(Integer, ForeignKey("checklist_templates.id"), nullable=False, index=True)
    ambulance_id = Column(Integer, ForeignKey("ambulances.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    date = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    status = Column(Enum(ChecklistStatus), default=ChecklistStatus.PENDING, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Checklist(id={self.id}, template={self.template_id}, ambulance={self.ambulance_id})>"


class ChecklistResponse(Base):
    __tablename__ = "checklist_responses"
    __table_args__ = (
        UniqueConstraint("checklist_id", "item_id", name="uq_checklist_response_item"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    checklist_id = Column(Integer, ForeignKey("checklists.id"), nullable=False, index=True)
    item_id = Column(Integer, ForeignKey("checklist_items.id"), nullable=False)
    value = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
