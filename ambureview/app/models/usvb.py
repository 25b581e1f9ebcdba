"""
USVB kit models.

A kit is an equipment bag template; each material carries a target
quantity that the current stock is audited against.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, Enum, ForeignKey, UniqueConstraint
from ambureview.app.db.session import Base
from ambureview.app.models.inventory_enums import KitCategory, KitMaterialStatus


class UsvbKit(Base):
    __tablename__ = "usvb_kits"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    number = Column(Integer, unique=True, index=True, nullable=False)
    name = Column(String(200), nullable=False)
    category = Column(Enum(KitCategory), default=KitCategory.OTHER, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<UsvbKit(id={self.id}, number={self.number}, name='{self.name}')>"


class UsvbKitMaterial(Base):
    __tablename__ = "usvb_kit_materials"
    __table_args__ = (
        UniqueConstraint("kit_id", "name", name="uq_usvb_kit_material_name"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    kit_id = Column(Integer, ForeignKey("usvb_kits.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    position = Column(Integer, default=0, nullable=False)
    quantity = Column(Integer, default=0, nullable=False)
    target_quantity = Column(Integer, default=0, nullable=False)
    status = Column(Enum(KitMaterialStatus), default=KitMaterialStatus.OK, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<UsvbKitMaterial(id={self.id}, kit={self.kit_id}, name='{self.name}')>"
