"""
Material catalogue and ambulance inventory models.
"""

from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Date, Text, Enum, ForeignKey, UniqueConstraint
)
from ambureview.app.db.session import Base
from ambureview.app.models.inventory_enums import MaterialKind, InventoryStatus, EquipmentStatus


class Material(Base):
    """Catalogue entry shared by every ambulance that stocks it."""
    __tablename__ = "materials"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(200), unique=True, index=True, nullable=False)
    reference = Column(String(100), nullable=True)
    category = Column(String(100), nullable=True)
    kind = Column(Enum(MaterialKind), default=MaterialKind.CONSUMABLE, nullable=False)
    critical = Column(Boolean, default=False, nullable=False)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Material(id={self.id}, name='{self.name}', kind='{self.kind.value}')>"


class InventoryItem(Base):
    """
    Stock of one material (optionally one batch) inside one ambulance.

    `status` is a stored projection of quantity, min_stock and expiry_date;
    it is re-derived on every write that touches those fields.
    """
    __tablename__ = "inventory_items"
    __table_args__ = (
        UniqueConstraint("ambulance_id", "material_id", "batch", name="uq_inventory_ambulance_material_batch"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    ambulance_id = Column(Integer, ForeignKey("ambulances.id"), nullable=False, index=True)
    material_id = Column(Integer, ForeignKey("materials.id"), nullable=False, index=True)

    quantity = Column(Integer, default=0, nullable=False)
    min_stock = Column(Integer, nullable=True)
    expiry_date = Column(Date, nullable=True, index=True)
    batch = Column(String(100), nullable=True)
    location = Column(String(200), nullable=True)
    status = Column(Enum(InventoryStatus), default=InventoryStatus.OK, nullable=False, index=True)

    # Non-consumable equipment
    serial_number = Column(String(100), nullable=True)
    equipment_status = Column(Enum(EquipmentStatus), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<InventoryItem(id={self.id}, ambulance={self.ambulance_id}, material={self.material_id}, qty={self.quantity})>"


class InventoryLog(Base):
    """Append-only quantity history for ambulance and central-store stock."""
    __tablename__ = "inventory_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    inventory_item_id = Column(Integer, ForeignKey("inventory_items.id"), nullable=True, index=True)
    ampulario_material_id = Column(Integer, ForeignKey("ampulario_materials.id"), nullable=True, index=True)

    diff = Column(Integer, nullable=False)
    quantity_before = Column(Integer, nullable=False)
    quantity_after = Column(Integer, nullable=False)
    reason = Column(String(500), nullable=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<InventoryLog(id={self.id}, diff={self.diff})>"
