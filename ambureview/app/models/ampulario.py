"""
Central medication store (ampulario) models.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Date, Text, Enum, ForeignKey, UniqueConstraint
from ambureview.app.db.session import Base
from ambureview.app.models.inventory_enums import MaterialRoute, InventoryStatus


class Space(Base):
    """Named storage area inside the central store."""
    __tablename__ = "spaces"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(200), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Space(id={self.id}, name='{self.name}')>"


class AmpularioMaterial(Base):
    __tablename__ = "ampulario_materials"
    __table_args__ = (
        UniqueConstraint("space_id", "name", "dose", name="uq_ampulario_space_name_dose"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    space_id = Column(Integer, ForeignKey("spaces.id"), nullable=False, index=True)

    name = Column(String(200), nullable=False, index=True)
    dose = Column(String(100), nullable=False)
    unit = Column(String(50), nullable=True)
    route = Column(Enum(MaterialRoute), nullable=False)

    quantity = Column(Integer, default=0, nullable=False)
    min_stock = Column(Integer, nullable=True)
    expiry_date = Column(Date, nullable=True, index=True)
    batch = Column(String(100), nullable=True)
    status = Column(Enum(InventoryStatus), default=InventoryStatus.OK, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<AmpularioMaterial(id={self.id}, name='{self.name}', dose='{self.dose}')>"
