from sqlalchemy import Column, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

class Inventory(Base, TimestampMixin):
    """Per-product restock cursor.

    Holds no quantity: stock lives on VariantCombination. This row only points at
    the latest Supply and anchors the product's InventoryHistory rows.
    """
    __tablename__ = "inventory"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, unique=True)
    supply_id = Column(Integer, ForeignKey("supply.id"), nullable=True)
    restocked_at = Column(DateTime(timezone=True), nullable=True)

    product = relationship("Product", back_populates="inventory")
    supply = relationship("Supply")
    history = relationship("InventoryHistory", back_populates="inventory")
