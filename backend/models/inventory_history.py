from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum, CheckConstraint, Index
from sqlalchemy.orm import relationship
from database import Base
from utils.clock import now
import enum

class InventoryChangeType(enum.Enum):
    SUPPLY = "supply"
    SALE = "sale"
    RETURN = "return"
    MANUAL_ADJUSTMENT = "manual_adjustment"
    OTHER = "other"

class InventoryHistory(Base):
    """Append-only ledger row. new_stock always equals previous_stock + change_amount."""
    __tablename__ = "inventory_history"
    __table_args__ = (
        CheckConstraint('new_stock = previous_stock + change_amount', name='ck_inventory_history_balanced'),
        CheckConstraint('new_stock >= 0', name='ck_inventory_history_new_stock_non_negative'),
        Index('ix_inventory_history_combination_created', 'combination_id', 'created_at'),
    )

    id = Column(Integer, primary_key=True, index=True)
    inventory_id = Column(Integer, ForeignKey("inventory.id"), nullable=False, index=True)
    combination_id = Column(Integer, ForeignKey("variant_combinations.id"), nullable=True)
    change_amount = Column(Integer, nullable=False) # Positive or negative
    change_type = Column(Enum(InventoryChangeType), nullable=False)
    previous_stock = Column(Integer, nullable=False)
    new_stock = Column(Integer, nullable=False)
    note = Column(Text, nullable=True)
    adjusted_by = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=now, nullable=False, index=True)

    inventory = relationship("Inventory", back_populates="history")
    combination = relationship("VariantCombination", back_populates="history")
