from sqlalchemy import Column, Integer, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin
from models.types import VariantSnapshotList

class OrderItem(Base, TimestampMixin):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=True)
    combination_id = Column(Integer, ForeignKey("variant_combinations.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False) # unit price the customer saw
    total_price = Column(Numeric(10, 2), nullable=False)
    selected_variants = Column(VariantSnapshotList, nullable=False, default=list)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")
    combination = relationship("VariantCombination")
