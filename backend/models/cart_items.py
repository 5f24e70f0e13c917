from sqlalchemy import Column, Integer, String, Text, Numeric, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin
from models.types import VariantSnapshotList

class CartItem(Base, TimestampMixin):
    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint('cart_id', 'product_id', 'variant_key', name='_cart_item_selection_uc'),
        CheckConstraint('quantity >= 1 AND quantity <= 999', name='ck_cart_items_quantity_range'),
    )

    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=1)
    price = Column(Numeric(10, 2), nullable=False) # unit price when the item was added
    total_price = Column(Numeric(10, 2), nullable=False) # quantity * price
    selected_variants = Column(VariantSnapshotList, nullable=False, default=list)
    variant_key = Column(String(255), nullable=False, default="") # sorted variant ids, e.g. "3,7"
    notes = Column(Text, nullable=True)

    cart = relationship("Cart", back_populates="items")
    product = relationship("Product")
