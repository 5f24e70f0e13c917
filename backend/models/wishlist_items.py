from sqlalchemy import Column, Integer, String, Text, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin
from models.types import VariantSnapshotList

class WishlistItem(Base, TimestampMixin):
    __tablename__ = "wishlist_items"
    __table_args__ = (
        UniqueConstraint('wishlist_id', 'product_id', 'variant_key', name='_wishlist_item_selection_uc'),
    )

    id = Column(Integer, primary_key=True, index=True)
    wishlist_id = Column(Integer, ForeignKey("wishlists.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=1)
    price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    selected_variants = Column(VariantSnapshotList, nullable=False, default=list)
    variant_key = Column(String(255), nullable=False, default="")
    notes = Column(Text, nullable=True)

    wishlist = relationship("Wishlist", back_populates="items")
    product = relationship("Product")
