from sqlalchemy import Column, Integer, String, Numeric, Boolean, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

class VariantCombination(Base, TimestampMixin):
    """A purchasable unit of a product. `stock` is the only stock counter in the system."""
    __tablename__ = "variant_combinations"
    __table_args__ = (
        CheckConstraint('stock >= 0', name='ck_variant_combinations_stock_non_negative'),
    )

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    combination_name = Column(String(255), nullable=False) # e.g., "Black-Large"
    sku_suffix = Column(String(50), nullable=True) # e.g., "BLLA"
    stock = Column(Integer, nullable=False, default=0)
    price_modifier = Column(Numeric(10, 2), nullable=False, default=0) # may be negative
    is_active = Column(Boolean, nullable=False, default=True)

    # Relationships
    product = relationship("Product", back_populates="combinations")
    variant_links = relationship("VariantCombinationVariant", back_populates="combination", cascade="all, delete-orphan")
    variants = relationship(
        "ProductVariant",
        secondary="variant_combination_variants",
        order_by="ProductVariant.id",
        viewonly=True,
    )
    history = relationship("InventoryHistory", back_populates="combination")

    @property
    def variant_ids(self):
        return sorted(link.variant_id for link in self.variant_links)
