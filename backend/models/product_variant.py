from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

class ProductVariant(Base, TimestampMixin):
    __tablename__ = "product_variants"
    __table_args__ = (
        UniqueConstraint('product_id', 'variant_type_id', 'value', name='_product_variant_type_value_uc'),
    )

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    variant_type_id = Column(Integer, ForeignKey("variant_types.id"), nullable=True) # null only for legacy rows
    name = Column(String(100), nullable=False) # e.g., "Color"
    value = Column(String(100), nullable=False) # e.g., "Blue"
    additional_price = Column(Numeric(10, 2), nullable=False, default=0)

    product = relationship("Product", back_populates="variants")
    variant_type = relationship("VariantType", back_populates="variants")
    combinations = relationship(
        "VariantCombination",
        secondary="variant_combination_variants",
        viewonly=True,
    )
