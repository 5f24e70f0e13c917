from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

class VariantType(Base, TimestampMixin):
    __tablename__ = "variant_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False, unique=True) # e.g., "color", "size"
    display_name = Column(String(100), nullable=False) # e.g., "Color", "Size"
    sort_order = Column(Integer, nullable=False, default=0)

    variants = relationship("ProductVariant", back_populates="variant_type")
