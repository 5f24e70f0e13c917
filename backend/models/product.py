from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, Enum
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import TimestampMixin

class ProductStatus(enum.Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    INACTIVE = "inactive"

class Product(Base, TimestampMixin):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    sku = Column(String(100), nullable=True, unique=True)
    price = Column(Numeric(10, 2), nullable=False)
    discounted_price = Column(Numeric(10, 2), nullable=True)
    status = Column(Enum(ProductStatus), default=ProductStatus.ACTIVE, nullable=False)

    # Relationships
    vendor = relationship("Vendor", back_populates="products")
    variants = relationship("ProductVariant", back_populates="product")
    combinations = relationship("VariantCombination", back_populates="product")
    inventory = relationship("Inventory", back_populates="product", uselist=False)

    @property
    def base_price(self):
        """Price a customer pays before any variant pricing."""
        return self.discounted_price if self.discounted_price is not None else self.price
