from sqlalchemy import Column, Integer, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from database import Base
from utils.clock import now

class Supply(Base):
    """Provenance of a stock increase. Rows are inserted once and never changed."""
    __tablename__ = "supply"
    __table_args__ = (
        CheckConstraint('quantity_supplied > 0', name='ck_supply_quantity_positive'),
    )

    id = Column(Integer, primary_key=True, index=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    vendor_product_tag_id = Column(Integer, ForeignKey("vendor_product_tags.id"), nullable=False)
    combination_id = Column(Integer, ForeignKey("variant_combinations.id"), nullable=False, index=True)
    quantity_supplied = Column(Integer, nullable=False)
    supply_date = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now, nullable=False)

    vendor = relationship("Vendor", back_populates="supplies")
    product = relationship("Product")
    vendor_product_tag = relationship("VendorProductTag")
    combination = relationship("VariantCombination")
