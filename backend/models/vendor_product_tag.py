from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from utils.clock import now

class VendorProductTag(Base):
    __tablename__ = "vendor_product_tags"
    __table_args__ = (UniqueConstraint('vendor_id', 'product_id', name='_vendor_product_tag_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now, nullable=False)

    vendor = relationship("Vendor")
    product = relationship("Product")
