from sqlalchemy import Column, Integer, String, Enum
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import TimestampMixin

class VendorStatus(enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    SUSPENDED = "suspended"

class Vendor(Base, TimestampMixin):
    __tablename__ = "vendors"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    business_name = Column(String(255), nullable=False)
    status = Column(Enum(VendorStatus), default=VendorStatus.PENDING, nullable=False)

    # Relationships
    products = relationship("Product", back_populates="vendor")
    supplies = relationship("Supply", back_populates="vendor")
