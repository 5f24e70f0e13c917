from sqlalchemy import Column, Integer, String, Numeric
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

class Cart(Base, TimestampMixin):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=True, unique=True) # null for guest carts
    session_id = Column(String(255), nullable=True, index=True)
    total_items = Column(Integer, nullable=False, default=0)
    total_amount = Column(Numeric(10, 2), nullable=False, default=0)

    items = relationship("CartItem", back_populates="cart", cascade="all, delete-orphan", order_by="CartItem.id")
