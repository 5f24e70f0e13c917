from pydantic import BaseModel, Field
from typing import Optional, List
from decimal import Decimal
from datetime import datetime
from models.orders import OrderStatus
from schemas.snapshot import VariantSnapshot

class CheckoutRequest(BaseModel):
    notes: Optional[str] = None

class CancelOrderRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)

class OrderItem(BaseModel):
    id: int
    product_id: int
    vendor_id: Optional[int] = None
    combination_id: int
    quantity: int
    price: Decimal
    total_price: Decimal
    selected_variants: List[VariantSnapshot] = []

    class Config:
        from_attributes = True

class Order(BaseModel):
    id: int
    order_number: str
    user_id: str
    status: OrderStatus
    subtotal: Decimal
    total_amount: Decimal
    notes: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime
    items: List[OrderItem] = []

    class Config:
        from_attributes = True
