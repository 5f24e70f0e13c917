from pydantic import BaseModel, Field
from typing import Optional, List
from decimal import Decimal
from datetime import datetime
from schemas.snapshot import VariantSnapshot

class CartItemAdd(BaseModel):
    product_id: int
    selected_variant_ids: List[int] = []
    quantity: int = Field(1, ge=1, le=999)
    notes: Optional[str] = None

class CartItemUpdate(BaseModel):
    quantity: int = Field(..., ge=1, le=999)

class CartItem(BaseModel):
    id: int
    product_id: int
    quantity: int
    price: Decimal
    total_price: Decimal
    selected_variants: List[VariantSnapshot] = []
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

class Cart(BaseModel):
    id: int
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    total_items: int
    total_amount: Decimal
    items: List[CartItem] = []

    class Config:
        from_attributes = True

class StockIssue(BaseModel):
    cart_item_id: Optional[int] = None
    product_id: int
    product_name: Optional[str] = None
    combination_id: Optional[int] = None
    combination_name: Optional[str] = None
    requested: int
    available: Optional[int] = None
    reason: str

class CheckoutValidation(BaseModel):
    valid: bool
    cart: Cart
    issues: List[StockIssue] = []
