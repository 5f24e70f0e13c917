from pydantic import BaseModel, Field
from typing import Optional, List
from decimal import Decimal
from datetime import datetime
from schemas.snapshot import VariantSnapshot

class WishlistItemAdd(BaseModel):
    product_id: int
    selected_variant_ids: List[int] = []
    quantity: int = Field(1, ge=1, le=999)
    notes: Optional[str] = None

class WishlistItem(BaseModel):
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

class Wishlist(BaseModel):
    id: int
    user_id: str
    name: str
    total_items: int
    total_amount: Decimal
    items: List[WishlistItem] = []

    class Config:
        from_attributes = True
