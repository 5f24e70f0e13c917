from pydantic import BaseModel, Field
from typing import Optional, List
from decimal import Decimal
from datetime import datetime

class VariantTypeBase(BaseModel):
    name: str = Field(..., max_length=50) # e.g., "color"
    display_name: str = Field(..., max_length=100) # e.g., "Color"
    sort_order: int = 0

class VariantTypeCreate(VariantTypeBase):
    pass

class VariantType(VariantTypeBase):
    id: int

    class Config:
        from_attributes = True

class ProductVariantBase(BaseModel):
    variant_type_id: Optional[int] = None
    name: str = Field(..., max_length=100)
    value: str = Field(..., max_length=100)
    additional_price: Decimal = Decimal("0.00")

class ProductVariantCreate(ProductVariantBase):
    pass

class ProductVariantUpdate(BaseModel):
    name: Optional[str] = None
    value: Optional[str] = None
    additional_price: Optional[Decimal] = None

class ProductVariant(ProductVariantBase):
    id: int
    product_id: int

    class Config:
        from_attributes = True

class VariantCombinationCreate(BaseModel):
    combination_name: str = Field(..., max_length=255)
    variant_ids: List[int] = []
    price_modifier: Decimal = Decimal("0.00")
    sku_suffix: Optional[str] = Field(None, max_length=50)

class GenerateCombinationsRequest(BaseModel):
    price_modifier: Decimal = Decimal("0.00")

class VariantCombination(BaseModel):
    id: int
    product_id: int
    combination_name: str
    sku_suffix: Optional[str] = None
    stock: int
    price_modifier: Decimal
    is_active: bool
    variant_ids: List[int] = []
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class CombinationPrice(BaseModel):
    combination_id: int
    base_price: Decimal
    price_modifier: Decimal
    total_price: Decimal
