from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

class SupplyBase(BaseModel):
    vendor_id: int
    product_id: int
    combination_id: int
    quantity_supplied: int = Field(..., gt=0)
    supply_date: Optional[datetime] = None

class SupplyCreate(SupplyBase):
    pass

class BulkSupplyItem(BaseModel):
    product_id: int
    combination_id: int
    quantity: int = Field(..., gt=0)

class BulkSupplyCreate(BaseModel):
    vendor_id: int
    supply_date: Optional[datetime] = None
    items: List[BulkSupplyItem] = Field(..., min_length=1)

class Supply(BaseModel):
    id: int
    vendor_id: int
    product_id: int
    vendor_product_tag_id: int
    combination_id: int
    quantity_supplied: int
    supply_date: datetime
    created_at: datetime

    class Config:
        from_attributes = True

class SuppliedProduct(BaseModel):
    product_id: int
    product_name: str
    product_sku: Optional[str] = None
    total_quantity: int

class SupplyingVendor(BaseModel):
    vendor_id: int
    business_name: str
    total_quantity: int

class SupplySummary(BaseModel):
    total_supplied: int
    total_products: int
    total_vendors: int
    top_products: List[SuppliedProduct] = []
    top_vendors: List[SupplyingVendor] = []
