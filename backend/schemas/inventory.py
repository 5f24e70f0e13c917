from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from models.inventory_history import InventoryChangeType

class StockAdjustmentRequest(BaseModel):
    combination_id: int
    adjustment: int # positive adds stock, negative removes it
    change_type: InventoryChangeType = InventoryChangeType.MANUAL_ADJUSTMENT
    note: Optional[str] = Field(None, max_length=1000)

class StockChange(BaseModel):
    combination_id: int
    previous_stock: int
    new_stock: int
    history_id: int

class Availability(BaseModel):
    combination_id: int
    requested: int
    available: bool
    in_stock: int

class InventoryHistory(BaseModel):
    id: int
    inventory_id: int
    combination_id: Optional[int] = None
    change_amount: int
    change_type: InventoryChangeType
    previous_stock: int
    new_stock: int
    note: Optional[str] = None
    adjusted_by: str
    created_at: datetime

    class Config:
        from_attributes = True

class LowStockItem(BaseModel):
    combination_id: int
    combination_name: str
    sku_suffix: Optional[str] = None
    stock: int
    product_id: int
    product_name: str
    product_sku: Optional[str] = None

class CombinationStock(BaseModel):
    combination_id: int
    combination_name: str
    stock: int
    is_active: bool

class ProductStockSummary(BaseModel):
    product_id: int
    product_name: Optional[str] = None
    total_stock: int
    last_restocked_at: Optional[datetime] = None
    last_supply_id: Optional[int] = None
    combinations: List[CombinationStock] = []

class StockProduct(BaseModel):
    id: int
    name: str
    sku: Optional[str] = None
    vendor_id: Optional[int] = None
    vendor_name: Optional[str] = None

class CombinationStockRow(BaseModel):
    combination_id: int
    combination_name: str
    sku_suffix: Optional[str] = None
    stock: int
    price_modifier: Decimal
    is_active: bool
    product: StockProduct

class CombinationStockPage(BaseModel):
    total: int
    items: List[CombinationStockRow] = []

class InventoryHistoryEntry(InventoryHistory):
    product_id: int
    product_name: str
    product_sku: Optional[str] = None
    vendor_id: Optional[int] = None
    combination_name: Optional[str] = None
    sku_suffix: Optional[str] = None

class InventoryHistoryPage(BaseModel):
    total: int
    items: List[InventoryHistoryEntry] = []
