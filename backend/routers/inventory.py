from datetime import datetime
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db
from schemas.inventory import (
    StockAdjustmentRequest, StockChange, Availability, InventoryHistory,
    LowStockItem, ProductStockSummary, CombinationStockRow, CombinationStockPage,
    InventoryHistoryEntry, InventoryHistoryPage, StockProduct,
)
from crud import variant_combination as crud_combination
from crud import inventory as crud_inventory
from crud import inventory_history as crud_history
from services.inventory_ledger import InventoryLedger, get_ledger
from utils.auth_utils import get_current_user, get_user_identifier
from exceptions import NotFoundError
from models.vendor import Vendor

router = APIRouter(prefix="/inventory", tags=["Inventory"])
logger = logging.getLogger("inventory")

@router.post("/adjust", response_model=StockChange)
def adjust_stock(
    request: StockAdjustmentRequest,
    ledger: InventoryLedger = Depends(get_ledger),
    user: dict = Depends(get_current_user),
):
    """Apply a signed stock change. Manual adjustments must carry a note."""
    return ledger.adjust_stock(
        request.combination_id,
        request.adjustment,
        request.change_type,
        get_user_identifier(user),
        note=request.note,
    )

@router.get("/combinations/{combination_id}/availability", response_model=Availability)
def check_availability(
    combination_id: int,
    quantity: int = Query(1),
    ledger: InventoryLedger = Depends(get_ledger),
):
    return ledger.check_availability(combination_id, quantity)

@router.get("/combinations/{combination_id}/history", response_model=List[InventoryHistory])
def read_history(
    combination_id: int,
    skip: int = 0,
    limit: int = 50,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    ledger: InventoryLedger = Depends(get_ledger),
):
    return ledger.list_history(combination_id, skip=skip, limit=limit, start_date=start_date, end_date=end_date)

@router.get("/low-stock", response_model=List[LowStockItem])
def read_low_stock(
    threshold: int = 10,
    vendor_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    rows = crud_combination.list_low_stock(db, threshold=threshold, vendor_id=vendor_id)
    return [
        LowStockItem(
            combination_id=combination.id,
            combination_name=combination.combination_name,
            sku_suffix=combination.sku_suffix,
            stock=combination.stock,
            product_id=product.id,
            product_name=product.name,
            product_sku=product.sku,
        )
        for combination, product in rows
    ]

@router.get("/products/{product_id}", response_model=ProductStockSummary)
def read_product_stock(product_id: int, db: Session = Depends(get_db)):
    return crud_inventory.get_product_stock_summary(db, product_id)

@router.get("/products/{product_id}/history", response_model=List[InventoryHistory])
def read_product_history(product_id: int, skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    """Every stock movement of a product across all its combinations, newest first."""
    inventory = crud_inventory.get_inventory(db, product_id)
    if inventory is None:
        return []
    return crud_history.get_product_inventory_history(db, inventory.id, skip=skip, limit=limit)

def _stock_row(combination, product, vendor) -> CombinationStockRow:
    return CombinationStockRow(
        combination_id=combination.id,
        combination_name=combination.combination_name,
        sku_suffix=combination.sku_suffix,
        stock=combination.stock,
        price_modifier=combination.price_modifier,
        is_active=combination.is_active,
        product=StockProduct(
            id=product.id,
            name=product.name,
            sku=product.sku,
            vendor_id=vendor.id if vendor else None,
            vendor_name=vendor.business_name if vendor else None,
        ),
    )

@router.get("/combinations", response_model=CombinationStockPage)
def read_all_combination_stock(skip: int = 0, limit: int = Query(20, le=100), db: Session = Depends(get_db)):
    """Stock of every combination in the marketplace."""
    total, rows = crud_inventory.list_combination_stock(db, skip=skip, limit=limit)
    return CombinationStockPage(total=total, items=[_stock_row(*row) for row in rows])

@router.get("/vendors/{vendor_id}/combinations", response_model=CombinationStockPage)
def read_vendor_combination_stock(
    vendor_id: int,
    skip: int = 0,
    limit: int = Query(20, le=100),
    db: Session = Depends(get_db),
):
    if db.query(Vendor.id).filter(Vendor.id == vendor_id).first() is None:
        raise NotFoundError("Vendor", vendor_id)
    total, rows = crud_inventory.list_combination_stock(db, vendor_id=vendor_id, skip=skip, limit=limit)
    return CombinationStockPage(total=total, items=[_stock_row(*row) for row in rows])

@router.get("/history", response_model=InventoryHistoryPage)
def read_all_history(
    product_id: Optional[int] = None,
    vendor_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    skip: int = 0,
    limit: int = Query(20, le=100),
    db: Session = Depends(get_db),
):
    """Stock movements across all products, newest first."""
    total, rows = crud_history.list_inventory_history(
        db,
        product_id=product_id,
        vendor_id=vendor_id,
        start_date=start_date,
        end_date=end_date,
        skip=skip,
        limit=limit,
    )
    items = [
        InventoryHistoryEntry(
            **InventoryHistory.model_validate(entry).model_dump(),
            product_id=product.id,
            product_name=product.name,
            product_sku=product.sku,
            vendor_id=product.vendor_id,
            combination_name=combination.combination_name if combination else None,
            sku_suffix=combination.sku_suffix if combination else None,
        )
        for entry, product, combination in rows
    ]
    return InventoryHistoryPage(total=total, items=items)
