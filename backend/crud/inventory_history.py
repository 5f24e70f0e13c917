from sqlalchemy.orm import Session
from models.inventory import Inventory
from models.inventory_history import InventoryHistory, InventoryChangeType
from models.product import Product
from models.variant_combination import VariantCombination
from typing import Optional
from datetime import datetime

def create_inventory_history(
    db: Session,
    inventory_id: int,
    combination_id: int,
    change_type: InventoryChangeType,
    previous_stock: int,
    new_stock: int,
    adjusted_by: str,
    note: Optional[str] = None
) -> InventoryHistory:
    """Append a ledger row inside the caller's transaction. Never commits."""
    entry = InventoryHistory(
        inventory_id=inventory_id,
        combination_id=combination_id,
        change_amount=new_stock - previous_stock,
        change_type=change_type,
        previous_stock=previous_stock,
        new_stock=new_stock,
        note=note,
        adjusted_by=adjusted_by,
    )
    db.add(entry)
    db.flush()
    return entry

def get_inventory_history(
    db: Session,
    combination_id: int,
    skip: int = 0,
    limit: int = 50,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None
):
    """Rows for one combination, oldest first, so each row's previous_stock is the prior row's new_stock."""
    query = db.query(InventoryHistory).filter(InventoryHistory.combination_id == combination_id)

    if start_date:
        query = query.filter(InventoryHistory.created_at >= start_date)
    if end_date:
        query = query.filter(InventoryHistory.created_at <= end_date)

    return query.order_by(InventoryHistory.created_at, InventoryHistory.id).offset(skip).limit(limit).all()

def get_product_inventory_history(db: Session, inventory_id: int, skip: int = 0, limit: int = 100):
    return (
        db.query(InventoryHistory)
        .filter(InventoryHistory.inventory_id == inventory_id)
        .order_by(InventoryHistory.created_at.desc(), InventoryHistory.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )

def list_inventory_history(
    db: Session,
    product_id: Optional[int] = None,
    vendor_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    skip: int = 0,
    limit: int = 20
):
    """Stock movements across all products, newest first. Returns (total, [(entry, product, combination)])."""
    query = (
        db.query(InventoryHistory, Product, VariantCombination)
        .join(Inventory, Inventory.id == InventoryHistory.inventory_id)
        .join(Product, Product.id == Inventory.product_id)
        .outerjoin(VariantCombination, VariantCombination.id == InventoryHistory.combination_id)
    )

    if product_id is not None:
        query = query.filter(Inventory.product_id == product_id)
    if vendor_id is not None:
        query = query.filter(Product.vendor_id == vendor_id)
    if start_date:
        query = query.filter(InventoryHistory.created_at >= start_date)
    if end_date:
        query = query.filter(InventoryHistory.created_at <= end_date)

    total = query.count()
    rows = query.order_by(InventoryHistory.created_at.desc(), InventoryHistory.id.desc()).offset(skip).limit(limit).all()
    return total, rows
