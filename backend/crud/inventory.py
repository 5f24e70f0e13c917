from typing import Optional
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from models.inventory import Inventory
from models.product import Product
from models.supply import Supply
from models.variant_combination import VariantCombination
from models.vendor import Vendor
from exceptions import NotFoundError
from utils.clock import now

def get_inventory(db: Session, product_id: int) -> Optional[Inventory]:
    return db.query(Inventory).filter(Inventory.product_id == product_id).first()

def get_or_create_inventory(db: Session, product_id: int) -> Inventory:
    """The per-product cursor row, created when the product's first combination is registered."""
    inventory = get_inventory(db, product_id)
    if inventory:
        return inventory
    try:
        with db.begin_nested():
            inventory = Inventory(product_id=product_id)
            db.add(inventory)
    except IntegrityError:
        inventory = get_inventory(db, product_id)
    return inventory

def mark_restocked(db: Session, inventory: Inventory, supply: Supply) -> Inventory:
    # last writer wins; restocked_at is when the intake was recorded, so a backdated supply never moves it back
    inventory.supply_id = supply.id
    inventory.restocked_at = now()
    db.flush()
    return inventory

def get_product_stock_summary(db: Session, product_id: int) -> dict:
    product = db.query(Product).filter(Product.id == product_id).first()
    if product is None:
        raise NotFoundError("Product", product_id)

    combinations = (
        db.query(VariantCombination)
        .filter(VariantCombination.product_id == product_id)
        .order_by(VariantCombination.id)
        .all()
    )
    total_stock = db.query(func.coalesce(func.sum(VariantCombination.stock), 0)).filter(
        VariantCombination.product_id == product_id,
        VariantCombination.is_active.is_(True),
    ).scalar()
    inventory = get_inventory(db, product_id)

    return {
        "product_id": product.id,
        "product_name": product.name,
        "total_stock": int(total_stock or 0),
        "last_supply_id": inventory.supply_id if inventory else None,
        "last_restocked_at": inventory.restocked_at if inventory else None,
        "combinations": [
            {
                "combination_id": c.id,
                "combination_name": c.combination_name,
                "stock": c.stock,
                "is_active": c.is_active,
            }
            for c in combinations
        ],
    }

def list_combination_stock(db: Session, vendor_id: Optional[int] = None, skip: int = 0, limit: int = 20):
    """
    Stock of every combination with its product and vendor, most recently edited products first.

    Returns (total, rows) where rows are (combination, product, vendor) tuples; vendor is None for
    products without one.
    """
    query = (
        db.query(VariantCombination, Product, Vendor)
        .join(Product, Product.id == VariantCombination.product_id)
        .outerjoin(Vendor, Vendor.id == Product.vendor_id)
    )
    if vendor_id is not None:
        query = query.filter(Product.vendor_id == vendor_id)

    total = query.count()
    rows = (
        query.order_by(Product.updated_at.desc(), Product.id, VariantCombination.id)
        .offset(skip)
        .limit(limit)
        .all()
    )
    return total, rows
