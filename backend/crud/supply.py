from sqlalchemy import func
from sqlalchemy.orm import Session
from models.product import Product
from models.supply import Supply
from models.vendor import Vendor
from typing import Optional
from datetime import datetime

def create_supply(
    db: Session,
    vendor_id: int,
    product_id: int,
    vendor_product_tag_id: int,
    combination_id: int,
    quantity_supplied: int,
    supply_date: datetime,
) -> Supply:
    """Insert a supply row inside the caller's transaction. Never commits."""
    supply = Supply(
        vendor_id=vendor_id,
        product_id=product_id,
        vendor_product_tag_id=vendor_product_tag_id,
        combination_id=combination_id,
        quantity_supplied=quantity_supplied,
        supply_date=supply_date,
    )
    db.add(supply)
    db.flush()
    return supply

def get_supply(db: Session, supply_id: int):
    return db.query(Supply).filter(Supply.id == supply_id).first()

def get_supplies(
    db: Session,
    vendor_id: Optional[int] = None,
    product_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    skip: int = 0,
    limit: int = 100
):
    query = db.query(Supply)

    if vendor_id is not None:
        query = query.filter(Supply.vendor_id == vendor_id)
    if product_id is not None:
        query = query.filter(Supply.product_id == product_id)
    if start_date:
        query = query.filter(Supply.supply_date >= start_date)
    if end_date:
        query = query.filter(Supply.supply_date <= end_date)

    return query.order_by(Supply.supply_date.desc(), Supply.id.desc()).offset(skip).limit(limit).all()

def _in_period(query, start_date: Optional[datetime], end_date: Optional[datetime]):
    if start_date:
        query = query.filter(Supply.supply_date >= start_date)
    if end_date:
        query = query.filter(Supply.supply_date <= end_date)
    return query

def get_supply_summary(
    db: Session,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    top: int = 5
) -> dict:
    """Units received in a period, how many products and vendors they came from, and the biggest of each."""
    units = func.sum(Supply.quantity_supplied).label("total_quantity")

    totals = _in_period(
        db.query(
            func.coalesce(func.sum(Supply.quantity_supplied), 0),
            func.count(func.distinct(Supply.product_id)),
            func.count(func.distinct(Supply.vendor_id)),
        ),
        start_date,
        end_date,
    ).one()

    by_product = db.query(Product.id, Product.name, Product.sku, units).select_from(Supply).join(Product, Product.id == Supply.product_id)
    top_products = (
        _in_period(by_product, start_date, end_date)
        .group_by(Product.id, Product.name, Product.sku)
        .order_by(units.desc(), Product.id)
        .limit(top)
        .all()
    )
    by_vendor = db.query(Vendor.id, Vendor.business_name, units).select_from(Supply).join(Vendor, Vendor.id == Supply.vendor_id)
    top_vendors = (
        _in_period(by_vendor, start_date, end_date)
        .group_by(Vendor.id, Vendor.business_name)
        .order_by(units.desc(), Vendor.id)
        .limit(top)
        .all()
    )

    return {
        "total_supplied": int(totals[0] or 0),
        "total_products": totals[1],
        "total_vendors": totals[2],
        "top_products": [
            {"product_id": row[0], "product_name": row[1], "product_sku": row[2], "total_quantity": int(row[3])}
            for row in top_products
        ],
        "top_vendors": [
            {"vendor_id": row[0], "business_name": row[1], "total_quantity": int(row[2])}
            for row in top_vendors
        ],
    }
