from typing import List, Tuple
from decimal import Decimal
from sqlalchemy.orm import Session
from models.product import Product
from models.product_variant import ProductVariant
from models.variant_type import VariantType
from schemas.variants import ProductVariantCreate, ProductVariantUpdate
from schemas.snapshot import VariantSnapshot, sort_snapshot, variant_key, snapshot_unit_price
from exceptions import ConflictError, NotFoundError
from utils import sqlalchemy_to_dict
import logging

logger = logging.getLogger(__name__)

def get_product_variant(db: Session, variant_id: int):
    return db.query(ProductVariant).filter(ProductVariant.id == variant_id).first()

def get_product_variants(db: Session, product_id: int) -> List[ProductVariant]:
    return db.query(ProductVariant).filter(ProductVariant.product_id == product_id).order_by(ProductVariant.id).all()

def create_product_variant(db: Session, product_id: int, variant: ProductVariantCreate) -> ProductVariant:
    if db.query(Product).filter(Product.id == product_id).first() is None:
        raise NotFoundError("Product", product_id)
    if variant.variant_type_id is not None:
        if db.query(VariantType).filter(VariantType.id == variant.variant_type_id).first() is None:
            raise NotFoundError("Variant type", variant.variant_type_id)

    duplicate = db.query(ProductVariant).filter(
        ProductVariant.product_id == product_id,
        ProductVariant.variant_type_id == variant.variant_type_id,
        ProductVariant.value == variant.value,
    ).first()
    if duplicate:
        raise ConflictError(f"Product {product_id} already has a '{variant.value}' variant of this type")

    db_variant = ProductVariant(**variant.model_dump(), product_id=product_id)
    db.add(db_variant)
    db.commit()
    db.refresh(db_variant)
    return db_variant

def update_product_variant(db: Session, variant_id: int, variant_update: ProductVariantUpdate) -> ProductVariant:
    """Edits the live catalogue row. Snapshots already taken by carts are not touched."""
    db_variant = get_product_variant(db, variant_id)
    if db_variant is None:
        raise NotFoundError("Product variant", variant_id)
    old_values = sqlalchemy_to_dict(db_variant)
    for key, value in variant_update.model_dump(exclude_unset=True).items():
        setattr(db_variant, key, value)
    db.commit()
    db.refresh(db_variant)
    new_values = sqlalchemy_to_dict(db_variant)
    changed = {k: (old_values[k], new_values[k]) for k in new_values if k != "updated_at" and old_values[k] != new_values[k]}
    logger.info(f"Variant {variant_id} of product {db_variant.product_id} updated: {changed}")
    return db_variant

def get_variants_for_product(db: Session, product_id: int, variant_ids) -> List[ProductVariant]:
    """Load the given variants, insisting every one of them belongs to the product."""
    wanted = sorted(set(int(v) for v in variant_ids))
    if not wanted:
        return []
    variants = db.query(ProductVariant).filter(
        ProductVariant.id.in_(wanted),
        ProductVariant.product_id == product_id,
    ).order_by(ProductVariant.id).all()
    found = {v.id for v in variants}
    missing = [v for v in wanted if v not in found]
    if missing:
        raise NotFoundError(f"Variant(s) {', '.join(str(m) for m in missing)} for product", product_id)
    return variants

def build_variant_snapshot(db: Session, product_id: int, variant_ids) -> List[VariantSnapshot]:
    variants = get_variants_for_product(db, product_id, variant_ids)
    return sort_snapshot([
        VariantSnapshot(
            id=v.id,
            name=v.name,
            value=v.value,
            additional_price=v.additional_price if v.additional_price is not None else Decimal("0.00"),
        )
        for v in variants
    ])

def price_selection(db: Session, product_id: int, variant_ids, base_price) -> Tuple[str, List[VariantSnapshot], Decimal]:
    """Snapshot a selection: returns (variant_key, sorted snapshot, unit price)."""
    snapshot = build_variant_snapshot(db, product_id, variant_ids)
    return variant_key(variant_ids), snapshot, snapshot_unit_price(base_price, snapshot)
