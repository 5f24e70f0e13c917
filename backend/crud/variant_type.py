from typing import List
from sqlalchemy.orm import Session
from models.variant_type import VariantType
from models.product_variant import ProductVariant
from schemas.variants import VariantTypeCreate
from exceptions import ConflictError

def get_variant_types(db: Session) -> List[VariantType]:
    return db.query(VariantType).order_by(VariantType.sort_order, VariantType.id).all()

def get_variant_type_by_name(db: Session, name: str):
    return db.query(VariantType).filter(VariantType.name == name).first()

def create_variant_type(db: Session, variant_type: VariantTypeCreate) -> VariantType:
    if get_variant_type_by_name(db, variant_type.name):
        raise ConflictError(f"Variant type '{variant_type.name}' already exists")
    db_variant_type = VariantType(**variant_type.model_dump())
    db.add(db_variant_type)
    db.commit()
    db.refresh(db_variant_type)
    return db_variant_type

def get_product_variant_types(db: Session, product_id: int) -> List[VariantType]:
    """Variant types actually used by a product's variants, in display order."""
    return (
        db.query(VariantType)
        .join(ProductVariant, ProductVariant.variant_type_id == VariantType.id)
        .filter(ProductVariant.product_id == product_id)
        .distinct()
        .order_by(VariantType.sort_order, VariantType.id)
        .all()
    )
