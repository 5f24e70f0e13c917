from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from models.vendor_product_tag import VendorProductTag

def get_vendor_product_tag(db: Session, vendor_id: int, product_id: int):
    return db.query(VendorProductTag).filter(
        VendorProductTag.vendor_id == vendor_id,
        VendorProductTag.product_id == product_id,
    ).first()

def get_or_create_vendor_product_tag(db: Session, vendor_id: int, product_id: int) -> VendorProductTag:
    """Idempotent lookup-or-create; a concurrent insert of the same pair is absorbed by the unique constraint."""
    tag = get_vendor_product_tag(db, vendor_id, product_id)
    if tag:
        return tag
    try:
        with db.begin_nested():
            tag = VendorProductTag(vendor_id=vendor_id, product_id=product_id)
            db.add(tag)
    except IntegrityError:
        tag = get_vendor_product_tag(db, vendor_id, product_id)
    return tag
