import itertools
import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from models.product import Product, ProductStatus
from models.product_variant import ProductVariant
from models.variant_combination import VariantCombination
from models.variant_combination_variant import VariantCombinationVariant
from crud.inventory import get_or_create_inventory
from exceptions import ConflictError, NotFoundError
from utils.formatting import round_currency, to_decimal

logger = logging.getLogger(__name__)


def get_combination(db: Session, combination_id: int) -> Optional[VariantCombination]:
    return db.query(VariantCombination).options(
        selectinload(VariantCombination.variant_links)
    ).filter(VariantCombination.id == combination_id).first()


def list_combinations(db: Session, product_id: int, available_only: bool = False) -> List[VariantCombination]:
    query = db.query(VariantCombination).options(
        selectinload(VariantCombination.variant_links)
    ).filter(VariantCombination.product_id == product_id)
    if available_only:
        query = query.filter(VariantCombination.is_active.is_(True), VariantCombination.stock > 0)
    return query.order_by(VariantCombination.combination_name, VariantCombination.id).all()


def find_combination_by_variants(db: Session, product_id: int, variant_ids, active_only: bool = True) -> Optional[VariantCombination]:
    """Return the combination of a product made of exactly these variants.

    An empty selection matches a combination that has no variants (a product sold
    as a single unit). When several rows share the set (only possible once older
    ones were deactivated) the active one wins.
    """
    wanted = sorted(set(int(v) for v in variant_ids))
    candidates = list_combinations(db, product_id)
    matches = [c for c in candidates if c.variant_ids == wanted]
    active = [c for c in matches if c.is_active]
    if active:
        return active[0]
    if active_only or not matches:
        return None
    return matches[-1]


def get_combination_price(combination: VariantCombination, base_price) -> Decimal:
    """Base price plus the combination's modifier, rounded half-up to cents."""
    return round_currency(to_decimal(base_price) + to_decimal(combination.price_modifier))


def create_combination(
    db: Session,
    product_id: int,
    combination_name: str,
    variant_ids,
    price_modifier=Decimal("0.00"),
    sku_suffix: Optional[str] = None,
    commit: bool = True,
) -> VariantCombination:
    """Register a purchasable unit of a product. New combinations always start at stock 0."""
    # Lock the product so two concurrent definitions of the same set cannot both pass the duplicate check
    product = db.query(Product).filter(Product.id == product_id).with_for_update().first()
    if product is None:
        raise NotFoundError("Product", product_id)

    wanted = sorted(set(int(v) for v in variant_ids))
    if wanted:
        owned = {
            row.id for row in db.query(ProductVariant.id).filter(
                ProductVariant.id.in_(wanted),
                ProductVariant.product_id == product_id,
            ).all()
        }
        missing = [v for v in wanted if v not in owned]
        if missing:
            raise NotFoundError(f"Variant(s) {', '.join(str(m) for m in missing)} for product", product_id)

    existing = find_combination_by_variants(db, product_id, wanted, active_only=True)
    if existing is not None:
        raise ConflictError(
            f"Product {product_id} already has an active combination with these variants",
            combination_id=existing.id,
        )

    combination = VariantCombination(
        product_id=product_id,
        combination_name=combination_name,
        sku_suffix=sku_suffix,
        stock=0,
        price_modifier=round_currency(price_modifier),
        is_active=True,
    )
    combination.variant_links = [VariantCombinationVariant(variant_id=v) for v in wanted]
    db.add(combination)
    db.flush()
    # the stock cursor exists before any stock moves
    get_or_create_inventory(db, product_id)
    logger.info(f"Combination '{combination_name}' (ID: {combination.id}) created for product {product_id} with variants {wanted}")

    if commit:
        db.commit()
        db.refresh(combination)
    return combination


def deactivate_combination(db: Session, combination_id: int) -> VariantCombination:
    """Stop selling a combination. The row stays so history and past orders keep their reference.

    Open orders that already hold the combination can still be fulfilled or cancelled.
    """
    combination = get_combination(db, combination_id)
    if combination is None:
        raise NotFoundError("Variant combination", combination_id)
    if combination.is_active:
        combination.is_active = False
        db.commit()
        db.refresh(combination)
        logger.info(f"Combination {combination_id} deactivated with {combination.stock} units still in stock")
    return combination


def _variant_group_key(variant: ProductVariant):
    if variant.variant_type_id is not None:
        return ("type", variant.variant_type_id)
    # legacy rows without a type are grouped by their display name
    return ("name", variant.name.strip().lower())


def generate_combinations(variants: List[ProductVariant]) -> List[dict]:
    """Cartesian product of a product's variants, one axis per variant type.

    Returns dicts with combination_name ("Black-Large"), sku_suffix ("BLLA") and the
    variants that make up each combination.
    """
    if not variants:
        return []

    def sort_key(v):
        sort_order = v.variant_type.sort_order if v.variant_type is not None else 0
        return (sort_order, _variant_group_key(v), v.id)

    groups = {}
    for variant in sorted(variants, key=sort_key):
        groups.setdefault(_variant_group_key(variant), []).append(variant)

    combinations = []
    for combo in itertools.product(*groups.values()):
        combinations.append({
            "combination_name": "-".join(v.value for v in combo),
            "sku_suffix": "".join(v.value[:2].upper() for v in combo),
            "variants": list(combo),
        })
    return combinations


def create_combinations_for_product(db: Session, product_id: int, price_modifier=Decimal("0.00")) -> List[VariantCombination]:
    """Create every combination of the product's variants that is not already registered."""
    product = db.query(Product).filter(Product.id == product_id).first()
    if product is None:
        raise NotFoundError("Product", product_id)

    variants = db.query(ProductVariant).options(
        selectinload(ProductVariant.variant_type)
    ).filter(ProductVariant.product_id == product_id).all()

    created = []
    for combo in generate_combinations(variants):
        variant_ids = [v.id for v in combo["variants"]]
        if find_combination_by_variants(db, product_id, variant_ids) is not None:
            continue
        created.append(create_combination(
            db,
            product_id=product_id,
            combination_name=combo["combination_name"],
            variant_ids=variant_ids,
            price_modifier=price_modifier,
            sku_suffix=combo["sku_suffix"],
            commit=False,
        ))
    db.commit()
    for combination in created:
        db.refresh(combination)
    logger.info(f"Generated {len(created)} combination(s) for product {product_id}")
    return created


def list_low_stock(db: Session, threshold: int = 10, vendor_id: Optional[int] = None):
    """Active combinations of active products at or below the threshold, lowest stock first."""
    query = db.query(VariantCombination, Product).join(
        Product, Product.id == VariantCombination.product_id
    ).filter(
        VariantCombination.is_active.is_(True),
        VariantCombination.stock <= threshold,
        Product.status == ProductStatus.ACTIVE,
    )
    if vendor_id is not None:
        query = query.filter(Product.vendor_id == vendor_id)
    return query.order_by(VariantCombination.stock.asc(), VariantCombination.id).all()
