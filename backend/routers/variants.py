from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
import logging

from database import get_db
from schemas.variants import (
    VariantType, VariantTypeCreate,
    ProductVariant, ProductVariantCreate, ProductVariantUpdate,
    VariantCombination, VariantCombinationCreate, GenerateCombinationsRequest,
    CombinationPrice,
)
from crud import variant_type as crud_variant_type
from crud import product_variant as crud_product_variant
from crud import variant_combination as crud_combination
from services.inventory_ledger import InventoryLedger, get_ledger
from utils.auth_utils import get_current_user, get_user_identifier
from exceptions import NotFoundError

router = APIRouter(prefix="/variants", tags=["Variants"])
logger = logging.getLogger("variants")

@router.get("/types", response_model=List[VariantType])
def read_variant_types(db: Session = Depends(get_db)):
    return crud_variant_type.get_variant_types(db)

@router.post("/types", response_model=VariantType, status_code=status.HTTP_201_CREATED)
def create_variant_type(
    variant_type: VariantTypeCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    db_variant_type = crud_variant_type.create_variant_type(db, variant_type)
    logger.info(f"Variant type '{db_variant_type.name}' created by user {get_user_identifier(user)}")
    return db_variant_type

@router.get("/products/{product_id}/types", response_model=List[VariantType])
def read_product_variant_types(product_id: int, db: Session = Depends(get_db)):
    return crud_variant_type.get_product_variant_types(db, product_id)

@router.get("/products/{product_id}", response_model=List[ProductVariant])
def read_product_variants(product_id: int, db: Session = Depends(get_db)):
    return crud_product_variant.get_product_variants(db, product_id)

@router.post("/products/{product_id}", response_model=ProductVariant, status_code=status.HTTP_201_CREATED)
def create_product_variant(
    product_id: int,
    variant: ProductVariantCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    db_variant = crud_product_variant.create_product_variant(db, product_id, variant)
    logger.info(f"Variant '{db_variant.value}' added to product {product_id} by user {get_user_identifier(user)}")
    return db_variant

@router.patch("/{variant_id}", response_model=ProductVariant)
def update_product_variant(
    variant_id: int,
    variant: ProductVariantUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    db_variant = crud_product_variant.update_product_variant(db, variant_id, variant)
    logger.info(f"Variant {variant_id} updated by user {get_user_identifier(user)}")
    return db_variant

@router.get("/products/{product_id}/combinations", response_model=List[VariantCombination])
def read_combinations(product_id: int, available_only: bool = False, db: Session = Depends(get_db)):
    return crud_combination.list_combinations(db, product_id, available_only=available_only)

@router.post("/products/{product_id}/combinations", response_model=VariantCombination, status_code=status.HTTP_201_CREATED)
def create_combination(
    product_id: int,
    combination: VariantCombinationCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    db_combination = crud_combination.create_combination(
        db,
        product_id=product_id,
        combination_name=combination.combination_name,
        variant_ids=combination.variant_ids,
        price_modifier=combination.price_modifier,
        sku_suffix=combination.sku_suffix,
    )
    logger.info(f"Combination {db_combination.id} created for product {product_id} by user {get_user_identifier(user)}")
    return db_combination

@router.post("/products/{product_id}/combinations/generate", response_model=List[VariantCombination], status_code=status.HTTP_201_CREATED)
def generate_combinations(
    product_id: int,
    request: GenerateCombinationsRequest,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    """Create every missing combination of the product's variants."""
    created = crud_combination.create_combinations_for_product(db, product_id, price_modifier=request.price_modifier)
    logger.info(f"{len(created)} combination(s) generated for product {product_id} by user {get_user_identifier(user)}")
    return created

@router.get("/combinations/{combination_id}", response_model=VariantCombination)
def read_combination(combination_id: int, db: Session = Depends(get_db)):
    combination = crud_combination.get_combination(db, combination_id)
    if combination is None:
        raise NotFoundError("Variant combination", combination_id)
    return combination

@router.get("/combinations/{combination_id}/price", response_model=CombinationPrice)
def read_combination_price(
    combination_id: int,
    db: Session = Depends(get_db),
    ledger: InventoryLedger = Depends(get_ledger),
):
    combination = crud_combination.get_combination(db, combination_id)
    if combination is None:
        raise NotFoundError("Variant combination", combination_id)
    return CombinationPrice(
        combination_id=combination.id,
        base_price=ledger.catalog.base_price(db, combination.product_id),
        price_modifier=combination.price_modifier,
        total_price=ledger.get_combination_price(combination_id, db=db),
    )

@router.post("/combinations/{combination_id}/deactivate", response_model=VariantCombination)
def deactivate_combination(
    combination_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    combination = crud_combination.deactivate_combination(db, combination_id)
    logger.info(f"Combination {combination_id} deactivated by user {get_user_identifier(user)}")
    return combination
