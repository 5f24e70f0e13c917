from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas.carts import Cart, CartItem, CartItemAdd, CartItemUpdate, CheckoutValidation
from crud import carts as crud_carts
from services.inventory_ledger import InventoryLedger, get_ledger
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(prefix="/carts", tags=["Carts"])
logger = logging.getLogger("carts")

@router.get("/me", response_model=Cart)
def read_my_cart(db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_carts.get_or_create_cart(db, user_id=get_user_identifier(user))

@router.post("/me/items", response_model=CartItem, status_code=status.HTTP_201_CREATED)
def add_cart_item(
    item: CartItemAdd,
    db: Session = Depends(get_db),
    ledger: InventoryLedger = Depends(get_ledger),
    user: dict = Depends(get_current_user),
):
    """Add a selection to the cart. The price shown now is the price kept for this line."""
    cart = crud_carts.get_or_create_cart(db, user_id=get_user_identifier(user))
    return crud_carts.add_to_cart(
        db,
        cart.id,
        item.product_id,
        item.selected_variant_ids,
        quantity=item.quantity,
        notes=item.notes,
        catalog=ledger.catalog,
    )

@router.patch("/me/items/{item_id}", response_model=CartItem)
def update_cart_item(
    item_id: int,
    update: CartItemUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    cart = crud_carts.get_or_create_cart(db, user_id=get_user_identifier(user))
    return crud_carts.update_cart_item_quantity(db, cart.id, item_id, update.quantity)

@router.delete("/me/items/{item_id}", response_model=Cart)
def remove_cart_item(item_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    cart = crud_carts.get_or_create_cart(db, user_id=get_user_identifier(user))
    return crud_carts.remove_cart_item(db, cart.id, item_id)

@router.delete("/me", response_model=Cart)
def clear_my_cart(db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    cart = crud_carts.get_or_create_cart(db, user_id=get_user_identifier(user))
    return crud_carts.clear_cart(db, cart.id)

@router.get("/me/validate", response_model=CheckoutValidation)
def validate_my_cart(
    db: Session = Depends(get_db),
    ledger: InventoryLedger = Depends(get_ledger),
    user: dict = Depends(get_current_user),
):
    """Check every line against current stock before the customer pays."""
    cart = crud_carts.get_or_create_cart(db, user_id=get_user_identifier(user))
    return crud_carts.validate_cart_for_checkout(db, ledger, cart.id)
