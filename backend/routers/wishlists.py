from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas.wishlists import Wishlist, WishlistItem, WishlistItemAdd
from schemas.carts import CartItem
from crud import wishlists as crud_wishlists
from crud import carts as crud_carts
from services.inventory_ledger import InventoryLedger, get_ledger
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(prefix="/wishlists", tags=["Wishlists"])
logger = logging.getLogger("wishlists")

@router.get("/me", response_model=Wishlist)
def read_my_wishlist(db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_wishlists.get_or_create_wishlist(db, get_user_identifier(user))

@router.post("/me/items", response_model=WishlistItem, status_code=status.HTTP_201_CREATED)
def add_wishlist_item(
    item: WishlistItemAdd,
    db: Session = Depends(get_db),
    ledger: InventoryLedger = Depends(get_ledger),
    user: dict = Depends(get_current_user),
):
    wishlist = crud_wishlists.get_or_create_wishlist(db, get_user_identifier(user))
    return crud_wishlists.add_to_wishlist(
        db,
        wishlist.id,
        item.product_id,
        item.selected_variant_ids,
        quantity=item.quantity,
        notes=item.notes,
        catalog=ledger.catalog,
    )

@router.delete("/me/items/{item_id}", response_model=Wishlist)
def remove_wishlist_item(item_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    wishlist = crud_wishlists.get_or_create_wishlist(db, get_user_identifier(user))
    return crud_wishlists.remove_wishlist_item(db, wishlist.id, item_id)

@router.post("/me/items/{item_id}/move-to-cart", response_model=CartItem)
def move_item_to_cart(
    item_id: int,
    db: Session = Depends(get_db),
    ledger: InventoryLedger = Depends(get_ledger),
    user: dict = Depends(get_current_user),
):
    """Move a saved item into the cart, priced at today's catalogue prices."""
    user_id = get_user_identifier(user)
    wishlist = crud_wishlists.get_or_create_wishlist(db, user_id)
    cart = crud_carts.get_or_create_cart(db, user_id=user_id)
    cart_item = crud_wishlists.move_wishlist_item_to_cart(db, wishlist.id, item_id, cart.id, catalog=ledger.catalog)
    logger.info(f"User {user_id} moved wishlist item {item_id} to cart {cart.id}")
    return cart_item
