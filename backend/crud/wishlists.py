import logging
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
from models.wishlists import Wishlist
from models.wishlist_items import WishlistItem
from crud.product_variant import price_selection
from crud.carts import add_to_cart, validate_line_quantity
from models.cart_items import CartItem
from schemas.snapshot import variant_key
from services.catalog import ProductCatalog
from exceptions import NotFoundError
from utils.formatting import round_currency

logger = logging.getLogger(__name__)

def get_wishlist(db: Session, wishlist_id: int) -> Optional[Wishlist]:
    return db.query(Wishlist).options(selectinload(Wishlist.items)).filter(Wishlist.id == wishlist_id).first()

def _require_wishlist(db: Session, wishlist_id: int) -> Wishlist:
    wishlist = get_wishlist(db, wishlist_id)
    if wishlist is None:
        raise NotFoundError("Wishlist", wishlist_id)
    return wishlist

def get_or_create_wishlist(db: Session, user_id: str) -> Wishlist:
    query = db.query(Wishlist).options(selectinload(Wishlist.items))
    wishlist = query.filter(Wishlist.user_id == user_id).first()
    if wishlist:
        return wishlist
    try:
        with db.begin_nested():
            wishlist = Wishlist(user_id=user_id, total_items=0, total_amount=0)
            db.add(wishlist)
        db.commit()
    except IntegrityError:
        db.rollback()
        wishlist = query.filter(Wishlist.user_id == user_id).first()
    return wishlist

def update_wishlist_totals(db: Session, wishlist: Wishlist) -> Wishlist:
    wishlist.total_items = sum(item.quantity for item in wishlist.items)
    wishlist.total_amount = round_currency(sum((item.total_price for item in wishlist.items), 0))
    db.flush()
    return wishlist

def add_to_wishlist(
    db: Session,
    wishlist_id: int,
    product_id: int,
    selected_variant_ids,
    quantity: int = 1,
    notes: Optional[str] = None,
    catalog: Optional[ProductCatalog] = None,
) -> WishlistItem:
    """Save a selection with its price snapshot. Saving the same selection again bumps the quantity."""
    validate_line_quantity(quantity)
    catalog = catalog or ProductCatalog()
    wishlist = _require_wishlist(db, wishlist_id)
    catalog.get_product(db, product_id)

    key = variant_key(selected_variant_ids)
    existing = next((i for i in wishlist.items if i.product_id == product_id and i.variant_key == key), None)
    if existing:
        validate_line_quantity(existing.quantity + quantity)
        existing.quantity += quantity
        existing.total_price = round_currency(existing.price * existing.quantity)
        item = existing
    else:
        key, snapshot, unit_price = price_selection(db, product_id, selected_variant_ids, catalog.base_price(db, product_id))
        item = WishlistItem(
            product_id=product_id,
            quantity=quantity,
            price=unit_price,
            total_price=round_currency(unit_price * quantity),
            selected_variants=snapshot,
            variant_key=key,
            notes=notes,
        )
        wishlist.items.append(item)

    update_wishlist_totals(db, wishlist)
    db.commit()
    db.refresh(item)
    return item

def remove_wishlist_item(db: Session, wishlist_id: int, item_id: int) -> Wishlist:
    wishlist = _require_wishlist(db, wishlist_id)
    item = next((i for i in wishlist.items if i.id == item_id), None)
    if item is None:
        raise NotFoundError("Wishlist item", item_id)
    wishlist.items.remove(item)
    update_wishlist_totals(db, wishlist)
    db.commit()
    return wishlist

def move_wishlist_item_to_cart(
    db: Session,
    wishlist_id: int,
    item_id: int,
    cart_id: int,
    catalog: Optional[ProductCatalog] = None,
) -> CartItem:
    """
    Move a saved item into a cart.

    Moving counts as a fresh selection, so the cart line is priced from the
    catalogue as it is now rather than from the wishlist snapshot.
    """
    wishlist = _require_wishlist(db, wishlist_id)
    item = next((i for i in wishlist.items if i.id == item_id), None)
    if item is None:
        raise NotFoundError("Wishlist item", item_id)

    try:
        cart_item = add_to_cart(
            db,
            cart_id,
            item.product_id,
            [v.id for v in item.selected_variants],
            quantity=item.quantity,
            notes=item.notes,
            catalog=catalog,
            commit=False,
        )
        wishlist.items.remove(item)
        update_wishlist_totals(db, wishlist)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(cart_item)
    logger.info(f"Wishlist item {item_id} moved to cart {cart_id}")
    return cart_item
