import logging
from typing import List, Optional, Tuple
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
from models.carts import Cart
from models.cart_items import CartItem
from models.product import ProductStatus
from models.variant_combination import VariantCombination
from crud.product_variant import price_selection
from crud.variant_combination import find_combination_by_variants
from schemas.snapshot import variant_key
from services.catalog import ProductCatalog
from exceptions import InvalidQuantityError, LedgerValidationError, NotFoundError, StockUnavailableError
from utils.formatting import round_currency

logger = logging.getLogger(__name__)

MAX_LINE_QUANTITY = 999

def validate_line_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or not 1 <= quantity <= MAX_LINE_QUANTITY:
        raise InvalidQuantityError(quantity, f"Quantity must be between 1 and {MAX_LINE_QUANTITY}, got {quantity}")
    return quantity

def get_cart(db: Session, cart_id: int) -> Optional[Cart]:
    return db.query(Cart).options(selectinload(Cart.items)).filter(Cart.id == cart_id).first()

def _require_cart(db: Session, cart_id: int) -> Cart:
    cart = get_cart(db, cart_id)
    if cart is None:
        raise NotFoundError("Cart", cart_id)
    return cart

def get_or_create_cart(db: Session, user_id: Optional[str] = None, session_id: Optional[str] = None) -> Cart:
    """A signed-in user has exactly one cart; guests are tracked by session id."""
    if not user_id and not session_id:
        raise LedgerValidationError("A cart needs either a user or a session")
    query = db.query(Cart).options(selectinload(Cart.items))
    if user_id:
        query = query.filter(Cart.user_id == user_id)
    else:
        query = query.filter(Cart.session_id == session_id, Cart.user_id.is_(None))
    cart = query.first()
    if cart:
        return cart

    try:
        with db.begin_nested():
            cart = Cart(user_id=user_id, session_id=session_id, total_items=0, total_amount=0)
            db.add(cart)
        db.commit()
    except IntegrityError:
        # another request created this cart first
        db.rollback()
        cart = query.first()
    return cart

def update_cart_totals(db: Session, cart: Cart) -> Cart:
    """Totals are the sum of stored line snapshots, never live catalogue prices."""
    cart.total_items = sum(item.quantity for item in cart.items)
    cart.total_amount = round_currency(sum((item.total_price for item in cart.items), 0))
    db.flush()
    return cart

def _get_line(cart: Cart, item_id: int) -> CartItem:
    for item in cart.items:
        if item.id == item_id:
            return item
    raise NotFoundError("Cart item", item_id)

def add_to_cart(
    db: Session,
    cart_id: int,
    product_id: int,
    selected_variant_ids,
    quantity: int = 1,
    notes: Optional[str] = None,
    catalog: Optional[ProductCatalog] = None,
    commit: bool = True,
) -> CartItem:
    """
    Add a product selection to the cart, snapshotting its variants and price.

    Re-adding a selection that is already in the cart (in any order) increases the
    line's quantity and keeps the unit price captured the first time.
    """
    validate_line_quantity(quantity)
    catalog = catalog or ProductCatalog()
    cart = _require_cart(db, cart_id)
    product = catalog.get_product(db, product_id)
    if product.status != ProductStatus.ACTIVE:
        raise LedgerValidationError(f"Product '{product.name}' is not available for purchase", product_id=product_id)

    key = variant_key(selected_variant_ids)
    existing = next((i for i in cart.items if i.product_id == product_id and i.variant_key == key), None)
    if existing:
        new_quantity = existing.quantity + quantity
        if new_quantity > MAX_LINE_QUANTITY:
            raise InvalidQuantityError(new_quantity, f"Quantity must be between 1 and {MAX_LINE_QUANTITY}, got {new_quantity}")
        existing.quantity = new_quantity
        existing.total_price = round_currency(existing.price * new_quantity)
        if notes:
            existing.notes = notes
        item = existing
    else:
        key, snapshot, unit_price = price_selection(db, product_id, selected_variant_ids, catalog.base_price(db, product_id))
        item = CartItem(
            product_id=product_id,
            quantity=quantity,
            price=unit_price,
            total_price=round_currency(unit_price * quantity),
            selected_variants=snapshot,
            variant_key=key,
            notes=notes,
        )
        cart.items.append(item)

    update_cart_totals(db, cart)
    if commit:
        db.commit()
        db.refresh(item)
    logger.info(f"Cart {cart_id}: product {product_id} [{key}] x{quantity} added, line now x{item.quantity}")
    return item

def update_cart_item_quantity(db: Session, cart_id: int, item_id: int, quantity: int) -> CartItem:
    """Set a line's quantity. The unit price stays what it was when the item was added."""
    validate_line_quantity(quantity)
    cart = _require_cart(db, cart_id)
    item = _get_line(cart, item_id)
    item.quantity = quantity
    item.total_price = round_currency(item.price * quantity)
    update_cart_totals(db, cart)
    db.commit()
    db.refresh(item)
    return item

def remove_cart_item(db: Session, cart_id: int, item_id: int) -> Cart:
    cart = _require_cart(db, cart_id)
    cart.items.remove(_get_line(cart, item_id))
    update_cart_totals(db, cart)
    db.commit()
    return cart

def clear_cart(db: Session, cart_id: int, commit: bool = True) -> Cart:
    cart = _require_cart(db, cart_id)
    cart.items.clear()
    update_cart_totals(db, cart)
    if commit:
        db.commit()
    return cart

def check_cart_item(db: Session, ledger, cart_item: CartItem) -> Tuple[Optional[VariantCombination], Optional[dict]]:
    """
    Resolve the combination behind a cart line and check it can still be bought.

    Returns (combination, None) when the line is fine, otherwise (combination or None, issue).
    """
    issue = {
        "cart_item_id": cart_item.id,
        "product_id": cart_item.product_id,
        "product_name": None,
        "combination_id": None,
        "combination_name": None,
        "requested": cart_item.quantity,
        "available": None,
    }
    try:
        product = ledger.catalog.get_product(db, cart_item.product_id)
    except NotFoundError:
        return None, dict(issue, reason="Product no longer exists")
    issue["product_name"] = product.name
    if product.status != ProductStatus.ACTIVE:
        return None, dict(issue, reason="Product is no longer available")

    combination = find_combination_by_variants(db, product.id, [v.id for v in cart_item.selected_variants])
    if combination is None:
        return None, dict(issue, reason="This combination of options is no longer sold")
    issue["combination_id"] = combination.id
    issue["combination_name"] = combination.combination_name

    availability = ledger.check_availability(combination.id, cart_item.quantity, db=db)
    if not availability.available:
        return combination, dict(issue, available=availability.in_stock, reason="Insufficient stock")
    return combination, None

def reconcile_before_checkout(db: Session, ledger, cart_item: CartItem) -> VariantCombination:
    """Last gate before the sale: raises StockUnavailableError if the line cannot be filled."""
    combination, issue = check_cart_item(db, ledger, cart_item)
    if issue:
        logger.warning(f"Cart item {cart_item.id} failed reconciliation: {issue['reason']}")
        raise StockUnavailableError([issue])
    return combination

def validate_cart_for_checkout(db: Session, ledger, cart_id: int) -> dict:
    """Check every line at once so the customer sees all problems together."""
    cart = _require_cart(db, cart_id)
    issues: List[dict] = []
    for item in cart.items:
        _, issue = check_cart_item(db, ledger, item)
        if issue:
            issues.append(issue)
    return {"valid": not issues and bool(cart.items), "cart": cart, "issues": issues}
