import logging
import uuid
from typing import List, Optional
from sqlalchemy.orm import Session, selectinload
from models.orders import Order, OrderStatus, CANCELLABLE_STATUSES
from models.order_items import OrderItem
from models.inventory_history import InventoryChangeType
from crud.carts import get_cart, check_cart_item, clear_cart
from services.inventory_ledger import InventoryLedger, retry_on_lock_timeout
from exceptions import ConflictError, LedgerValidationError, NotFoundError, StockUnavailableError
from utils.clock import now, today_stamp
from utils.formatting import round_currency

logger = logging.getLogger(__name__)

def generate_order_number() -> str:
    """ORD-YYYYMMDD-XXXXXX"""
    return f"ORD-{today_stamp()}-{uuid.uuid4().hex[:6].upper()}"

def get_order(db: Session, order_id: int) -> Optional[Order]:
    return db.query(Order).options(selectinload(Order.items)).filter(Order.id == order_id).first()

def get_orders_for_user(db: Session, user_id: str, skip: int = 0, limit: int = 100) -> List[Order]:
    return (
        db.query(Order)
        .options(selectinload(Order.items))
        .filter(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )

def _create_order(db: Session, ledger: InventoryLedger, cart_id: int, user_id: str, notes: Optional[str]) -> Order:
    cart = get_cart(db, cart_id)
    if cart is None or cart.user_id != user_id:
        raise NotFoundError("Cart", cart_id)
    if not cart.items:
        raise LedgerValidationError("Cart is empty")

    lines = []
    issues = []
    for item in cart.items:
        combination, issue = check_cart_item(db, ledger, item)
        if issue:
            issues.append(issue)
        else:
            lines.append((item, combination))
    if issues:
        logger.warning(f"Checkout of cart {cart_id} blocked: {len(issues)} line(s) unavailable")
        raise StockUnavailableError(issues)

    order = Order(order_number=generate_order_number(), user_id=user_id, status=OrderStatus.PENDING, notes=notes)
    # combinations are locked in ascending id order
    for item, combination in sorted(lines, key=lambda line: line[1].id):
        ledger.adjust_stock(
            combination.id,
            -item.quantity,
            InventoryChangeType.SALE,
            user_id,
            note=f"Order {order.order_number}",
            db=db,
        )
        order.items.append(OrderItem(
            product_id=item.product_id,
            vendor_id=item.product.vendor_id,
            combination_id=combination.id,
            quantity=item.quantity,
            price=item.price,
            total_price=item.total_price,
            selected_variants=item.selected_variants,
        ))

    order.subtotal = round_currency(sum((i.total_price for i in order.items), 0))
    order.total_amount = order.subtotal
    db.add(order)
    db.flush()
    clear_cart(db, cart_id, commit=False)
    return order

def place_order_from_cart(db: Session, ledger: InventoryLedger, cart_id: int, user_id: str, notes: Optional[str] = None) -> Order:
    """
    Turn a cart into an order.

    Every line is reconciled first and all shortfalls are reported together. The
    stock deductions, the order rows and emptying the cart commit as one unit.
    """
    def attempt():
        try:
            with ledger.unit_of_work(db) as session:
                order = _create_order(session, ledger, cart_id, user_id, notes)
            db.commit()
        except Exception:
            db.rollback()
            raise
        return order

    order = retry_on_lock_timeout(attempt)
    logger.info(f"Order {order.order_number} placed by user {user_id}: {len(order.items)} line(s), total {order.total_amount}")
    return order

def cancel_order(db: Session, ledger: InventoryLedger, order_id: int, user_id: str, reason: Optional[str] = None) -> Order:
    """Cancel a pending or processing order and return its stock."""
    def attempt():
        try:
            with ledger.unit_of_work(db) as session:
                order = get_order(session, order_id)
                if order is None or order.user_id != user_id:
                    raise NotFoundError("Order", order_id)
                if order.status not in CANCELLABLE_STATUSES:
                    raise ConflictError(
                        f"Order {order.order_number} is {order.status.value} and can no longer be cancelled",
                        status=order.status.value,
                    )
                for item in sorted(order.items, key=lambda i: i.combination_id):
                    ledger.adjust_stock(
                        item.combination_id,
                        item.quantity,
                        InventoryChangeType.RETURN,
                        user_id,
                        note=f"Cancelled order {order.order_number}",
                        db=session,
                    )
                order.status = OrderStatus.CANCELLED
                order.cancelled_at = now()
                order.cancelled_by = user_id
                order.cancellation_reason = reason
            db.commit()
        except Exception:
            db.rollback()
            raise
        return order

    order = retry_on_lock_timeout(attempt)
    logger.info(f"Order {order.order_number} cancelled by user {user_id}")
    return order
