from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
import logging

from database import get_db
from schemas.orders import Order, CheckoutRequest, CancelOrderRequest
from crud import orders as crud_orders
from crud import carts as crud_carts
from services.inventory_ledger import InventoryLedger, get_ledger
from utils.auth_utils import get_current_user, get_user_identifier
from exceptions import NotFoundError

router = APIRouter(prefix="/orders", tags=["Orders"])
logger = logging.getLogger("orders")

@router.post("/checkout", response_model=Order, status_code=status.HTTP_201_CREATED)
def checkout(
    request: CheckoutRequest,
    db: Session = Depends(get_db),
    ledger: InventoryLedger = Depends(get_ledger),
    user: dict = Depends(get_current_user),
):
    """Place an order for everything in the current user's cart."""
    user_id = get_user_identifier(user)
    cart = crud_carts.get_or_create_cart(db, user_id=user_id)
    return crud_orders.place_order_from_cart(db, ledger, cart.id, user_id, notes=request.notes)

@router.get("/", response_model=List[Order])
def read_my_orders(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    return crud_orders.get_orders_for_user(db, get_user_identifier(user), skip=skip, limit=limit)

@router.get("/{order_id}", response_model=Order)
def read_order(order_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    order = crud_orders.get_order(db, order_id)
    if order is None or order.user_id != get_user_identifier(user):
        raise NotFoundError("Order", order_id)
    return order

@router.post("/{order_id}/cancel", response_model=Order)
def cancel_order(
    order_id: int,
    request: CancelOrderRequest,
    db: Session = Depends(get_db),
    ledger: InventoryLedger = Depends(get_ledger),
    user: dict = Depends(get_current_user),
):
    """Cancel a pending or processing order; its stock goes back on the shelf."""
    return crud_orders.cancel_order(db, ledger, order_id, get_user_identifier(user), reason=request.reason)
