import re
from decimal import Decimal

import pytest

from crud import carts as crud_carts
from crud import orders as crud_orders
from exceptions import ConflictError, LedgerValidationError, LockTimeoutError, NotFoundError, StockUnavailableError
from models import InventoryChangeType, InventoryHistory, OrderStatus


@pytest.fixture
def cart(db):
    return crud_carts.get_or_create_cart(db, user_id="shopper-1")


def _supply(db, ledger, catalogue, combination_id, quantity, product_id=None):
    ledger.record_supply(
        catalogue.vendor_id, product_id or catalogue.shirt_id, combination_id, quantity, None, "warehouse-1", db=db
    )
    db.commit()


def test_order_number_format():
    assert re.fullmatch(r"ORD-\d{8}-[0-9A-F]{6}", crud_orders.generate_order_number())


def test_checkout_sells_the_cart(db, ledger, catalogue, cart, read_stock):
    _supply(db, ledger, catalogue, catalogue.black_large_id, 10)
    crud_carts.add_to_cart(db, cart.id, catalogue.shirt_id, [catalogue.black_id, catalogue.large_id], quantity=3)

    order = crud_orders.place_order_from_cart(db, ledger, cart.id, "shopper-1", notes="Leave at the gate")

    assert order.status == OrderStatus.PENDING
    assert order.total_amount == Decimal("307.50")
    assert [(i.combination_id, i.quantity, i.price) for i in order.items] == [
        (catalogue.black_large_id, 3, Decimal("102.50"))
    ]
    assert order.items[0].vendor_id == catalogue.vendor_id
    assert [v.value for v in order.items[0].selected_variants] == ["Black", "Large"]
    assert cart.items == []
    assert cart.total_amount == Decimal("0.00")
    db.close()
    assert read_stock(catalogue.black_large_id) == 7


def test_checkout_writes_a_sale_row_per_line(db, ledger, catalogue, cart):
    _supply(db, ledger, catalogue, catalogue.black_large_id, 4)
    _supply(db, ledger, catalogue, catalogue.tote_standard_id, 4, product_id=catalogue.tote_id)
    crud_carts.add_to_cart(db, cart.id, catalogue.shirt_id, [catalogue.black_id, catalogue.large_id])
    crud_carts.add_to_cart(db, cart.id, catalogue.tote_id, [], quantity=2)

    order = crud_orders.place_order_from_cart(db, ledger, cart.id, "shopper-1")

    sales = db.query(InventoryHistory).filter(InventoryHistory.change_type == InventoryChangeType.SALE).order_by(InventoryHistory.id).all()
    assert [(s.combination_id, s.change_amount) for s in sales] == [
        (catalogue.black_large_id, -1),
        (catalogue.tote_standard_id, -2),
    ]
    assert all(s.note == f"Order {order.order_number}" for s in sales)


def test_checkout_reports_every_short_line_and_sells_nothing(db, ledger, catalogue, cart, read_stock):
    _supply(db, ledger, catalogue, catalogue.black_large_id, 1)
    crud_carts.add_to_cart(db, cart.id, catalogue.shirt_id, [catalogue.black_id, catalogue.large_id], quantity=2)
    crud_carts.add_to_cart(db, cart.id, catalogue.tote_id, [])

    with pytest.raises(StockUnavailableError) as excinfo:
        crud_orders.place_order_from_cart(db, ledger, cart.id, "shopper-1")

    assert {i["combination_id"] for i in excinfo.value.issues} == {catalogue.black_large_id, catalogue.tote_standard_id}
    assert len(crud_carts.get_cart(db, cart.id).items) == 2
    db.close()
    assert read_stock(catalogue.black_large_id) == 1


def test_empty_cart_cannot_be_ordered(db, ledger, cart):
    with pytest.raises(LedgerValidationError):
        crud_orders.place_order_from_cart(db, ledger, cart.id, "shopper-1")


def test_someone_elses_cart_is_not_found(db, ledger, catalogue, cart):
    crud_carts.add_to_cart(db, cart.id, catalogue.tote_id, [])

    with pytest.raises(NotFoundError):
        crud_orders.place_order_from_cart(db, ledger, cart.id, "shopper-2")


def test_checkout_retries_after_a_lock_timeout(db, ledger, catalogue, cart, monkeypatch, read_stock):
    _supply(db, ledger, catalogue, catalogue.black_large_id, 5)
    crud_carts.add_to_cart(db, cart.id, catalogue.shirt_id, [catalogue.black_id, catalogue.large_id], quantity=2)

    real_adjust = ledger.adjust_stock
    calls = []

    def contended_adjust(*args, **kwargs):
        calls.append(args)
        if len(calls) == 1:
            raise LockTimeoutError(args[0])
        return real_adjust(*args, **kwargs)

    monkeypatch.setattr(ledger, "adjust_stock", contended_adjust)

    order = crud_orders.place_order_from_cart(db, ledger, cart.id, "shopper-1")

    assert len(calls) == 2
    assert order.items[0].quantity == 2
    db.close()
    assert read_stock(catalogue.black_large_id) == 3


def test_cancel_returns_the_stock(db, ledger, catalogue, cart, read_stock):
    _supply(db, ledger, catalogue, catalogue.black_large_id, 5)
    crud_carts.add_to_cart(db, cart.id, catalogue.shirt_id, [catalogue.black_id, catalogue.large_id], quantity=2)
    order = crud_orders.place_order_from_cart(db, ledger, cart.id, "shopper-1")

    cancelled = crud_orders.cancel_order(db, ledger, order.id, "shopper-1", reason="Changed my mind")

    assert cancelled.status == OrderStatus.CANCELLED
    assert cancelled.cancelled_by == "shopper-1"
    assert cancelled.cancellation_reason == "Changed my mind"
    assert cancelled.cancelled_at is not None
    last = db.query(InventoryHistory).order_by(InventoryHistory.id.desc()).first()
    assert (last.change_type, last.change_amount, last.new_stock) == (InventoryChangeType.RETURN, 2, 5)

    with pytest.raises(ConflictError):
        crud_orders.cancel_order(db, ledger, order.id, "shopper-1")
    db.close()
    assert read_stock(catalogue.black_large_id) == 5


def test_shipped_orders_cannot_be_cancelled(db, ledger, catalogue, cart):
    _supply(db, ledger, catalogue, catalogue.black_large_id, 5)
    crud_carts.add_to_cart(db, cart.id, catalogue.shirt_id, [catalogue.black_id, catalogue.large_id])
    order = crud_orders.place_order_from_cart(db, ledger, cart.id, "shopper-1")
    order.status = OrderStatus.SHIPPED
    db.commit()

    with pytest.raises(ConflictError) as excinfo:
        crud_orders.cancel_order(db, ledger, order.id, "shopper-1")

    assert excinfo.value.extra["status"] == "shipped"


def test_only_the_buyer_can_cancel(db, ledger, catalogue, cart):
    _supply(db, ledger, catalogue, catalogue.black_large_id, 5)
    crud_carts.add_to_cart(db, cart.id, catalogue.shirt_id, [catalogue.black_id, catalogue.large_id])
    order = crud_orders.place_order_from_cart(db, ledger, cart.id, "shopper-1")

    with pytest.raises(NotFoundError):
        crud_orders.cancel_order(db, ledger, order.id, "shopper-2")
