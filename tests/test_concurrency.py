import time
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import text
from sqlalchemy.orm import sessionmaker

from database import build_engine
from exceptions import InsufficientStockError, LockTimeoutError
from models import InventoryChangeType, InventoryHistory
from services.catalog import ProductCatalog
from services.inventory_ledger import InventoryLedger


@pytest.fixture
def impatient_factory(engine):
    """Sessions on the test database that give up on a held lock after 100ms."""
    fast_engine = build_engine(str(engine.url), lock_timeout_ms=100)
    yield sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=fast_engine)
    fast_engine.dispose()


def test_concurrent_sales_never_oversell(ledger, session_factory, catalogue, stock, read_stock):
    stock(catalogue.black_large_id, 5)

    def sell_one(n):
        try:
            ledger.adjust_stock(catalogue.black_large_id, -1, InventoryChangeType.SALE, f"shopper-{n}")
            return "sold"
        except InsufficientStockError as exc:
            assert exc.available == 0
            return "short"

    with ThreadPoolExecutor(max_workers=10) as pool:
        outcomes = list(pool.map(sell_one, range(10)))

    assert outcomes.count("sold") == 5
    assert outcomes.count("short") == 5
    assert read_stock(catalogue.black_large_id) == 0

    with session_factory() as db:
        sales = (
            db.query(InventoryHistory)
            .filter(
                InventoryHistory.combination_id == catalogue.black_large_id,
                InventoryHistory.change_type == InventoryChangeType.SALE,
            )
            .order_by(InventoryHistory.id)
            .all()
        )
    assert [s.new_stock for s in sales] == [4, 3, 2, 1, 0]
    assert all(s.previous_stock == s.new_stock + 1 for s in sales)


def test_concurrent_supplies_all_land(ledger, catalogue, stock, read_stock):
    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(lambda _: stock(catalogue.red_small_id, 3), range(8)))

    assert read_stock(catalogue.red_small_id) == 24


def test_held_lock_surfaces_as_lock_timeout(session_factory, impatient_factory, catalogue, stock, read_stock):
    stock(catalogue.black_large_id, 3)
    impatient = InventoryLedger(impatient_factory, ProductCatalog(), lock_timeout_ms=100)

    blocker = session_factory()
    try:
        # opening the transaction takes the write lock
        blocker.execute(text("SELECT 1"))
        started = time.monotonic()
        with pytest.raises(LockTimeoutError) as excinfo:
            impatient.adjust_stock(catalogue.black_large_id, -1, InventoryChangeType.SALE, "shopper-1")
        waited = time.monotonic() - started
    finally:
        blocker.rollback()
        blocker.close()

    assert excinfo.value.status_code == 503
    assert waited < 3
    assert read_stock(catalogue.black_large_id) == 3


def test_lock_wait_inside_caller_transaction_is_mapped(session_factory, impatient_factory, catalogue):
    impatient = InventoryLedger(impatient_factory, ProductCatalog(), lock_timeout_ms=100)

    blocker = session_factory()
    caller = impatient_factory()
    try:
        blocker.execute(text("SELECT 1"))
        with pytest.raises(LockTimeoutError) as excinfo:
            impatient._lock_combination(caller, catalogue.red_small_id)
    finally:
        caller.rollback()
        caller.close()
        blocker.rollback()
        blocker.close()

    assert excinfo.value.combination_id == catalogue.red_small_id


def test_lock_is_usable_again_once_released(session_factory, impatient_factory, catalogue, stock, read_stock):
    stock(catalogue.red_small_id, 2)
    impatient = InventoryLedger(impatient_factory, ProductCatalog(), lock_timeout_ms=100)

    blocker = session_factory()
    blocker.execute(text("SELECT 1"))
    with pytest.raises(LockTimeoutError):
        impatient.adjust_stock(catalogue.red_small_id, -1, InventoryChangeType.SALE, "shopper-1")
    blocker.rollback()
    blocker.close()

    change = impatient.adjust_stock(catalogue.red_small_id, -1, InventoryChangeType.SALE, "shopper-1")

    assert (change.previous_stock, change.new_stock) == (2, 1)
    assert read_stock(catalogue.red_small_id) == 1
