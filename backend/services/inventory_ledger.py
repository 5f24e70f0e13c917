"""
Inventory ledger.

All stock movement goes through InventoryLedger. Each mutation runs in one
transaction: the combination row is locked, the new stock is validated and
written, and an InventoryHistory row is appended before commit. A failure at
any step rolls the whole unit back.
"""
import logging
import time
from contextlib import contextmanager
from datetime import datetime
from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from database import (
    SessionLocal,
    LEDGER_LOCK_TIMEOUT_MS,
    LEDGER_LOCK_RETRIES,
    LEDGER_LOCK_BACKOFF_SECONDS,
)
from models.inventory_history import InventoryChangeType
from models.supply import Supply
from models.variant_combination import VariantCombination
from models.vendor import Vendor, VendorStatus
from schemas.inventory import Availability, StockChange
from crud import inventory as crud_inventory
from crud import inventory_history as crud_history
from crud import supply as crud_supply
from crud.variant_combination import get_combination_price as price_for_combination
from crud.vendor_product_tag import get_or_create_vendor_product_tag
from exceptions import (
    InsufficientStockError,
    InvalidQuantityError,
    LedgerValidationError,
    LockTimeoutError,
    NotFoundError,
)
from services.catalog import ProductCatalog
from utils.clock import now

logger = logging.getLogger("inventory_ledger")

# stock must move in this direction for these change types
_POSITIVE_ONLY = (InventoryChangeType.SUPPLY, InventoryChangeType.RETURN)
_NEGATIVE_ONLY = (InventoryChangeType.SALE,)


def is_lock_timeout(exc: OperationalError) -> bool:
    """True when the database gave up waiting for a lock."""
    orig = getattr(exc, "orig", None)
    # 55P03 is PostgreSQL's lock_not_available
    if getattr(orig, "pgcode", None) == "55P03":
        return True
    message = str(orig or exc).lower()
    return "database is locked" in message or "lock timeout" in message


def _require_whole_number(quantity, detail: Optional[str] = None) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidQuantityError(quantity, detail)
    return quantity


def retry_on_lock_timeout(operation, attempts: int = LEDGER_LOCK_RETRIES, backoff: float = LEDGER_LOCK_BACKOFF_SECONDS):
    """
    Call operation() and retry it when it fails with LockTimeoutError.

    The wait doubles after each failed attempt. Any other error is raised at once,
    and the last LockTimeoutError is raised once attempts run out.
    """
    attempt = 1
    while True:
        try:
            return operation()
        except LockTimeoutError:
            if attempt >= attempts:
                logger.warning(f"Giving up after {attempt} attempt(s): inventory still locked")
                raise
            delay = backoff * (2 ** (attempt - 1))
            logger.warning(f"Inventory lock timeout on attempt {attempt}/{attempts}, retrying in {delay:.2f}s")
            time.sleep(delay)
            attempt += 1


class InventoryLedger:
    """
    The single entry point for stock mutations.

    Every public method accepts an optional `db`. Without it the ledger opens,
    commits and closes its own session. With it the work joins the caller's
    transaction and the caller decides when to commit.
    """

    def __init__(self, session_factory=SessionLocal, catalog: Optional[ProductCatalog] = None,
                 lock_timeout_ms: int = LEDGER_LOCK_TIMEOUT_MS):
        self.session_factory = session_factory
        self.catalog = catalog or ProductCatalog()
        self.lock_timeout_ms = lock_timeout_ms

    @contextmanager
    def unit_of_work(self, db: Optional[Session] = None):
        owned = db is None
        session = self.session_factory() if owned else db
        try:
            yield session
            if owned:
                session.commit()
        except OperationalError as exc:
            if owned:
                session.rollback()
            if is_lock_timeout(exc):
                logger.warning(f"Lock wait exceeded {self.lock_timeout_ms}ms: {exc.orig}")
                raise LockTimeoutError() from exc
            raise
        except Exception:
            if owned:
                session.rollback()
            raise
        finally:
            if owned:
                session.close()

    def _require_combination(self, combination_id: int, db: Optional[Session] = None) -> None:
        with self.unit_of_work(db) as session:
            found = session.query(VariantCombination.id).filter(VariantCombination.id == combination_id).first()
        if found is None:
            raise NotFoundError("Variant combination", combination_id)

    def _lock_combination(self, db: Session, combination_id: int) -> VariantCombination:
        """SELECT ... FOR UPDATE on the combination, bounded by the lock timeout."""
        try:
            if db.get_bind().dialect.name == "postgresql":
                db.execute(text(f"SET LOCAL lock_timeout = '{int(self.lock_timeout_ms)}ms'"))
            combination = (
                db.query(VariantCombination)
                .filter(VariantCombination.id == combination_id)
                .with_for_update()
                .populate_existing()
                .first()
            )
        except OperationalError as exc:
            if is_lock_timeout(exc):
                logger.warning(f"Timed out waiting for lock on combination {combination_id}")
                raise LockTimeoutError(combination_id) from exc
            raise
        if combination is None:
            raise NotFoundError("Variant combination", combination_id)
        return combination

    def _apply_change(self, db: Session, combination: VariantCombination, delta: int,
                      change_type: InventoryChangeType, acting_user_id: str,
                      note: Optional[str] = None) -> StockChange:
        previous_stock = combination.stock
        new_stock = previous_stock + delta
        if new_stock < 0:
            logger.warning(
                f"Rejected {change_type.value} of {delta} on combination {combination.id}: "
                f"only {previous_stock} in stock (user {acting_user_id})"
            )
            raise InsufficientStockError(
                combination.id,
                requested=-delta,
                available=previous_stock,
                combination_name=combination.combination_name,
            )

        combination.stock = new_stock
        inventory = crud_inventory.get_or_create_inventory(db, combination.product_id)
        entry = crud_history.create_inventory_history(
            db,
            inventory_id=inventory.id,
            combination_id=combination.id,
            change_type=change_type,
            previous_stock=previous_stock,
            new_stock=new_stock,
            adjusted_by=acting_user_id,
            note=note,
        )
        return StockChange(
            combination_id=combination.id,
            previous_stock=previous_stock,
            new_stock=new_stock,
            history_id=entry.id,
        )

    def _get_supplier(self, db: Session, vendor_id: int) -> Vendor:
        vendor = db.query(Vendor).filter(Vendor.id == vendor_id).first()
        if vendor is None:
            raise NotFoundError("Vendor", vendor_id)
        if vendor.status != VendorStatus.APPROVED:
            raise LedgerValidationError(
                f"Vendor {vendor_id} is {vendor.status.value} and cannot supply stock",
                vendor_id=vendor_id,
            )
        return vendor

    def _receive(self, db: Session, vendor_id: int, product_id: int, combination_id: int,
                 quantity: int, supply_date: datetime, acting_user_id: str) -> Supply:
        self.catalog.get_product(db, product_id)
        tag = get_or_create_vendor_product_tag(db, vendor_id, product_id)
        combination = self._lock_combination(db, combination_id)
        if combination.product_id != product_id:
            raise NotFoundError(f"Variant combination {combination_id} for product", product_id)

        supply = crud_supply.create_supply(
            db,
            vendor_id=vendor_id,
            product_id=product_id,
            vendor_product_tag_id=tag.id,
            combination_id=combination_id,
            quantity_supplied=quantity,
            supply_date=supply_date,
        )
        self._apply_change(
            db, combination, quantity, InventoryChangeType.SUPPLY, acting_user_id,
            note=f"Supply #{supply.id} from vendor {vendor_id}",
        )
        return supply

    def record_supply(self, vendor_id: int, product_id: int, combination_id: int, quantity_supplied: int,
                      supply_date: Optional[datetime], acting_user_id: str,
                      db: Optional[Session] = None) -> Supply:
        """Record a vendor delivery and add it to the combination's stock."""
        quantity = _require_whole_number(quantity_supplied)
        if quantity <= 0:
            raise InvalidQuantityError(quantity)
        supply_date = supply_date or now()

        with self.unit_of_work(db) as session:
            self._get_supplier(session, vendor_id)
            supply = self._receive(session, vendor_id, product_id, combination_id, quantity, supply_date, acting_user_id)
            inventory = crud_inventory.get_or_create_inventory(session, product_id)
            crud_inventory.mark_restocked(session, inventory, supply)

        logger.info(
            f"Supply #{supply.id}: vendor {vendor_id} added {quantity} to combination {combination_id} "
            f"(product {product_id}) by user {acting_user_id}"
        )
        return supply

    def record_bulk_supply(self, vendor_id: int, items: List[dict], acting_user_id: str,
                           supply_date: Optional[datetime] = None,
                           db: Optional[Session] = None) -> List[Supply]:
        """
        Record several deliveries from one vendor as a single transaction.

        items are dicts with product_id, combination_id and quantity. Locks are taken
        in ascending combination id so concurrent bulk intakes cannot deadlock.
        """
        if not items:
            raise LedgerValidationError("A bulk supply needs at least one item")
        for item in items:
            quantity = _require_whole_number(item["quantity"])
            if quantity <= 0:
                raise InvalidQuantityError(quantity)
        supply_date = supply_date or now()
        ordered = sorted(items, key=lambda i: (i["combination_id"], i["product_id"]))

        supplies = []
        with self.unit_of_work(db) as session:
            self._get_supplier(session, vendor_id)
            for item in ordered:
                supplies.append(self._receive(
                    session, vendor_id, item["product_id"], item["combination_id"],
                    item["quantity"], supply_date, acting_user_id,
                ))
            # cursor updates go last so they never hold up the combination locks
            for supply in supplies:
                inventory = crud_inventory.get_or_create_inventory(session, supply.product_id)
                crud_inventory.mark_restocked(session, inventory, supply)

        logger.info(
            f"Bulk supply from vendor {vendor_id}: {len(supplies)} line(s), "
            f"{sum(s.quantity_supplied for s in supplies)} unit(s) by user {acting_user_id}"
        )
        return supplies

    def adjust_stock(self, combination_id: int, delta: int, change_type, acting_user_id: str,
                     note: Optional[str] = None, db: Optional[Session] = None) -> StockChange:
        """
        Move a combination's stock by delta under a row lock.

        Raises InsufficientStockError when the result would be negative; nothing is
        written in that case.
        """
        delta = _require_whole_number(delta, f"Stock adjustment must be a whole number, got {delta}")
        if delta == 0:
            raise InvalidQuantityError(delta, "Stock adjustment must not be zero")
        try:
            change_type = InventoryChangeType(change_type)
        except ValueError:
            raise LedgerValidationError(f"Unknown change type '{change_type}'")
        if change_type in _POSITIVE_ONLY and delta < 0:
            raise InvalidQuantityError(delta, f"A {change_type.value} must add stock, got {delta}")
        if change_type in _NEGATIVE_ONLY and delta > 0:
            raise InvalidQuantityError(delta, f"A {change_type.value} must remove stock, got {delta}")
        if change_type == InventoryChangeType.MANUAL_ADJUSTMENT and not (note and note.strip()):
            raise LedgerValidationError("Manual adjustments need a note explaining the reason")
        self._require_combination(combination_id, db)

        with self.unit_of_work(db) as session:
            combination = self._lock_combination(session, combination_id)
            change = self._apply_change(session, combination, delta, change_type, acting_user_id, note)

        logger.info(
            f"Stock {change_type.value} on combination {combination_id}: "
            f"{change.previous_stock} -> {change.new_stock} by user {acting_user_id}"
        )
        return change

    def check_availability(self, combination_id: int, requested_qty: int = 1,
                           db: Optional[Session] = None) -> Availability:
        """Advisory read. The locked adjustment is what actually guards the stock."""
        requested = _require_whole_number(requested_qty)
        if requested <= 0:
            raise InvalidQuantityError(requested)

        with self.unit_of_work(db) as session:
            combination = (
                session.query(VariantCombination)
                .filter(VariantCombination.id == combination_id)
                .populate_existing()
                .first()
            )
            if combination is None:
                raise NotFoundError("Variant combination", combination_id)
            in_stock = combination.stock
            available = bool(combination.is_active) and in_stock >= requested

        return Availability(combination_id=combination_id, requested=requested, available=available, in_stock=in_stock)

    def get_combination_price(self, combination_id: int, db: Optional[Session] = None):
        with self.unit_of_work(db) as session:
            combination = session.query(VariantCombination).filter(VariantCombination.id == combination_id).first()
            if combination is None:
                raise NotFoundError("Variant combination", combination_id)
            base_price = self.catalog.base_price(session, combination.product_id)
            return price_for_combination(combination, base_price)

    def list_history(self, combination_id: int, skip: int = 0, limit: int = 50,
                     start_date: Optional[datetime] = None, end_date: Optional[datetime] = None,
                     db: Optional[Session] = None):
        self._require_combination(combination_id, db)
        with self.unit_of_work(db) as session:
            return crud_history.get_inventory_history(
                session, combination_id, skip=skip, limit=limit, start_date=start_date, end_date=end_date,
            )


ledger = InventoryLedger(SessionLocal, ProductCatalog())


def get_ledger() -> InventoryLedger:
    """FastAPI dependency returning the process-wide ledger."""
    return ledger
