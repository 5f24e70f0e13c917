from datetime import datetime
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db
from schemas.supply import Supply, SupplyCreate, BulkSupplyCreate, SupplySummary
from crud import supply as crud_supply
from services.inventory_ledger import InventoryLedger, get_ledger
from utils.auth_utils import get_current_user, get_user_identifier
from exceptions import NotFoundError

router = APIRouter(prefix="/supplies", tags=["Supplies"])
logger = logging.getLogger("supplies")

@router.post("/", response_model=Supply, status_code=status.HTTP_201_CREATED)
def record_supply(
    supply: SupplyCreate,
    ledger: InventoryLedger = Depends(get_ledger),
    user: dict = Depends(get_current_user),
):
    """Record a vendor delivery against a combination and add it to stock."""
    return ledger.record_supply(
        vendor_id=supply.vendor_id,
        product_id=supply.product_id,
        combination_id=supply.combination_id,
        quantity_supplied=supply.quantity_supplied,
        supply_date=supply.supply_date,
        acting_user_id=get_user_identifier(user),
    )

@router.post("/bulk", response_model=List[Supply], status_code=status.HTTP_201_CREATED)
def record_bulk_supply(
    bulk: BulkSupplyCreate,
    ledger: InventoryLedger = Depends(get_ledger),
    user: dict = Depends(get_current_user),
):
    """Record several deliveries from one vendor; either all of them apply or none do."""
    return ledger.record_bulk_supply(
        vendor_id=bulk.vendor_id,
        items=[item.model_dump() for item in bulk.items],
        acting_user_id=get_user_identifier(user),
        supply_date=bulk.supply_date,
    )

@router.get("/summary", response_model=SupplySummary)
def read_supply_summary(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    db: Session = Depends(get_db),
):
    """Units received in a period with the top products and vendors by quantity."""
    return crud_supply.get_supply_summary(db, start_date=start_date, end_date=end_date)

@router.get("/", response_model=List[Supply])
def read_supplies(
    vendor_id: Optional[int] = None,
    product_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    return crud_supply.get_supplies(
        db,
        vendor_id=vendor_id,
        product_id=product_id,
        start_date=start_date,
        end_date=end_date,
        skip=skip,
        limit=limit,
    )

@router.get("/{supply_id}", response_model=Supply)
def read_supply(supply_id: int, db: Session = Depends(get_db)):
    supply = crud_supply.get_supply(db, supply_id)
    if supply is None:
        raise NotFoundError("Supply", supply_id)
    return supply
