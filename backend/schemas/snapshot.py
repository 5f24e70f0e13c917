from pydantic import BaseModel, field_validator
from typing import List, Optional
from decimal import Decimal
from utils.formatting import round_currency


class VariantSnapshot(BaseModel):
    """One selected variant as it looked when the customer picked it."""
    id: int
    name: str
    value: str
    additional_price: Decimal = Decimal("0.00")

    @field_validator("additional_price", mode="before")
    @classmethod
    def default_missing_price(cls, value):
        return Decimal("0.00") if value is None else value


def sort_snapshot(variants: Optional[List[VariantSnapshot]]) -> List[VariantSnapshot]:
    return sorted(variants or [], key=lambda v: v.id)


def variant_key(variant_ids) -> str:
    """Canonical key for a variant selection; order of selection does not matter."""
    return ",".join(str(v) for v in sorted(set(int(v) for v in variant_ids)))


def snapshot_unit_price(base_price, variants: List[VariantSnapshot]) -> Decimal:
    """Unit price of a selection: base price plus every selected variant's surcharge."""
    return round_currency(Decimal(str(base_price)) + sum((v.additional_price for v in variants), Decimal("0")))
