from sqlalchemy import Column, DateTime
from utils.clock import now


class TimestampMixin:
    """Mixin that provides created/updated timestamps.

    Ledger tables that are append-only (supply, inventory_history) do not use this;
    they carry a single created_at so nothing suggests the row may be edited.
    """
    # DateTime(timezone=True) ensures the timezone info is persisted in the database.
    created_at = Column(DateTime(timezone=True), default=now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now, onupdate=now, nullable=False)
