from sqlalchemy import JSON
from sqlalchemy.types import TypeDecorator

from schemas.snapshot import VariantSnapshot, sort_snapshot


class VariantSnapshotList(TypeDecorator):
    """JSON column holding a sorted list of VariantSnapshot.

    Values are validated when written, so rows never contain a raw string or a
    partially formed entry.
    """
    impl = JSON
    cache_ok = True

    def process_bind_param(self, value, dialect):
        snapshots = sort_snapshot([VariantSnapshot.model_validate(v) for v in (value or [])])
        return [s.model_dump(mode="json") for s in snapshots]

    def process_result_value(self, value, dialect):
        return [VariantSnapshot.model_validate(v) for v in (value or [])]
