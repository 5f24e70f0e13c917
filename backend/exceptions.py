"""
Ledger error types.

Every error raised by the inventory ledger is one of these. They carry the HTTP
status the controller layer should answer with, a machine-readable code and any
structured fields the client needs (for example the available quantity).
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional


class LedgerError(Exception):
    """Base class for all ledger errors."""

    status_code = 400
    code = "LEDGER_ERROR"
    retryable = False

    def __init__(self, detail: str, **extra):
        self.detail = detail
        self.extra = extra
        super().__init__(detail)

    def to_dict(self) -> Dict[str, Any]:
        payload = {"detail": self.detail, "code": self.code}
        for key, value in self.extra.items():
            payload[key] = str(value) if isinstance(value, Decimal) else value
        return payload


class LedgerValidationError(LedgerError):
    code = "VALIDATION_ERROR"


class InvalidQuantityError(LedgerValidationError):
    code = "INVALID_QUANTITY"

    def __init__(self, quantity, detail: Optional[str] = None):
        self.quantity = quantity
        super().__init__(detail or f"Quantity must be a positive whole number, got {quantity}", quantity=quantity)


class NotFoundError(LedgerError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id=None):
        self.resource = resource
        self.resource_id = resource_id
        detail = f"{resource} not found" if resource_id is None else f"{resource} {resource_id} not found"
        super().__init__(detail, resource=resource, resource_id=resource_id)


class ConflictError(LedgerError):
    status_code = 409
    code = "CONFLICT"


class InsufficientStockError(LedgerError):
    status_code = 409
    code = "INSUFFICIENT_STOCK"

    def __init__(self, combination_id: int, requested: int, available: int, combination_name: Optional[str] = None):
        self.combination_id = combination_id
        self.requested = requested
        self.available = available
        label = f"'{combination_name}'" if combination_name else f"#{combination_id}"
        super().__init__(
            f"Insufficient stock for combination {label}. Available: {available}, Requested: {requested}",
            combination_id=combination_id,
            requested=requested,
            available=available,
        )


class LockTimeoutError(LedgerError):
    status_code = 503
    code = "LOCK_TIMEOUT"
    retryable = True

    def __init__(self, combination_id=None):
        self.combination_id = combination_id
        super().__init__(
            "Inventory is busy, please retry",
            combination_id=combination_id,
        )


class StockUnavailableError(LedgerError):
    """Raised before payment when one or more cart lines cannot be fulfilled."""

    status_code = 409
    code = "STOCK_UNAVAILABLE"

    def __init__(self, issues: List[Dict[str, Any]]):
        self.issues = issues
        lines = []
        for issue in issues:
            name = issue.get("product_name") or f"product {issue.get('product_id')}"
            if issue.get("combination_name"):
                name = f"{name} ({issue['combination_name']})"
            if issue.get("available") is None:
                lines.append(f"{name}: {issue.get('reason')}")
            else:
                lines.append(f"{name}: requested {issue.get('requested')}, only {issue.get('available')} available")
        super().__init__("Some items in your cart are unavailable: " + "; ".join(lines), issues=issues)
