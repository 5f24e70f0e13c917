from decimal import Decimal, ROUND_HALF_UP

CENTS = Decimal("0.01")


def to_decimal(amount) -> Decimal:
    if amount is None:
        return Decimal("0")
    if isinstance(amount, Decimal):
        return amount
    # str() first so floats do not leak binary noise into prices
    return Decimal(str(amount))


def round_currency(amount) -> Decimal:
    """Round to two decimal places, half-up."""
    return to_decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)
