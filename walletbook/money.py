"""
Money Utility

Every monetary value in the ledger is a Decimal quantized to the cent.

DESIGN DECISION: sanitize() runs after EVERY addition or subtraction,
not only at input boundaries. Balances are updated incrementally over
years of transactions, so drift must never get a chance to accumulate.

Floats are accepted at the edges (settings, callers that parse user
input) but are converted through str() so 0.1 stays 0.1.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

AmountLike = Union[Decimal, int, float, str]

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Largest accepted input; keeps running totals far from the Decimal context's precision
MAX_AMOUNT = Decimal("999999999999.99")


class InvalidAmountError(ValueError):
    """Amount is NaN, infinite or not a number at all."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Not a finite monetary amount: {value!r}")


def _to_decimal(amount: AmountLike) -> Decimal:
    if isinstance(amount, bool):
        raise InvalidAmountError(amount)
    if isinstance(amount, Decimal):
        value = amount
    elif isinstance(amount, (int, float)):
        value = Decimal(str(amount))
    elif isinstance(amount, str):
        try:
            value = Decimal(amount.strip())
        except InvalidOperation:
            raise InvalidAmountError(amount)
    else:
        raise InvalidAmountError(amount)

    if not value.is_finite():
        raise InvalidAmountError(amount)
    return value


def is_finite_amount(amount: object) -> bool:
    """True if the value can be used as money (no NaN, no infinity)."""
    try:
        _to_decimal(amount)  # type: ignore[arg-type]
    except InvalidAmountError:
        return False
    return True


def sanitize(amount: AmountLike) -> Decimal:
    """
    Round a monetary value to the nearest cent.

    Halves round away from zero (2.675 -> 2.68).

    Raises:
        InvalidAmountError: for NaN, infinity, non-numeric input, or a
            value too large to hold at cent precision.
            Such values are never coerced to zero.
    """
    value = _to_decimal(amount)
    try:
        return value.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidAmountError(amount)
