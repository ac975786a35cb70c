"""Currency unit conversion.

The ledger only ever stores integer base units.  One currency unit is
``10**DECIMALS`` base units, so ``to_base_units("2")`` is ``2 * 10**18``.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

DECIMALS = 18
_SCALE = Decimal(10) ** DECIMALS


def to_base_units(amount: str | int | Decimal) -> int:
    """Convert a currency amount to integer base units.

    Raises ``ValueError`` for non-numeric input or for precision finer than
    one base unit.

    Examples
    --------
    >>> to_base_units("0.02")
    20000000000000000
    """
    if isinstance(amount, float):
        raise ValueError("Use str or Decimal for amounts, not float")
    try:
        scaled = Decimal(amount) * _SCALE
    except InvalidOperation as exc:
        raise ValueError(f"Not a currency amount: {amount!r}") from exc
    if not scaled.is_finite():
        raise ValueError(f"Not a currency amount: {amount!r}")
    if scaled != scaled.to_integral_value():
        raise ValueError(f"{amount!r} is finer than one base unit")
    return int(scaled)


def from_base_units(units: int) -> Decimal:
    """Convert integer base units back to a currency amount."""
    return Decimal(units) / _SCALE


def format_amount(units: int) -> str:
    """Human-readable amount with trailing zeros trimmed."""
    return format(from_base_units(units).normalize(), "f")
