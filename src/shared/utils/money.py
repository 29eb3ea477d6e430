from decimal import ROUND_HALF_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

# Type alias for money values
Money = Decimal

Numberish = Union[Decimal, float, int, str]

ZERO = Decimal("0")


def to_decimal(value: Numberish | None) -> Decimal:
    """
    Parse a form/JSON value (decimal string, int, float) into Decimal.

    None and blank strings read as zero.

    Examples:
        >>> to_decimal("2.5")
        Decimal('2.5')
        >>> to_decimal(None)
        Decimal('0')
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
        if not value:
            return ZERO
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Not a number: {value!r}") from exc


def round_money(value: Numberish) -> Decimal:
    """
    Round monetary value to 2 decimal places using ROUND_HALF_UP.

    Examples:
        >>> round_money(10.125)
        Decimal('10.13')
        >>> round_money(10.124)
        Decimal('10.12')
        >>> round_money("10.115")
        Decimal('10.12')
    """
    value = to_decimal(value)
    if value < 0:
        return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_DOWN)
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def round_quantity(value: Numberish) -> Decimal:
    """Round a stock quantity to 3 decimal places (storage precision)."""
    return to_decimal(value).quantize(Decimal("0.001"), rounding=ROUND_HALF_UP)


def floor_zero(value: Decimal) -> Decimal:
    """Clamp a balance at zero."""
    return value if value > 0 else ZERO
