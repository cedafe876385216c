"""Decimal helpers for order sizes and percentages."""

from decimal import Decimal, InvalidOperation


def to_decimal(value: Decimal | float | int | str) -> Decimal:
    """Convert a boundary value to Decimal without float drift.

    Floats go through their shortest ``repr`` so ``0.02`` becomes
    ``Decimal("0.02")`` rather than the binary expansion.

    Raises:
        ValueError: If the value is not a finite number
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise ValueError(f"Not a decimal quantity: {value!r}")
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise ValueError(f"Not a decimal quantity: {value!r}") from e

    if not result.is_finite():
        raise ValueError(f"Not a finite decimal quantity: {value!r}")
    return result


def format_decimal(value: Decimal) -> str:
    """Render a Decimal as a plain string (no exponent, no trailing fractional zeros)."""
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text
