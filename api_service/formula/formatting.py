from decimal import Decimal, ROUND_HALF_UP
from typing import Any

NBSP = "\u00a0"
MINUS = "\u2212"
MAX_FRACTION_DIGITS = 3


def format_number(value: float | int, max_fraction_digits: int = MAX_FRACTION_DIGITS) -> str:
    """Finnish number display: 1234567.891 -> '1 234 567,891' (NBSP grouping, comma decimal)."""
    exponent = Decimal(1).scaleb(-max_fraction_digits)
    quantized = Decimal(repr(float(value))).quantize(exponent, rounding=ROUND_HALF_UP)
    text = f"{abs(quantized):,f}"
    integer, _, fraction = text.partition(".")
    fraction = fraction.rstrip("0")

    result = integer.replace(",", NBSP)
    if fraction:
        result = f"{result},{fraction}"
    if quantized < 0 and result != "0":
        result = MINUS + result
    return result


def format_value(value: Any, unit: str | None = None) -> str:
    if isinstance(value, bool):
        text = "true" if value else "false"
    elif isinstance(value, (int, float)):
        text = format_number(value)
    else:
        return str(value)
    if unit:
        return f"{text} {unit}"
    return text
