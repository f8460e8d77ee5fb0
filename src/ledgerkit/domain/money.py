"""Decimal money helpers: coercion, currency codes and minor units."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

Number = Union[Decimal, int, float, str]

# Currencies whose minor unit differs from the usual two places.
MINOR_UNIT_OVERRIDES = {
    "BHD": 3,
    "CLP": 0,
    "ISK": 0,
    "JOD": 3,
    "JPY": 0,
    "KRW": 0,
    "KWD": 3,
    "OMR": 3,
    "PYG": 0,
    "TND": 3,
    "VND": 0,
}
DEFAULT_MINOR_UNITS = 2


def to_decimal(value: Number) -> Decimal:
    """Coerce a numeric value into a finite Decimal.

    Floats go through ``str`` so ``18.5`` becomes ``Decimal("18.5")`` rather
    than its binary expansion.

    Raises:
        ValueError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"Not a number: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result


def normalize_currency(code: str) -> str:
    """Return the upper-cased, stripped currency code."""
    return code.strip().upper()


def is_valid_currency(code: object) -> bool:
    """Currency codes are 3 to 6 letters."""
    return isinstance(code, str) and 3 <= len(code.strip()) <= 6 and code.strip().isalpha()


def minor_units(currency: str) -> int:
    """Number of decimal places for a currency's minor unit."""
    return MINOR_UNIT_OVERRIDES.get(normalize_currency(currency), DEFAULT_MINOR_UNITS)


def quantize(amount: Decimal, currency: str) -> Decimal:
    """Round an amount to the currency's minor unit."""
    exponent = Decimal(1).scaleb(-minor_units(currency))
    return amount.quantize(exponent, rounding=ROUND_HALF_UP)


def format_amount(amount: Decimal, places: int = 2) -> str:
    """Fixed-point string with the given number of places."""
    exponent = Decimal(1).scaleb(-places)
    return str(amount.quantize(exponent, rounding=ROUND_HALF_UP))
