"""Amount parsing for statement cells and command-line input."""

from decimal import Decimal, InvalidOperation
import re

_SYMBOLS = re.compile(r"[$€£¥]")
_CODE_SUFFIX = re.compile(r"\s+[A-Za-z]{3}$")
_CREDIT_DEBIT_SUFFIX = re.compile(r"\s*(CR|DR)$", re.IGNORECASE)


def parse_amount(amount_str: str) -> Decimal:
    """Turn a bank-style amount into a signed Decimal.

    Accepted notations, combinable with currency symbols and thousands
    commas: ``-12.50``, ``(12.50)``, ``12.50-``, ``12.50 DR``, ``12.50 CR``
    and a trailing ISO code such as ``12.50 MXN``. ``DR`` marks a
    withdrawal and comes back negative.

    Raises:
        ValueError: If nothing usable is left after stripping notation.
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    original = amount_str.strip()
    text = _CODE_SUFFIX.sub("", original)

    negative = False
    marker = _CREDIT_DEBIT_SUFFIX.search(text)
    if marker:
        negative = marker.group(1).upper() == "DR"
        text = text[: marker.start()]
    if text.startswith("(") and text.endswith(")"):
        negative = True
        text = text[1:-1]
    elif text.endswith("-"):
        negative = True
        text = text[:-1]

    text = _SYMBOLS.sub("", text).replace(",", "").strip()

    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {original}")
    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {original}")
    return -amount if negative else amount
