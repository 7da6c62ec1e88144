from __future__ import annotations

import math
import re
from typing import Optional

CURRENCY_SYMBOLS = ("$", "€", "£", "¥", "₹")

_STRIP_PATTERN = re.compile("[" + re.escape("".join(CURRENCY_SYMBOLS)) + r",\s]")
_LEADING_DECIMAL = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_amount(raw_value: object) -> Optional[float]:
    """
    Parse a bank-style amount such as ``$1,234.56`` or ``(25.00)``.

    Parentheses mark a negative value and negate whatever sign the inner number
    carries, so ``(-5)`` yields ``5.0``. Only the leading number is read, so a
    trailing currency code or marker is ignored (``12.50 USD``, ``1,450.00 CR``).
    Returns None when the text does not start with a finite decimal number.
    """

    if raw_value is None:
        return None
    if isinstance(raw_value, (int, float)) and not isinstance(raw_value, bool):
        value = float(raw_value)
        return value if math.isfinite(value) else None

    text = str(raw_value).strip()
    negative = len(text) >= 2 and text.startswith("(") and text.endswith(")")
    if negative:
        text = text[1:-1]

    cleaned = _STRIP_PATTERN.sub("", text)
    match = _LEADING_DECIMAL.match(cleaned)
    if match is None:
        return None
    value = float(match.group())
    if not math.isfinite(value):
        return None
    return -value if negative else value
