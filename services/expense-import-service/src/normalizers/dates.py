"""Date parsing for imported rows.

Explicit formats are tried in order and the first one that yields a real
calendar date wins, so the order doubles as the tie-break for ambiguous
inputs such as ``01/02/2024``.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional, Sequence

from dateutil import parser as dateutil_parser

MONTH_FIRST_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%d/%m/%Y",
    "%m-%d-%Y",
    "%d-%m-%Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%m/%d/%y",
    "%d/%m/%y",
    "%d %b %Y",
)

DAY_FIRST_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%d/%m/%Y",
    "%m/%d/%Y",
    "%d-%m-%Y",
    "%m-%d-%Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d/%m/%y",
    "%m/%d/%y",
    "%d %b %Y",
)

_DIGIT = re.compile(r"\d")

# Two unrelated anchors: a component dateutil fills from the default differs between them.
_FALLBACK_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def parse_date(raw_value: object, *, day_first: bool = False) -> Optional[datetime]:
    """Return the parsed date, or None when no format (nor the fallback) accepts it."""

    if raw_value is None:
        return None
    text = str(raw_value).strip()
    if not text:
        return None

    formats = DAY_FIRST_FORMATS if day_first else MONTH_FIRST_FORMATS
    parsed = _parse_with_formats(text, formats)
    if parsed is not None:
        return parsed
    return _parse_fallback(text, day_first)


def _parse_with_formats(text: str, formats: Sequence[str]) -> Optional[datetime]:
    for fmt in formats:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _parse_fallback(text: str, day_first: bool) -> Optional[datetime]:
    # Without a digit dateutil can only invent a date from today's defaults.
    if not _DIGIT.search(text):
        return None
    try:
        first, second = (
            dateutil_parser.parse(text, dayfirst=day_first, default=default) for default in _FALLBACK_DEFAULTS
        )
    except (ValueError, OverflowError):
        return None
    if first != second:
        # Year, month or day was missing from the text.
        return None
    if first.tzinfo is not None:
        first = first.astimezone(timezone.utc).replace(tzinfo=None)
    return first
