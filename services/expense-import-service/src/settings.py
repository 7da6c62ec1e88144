"""
Environment-driven settings for the expense import pipeline.

Every knob has a default that reproduces the stock behaviour (month-first
dates, "other" payment method, positive expense amounts), so a bare
environment yields a working configuration. Invalid values fail loudly at
load time instead of silently changing how rows are interpreted.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from models.import_models import PaymentMethod

DATE_ORDER_ENV = "EXPENSE_IMPORT_DATE_ORDER"
PAYMENT_METHOD_ENV = "EXPENSE_IMPORT_PAYMENT_METHOD"
FALLBACK_DESCRIPTION_ENV = "EXPENSE_IMPORT_FALLBACK_DESCRIPTION"
ABSOLUTE_AMOUNTS_ENV = "EXPENSE_IMPORT_ABSOLUTE_AMOUNTS"
MAX_UPLOAD_BYTES_ENV = "EXPENSE_IMPORT_MAX_UPLOAD_BYTES"

SUPPORTED_DATE_ORDERS = frozenset({"month_first", "day_first"})
SUPPORTED_PAYMENT_METHODS = frozenset({"cash", "card", "bank", "other"})
DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024


class ImportSettingsError(RuntimeError):
    """Raised when import settings cannot be constructed."""


@dataclass(frozen=True, slots=True)
class ImportSettings:
    date_order: str = "month_first"
    payment_method: PaymentMethod = "other"
    fallback_description: str = "Imported expense"
    absolute_amounts: bool = True
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES

    @property
    def day_first(self) -> bool:
        return self.date_order == "day_first"


def load_import_settings() -> ImportSettings:
    """Construct ImportSettings from the EXPENSE_IMPORT_* environment variables."""

    date_order = _parse_choice(os.getenv(DATE_ORDER_ENV), "month_first", SUPPORTED_DATE_ORDERS, DATE_ORDER_ENV)
    payment_method = _parse_choice(
        os.getenv(PAYMENT_METHOD_ENV), "other", SUPPORTED_PAYMENT_METHODS, PAYMENT_METHOD_ENV
    )
    fallback_description = (os.getenv(FALLBACK_DESCRIPTION_ENV) or "").strip() or "Imported expense"
    absolute_amounts = _parse_bool(os.getenv(ABSOLUTE_AMOUNTS_ENV), True, ABSOLUTE_AMOUNTS_ENV)
    max_upload_bytes = _parse_int(os.getenv(MAX_UPLOAD_BYTES_ENV), DEFAULT_MAX_UPLOAD_BYTES, MAX_UPLOAD_BYTES_ENV)
    if max_upload_bytes <= 0:
        raise ImportSettingsError(f"{MAX_UPLOAD_BYTES_ENV} must be positive (received '{max_upload_bytes}')")

    return ImportSettings(
        date_order=date_order,
        payment_method=payment_method,
        fallback_description=fallback_description,
        absolute_amounts=absolute_amounts,
        max_upload_bytes=max_upload_bytes,
    )


def _parse_choice(raw_value: Optional[str], default: str, choices: frozenset[str], env_key: str) -> str:
    candidate = (raw_value or "").strip().lower()
    if not candidate:
        return default

    if candidate not in choices:
        allowed = ", ".join(sorted(choices))
        raise ImportSettingsError(f"{env_key} must be one of {allowed} (received '{raw_value}')")
    return candidate


def _parse_bool(raw_value: Optional[str], default: bool, env_key: str) -> bool:
    if raw_value is None or raw_value.strip() == "":
        return default

    lowered = raw_value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    raise ImportSettingsError(f"{env_key} must be a boolean (received '{raw_value}')")


def _parse_int(raw_value: Optional[str], default: int, env_key: str) -> int:
    if raw_value is None or raw_value.strip() == "":
        return default

    try:
        return int(raw_value)
    except ValueError as exc:
        raise ImportSettingsError(f"{env_key} must be an integer (received '{raw_value}')") from exc
