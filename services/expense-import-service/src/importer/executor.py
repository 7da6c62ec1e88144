"""
Commit step of the CSV import: persists caller-approved rows as new expenses.

The batch is best effort. A row the store rejects (for example a category id
that was deleted while the user reviewed the preview) is logged and skipped,
and the remaining rows are still written. Only the number of stored rows is
returned; per-row diagnostics belong to the normalization stage.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol, Sequence
from uuid import uuid4

from models.import_models import ExpenseRecord, ImportOutcome, ImportRow, PaymentMethod
from shared.observability.privacy import redact_fields

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_METHOD: PaymentMethod = "other"
LOGGABLE_RECORD_FIELDS = ("id", "category_id", "payment_method", "created_at")


class ExpenseStore(Protocol):
    def insert_expense(self, record: ExpenseRecord) -> object:
        ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid4())


def execute_import(
    rows: Sequence[ImportRow],
    store: ExpenseStore,
    *,
    payment_method: PaymentMethod = DEFAULT_PAYMENT_METHOD,
    clock: Optional[Callable[[], datetime]] = None,
    id_factory: Optional[Callable[[], str]] = None,
) -> int:
    """Insert every row as a new expense and return how many were stored."""

    # One instant for the whole batch.
    now = (clock or _utc_now)()
    make_id = id_factory or _new_id
    imported = 0

    for position, row in enumerate(rows):
        record = ExpenseRecord(
            id=make_id(),
            amount=row.amount,
            category_id=row.category_id,
            description=row.description,
            date=row.date,
            payment_method=payment_method,
            created_at=now,
            updated_at=now,
        )
        try:
            store.insert_expense(record)
        except Exception as exc:
            logger.warning(
                {
                    "event": "expense_import_row_skipped",
                    "position": position,
                    "record": redact_fields(record, LOGGABLE_RECORD_FIELDS),
                    "error_type": type(exc).__name__,
                }
            )
            continue
        imported += 1

    logger.info({"event": "expense_import_committed", "attempted": len(rows), "imported": imported})
    return imported


def commit_import(
    rows: Sequence[ImportRow],
    store: ExpenseStore,
    *,
    payment_method: PaymentMethod = DEFAULT_PAYMENT_METHOD,
    clock: Optional[Callable[[], datetime]] = None,
    id_factory: Optional[Callable[[], str]] = None,
) -> ImportOutcome:
    imported = execute_import(
        rows,
        store,
        payment_method=payment_method,
        clock=clock,
        id_factory=id_factory,
    )
    return ImportOutcome(imported=imported, attempted=len(rows))
