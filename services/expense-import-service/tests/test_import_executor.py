from __future__ import annotations

import itertools
import logging
from datetime import datetime, timezone
from typing import List

import pytest

from importer.executor import commit_import, execute_import
from models.import_models import ExpenseRecord, ImportOutcome, ImportRow
from shared.observability.privacy import REDACTED

FIXED_NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


class RecordingStore:
    """In-memory store that can be told to reject specific category ids."""

    def __init__(self, rejected_categories: tuple[str, ...] = ()) -> None:
        self.records: List[ExpenseRecord] = []
        self.attempts: List[ExpenseRecord] = []
        self._rejected = set(rejected_categories)

    def insert_expense(self, record: ExpenseRecord) -> None:
        self.attempts.append(record)
        if record.category_id in self._rejected:
            raise LookupError(f"unknown category {record.category_id}")
        self.records.append(record)


def _row(day: int, amount: float, category_id: str = "food", description: str = "Item") -> ImportRow:
    return ImportRow(date=datetime(2024, 1, day), amount=amount, description=description, category_id=category_id)


def test_execute_import_persists_every_row():
    store = RecordingStore()
    rows = [_row(1, 10.0), _row(2, 20.0, description="Dinner")]

    count = execute_import(rows, store, clock=lambda: FIXED_NOW)

    assert count == 2
    assert [record.amount for record in store.records] == [10.0, 20.0]
    assert store.records[1].description == "Dinner"
    assert store.records[1].date == datetime(2024, 1, 2)


def test_execute_import_continues_after_failed_row():
    store = RecordingStore(rejected_categories=("deleted",))
    rows = [_row(1, 10.0), _row(2, 20.0, category_id="deleted"), _row(3, 30.0)]

    count = execute_import(rows, store)

    assert count == 2
    assert len(store.attempts) == 3
    assert [record.amount for record in store.records] == [10.0, 30.0]


def test_execute_import_logs_skipped_rows_without_contents(caplog):
    store = RecordingStore(rejected_categories=("deleted",))

    with caplog.at_level(logging.WARNING, logger="importer.executor"):
        execute_import([_row(1, 99.0, category_id="deleted", description="Secret")], store)

    skipped = [record.msg for record in caplog.records if isinstance(record.msg, dict)]
    assert skipped and skipped[0]["event"] == "expense_import_row_skipped"
    assert skipped[0]["record"]["category_id"] == "deleted"
    assert skipped[0]["record"]["description"] == REDACTED
    assert skipped[0]["record"]["amount"] == REDACTED
    assert skipped[0]["error_type"] == "LookupError"


def test_execute_import_shares_one_timestamp_and_unique_ids():
    store = RecordingStore()
    ticks = itertools.count()

    def clock() -> datetime:
        return FIXED_NOW.replace(second=next(ticks))

    execute_import([_row(1, 1.0), _row(2, 2.0), _row(3, 3.0)], store, clock=clock)

    assert {record.created_at for record in store.records} == {FIXED_NOW}
    assert all(record.updated_at == record.created_at for record in store.records)
    assert len({record.id for record in store.records}) == 3


def test_execute_import_fills_defaults_for_optional_fields():
    store = RecordingStore()
    ids = iter(["id-1"])

    execute_import([_row(1, 5.0)], store, id_factory=lambda: next(ids), clock=lambda: FIXED_NOW)

    record = store.records[0]
    assert record.id == "id-1"
    assert record.payment_method == "other"
    assert record.receipt_uri is None
    assert record.is_recurring is False
    assert record.recurring_frequency is None
    assert record.recurring_end_date is None
    assert record.next_recurring_date is None
    assert record.notes is None


def test_execute_import_uses_configured_payment_method():
    store = RecordingStore()

    execute_import([_row(1, 5.0)], store, payment_method="card")

    assert store.records[0].payment_method == "card"


def test_execute_import_empty_batch():
    assert execute_import([], RecordingStore()) == 0


def test_commit_import_reports_attempted_and_skipped():
    store = RecordingStore(rejected_categories=("deleted",))
    rows = [_row(1, 1.0), _row(2, 2.0, category_id="deleted"), _row(3, 3.0)]

    outcome = commit_import(rows, store)

    assert outcome == ImportOutcome(imported=2, attempted=3)
    assert outcome.skipped == 1


@pytest.mark.parametrize("failing_position", [0, 1, 2])
def test_execute_import_failure_position_does_not_matter(failing_position):
    categories = ["food", "food", "food"]
    categories[failing_position] = "deleted"
    rows = [_row(day + 1, float(day), category_id=category) for day, category in enumerate(categories)]

    assert execute_import(rows, RecordingStore(rejected_categories=("deleted",))) == 2
