from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from importer.executor import execute_import
from models.import_models import CategoryRef, ExpenseRecord, ImportRow
from persistence.database import build_engine
from persistence.models import Base, Expense
from persistence.repository import ExpenseRepository, ExpenseWriteError

NOW = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


def _record(expense_id: str, category_id: str, amount: float = 12.0) -> ExpenseRecord:
    return ExpenseRecord(
        id=expense_id,
        amount=amount,
        category_id=category_id,
        description="Imported expense",
        date=datetime(2024, 4, 30),
        payment_method="other",
        created_at=NOW,
        updated_at=NOW,
    )


def test_insert_expense_can_be_read_back_by_id(db_session) -> None:
    repo = ExpenseRepository(db_session)
    repo.create_category("Food", category_id="food")

    repo.insert_expense(_record("exp-1", "food"))
    stored = repo.get_expense("exp-1")

    assert stored is not None
    assert stored.amount == pytest.approx(12.0)
    assert stored.category_id == "food"
    assert stored.payment_method == "other"
    assert stored.notes is None
    assert stored.is_recurring is False


def test_insert_expense_with_unknown_category_raises_and_rolls_back(db_session) -> None:
    repo = ExpenseRepository(db_session)
    repo.create_category("Food", category_id="food")

    with pytest.raises(ExpenseWriteError):
        repo.insert_expense(_record("exp-bad", "missing"))

    # The session is still usable after the failed write.
    repo.insert_expense(_record("exp-good", "food"))
    assert repo.get_expense("exp-bad") is None
    assert repo.get_expense("exp-good") is not None


def test_list_categories_in_display_order(db_session) -> None:
    repo = ExpenseRepository(db_session)
    repo.create_category("Transport", category_id="t", sort_order=2)
    repo.create_category("Food", category_id="f", sort_order=1)

    assert repo.list_categories() == [CategoryRef(id="f", name="Food"), CategoryRef(id="t", name="Transport")]


def test_execute_import_skips_rows_rejected_by_database(db_session) -> None:
    repo = ExpenseRepository(db_session)
    repo.create_category("Food", category_id="food")
    rows = [
        ImportRow(date=datetime(2024, 1, 1), amount=1.0, description="a", category_id="food"),
        ImportRow(date=datetime(2024, 1, 2), amount=2.0, description="b", category_id="gone"),
        ImportRow(date=datetime(2024, 1, 3), amount=3.0, description="c", category_id="food"),
    ]

    count = execute_import(rows, repo)

    stored = db_session.scalars(select(Expense).order_by(Expense.amount)).all()
    assert count == 2
    assert [expense.description for expense in stored] == ["a", "c"]


def test_expenses_survive_new_engine(tmp_path: Path) -> None:
    """Imported expenses persist even after a new engine/session is created."""
    url = f"sqlite:///{tmp_path / 'durable.db'}"

    engine_one = build_engine(url)
    Base.metadata.create_all(bind=engine_one)
    with sessionmaker(bind=engine_one, expire_on_commit=False, future=True)() as session:
        repo = ExpenseRepository(session)
        repo.create_category("Food", category_id="food")
        repo.insert_expense(_record("exp-1", "food", amount=7.5))
    engine_one.dispose()

    engine_two = build_engine(url)
    with sessionmaker(bind=engine_two, expire_on_commit=False, future=True)() as session:
        count = session.scalar(select(func.count()).select_from(Expense))
        restored = ExpenseRepository(session).get_expense("exp-1")

    assert count == 1
    assert restored is not None
    assert restored.amount == pytest.approx(7.5)
    assert restored.date == datetime(2024, 4, 30)
    engine_two.dispose()
