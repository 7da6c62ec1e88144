"""Expense and category data access helpers."""

from __future__ import annotations

from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.import_models import CategoryRef, ExpenseRecord
from persistence.models import Category, Expense


class ExpenseWriteError(RuntimeError):
    """Raised when a single expense cannot be stored; the session stays usable."""


class ExpenseRepository:
    """Thin repository that encapsulates persistence operations."""

    def __init__(self, db: Session):
        self._db = db

    def insert_expense(self, record: ExpenseRecord) -> Expense:
        row = Expense(
            id=record.id,
            amount=record.amount,
            category_id=record.category_id,
            description=record.description,
            date=record.date,
            payment_method=record.payment_method,
            receipt_uri=record.receipt_uri,
            is_recurring=record.is_recurring,
            recurring_frequency=record.recurring_frequency,
            recurring_end_date=record.recurring_end_date,
            next_recurring_date=record.next_recurring_date,
            notes=record.notes,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
        self._db.add(row)
        try:
            self._db.commit()
        except SQLAlchemyError as exc:
            self._db.rollback()
            raise ExpenseWriteError(f"Could not store expense {record.id}") from exc
        return row

    def get_expense(self, expense_id: str) -> Expense | None:
        return self._db.get(Expense, expense_id)

    def list_categories(self) -> list[CategoryRef]:
        """Return the known categories in display order for name resolution."""
        rows = self._db.scalars(select(Category).order_by(Category.sort_order, Category.name))
        return [CategoryRef(id=row.id, name=row.name) for row in rows]

    def create_category(
        self,
        name: str,
        *,
        category_id: str | None = None,
        icon: str | None = None,
        color: str | None = None,
        sort_order: int = 0,
    ) -> Category:
        category = Category(
            id=category_id or str(uuid4()),
            name=name,
            icon=icon,
            color=color,
            sort_order=sort_order,
        )
        self._db.add(category)
        self._db.commit()
        self._db.refresh(category)
        return category
