"""Commit step for approved import rows."""

from .executor import DEFAULT_PAYMENT_METHOD, ExpenseStore, commit_import, execute_import

__all__ = [
    "DEFAULT_PAYMENT_METHOD",
    "ExpenseStore",
    "commit_import",
    "execute_import",
]
