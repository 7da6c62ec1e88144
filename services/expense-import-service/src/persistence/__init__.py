"""Persistence primitives for the expense import service."""

from persistence.database import (
    DB_URL_ENV_VAR,
    DEFAULT_DB_FILENAME,
    DEFAULT_DB_PATH,
    SessionLocal,
    build_engine,
    get_database_url,
    get_engine,
    get_session,
    init_db,
)
from persistence.models import Base, Category, Expense
from persistence.repository import ExpenseRepository, ExpenseWriteError

__all__ = [
    "Base",
    "Category",
    "DB_URL_ENV_VAR",
    "DEFAULT_DB_FILENAME",
    "DEFAULT_DB_PATH",
    "Expense",
    "ExpenseRepository",
    "ExpenseWriteError",
    "SessionLocal",
    "build_engine",
    "get_database_url",
    "get_engine",
    "get_session",
    "init_db",
]
