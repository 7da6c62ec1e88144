"""Pytest configuration for expense-import-service tests.

Puts the service's src directory and the services root (for `shared`) on
sys.path and points the default database at an in-memory SQLite URL so that
importing the app never touches the on-disk database.
"""

import os
import sys
from pathlib import Path

import pytest

SERVICES_ROOT = Path(__file__).resolve().parents[2]
SERVICE_SRC = Path(__file__).resolve().parents[1] / "src"

for path in (SERVICE_SRC, SERVICES_ROOT):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

os.environ.setdefault("EXPENSE_IMPORT_DB_URL", "sqlite://")

from sqlalchemy.orm import sessionmaker  # noqa: E402

from persistence.database import build_engine  # noqa: E402
from persistence.models import Base  # noqa: E402


@pytest.fixture
def session_factory(tmp_path: Path):
    engine = build_engine(f"sqlite:///{tmp_path / 'expenses.db'}")
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, expire_on_commit=False, future=True)
    yield factory
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    with session_factory() as session:
        yield session
