"""Pytest configuration for root-level integration tests.

Adds the expense import service src directory and the services root to
sys.path so the pipeline and `shared` packages import the same way they do
inside the service.
"""

import os
import sys
from pathlib import Path

SERVICES_ROOT = Path(__file__).resolve().parents[1] / "services"

SERVICE_PATHS = [
    SERVICES_ROOT / "expense-import-service" / "src",
    SERVICES_ROOT,
]

for path in SERVICE_PATHS:
    path_str = str(path)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

os.environ.setdefault("EXPENSE_IMPORT_DB_URL", "sqlite://")
