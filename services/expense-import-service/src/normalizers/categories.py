from __future__ import annotations

from typing import Iterable, Optional

from models.import_models import CategoryRef


def resolve_category(raw_name: Optional[str], categories: Iterable[CategoryRef]) -> Optional[str]:
    """Return the id of the category whose name matches ``raw_name`` ignoring case and padding."""

    if not raw_name or not raw_name.strip():
        return None
    normalized = raw_name.strip().casefold()
    for category in categories:
        if category.name.strip().casefold() == normalized:
            return category.id
    return None
