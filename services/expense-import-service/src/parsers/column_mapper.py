from __future__ import annotations

from typing import Iterable, Sequence

from models.import_models import UNMAPPED, ColumnMapping

# Ordered by priority: the first synonym present in the header wins.
DateHeaders = ("date", "transaction date", "transaction_date", "txn_date", "posted date", "booking date")
AmountHeaders = ("amount", "debit", "value", "total")
DescriptionHeaders = ("description", "memo", "details", "narrative", "name", "payee", "notes", "note")
CategoryHeaders = ("category", "category name", "category_label", "type", "tag")

FIELD_SYNONYMS: dict[str, Sequence[str]] = {
    "date": DateHeaders,
    "amount": AmountHeaders,
    "description": DescriptionHeaders,
    "category": CategoryHeaders,
}


def auto_map_columns(header: Sequence[str]) -> ColumnMapping:
    """Guess the column index for each semantic field from the header names."""

    return ColumnMapping(**{name: find_column(header, synonyms) for name, synonyms in FIELD_SYNONYMS.items()})


def find_column(header: Sequence[str], candidates: Iterable[str]) -> int:
    lowered = [cell.strip().lower() for cell in header]
    for candidate in candidates:
        normalized = candidate.strip().lower()
        for index, cell in enumerate(lowered):
            if cell == normalized:
                return index
    return UNMAPPED
