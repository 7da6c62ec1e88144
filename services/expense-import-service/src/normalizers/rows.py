from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from models.import_models import (
    UNMAPPED,
    CategoryRef,
    ColumnMapping,
    ImportRow,
    NormalizedRow,
    RawRow,
    RowError,
    RowResult,
    UnmappedColumnError,
)
from normalizers.amounts import parse_amount
from normalizers.categories import resolve_category
from normalizers.dates import parse_date

DEFAULT_DESCRIPTION = "Imported expense"
REQUIRED_FIELDS = ("date", "amount")
FIRST_DATA_ROW_INDEX = 2  # Header is row 1.


def normalize_rows(
    rows: Sequence[RawRow],
    mapping: ColumnMapping,
    categories: Iterable[CategoryRef],
    *,
    column_count: Optional[int] = None,
    day_first: bool = False,
    fallback_description: str = DEFAULT_DESCRIPTION,
) -> List[RowResult]:
    """
    Turn raw rows into NormalizedRow candidates or RowError entries, one per row.

    Raises UnmappedColumnError when the date or amount column has not been chosen.
    ``column_count`` is the header width; rows of any other width are still
    processed and flagged with ``field_count_mismatch``.
    """

    missing = [name for name in REQUIRED_FIELDS if getattr(mapping, name) == UNMAPPED]
    if missing:
        raise UnmappedColumnError(missing)

    known_categories = list(categories)
    results: List[RowResult] = []
    for row_index, row in enumerate(rows, start=FIRST_DATA_ROW_INDEX):
        results.append(
            normalize_row(
                row,
                mapping,
                known_categories,
                row_index=row_index,
                column_count=column_count,
                day_first=day_first,
                fallback_description=fallback_description,
            )
        )
    return results


def normalize_row(
    row: RawRow,
    mapping: ColumnMapping,
    categories: Sequence[CategoryRef],
    *,
    row_index: int,
    column_count: Optional[int] = None,
    day_first: bool = False,
    fallback_description: str = DEFAULT_DESCRIPTION,
) -> RowResult:
    raw_date = _cell(row, mapping.date)
    raw_amount = _cell(row, mapping.amount)

    parsed_date = parse_date(raw_date, day_first=day_first)
    if parsed_date is None:
        return RowError(row_index, "date", raw_date, f'Could not parse date "{raw_date}".')

    amount = parse_amount(raw_amount)
    if amount is None:
        return RowError(row_index, "amount", raw_amount, f'Could not parse amount "{raw_amount}".')

    raw_category = _cell(row, mapping.category)
    return NormalizedRow(
        source_row_index=row_index,
        date=parsed_date,
        amount=amount,
        description=_cell(row, mapping.description) or fallback_description,
        category_id=resolve_category(raw_category, categories),
        raw_category=raw_category,
        field_count_mismatch=column_count is not None and len(row) != column_count,
    )


def prepare_import_rows(
    results: Iterable[RowResult],
    *,
    fallback_category_id: Optional[str] = None,
    absolute_amounts: bool = True,
) -> List[ImportRow]:
    """
    Apply the caller's review decisions to normalized rows.

    Row errors are dropped, unresolved categories take ``fallback_category_id``
    and rows that still have no category are left out. Expenses are stored as
    positive magnitudes unless ``absolute_amounts`` is False.
    """

    prepared: List[ImportRow] = []
    for result in results:
        if not isinstance(result, NormalizedRow):
            continue
        category_id = result.category_id or fallback_category_id
        if category_id is None:
            continue
        prepared.append(
            ImportRow(
                date=result.date,
                amount=abs(result.amount) if absolute_amounts else result.amount,
                description=result.description,
                category_id=category_id,
            )
        )
    return prepared


def _cell(row: RawRow, index: int) -> str:
    if index == UNMAPPED or index >= len(row):
        return ""
    return row[index]
