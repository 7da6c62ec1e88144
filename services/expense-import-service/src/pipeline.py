"""Preview stage of the CSV import: tokenize, map columns and normalize every row."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from models.import_models import CategoryRef, ColumnMapping, ImportPreview, NormalizedRow, ParsedCsv, RowError
from normalizers.rows import normalize_rows
from parsers.column_mapper import auto_map_columns
from parsers.csv_tokenizer import tokenize_csv
from settings import ImportSettings

logger = logging.getLogger(__name__)


def build_import_preview(
    text: str,
    categories: Iterable[CategoryRef],
    *,
    mapping_override: Optional[ColumnMapping] = None,
    settings: Optional[ImportSettings] = None,
) -> ImportPreview:
    """
    Parse CSV text into an ImportPreview the caller can review before committing.

    ``mapping_override`` replaces the inferred mapping entirely; build it with
    ``ColumnMapping.with_overrides`` to change only some fields. Raises
    ColumnMappingError for out-of-range indices and UnmappedColumnError when the
    date or amount column is still missing.
    """

    parsed = tokenize_csv(text)
    mapping = mapping_override if mapping_override is not None else auto_map_columns(parsed.header)
    return preview_parsed_csv(parsed, categories, mapping=mapping, settings=settings)


def preview_parsed_csv(
    parsed: ParsedCsv,
    categories: Iterable[CategoryRef],
    *,
    mapping: ColumnMapping,
    settings: Optional[ImportSettings] = None,
) -> ImportPreview:
    settings = settings or ImportSettings()

    if not parsed.header:
        return ImportPreview(header=(), rows=(), mapping=mapping, warnings=["CSV file is empty."])

    mapping.validate(len(parsed.header))
    results = normalize_rows(
        parsed.rows,
        mapping,
        categories,
        column_count=len(parsed.header),
        day_first=settings.day_first,
        fallback_description=settings.fallback_description,
    )

    warnings = _collect_warnings(mapping, results, parsed.unterminated_quote_rows)
    preview = ImportPreview(
        header=parsed.header,
        rows=parsed.rows,
        mapping=mapping,
        results=results,
        warnings=warnings,
    )
    logger.info(
        {
            "event": "expense_import_preview",
            "column_count": len(parsed.header),
            "row_count": len(parsed.rows),
            "normalized_count": len(preview.normalized_rows),
            "error_count": len(preview.errors),
            "unterminated_quote_rows": list(parsed.unterminated_quote_rows),
            "mapping": mapping.as_dict(),
        }
    )
    return preview


def _collect_warnings(
    mapping: ColumnMapping,
    results: List,
    unterminated_quote_rows: Sequence[int] = (),
) -> List[str]:
    warnings = [
        f"Row {row_number}: malformed quoting; a quote was never closed, so only this line was read."
        for row_number in unterminated_quote_rows
    ]
    if "description" in mapping.unmapped_fields():
        warnings.append("Description column not detected; using the default description.")
    if "category" in mapping.unmapped_fields():
        warnings.append("Category column not detected; every row needs a category before import.")

    for result in results:
        if isinstance(result, RowError):
            warnings.append(f"Row {result.source_row_index}: {result.message} Skipped.")
        elif isinstance(result, NormalizedRow) and result.field_count_mismatch:
            warnings.append(f"Row {result.source_row_index}: field count does not match the header.")
    return warnings
