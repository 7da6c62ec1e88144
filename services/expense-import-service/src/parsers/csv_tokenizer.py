from __future__ import annotations

import csv
import logging
from typing import List, Optional, Sequence

from models.import_models import ParsedCsv, RawRow

logger = logging.getLogger(__name__)

BYTE_ORDER_MARK = "\ufeff"
_READER_OPTIONS = {"skipinitialspace": True, "strict": False}


def tokenize_csv(text: str) -> ParsedCsv:
    """
    Split raw CSV text into a trimmed header and positionally-aligned rows.

    Quoted fields may contain commas, doubled quotes and line breaks. Malformed
    quoting never raises. A quote still open at the end of the input is treated
    as a mistake on its own line: that line is read by itself and reading resumes
    on the next line, so one stray quote cannot swallow the rest of the file.
    """

    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    if normalized.startswith(BYTE_ORDER_MARK):
        normalized = normalized[len(BYTE_ORDER_MARK):]

    lines = [line + "\n" for line in normalized.split("\n")]
    records: List[RawRow] = []
    unterminated_rows: List[int] = []
    position = 0
    while position < len(lines):
        broken_at = _read_records(lines, position, records)
        if broken_at is None:
            break
        if _append_record(records, _read_single_line(lines[broken_at])):
            unterminated_rows.append(len(records))
            logger.warning({"event": "csv_unterminated_quote", "line": broken_at + 1, "row": len(records)})
        position = broken_at + 1

    if not records:
        return ParsedCsv()
    return ParsedCsv(
        header=records[0],
        rows=tuple(records[1:]),
        unterminated_quote_rows=tuple(unterminated_rows),
    )


def decode_csv_bytes(file_bytes: bytes) -> str:
    try:
        return file_bytes.decode("utf-8-sig")
    except UnicodeDecodeError:
        # Spreadsheet exports on Windows are often cp1252/latin-1; latin-1 accepts any byte.
        return file_bytes.decode("latin-1")


def _read_records(lines: Sequence[str], start: int, records: List[RawRow]) -> Optional[int]:
    """
    Append quote-aware records from ``lines[start:]`` to ``records``.

    Returns the index of the line where a record with a quote left open at the
    end of input begins, or None when every line was consumed cleanly.
    """

    remaining = len(lines) - start
    reader = csv.reader(lines[start:], **_READER_OPTIONS)
    record_start = 0
    try:
        for record in reader:
            consumed = reader.line_num
            if consumed == remaining and _has_open_quote(lines[start + record_start:start + consumed]):
                return start + record_start
            _append_record(records, record)
            record_start = consumed
    except csv.Error as exc:
        # An open quote can run past the field size limit before reaching the end of input.
        logger.warning({"event": "csv_tokenize_error", "line": start + record_start + 1, "error": str(exc)})
        return start + record_start
    return None


def _read_single_line(line: str) -> List[str]:
    try:
        return next(csv.reader([line], **_READER_OPTIONS), [])
    except csv.Error:
        return line.rstrip("\n").split(",")


def _append_record(records: List[RawRow], record: List[str]) -> bool:
    if _is_blank_record(record):
        return False
    records.append(tuple(field.strip() for field in record))
    return True


def _has_open_quote(chunk: Sequence[str]) -> bool:
    # Closed quotes and escaped ("") quotes both come in pairs.
    return sum(line.count('"') for line in chunk) % 2 == 1


def _is_blank_record(record: List[str]) -> bool:
    # csv yields [] for an empty line and a single cell for a whitespace-only line.
    return not record or (len(record) == 1 and not record[0].strip())
