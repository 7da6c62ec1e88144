from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Literal, Union

UNMAPPED = -1

PaymentMethod = Literal["cash", "card", "bank", "other"]
MappedField = Literal["date", "amount", "description", "category"]

# One tokenized data line, positionally aligned with the header.
RawRow = tuple[str, ...]


class ColumnMappingError(ValueError):
    """Raised when a column index points outside the header."""


class UnmappedColumnError(ValueError):
    """Raised when a required field has no column assigned."""

    def __init__(self, fields: list[str]) -> None:
        self.fields = fields
        joined = ", ".join(fields)
        super().__init__(f"Select a column for: {joined}")


@dataclass(frozen=True, slots=True)
class ParsedCsv:
    """Header and data rows produced by the tokenizer."""

    header: tuple[str, ...] = ()
    rows: tuple[RawRow, ...] = ()
    # Row numbers (header is row 1) whose quote was never closed; read as a single line.
    unterminated_quote_rows: tuple[int, ...] = ()


@dataclass(frozen=True, slots=True)
class ColumnMapping:
    """Column index per semantic field, or UNMAPPED when none was inferred."""

    date: int = UNMAPPED
    amount: int = UNMAPPED
    description: int = UNMAPPED
    category: int = UNMAPPED

    def as_dict(self) -> dict[str, int]:
        return {
            "date": self.date,
            "amount": self.amount,
            "description": self.description,
            "category": self.category,
        }

    def unmapped_fields(self) -> list[str]:
        return [name for name, index in self.as_dict().items() if index == UNMAPPED]

    def with_overrides(
        self,
        *,
        date: int | None = None,
        amount: int | None = None,
        description: int | None = None,
        category: int | None = None,
    ) -> ColumnMapping:
        """Return a copy where every non-None argument replaces the inferred index."""
        overrides = {
            name: value
            for name, value in (
                ("date", date),
                ("amount", amount),
                ("description", description),
                ("category", category),
            )
            if value is not None
        }
        return replace(self, **overrides)

    def validate(self, column_count: int) -> None:
        for name, index in self.as_dict().items():
            if index == UNMAPPED:
                continue
            if index < 0 or index >= column_count:
                raise ColumnMappingError(
                    f"{name} column index {index} is outside the header (0..{column_count - 1})"
                )


@dataclass(frozen=True, slots=True)
class CategoryRef:
    """Known category supplied by the caller for name resolution."""

    id: str
    name: str


@dataclass(slots=True)
class NormalizedRow:
    """A data row whose date and amount parsed; ready for caller review."""

    source_row_index: int
    date: datetime
    amount: float
    description: str
    category_id: str | None
    raw_category: str = ""
    field_count_mismatch: bool = False

    @property
    def category_matched(self) -> bool:
        return self.category_id is not None


@dataclass(slots=True)
class RowError:
    """A data row that could not be normalized."""

    source_row_index: int
    field: MappedField
    raw_value: str
    message: str


RowResult = Union[NormalizedRow, RowError]


@dataclass(slots=True)
class ImportRow:
    """A caller-approved row handed to the import executor."""

    date: datetime
    amount: float
    description: str
    category_id: str


@dataclass(slots=True)
class ExpenseRecord:
    """Fully-formed expense handed to the storage collaborator."""

    id: str
    amount: float
    category_id: str
    description: str
    date: datetime
    payment_method: PaymentMethod
    created_at: datetime
    updated_at: datetime
    receipt_uri: str | None = None
    is_recurring: bool = False
    recurring_frequency: str | None = None
    recurring_end_date: datetime | None = None
    next_recurring_date: datetime | None = None
    notes: str | None = None


@dataclass(frozen=True, slots=True)
class ImportOutcome:
    imported: int
    attempted: int

    @property
    def skipped(self) -> int:
        return self.attempted - self.imported


@dataclass(slots=True)
class ImportPreview:
    """Everything the caller needs to review an upload before committing it."""

    header: tuple[str, ...]
    rows: tuple[RawRow, ...]
    mapping: ColumnMapping
    results: list[RowResult] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def normalized_rows(self) -> list[NormalizedRow]:
        return [result for result in self.results if isinstance(result, NormalizedRow)]

    @property
    def errors(self) -> list[RowError]:
        return [result for result in self.results if isinstance(result, RowError)]
