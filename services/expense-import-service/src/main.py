"""
Expense Import Service turns loosely structured bank or spreadsheet CSV exports
into reviewed expense records. `/imports/preview` parses an upload and reports
what each row would become; `/imports/commit` stores the rows the user approved.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

SRC_DIR = Path(__file__).resolve().parent
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

SERVICES_ROOT = SRC_DIR.parents[1]
if str(SERVICES_ROOT) not in sys.path:
    sys.path.insert(0, str(SERVICES_ROOT))

from importer.executor import commit_import
from models.import_models import (
    ColumnMappingError,
    ImportPreview,
    ImportRow,
    NormalizedRow,
    RowError,
    UnmappedColumnError,
)
from normalizers.rows import prepare_import_rows
from parsers.column_mapper import auto_map_columns
from parsers.csv_tokenizer import decode_csv_bytes, tokenize_csv
from persistence.database import get_session, init_db
from persistence.repository import ExpenseRepository
from pipeline import preview_parsed_csv
from settings import ImportSettings, ImportSettingsError, load_import_settings
from shared.observability.privacy import hash_payload
from shared.observability.telemetry import (
    CORRELATION_ID_HEADER,
    current_request_id,
    ensure_request_id,
    request_context,
    setup_telemetry,
)

logger = logging.getLogger(__name__)

app = FastAPI(title="Expense Import Service")
setup_telemetry(app, service_name="expense-import-service")

try:
    IMPORT_SETTINGS: ImportSettings = load_import_settings()
except ImportSettingsError as exc:
    logger.error("Failed to load import settings: %s", exc)
    raise


class NormalizedRowModel(BaseModel):
    source_row_index: int
    date: datetime
    amount: float
    description: str
    category_id: Optional[str]
    raw_category: str
    category_matched: bool
    field_count_mismatch: bool


class RowErrorModel(BaseModel):
    source_row_index: int
    field: str
    raw_value: str
    message: str


class ImportPreviewResponseModel(BaseModel):
    header: List[str]
    mapping: Dict[str, int]
    unmapped_fields: List[str]
    row_count: int
    rows: List[NormalizedRowModel] = Field(default_factory=list)
    errors: List[RowErrorModel] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class ImportRowModel(BaseModel):
    date: datetime
    amount: float
    description: str = ""
    category_id: Optional[str] = None


class ImportCommitRequestModel(BaseModel):
    rows: List[ImportRowModel] = Field(default_factory=list)
    fallback_category_id: Optional[str] = None


class ImportOutcomeModel(BaseModel):
    imported: int
    attempted: int
    skipped: int


def error_response(status_code: int, error_code: str, details: str, **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error_code, "details": details, **extra},
    )


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    request_id = ensure_request_id(request)
    with request_context(request_id):
        response = await call_next(request)
    response.headers.setdefault(CORRELATION_ID_HEADER, request_id)
    return response


@app.on_event("startup")
def on_startup() -> None:
    """Initialize persistence before serving requests."""
    init_db()


@app.get("/health")
def health_check() -> dict:
    """
    Report overall service health; expects no payload.
    Returns a minimal status object for uptime probes and orchestrators.
    """
    return {"status": "ok", "service": "expense-import-service"}


@app.post("/imports/preview", response_model=None)
async def preview_import(
    file: UploadFile = File(...),
    date_column: Optional[int] = Form(None),
    amount_column: Optional[int] = Form(None),
    description_column: Optional[int] = Form(None),
    category_column: Optional[int] = Form(None),
    db: Session = Depends(get_session),
) -> ImportPreviewResponseModel | JSONResponse:
    """
    Parse an uploaded CSV and report the inferred column mapping plus every row's outcome.
    Optional `*_column` form fields override the inferred index for that field (-1 clears it).
    Nothing is stored; send the approved rows to `/imports/commit`.
    """
    file_bytes = await file.read()
    if not file_bytes:
        return error_response(400, "file_empty", "Uploaded file is empty.")
    if len(file_bytes) > IMPORT_SETTINGS.max_upload_bytes:
        return error_response(
            400,
            "file_too_large",
            f"Uploaded file exceeds {IMPORT_SETTINGS.max_upload_bytes} bytes.",
        )

    parsed = tokenize_csv(decode_csv_bytes(file_bytes))
    header = parsed.header
    mapping = auto_map_columns(header).with_overrides(
        date=date_column,
        amount=amount_column,
        description=description_column,
        category=category_column,
    )

    categories = ExpenseRepository(db).list_categories()
    try:
        preview = preview_parsed_csv(parsed, categories, mapping=mapping, settings=IMPORT_SETTINGS)
    except ColumnMappingError as exc:
        return error_response(400, "invalid_column_mapping", str(exc), header=list(header))
    except UnmappedColumnError as exc:
        return error_response(
            400,
            "column_mapping_required",
            str(exc),
            header=list(header),
            mapping=mapping.as_dict(),
            unmapped_fields=exc.fields,
        )

    logger.info(
        {
            "event": "preview_import",
            "request_id": current_request_id(),
            "filename": file.filename,
            "file_hash": hash_payload(file_bytes),
            "row_count": len(preview.rows),
            "error_count": len(preview.errors),
        }
    )
    return _preview_to_response(preview)


@app.post("/imports/commit", response_model=ImportOutcomeModel)
def commit_rows(
    payload: ImportCommitRequestModel,
    db: Session = Depends(get_session),
) -> ImportOutcomeModel:
    """
    Store the approved rows as new expenses and report how many were written.
    Rows without a category use `fallback_category_id`; rows still lacking one are not attempted.
    """
    candidates = [
        NormalizedRow(
            source_row_index=position,
            date=row.date,
            amount=row.amount,
            description=row.description or IMPORT_SETTINGS.fallback_description,
            category_id=row.category_id,
        )
        for position, row in enumerate(payload.rows)
    ]
    rows: List[ImportRow] = prepare_import_rows(
        candidates,
        fallback_category_id=payload.fallback_category_id,
        absolute_amounts=IMPORT_SETTINGS.absolute_amounts,
    )
    outcome = commit_import(rows, ExpenseRepository(db), payment_method=IMPORT_SETTINGS.payment_method)

    logger.info(
        {
            "event": "commit_import",
            "request_id": current_request_id(),
            "submitted": len(payload.rows),
            "attempted": outcome.attempted,
            "imported": outcome.imported,
        }
    )
    return ImportOutcomeModel(imported=outcome.imported, attempted=outcome.attempted, skipped=outcome.skipped)


def _preview_to_response(preview: ImportPreview) -> ImportPreviewResponseModel:
    return ImportPreviewResponseModel(
        header=list(preview.header),
        mapping=preview.mapping.as_dict(),
        unmapped_fields=preview.mapping.unmapped_fields(),
        row_count=len(preview.rows),
        rows=[_normalized_row_to_model(row) for row in preview.normalized_rows],
        errors=[_row_error_to_model(error) for error in preview.errors],
        warnings=list(preview.warnings),
    )


def _normalized_row_to_model(row: NormalizedRow) -> NormalizedRowModel:
    return NormalizedRowModel(
        source_row_index=row.source_row_index,
        date=row.date,
        amount=row.amount,
        description=row.description,
        category_id=row.category_id,
        raw_category=row.raw_category,
        category_matched=row.category_matched,
        field_count_mismatch=row.field_count_mismatch,
    )


def _row_error_to_model(error: RowError) -> RowErrorModel:
    return RowErrorModel(
        source_row_index=error.source_row_index,
        field=error.field,
        raw_value=error.raw_value,
        message=error.message,
    )
