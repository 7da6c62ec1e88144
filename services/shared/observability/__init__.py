"""
Observability helpers for the import service: JSON logging with request
context, optional OpenTelemetry tracing, and log-safe hashing/redaction.
"""

from .privacy import REDACTED, hash_payload, redact_fields
from .telemetry import (
    CORRELATION_ID_HEADER,
    current_request_id,
    ensure_request_id,
    request_context,
    setup_telemetry,
)

__all__ = [
    "REDACTED",
    "hash_payload",
    "redact_fields",
    "CORRELATION_ID_HEADER",
    "current_request_id",
    "ensure_request_id",
    "request_context",
    "setup_telemetry",
]
