"""
Helpers that keep imported financial data out of log output.

Uploads are identified by a digest instead of their contents, and records are
logged with everything outside an allow-list masked.
"""

import dataclasses
import hashlib
import json
from collections.abc import Iterable, Mapping
from typing import Any

REDACTED = "[REDACTED]"


def hash_payload(value: Any) -> str:
    """
    Return a stable SHA-256 hex digest of ``value``.

    Bytes are hashed as-is, strings as UTF-8, and anything else through a
    key-sorted JSON dump (``repr`` when it is not JSON-serializable).
    """

    if isinstance(value, bytes):
        raw = value
    elif isinstance(value, str):
        raw = value.encode("utf-8")
    elif value is None:
        raw = b"null"
    else:
        try:
            raw = json.dumps(value, sort_keys=True, default=str).encode("utf-8")
        except TypeError:
            raw = repr(value).encode("utf-8")

    return hashlib.sha256(raw).hexdigest()


def redact_fields(payload: Any, allowed_keys: Iterable[str]) -> dict[str, Any]:
    """
    Copy a mapping or dataclass instance, masking every key not in ``allowed_keys``.
    """

    if dataclasses.is_dataclass(payload) and not isinstance(payload, type):
        payload = dataclasses.asdict(payload)
    if not isinstance(payload, Mapping):
        raise TypeError(f"Cannot redact {type(payload).__name__}; expected a mapping or dataclass")

    keep = set(allowed_keys)
    return {key: (value if key in keep else REDACTED) for key, value in payload.items()}
