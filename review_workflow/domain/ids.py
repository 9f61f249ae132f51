from __future__ import annotations

import re
import uuid

from review_workflow.errors import DomainValidationError

_ID_PATTERN = re.compile(r"[A-Za-z0-9][A-Za-z0-9_\-]{0,63}")


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def validate_id(raw: object, *, code: str = "IDENTIFIER_INVALID") -> str:
    """Check an externally supplied identifier before it reaches storage."""
    value = str(raw or "").strip()
    if not _ID_PATTERN.fullmatch(value):
        raise DomainValidationError(code, f"malformed identifier: {raw!r}")
    return value
