from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ReviewSpaceCreateRequest(BaseModel):
    name: str
    description: str | None = None


class ReviewSpaceUpdateRequest(BaseModel):
    name: str | None = None
    description: str | None = None


class ReviewTargetSubmitRequest(BaseModel):
    name: str
    artifact_ref: str


class QaRequest(BaseModel):
    question: str | None = None


class QaReportRequest(BaseModel):
    status: str = Field(min_length=1)
    outcome: dict[str, Any] | None = None
    detail: str | None = None


def success_envelope(data: Any, trace_id: str, message: str = "ok") -> dict[str, Any]:
    return {
        "success": True,
        "data": data,
        "message": message,
        "meta": {
            "trace_id": trace_id,
        },
    }


def error_envelope(
    *,
    code: str,
    message: str,
    error_class: str,
    retryable: bool,
    trace_id: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    error: dict[str, Any] = {
        "code": code,
        "message": message,
        "retryable": retryable,
        "class": error_class,
    }
    if details is not None:
        error["details"] = details
    return {
        "success": False,
        "error": error,
        "meta": {
            "trace_id": trace_id,
        },
    }
