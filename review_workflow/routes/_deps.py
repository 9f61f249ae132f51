from __future__ import annotations

import uuid

from fastapi import Request
from fastapi.responses import JSONResponse

from review_workflow.errors import ApiError
from review_workflow.schemas import error_envelope
from review_workflow.security import AuthContext
from review_workflow.store import store


def trace_id_from_request(request: Request) -> str:
    trace_id = getattr(request.state, "trace_id", None)
    if trace_id:
        return trace_id
    return uuid.uuid4().hex


def principal_from_request(request: Request) -> AuthContext:
    principal = getattr(request.state, "principal", None)
    if principal is None:
        raise ApiError(
            code="AUTH_UNAUTHORIZED",
            message="authenticated principal required",
            error_class="security_sensitive",
            retryable=False,
            http_status=401,
        )
    return principal


def user_id_from_request(request: Request) -> str:
    """Map the authenticated employee to the internal user id; unsynced principals fail."""
    return store.identity.resolve_user_id(principal_from_request(request).employee_id)


def error_response(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=error_envelope(
            code=exc.code,
            message=exc.message,
            error_class=exc.error_class,
            retryable=exc.retryable,
            trace_id=trace_id_from_request(request),
            details=exc.details,
        ),
    )
