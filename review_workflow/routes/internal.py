from __future__ import annotations

import hmac

from fastapi import APIRouter, Header, Request

from review_workflow.errors import ApiError
from review_workflow.routes._deps import trace_id_from_request
from review_workflow.schemas import QaReportRequest, success_envelope
from review_workflow.store import store

router = APIRouter(prefix="/api/v1/internal", tags=["internal"])


def _require_engine_token(x_engine_token: str | None) -> None:
    expected = store.settings.engine_callback_token
    if not expected or not x_engine_token or not hmac.compare_digest(expected, x_engine_token):
        raise ApiError(
            code="AUTH_FORBIDDEN",
            message="internal endpoint forbidden",
            error_class="security_sensitive",
            retryable=False,
            http_status=403,
        )


@router.post("/qa-histories/{qa_history_id}/reports")
def report_qa_progress(
    qa_history_id: str,
    payload: QaReportRequest,
    request: Request,
    x_engine_token: str | None = Header(default=None),
):
    _require_engine_token(x_engine_token)
    data = store.transitions.report(
        qa_history_id=qa_history_id,
        status=payload.status,
        outcome=payload.outcome,
        detail=payload.detail,
    )
    message = "applied" if data["applied"] else "already applied"
    return success_envelope(data, trace_id_from_request(request), message=message)
