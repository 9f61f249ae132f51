from __future__ import annotations

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from review_workflow.routes._deps import trace_id_from_request, user_id_from_request
from review_workflow.schemas import QaRequest, success_envelope
from review_workflow.store import store

router = APIRouter(prefix="/api/v1", tags=["review-targets"])


@router.get("/targets/{target_id}")
def get_review_target(target_id: str, request: Request):
    data = store.targets.get_review_target(review_target_id=target_id, user_id=user_id_from_request(request))
    return success_envelope(data, trace_id_from_request(request))


@router.get("/targets/{target_id}/qa-histories")
def list_qa_histories(
    target_id: str,
    request: Request,
    limit: int | None = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
):
    data = store.qa.list_qa_histories(
        review_target_id=target_id,
        user_id=user_id_from_request(request),
        limit=limit,
        offset=offset,
    )
    return success_envelope(data, trace_id_from_request(request))


@router.post("/targets/{target_id}/qa-histories")
def request_qa(target_id: str, payload: QaRequest, request: Request):
    data = store.qa.request_qa(
        review_target_id=target_id,
        user_id=user_id_from_request(request),
        question=payload.question,
    )
    return JSONResponse(status_code=202, content=success_envelope(data, trace_id_from_request(request)))


@router.post("/qa-histories/{qa_history_id}/retry")
def retry_qa(qa_history_id: str, request: Request):
    data = store.qa.retry_qa(qa_history_id=qa_history_id, user_id=user_id_from_request(request))
    return JSONResponse(status_code=202, content=success_envelope(data, trace_id_from_request(request)))
