from __future__ import annotations

from fastapi import APIRouter, Request

from review_workflow.routes._deps import principal_from_request, trace_id_from_request
from review_workflow.schemas import success_envelope
from review_workflow.store import store

router = APIRouter(prefix="/api/v1", tags=["auth"])


@router.post("/auth/sync")
def sync_user(request: Request):
    principal = principal_from_request(request)
    data = store.identity.sync_user(employee_id=principal.employee_id, display_name=principal.display_name)
    return success_envelope(data, trace_id_from_request(request))
