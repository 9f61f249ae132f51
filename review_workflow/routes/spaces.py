from __future__ import annotations

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from review_workflow.routes._deps import trace_id_from_request, user_id_from_request
from review_workflow.schemas import (
    ReviewSpaceCreateRequest,
    ReviewSpaceUpdateRequest,
    ReviewTargetSubmitRequest,
    success_envelope,
)
from review_workflow.store import store

router = APIRouter(prefix="/api/v1/projects/{project_id}/spaces", tags=["review-spaces"])


@router.get("")
def list_review_spaces(
    project_id: str,
    request: Request,
    search: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
):
    data = store.spaces.list_project_review_spaces(
        project_id=project_id,
        user_id=user_id_from_request(request),
        search=search,
        page=page,
        limit=limit,
    )
    return success_envelope(data, trace_id_from_request(request))


@router.post("")
def create_review_space(project_id: str, payload: ReviewSpaceCreateRequest, request: Request):
    data = store.spaces.create_review_space(
        project_id=project_id,
        user_id=user_id_from_request(request),
        name=payload.name,
        description=payload.description,
    )
    return JSONResponse(status_code=201, content=success_envelope(data, trace_id_from_request(request)))


@router.get("/{space_id}")
def get_review_space(project_id: str, space_id: str, request: Request):
    data = store.spaces.get_review_space(
        review_space_id=space_id,
        user_id=user_id_from_request(request),
        project_id=project_id,
    )
    return success_envelope(data, trace_id_from_request(request))


@router.put("/{space_id}")
def update_review_space(project_id: str, space_id: str, payload: ReviewSpaceUpdateRequest, request: Request):
    provided = payload.model_fields_set
    description = None
    if "description" in provided:
        # explicit null clears the description
        description = payload.description or ""
    data = store.spaces.update_review_space(
        review_space_id=space_id,
        user_id=user_id_from_request(request),
        project_id=project_id,
        name=payload.name if "name" in provided else None,
        description=description,
    )
    return success_envelope(data, trace_id_from_request(request))


@router.delete("/{space_id}")
def delete_review_space(project_id: str, space_id: str, request: Request):
    data = store.spaces.delete_review_space(
        review_space_id=space_id,
        user_id=user_id_from_request(request),
        project_id=project_id,
    )
    return success_envelope(data, trace_id_from_request(request))


@router.get("/{space_id}/targets")
def list_review_targets(
    project_id: str,
    space_id: str,
    request: Request,
    limit: int | None = Query(default=None, ge=1),
):
    data = store.targets.list_review_targets(
        review_space_id=space_id,
        user_id=user_id_from_request(request),
        project_id=project_id,
        limit=limit,
    )
    return success_envelope(data, trace_id_from_request(request))


@router.post("/{space_id}/targets")
def submit_review_target(project_id: str, space_id: str, payload: ReviewTargetSubmitRequest, request: Request):
    data = store.targets.submit_review_target(
        review_space_id=space_id,
        user_id=user_id_from_request(request),
        project_id=project_id,
        name=payload.name,
        artifact_ref=payload.artifact_ref,
    )
    return JSONResponse(status_code=201, content=success_envelope(data, trace_id_from_request(request)))
