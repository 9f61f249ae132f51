from __future__ import annotations

import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware

from review_workflow.errors import ApiError
from review_workflow.routes import auth, internal, spaces, targets
from review_workflow.routes._deps import error_response, trace_id_from_request
from review_workflow.schemas import success_envelope
from review_workflow.security import JwtSecurityConfig, parse_and_validate_bearer_token, principal_from_headers
from review_workflow.store import store

logger = logging.getLogger(__name__)

_PUBLIC_PATHS = {"/api/v1/health"}


def _requires_principal(path: str) -> bool:
    return path.startswith("/api/v1/") and not path.startswith("/api/v1/internal/") and path not in _PUBLIC_PATHS


def create_app() -> FastAPI:
    app = FastAPI(title="Review Workflow API", version="0.1.0")
    security_cfg = JwtSecurityConfig.from_env()
    app.state.security_cfg = security_cfg
    allow_origins = list(store.settings.cors_allow_origins)
    if allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allow_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.middleware("http")
    async def add_trace_id(request: Request, call_next):
        incoming_trace_id = request.headers.get("x-trace-id", "").strip()
        request.state.trace_id = incoming_trace_id or uuid.uuid4().hex
        request.state.principal = None
        try:
            if _requires_principal(request.url.path):
                if security_cfg.enabled:
                    request.state.principal = parse_and_validate_bearer_token(
                        authorization=request.headers.get("Authorization"),
                        cfg=security_cfg,
                    )
                else:
                    request.state.principal = principal_from_headers(request.headers)
        except ApiError as exc:
            logger.warning("request rejected path=%s code=%s", request.url.path, exc.code)
            response = error_response(request, exc)
            response.headers["x-trace-id"] = trace_id_from_request(request)
            return response
        response = await call_next(request)
        response.headers["x-trace-id"] = trace_id_from_request(request)
        return response

    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError):
        if exc.http_status >= 500:
            logger.error("request failed path=%s code=%s", request.url.path, exc.code)
        return error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return error_response(
            request,
            ApiError(
                code="REQ_VALIDATION_FAILED",
                message="invalid payload",
                error_class="validation",
                retryable=False,
                http_status=400,
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return error_response(
                request,
                ApiError(
                    code="REQ_NOT_FOUND",
                    message="resource not found",
                    error_class="validation",
                    retryable=False,
                    http_status=404,
                ),
            )
        return error_response(
            request,
            ApiError(
                code="REQ_HTTP_ERROR",
                message=str(exc.detail),
                error_class="validation",
                retryable=False,
                http_status=exc.status_code,
            ),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception("unhandled error path=%s", request.url.path)
        return error_response(
            request,
            ApiError(
                code="INTERNAL_ERROR",
                message="internal server error",
                error_class="internal",
                retryable=False,
                http_status=500,
            ),
        )

    @app.get("/healthz")
    def healthz(request: Request) -> dict[str, object]:
        return success_envelope({"status": "ok"}, trace_id_from_request(request))

    @app.get("/api/v1/health")
    def health_api(request: Request) -> dict[str, object]:
        return success_envelope(
            {"status": "ok", "store_backend": store.backend},
            trace_id_from_request(request),
        )

    app.include_router(auth.router)
    app.include_router(spaces.router)
    app.include_router(targets.router)
    app.include_router(internal.router)
    return app


app = create_app()
