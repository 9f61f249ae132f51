from __future__ import annotations

from typing import Any


class ApiError(Exception):
    def __init__(
        self,
        *,
        code: str,
        message: str,
        error_class: str,
        retryable: bool,
        http_status: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.error_class = error_class
        self.retryable = retryable
        self.http_status = http_status
        self.details = details


class DomainValidationError(ApiError):
    """Malformed input to a value object; never retried."""

    def __init__(self, code: str, message: str | None = None) -> None:
        super().__init__(
            code=code,
            message=message or code.lower().replace("_", " "),
            error_class="validation",
            retryable=False,
            http_status=400,
        )


class NotFoundError(ApiError):
    def __init__(self, code: str, message: str | None = None) -> None:
        super().__init__(
            code=code,
            message=message or code.lower().replace("_", " "),
            error_class="validation",
            retryable=False,
            http_status=404,
        )


class ForbiddenError(ApiError):
    def __init__(self, code: str = "PROJECT_ACCESS_DENIED", message: str = "project access denied") -> None:
        super().__init__(
            code=code,
            message=message,
            error_class="security_sensitive",
            retryable=False,
            http_status=403,
        )


class InvalidStatusTransitionError(ApiError):
    def __init__(self, *, current_status: str, target_status: str) -> None:
        super().__init__(
            code="QA_STATUS_TRANSITION_INVALID",
            message=f"invalid transition: {current_status} -> {target_status}",
            error_class="business_rule",
            retryable=False,
            http_status=409,
            details={"current_status": current_status, "target_status": target_status},
        )
        self.current_status = current_status
        self.target_status = target_status


class StatusConflictError(ApiError):
    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="QA_STATUS_CONFLICT",
            message=message,
            error_class="business_rule",
            retryable=True,
            http_status=409,
            details=details,
        )


class UserSyncFailedError(ApiError):
    def __init__(self, message: str = "authenticated principal has no synced user") -> None:
        super().__init__(
            code="USER_SYNC_FAILED",
            message=message,
            error_class="security_sensitive",
            retryable=False,
            http_status=401,
        )


class StorageError(ApiError):
    def __init__(self, message: str = "storage operation failed") -> None:
        super().__init__(
            code="STORAGE_FAILURE",
            message=message,
            error_class="internal",
            retryable=True,
            http_status=500,
        )
