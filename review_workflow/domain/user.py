from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Any

from review_workflow.domain.ids import new_id
from review_workflow.errors import DomainValidationError

EMPLOYEE_ID_MAX_LENGTH = 255
DISPLAY_NAME_MAX_LENGTH = 255


@dataclass(frozen=True)
class EmployeeId:
    """Stable external key taken from the identity provider."""

    value: str

    @classmethod
    def create(cls, value: str | None) -> "EmployeeId":
        text = str(value or "").strip()
        if not text:
            raise DomainValidationError("EMPLOYEE_ID_EMPTY")
        if len(text) > EMPLOYEE_ID_MAX_LENGTH:
            raise DomainValidationError("EMPLOYEE_ID_TOO_LONG")
        return cls(text)

    @classmethod
    def reconstruct(cls, value: str) -> "EmployeeId":
        return cls(value)


def _validate_display_name(value: str | None) -> str:
    text = str(value or "").strip()
    if not text:
        raise DomainValidationError("DISPLAY_NAME_EMPTY")
    if len(text) > DISPLAY_NAME_MAX_LENGTH:
        raise DomainValidationError("DISPLAY_NAME_TOO_LONG")
    return text


@dataclass(frozen=True)
class User:
    id: str
    employee_id: EmployeeId
    display_name: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def create(cls, *, employee_id: str, display_name: str) -> "User":
        now = datetime.now(UTC)
        return cls(
            id=new_id("usr"),
            employee_id=EmployeeId.create(employee_id),
            display_name=_validate_display_name(display_name),
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def reconstruct(cls, row: dict[str, Any]) -> "User":
        return cls(
            id=row["user_id"],
            employee_id=EmployeeId.reconstruct(row["employee_id"]),
            display_name=row["display_name"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def has_display_name_changed(self, display_name: str) -> bool:
        return self.display_name != str(display_name or "").strip()

    def update_display_name(self, display_name: str) -> "User":
        return replace(self, display_name=_validate_display_name(display_name), updated_at=datetime.now(UTC))

    def to_row(self) -> dict[str, Any]:
        return {
            "user_id": self.id,
            "employee_id": self.employee_id.value,
            "display_name": self.display_name,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def to_dto(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "employee_id": self.employee_id.value,
            "display_name": self.display_name,
        }
