from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Any

from review_workflow.domain.ids import new_id
from review_workflow.errors import DomainValidationError

REVIEW_SPACE_NAME_MAX_LENGTH = 100
REVIEW_SPACE_DESCRIPTION_MAX_LENGTH = 1000


@dataclass(frozen=True)
class ReviewSpaceName:
    value: str

    @classmethod
    def create(cls, value: str | None) -> "ReviewSpaceName":
        if value is None or not str(value).strip():
            raise DomainValidationError("REVIEW_SPACE_NAME_EMPTY")
        if len(value) > REVIEW_SPACE_NAME_MAX_LENGTH:
            raise DomainValidationError("REVIEW_SPACE_NAME_TOO_LONG")
        return cls(value)

    @classmethod
    def reconstruct(cls, value: str) -> "ReviewSpaceName":
        return cls(value)


@dataclass(frozen=True)
class ReviewSpaceDescription:
    value: str | None

    @classmethod
    def create(cls, value: str | None) -> "ReviewSpaceDescription":
        normalized = (value or "").strip() or None
        if normalized is not None and len(normalized) > REVIEW_SPACE_DESCRIPTION_MAX_LENGTH:
            raise DomainValidationError("REVIEW_SPACE_DESCRIPTION_TOO_LONG")
        return cls(normalized)

    @classmethod
    def reconstruct(cls, value: str | None) -> "ReviewSpaceDescription":
        return cls(value)


@dataclass(frozen=True)
class ReviewSpace:
    """Named container of review targets, scoped to exactly one project."""

    id: str
    project_id: str
    name: ReviewSpaceName
    description: ReviewSpaceDescription
    created_at: datetime
    updated_at: datetime

    @classmethod
    def create(cls, *, project_id: str, name: str, description: str | None = None) -> "ReviewSpace":
        now = datetime.now(UTC)
        return cls(
            id=new_id("rs"),
            project_id=project_id,
            name=ReviewSpaceName.create(name),
            description=ReviewSpaceDescription.create(description),
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def reconstruct(cls, row: dict[str, Any]) -> "ReviewSpace":
        return cls(
            id=row["review_space_id"],
            project_id=row["project_id"],
            name=ReviewSpaceName.reconstruct(row["name"]),
            description=ReviewSpaceDescription.reconstruct(row.get("description")),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def rename(self, name: str) -> "ReviewSpace":
        return replace(self, name=ReviewSpaceName.create(name), updated_at=datetime.now(UTC))

    def describe(self, description: str | None) -> "ReviewSpace":
        return replace(
            self,
            description=ReviewSpaceDescription.create(description),
            updated_at=datetime.now(UTC),
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "review_space_id": self.id,
            "project_id": self.project_id,
            "name": self.name.value,
            "description": self.description.value,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def to_dto(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "name": self.name.value,
            "description": self.description.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    def to_list_item_dto(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name.value,
            "description": self.description.value,
            "updated_at": self.updated_at.isoformat(),
        }
