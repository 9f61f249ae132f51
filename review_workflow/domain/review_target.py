from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from review_workflow.domain.ids import new_id
from review_workflow.errors import DomainValidationError

REVIEW_TARGET_NAME_MAX_LENGTH = 255
ARTIFACT_REF_MAX_LENGTH = 1024


@dataclass(frozen=True)
class ReviewTarget:
    """A submitted artifact. Immutable once created; its lifecycle lives in QaHistory."""

    id: str
    review_space_id: str
    name: str
    artifact_ref: str
    submitted_at: datetime

    @classmethod
    def create(cls, *, review_space_id: str, name: str, artifact_ref: str) -> "ReviewTarget":
        if not str(name or "").strip():
            raise DomainValidationError("REVIEW_TARGET_NAME_EMPTY")
        if len(name) > REVIEW_TARGET_NAME_MAX_LENGTH:
            raise DomainValidationError("REVIEW_TARGET_NAME_TOO_LONG")
        ref = str(artifact_ref or "").strip()
        if not ref:
            raise DomainValidationError("REVIEW_TARGET_ARTIFACT_REF_EMPTY")
        if len(ref) > ARTIFACT_REF_MAX_LENGTH:
            raise DomainValidationError("REVIEW_TARGET_ARTIFACT_REF_TOO_LONG")
        return cls(
            id=new_id("rt"),
            review_space_id=review_space_id,
            name=name.strip(),
            artifact_ref=ref,
            submitted_at=datetime.now(UTC),
        )

    @classmethod
    def reconstruct(cls, row: dict[str, Any]) -> "ReviewTarget":
        return cls(
            id=row["review_target_id"],
            review_space_id=row["review_space_id"],
            name=row["name"],
            artifact_ref=row["artifact_ref"],
            submitted_at=row["submitted_at"],
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "review_target_id": self.id,
            "review_space_id": self.review_space_id,
            "name": self.name,
            "artifact_ref": self.artifact_ref,
            "submitted_at": self.submitted_at,
        }

    def to_dto(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "review_space_id": self.review_space_id,
            "name": self.name,
            "artifact_ref": self.artifact_ref,
            "submitted_at": self.submitted_at.isoformat(),
        }
