from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Any

from review_workflow.domain.ids import new_id
from review_workflow.domain.qa_status import QaStatus
from review_workflow.errors import DomainValidationError

QUESTION_MAX_LENGTH = 4000
ERROR_DETAIL_MAX_LENGTH = 4000


@dataclass(frozen=True)
class QaHistory:
    """One analysis attempt for a review target.

    ``outcome`` is only set once the record is completed and ``error_detail``
    only once it has failed. Every mutator returns a new record.
    """

    id: str
    review_target_id: str
    status: QaStatus
    question: str | None
    requested_by: str | None
    outcome: dict[str, Any] | None
    error_detail: str | None
    attempt: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def create(
        cls,
        *,
        review_target_id: str,
        requested_by: str | None = None,
        question: str | None = None,
    ) -> "QaHistory":
        if question is not None:
            if not question.strip():
                raise DomainValidationError("QA_QUESTION_EMPTY")
            if len(question) > QUESTION_MAX_LENGTH:
                raise DomainValidationError("QA_QUESTION_TOO_LONG")
        now = datetime.now(UTC)
        return cls(
            id=new_id("qa"),
            review_target_id=review_target_id,
            status=QaStatus.pending(),
            question=question,
            requested_by=requested_by,
            outcome=None,
            error_detail=None,
            attempt=1,
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def reconstruct(cls, row: dict[str, Any]) -> "QaHistory":
        return cls(
            id=row["qa_history_id"],
            review_target_id=row["review_target_id"],
            status=QaStatus.reconstruct(row["status"]),
            question=row.get("question"),
            requested_by=row.get("requested_by"),
            outcome=row.get("outcome"),
            error_detail=row.get("error_detail"),
            attempt=int(row.get("attempt") or 1),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def start_processing(self) -> "QaHistory":
        return replace(
            self,
            status=self.status.transition_to(QaStatus.processing()),
            updated_at=datetime.now(UTC),
        )

    def complete(self, outcome: dict[str, Any] | None) -> "QaHistory":
        if not isinstance(outcome, dict):
            raise DomainValidationError("QA_OUTCOME_REQUIRED", "completed report requires an outcome object")
        return replace(
            self,
            status=self.status.transition_to(QaStatus.completed()),
            outcome=dict(outcome),
            error_detail=None,
            updated_at=datetime.now(UTC),
        )

    def fail(self, detail: str | None) -> "QaHistory":
        text = str(detail or "").strip()
        if not text:
            raise DomainValidationError("QA_ERROR_DETAIL_REQUIRED", "error report requires a detail message")
        return replace(
            self,
            status=self.status.transition_to(QaStatus.error()),
            error_detail=text[:ERROR_DETAIL_MAX_LENGTH],
            updated_at=datetime.now(UTC),
        )

    def requeue(self) -> "QaHistory":
        return replace(
            self,
            status=self.status.transition_to(QaStatus.pending()),
            outcome=None,
            error_detail=None,
            attempt=self.attempt + 1,
            updated_at=datetime.now(UTC),
        )

    def is_active(self) -> bool:
        return self.status.is_active()

    def to_row(self) -> dict[str, Any]:
        return {
            "qa_history_id": self.id,
            "review_target_id": self.review_target_id,
            "status": self.status.value,
            "question": self.question,
            "requested_by": self.requested_by,
            "outcome": dict(self.outcome) if self.outcome is not None else None,
            "error_detail": self.error_detail,
            "attempt": self.attempt,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def to_dto(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "review_target_id": self.review_target_id,
            "status": self.status.value,
            "question": self.question,
            "outcome": self.outcome,
            "error_detail": self.error_detail,
            "attempt": self.attempt,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
