from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from review_workflow.domain.qa_history import QaHistory


@dataclass(frozen=True)
class ReviewResult:
    """Read-only projection of a completed QaHistory; never stored on its own."""

    review_target_id: str
    qa_history_id: str
    outcome: dict[str, Any]
    completed_at: datetime

    @classmethod
    def from_history(cls, history: QaHistory) -> "ReviewResult":
        if not history.status.is_completed() or history.outcome is None:
            raise ValueError(f"qa history {history.id} has no completed outcome")
        return cls(
            review_target_id=history.review_target_id,
            qa_history_id=history.id,
            outcome=dict(history.outcome),
            completed_at=history.updated_at,
        )


def latest_history(histories: Iterable[QaHistory]) -> QaHistory | None:
    """Most recently touched record, so a retried older run supersedes a newer finished one."""
    ordered = sorted(histories, key=lambda h: (h.updated_at, h.created_at))
    return ordered[-1] if ordered else None


def result_view(history: QaHistory | None) -> dict[str, Any]:
    """Tagged view of the latest record; a failed analysis is data, not an exception."""
    if history is None:
        return {"status": "pending"}
    status = history.status
    if status.is_completed():
        result = ReviewResult.from_history(history)
        return {
            "status": "completed",
            "outcome": result.outcome,
            "qa_history_id": result.qa_history_id,
            "completed_at": result.completed_at.isoformat(),
        }
    if status.is_error():
        return {"status": "error", "detail": history.error_detail or "", "qa_history_id": history.id}
    return {"status": status.value, "qa_history_id": history.id}
