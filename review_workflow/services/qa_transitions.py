from __future__ import annotations

import logging
from typing import Any

from review_workflow.domain import QaHistory, QaStatus
from review_workflow.domain.ids import validate_id
from review_workflow.domain.qa_history import ERROR_DETAIL_MAX_LENGTH
from review_workflow.errors import InvalidStatusTransitionError, NotFoundError, StatusConflictError
from review_workflow.repositories.base import QaHistoriesRepository

logger = logging.getLogger(__name__)


def _normalize_detail(detail: str | None) -> str:
    return str(detail or "").strip()[:ERROR_DETAIL_MAX_LENGTH]


class QaTransitionHandler:
    """Applies processing-engine reports to a QaHistory record.

    Delivery is at-least-once, so a report that restates the record's
    current state with the same payload succeeds without writing. Every
    write is a compare-and-set on (status, attempt); losing the race is a
    StatusConflict.
    """

    def __init__(self, *, histories: QaHistoriesRepository) -> None:
        self._histories = histories

    def report(
        self,
        *,
        qa_history_id: str,
        status: str,
        outcome: dict[str, Any] | None = None,
        detail: str | None = None,
    ) -> dict[str, Any]:
        target = QaStatus.create(status)
        history = self._histories.find_by_id(validate_id(qa_history_id))
        if history is None:
            raise NotFoundError("QA_HISTORY_NOT_FOUND")
        try:
            return self._apply(history, target, outcome=outcome, detail=detail)
        except (StatusConflictError, InvalidStatusTransitionError) as exc:
            logger.warning(
                "qa report rejected qa_history_id=%s current=%s reported=%s code=%s",
                history.id,
                history.status,
                target,
                exc.code,
            )
            raise

    def _apply(
        self,
        history: QaHistory,
        target: QaStatus,
        *,
        outcome: dict[str, Any] | None,
        detail: str | None,
    ) -> dict[str, Any]:
        current = history.status
        if current == target:
            self._ensure_same_payload(history, outcome=outcome, detail=detail)
            return {"qa_history": history.to_dto(), "applied": False}
        # contradicting a terminal outcome is a conflict; other illegal pairs are invalid transitions
        if current.is_terminal() and target.is_terminal():
            raise StatusConflictError(
                f"qa history is already {current}",
                details={
                    "qa_history_id": history.id,
                    "current_status": current.value,
                    "reported_status": target.value,
                },
            )
        if not current.can_transition_to(target):
            raise InvalidStatusTransitionError(current_status=current.value, target_status=target.value)

        updated = self._transition(history, target, outcome=outcome, detail=detail)
        if not self._histories.compare_and_set(
            updated,
            expected_status=current.value,
            expected_attempt=history.attempt,
            require_idle_target=target.is_pending(),
        ):
            if self._histories.find_by_id(history.id) is None:
                raise NotFoundError("QA_HISTORY_NOT_FOUND")
            raise StatusConflictError(
                "qa history changed concurrently",
                details={"qa_history_id": history.id, "expected_status": current.value},
            )
        logger.info(
            "qa transition applied qa_history_id=%s %s -> %s attempt=%s",
            history.id,
            current,
            updated.status,
            updated.attempt,
        )
        return {"qa_history": updated.to_dto(), "applied": True}

    @staticmethod
    def _transition(
        history: QaHistory,
        target: QaStatus,
        *,
        outcome: dict[str, Any] | None,
        detail: str | None,
    ) -> QaHistory:
        if target.is_processing():
            return history.start_processing()
        if target.is_completed():
            return history.complete(outcome)
        if target.is_error():
            return history.fail(detail)
        return history.requeue()

    @staticmethod
    def _ensure_same_payload(
        history: QaHistory,
        *,
        outcome: dict[str, Any] | None,
        detail: str | None,
    ) -> None:
        if history.status.is_completed() and history.outcome != outcome:
            raise StatusConflictError(
                "completed report carries a different outcome",
                details={"qa_history_id": history.id},
            )
        if history.status.is_error() and (history.error_detail or "") != _normalize_detail(detail):
            raise StatusConflictError(
                "error report carries a different detail",
                details={"qa_history_id": history.id},
            )
