from __future__ import annotations

import logging
from typing import Any

from review_workflow.domain import QaHistory
from review_workflow.errors import StatusConflictError
from review_workflow.repositories.base import QaHistoriesRepository
from review_workflow.services.authorization import ProjectAccessGuard

logger = logging.getLogger(__name__)


class QaHistoryService:
    def __init__(
        self,
        *,
        histories: QaHistoriesRepository,
        guard: ProjectAccessGuard,
        default_limit: int = 20,
        max_limit: int = 100,
    ) -> None:
        self._histories = histories
        self._guard = guard
        self._default_limit = default_limit
        self._max_limit = max_limit

    def request_qa(self, *, review_target_id: str, user_id: str, question: str | None = None) -> dict[str, Any]:
        target, _ = self._guard.authorize_target(review_target_id=review_target_id, user_id=user_id)
        history = QaHistory.create(review_target_id=target.id, requested_by=user_id, question=question)
        if not self._histories.insert_if_idle(history):
            # a target deleted meanwhile is not found rather than busy
            self._guard.authorize_target(review_target_id=target.id, user_id=user_id)
            logger.warning("qa request rejected, target busy review_target_id=%s", target.id)
            raise StatusConflictError(
                "another qa run is still active for this review target",
                details={"review_target_id": target.id},
            )
        logger.info("qa requested qa_history_id=%s review_target_id=%s", history.id, target.id)
        return history.to_dto()

    def list_qa_histories(
        self,
        *,
        review_target_id: str,
        user_id: str,
        limit: int | None = None,
        offset: int = 0,
    ) -> dict[str, Any]:
        target, _ = self._guard.authorize_target(review_target_id=review_target_id, user_id=user_id)
        size = self._default_limit if limit is None else max(1, min(int(limit), self._max_limit))
        start = max(0, int(offset or 0))
        histories = list(reversed(self._histories.find_by_review_target_id(target.id)))
        return {
            "items": [x.to_dto() for x in histories[start : start + size]],
            "total": len(histories),
        }

    def retry_qa(self, *, qa_history_id: str, user_id: str) -> dict[str, Any]:
        """Operator retry of a failed run: error -> pending with a new attempt number."""
        history, _ = self._guard.authorize_history(qa_history_id=qa_history_id, user_id=user_id)
        requeued = history.requeue()
        if not self._histories.compare_and_set(
            requeued,
            expected_status=history.status.value,
            expected_attempt=history.attempt,
            require_idle_target=True,
        ):
            self._guard.authorize_history(qa_history_id=history.id, user_id=user_id)
            logger.warning("qa retry rejected qa_history_id=%s", history.id)
            raise StatusConflictError(
                "qa history changed concurrently or another run is active",
                details={"qa_history_id": history.id},
            )
        logger.info("qa retried qa_history_id=%s attempt=%s", history.id, requeued.attempt)
        return requeued.to_dto()
