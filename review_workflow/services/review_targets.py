from __future__ import annotations

import logging
from typing import Any

from review_workflow.domain import QaHistory, ReviewTarget, latest_history, result_view
from review_workflow.errors import NotFoundError
from review_workflow.repositories.base import QaHistoriesRepository, ReviewTargetsRepository
from review_workflow.services.authorization import ProjectAccessGuard

logger = logging.getLogger(__name__)


class ReviewTargetService:
    def __init__(
        self,
        *,
        targets: ReviewTargetsRepository,
        histories: QaHistoriesRepository,
        guard: ProjectAccessGuard,
        max_limit: int = 100,
    ) -> None:
        self._targets = targets
        self._histories = histories
        self._guard = guard
        self._max_limit = max_limit

    def submit_review_target(
        self,
        *,
        review_space_id: str,
        user_id: str,
        name: str,
        artifact_ref: str,
        project_id: str | None = None,
    ) -> dict[str, Any]:
        space = self._guard.authorize_space(review_space_id=review_space_id, user_id=user_id, project_id=project_id)
        target = ReviewTarget.create(review_space_id=space.id, name=name, artifact_ref=artifact_ref)
        history = QaHistory.create(review_target_id=target.id, requested_by=user_id)
        if self._targets.create_with_history(target=target, history=history) is None:
            logger.warning("review target rejected, space gone review_space_id=%s", space.id)
            raise NotFoundError("REVIEW_SPACE_NOT_FOUND")
        logger.info(
            "review target submitted review_target_id=%s review_space_id=%s qa_history_id=%s",
            target.id,
            space.id,
            history.id,
        )
        return {"review_target": target.to_dto(), "qa_history": history.to_dto()}

    def get_review_target(self, *, review_target_id: str, user_id: str) -> dict[str, Any]:
        target, space = self._guard.authorize_target(review_target_id=review_target_id, user_id=user_id)
        latest = latest_history(self._histories.find_by_review_target_id(target.id))
        return {
            "review_target": {**target.to_dto(), "project_id": space.project_id},
            "result": result_view(latest),
        }

    def list_review_targets(
        self,
        *,
        review_space_id: str,
        user_id: str,
        project_id: str | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        space = self._guard.authorize_space(review_space_id=review_space_id, user_id=user_id, project_id=project_id)
        targets = sorted(
            self._targets.find_by_review_space_id(space.id),
            key=lambda t: t.submitted_at,
            reverse=True,
        )
        total = len(targets)
        if limit is not None:
            targets = targets[: max(1, min(int(limit), self._max_limit))]
        items = []
        for target in targets:
            latest = latest_history(self._histories.find_by_review_target_id(target.id))
            items.append({**target.to_dto(), "status": latest.status.value if latest is not None else "pending"})
        return {"review_targets": items, "total_count": total}
