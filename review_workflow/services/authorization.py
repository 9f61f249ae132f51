from __future__ import annotations

import logging

from review_workflow.domain import QaHistory, ReviewSpace, ReviewTarget
from review_workflow.domain.ids import validate_id
from review_workflow.errors import ForbiddenError, NotFoundError
from review_workflow.repositories.base import (
    ProjectsRepository,
    QaHistoriesRepository,
    ReviewSpacesRepository,
    ReviewTargetsRepository,
)

logger = logging.getLogger(__name__)


class ProjectAccessGuard:
    """Resolves an entity's ownership chain up to its project and checks membership.

    When the caller names the project (HTTP routes always do), membership is
    checked before existence so a non-member learns nothing about what the
    project contains. Without a project scope the entity is loaded first.
    """

    def __init__(
        self,
        *,
        projects: ProjectsRepository,
        spaces: ReviewSpacesRepository,
        targets: ReviewTargetsRepository,
        histories: QaHistoriesRepository,
    ) -> None:
        self._projects = projects
        self._spaces = spaces
        self._targets = targets
        self._histories = histories

    def require_member(self, *, project_id: str, user_id: str) -> None:
        project_id = validate_id(project_id)
        if not self._projects.is_member(project_id=project_id, user_id=user_id):
            logger.warning("project access denied project_id=%s user_id=%s", project_id, user_id)
            raise ForbiddenError()

    def _require_member_of_existing(self, *, project_id: str, user_id: str) -> None:
        project = self._projects.find_by_id(project_id)
        if project is None:
            raise NotFoundError("PROJECT_NOT_FOUND")
        if not project.has_member(user_id):
            logger.warning("project access denied project_id=%s user_id=%s", project_id, user_id)
            raise ForbiddenError()

    def authorize_space(
        self,
        *,
        review_space_id: str,
        user_id: str,
        project_id: str | None = None,
    ) -> ReviewSpace:
        review_space_id = validate_id(review_space_id)
        if project_id is not None:
            self.require_member(project_id=project_id, user_id=user_id)
            space = self._spaces.find_by_id(review_space_id)
            if space is None or space.project_id != project_id:
                raise NotFoundError("REVIEW_SPACE_NOT_FOUND")
            return space
        space = self._spaces.find_by_id(review_space_id)
        if space is None:
            raise NotFoundError("REVIEW_SPACE_NOT_FOUND")
        self._require_member_of_existing(project_id=space.project_id, user_id=user_id)
        return space

    def authorize_target(self, *, review_target_id: str, user_id: str) -> tuple[ReviewTarget, ReviewSpace]:
        review_target_id = validate_id(review_target_id)
        target = self._targets.find_by_id(review_target_id)
        if target is None:
            raise NotFoundError("REVIEW_TARGET_NOT_FOUND")
        space = self._spaces.find_by_id(target.review_space_id)
        if space is None:
            # broken ownership chain
            raise NotFoundError("REVIEW_TARGET_NOT_FOUND")
        self._require_member_of_existing(project_id=space.project_id, user_id=user_id)
        return target, space

    def authorize_history(self, *, qa_history_id: str, user_id: str) -> tuple[QaHistory, ReviewTarget]:
        qa_history_id = validate_id(qa_history_id)
        history = self._histories.find_by_id(qa_history_id)
        if history is None:
            raise NotFoundError("QA_HISTORY_NOT_FOUND")
        target, _ = self.authorize_target(review_target_id=history.review_target_id, user_id=user_id)
        return history, target
