from __future__ import annotations

import logging
from typing import Any

from review_workflow.domain import ReviewSpace
from review_workflow.errors import NotFoundError
from review_workflow.repositories.base import ReviewSpacesRepository
from review_workflow.services.authorization import ProjectAccessGuard

logger = logging.getLogger(__name__)


class ReviewSpaceService:
    def __init__(
        self,
        *,
        spaces: ReviewSpacesRepository,
        guard: ProjectAccessGuard,
        default_limit: int = 12,
        max_limit: int = 100,
    ) -> None:
        self._spaces = spaces
        self._guard = guard
        self._default_limit = default_limit
        self._max_limit = max_limit

    def create_review_space(
        self,
        *,
        project_id: str,
        user_id: str,
        name: str,
        description: str | None = None,
    ) -> dict[str, Any]:
        self._guard.require_member(project_id=project_id, user_id=user_id)
        space = self._spaces.save(ReviewSpace.create(project_id=project_id, name=name, description=description))
        logger.info("review space created review_space_id=%s project_id=%s", space.id, project_id)
        return space.to_dto()

    def get_review_space(
        self,
        *,
        review_space_id: str,
        user_id: str,
        project_id: str | None = None,
    ) -> dict[str, Any]:
        space = self._guard.authorize_space(review_space_id=review_space_id, user_id=user_id, project_id=project_id)
        return space.to_dto()

    def update_review_space(
        self,
        *,
        review_space_id: str,
        user_id: str,
        name: str | None = None,
        description: str | None = None,
        project_id: str | None = None,
    ) -> dict[str, Any]:
        """Apply only the fields given; an empty description clears it."""
        space = self._guard.authorize_space(review_space_id=review_space_id, user_id=user_id, project_id=project_id)
        updated = space
        if name is not None:
            updated = updated.rename(name)
        if description is not None:
            updated = updated.describe(description)
        if updated is space:
            return space.to_dto()
        if not self._spaces.update(updated):
            raise NotFoundError("REVIEW_SPACE_NOT_FOUND")
        logger.info("review space updated review_space_id=%s", updated.id)
        return updated.to_dto()

    def delete_review_space(
        self,
        *,
        review_space_id: str,
        user_id: str,
        project_id: str | None = None,
    ) -> dict[str, Any]:
        space = self._guard.authorize_space(review_space_id=review_space_id, user_id=user_id, project_id=project_id)
        if not self._spaces.delete_cascade(space.id):
            raise NotFoundError("REVIEW_SPACE_NOT_FOUND")
        logger.info("review space deleted review_space_id=%s project_id=%s", space.id, space.project_id)
        return {"id": space.id, "deleted": True}

    def list_project_review_spaces(
        self,
        *,
        project_id: str,
        user_id: str,
        search: str | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> dict[str, Any]:
        self._guard.require_member(project_id=project_id, user_id=user_id)
        page = max(1, int(page or 1))
        size = self._default_limit if limit is None else max(1, min(int(limit), self._max_limit))
        term = (search or "").strip() or None
        spaces = self._spaces.find_by_project_id(
            project_id,
            search=term,
            limit=size,
            offset=(page - 1) * size,
        )
        return {
            "spaces": [x.to_list_item_dto() for x in spaces],
            "total": self._spaces.count_by_project_id(project_id, search=term),
            "page": page,
            "limit": size,
        }
