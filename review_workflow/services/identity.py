from __future__ import annotations

import logging
from typing import Any

from review_workflow.domain import EmployeeId, User
from review_workflow.errors import UserSyncFailedError
from review_workflow.repositories.base import UsersRepository

logger = logging.getLogger(__name__)


class IdentityService:
    def __init__(self, *, users: UsersRepository) -> None:
        self._users = users

    def sync_user(self, *, employee_id: str, display_name: str) -> dict[str, Any]:
        """Create the user on first sign-in; afterwards only the display name is refreshed."""
        key = EmployeeId.create(employee_id)
        existing = self._users.find_by_employee_id(key.value)
        if existing is None:
            user = self._users.save(User.create(employee_id=key.value, display_name=display_name))
            logger.info("user created user_id=%s", user.id)
            return {**user.to_dto(), "created": True}
        if existing.has_display_name_changed(display_name):
            existing = self._users.save(existing.update_display_name(display_name))
            logger.info("user display name refreshed user_id=%s", existing.id)
        return {**existing.to_dto(), "created": False}

    def resolve_user_id(self, employee_id: str) -> str:
        key = EmployeeId.create(employee_id)
        user = self._users.find_by_employee_id(key.value)
        if user is None:
            raise UserSyncFailedError()
        return user.id
