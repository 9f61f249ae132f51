from __future__ import annotations

from typing import Protocol

from review_workflow.domain import Project, QaHistory, ReviewSpace, ReviewTarget, User


class UsersRepository(Protocol):
    def find_by_id(self, user_id: str) -> User | None: ...

    def find_by_employee_id(self, employee_id: str) -> User | None: ...

    def save(self, user: User) -> User: ...


class ProjectsRepository(Protocol):
    def find_by_id(self, project_id: str) -> Project | None: ...

    def is_member(self, *, project_id: str, user_id: str) -> bool: ...


class ReviewSpacesRepository(Protocol):
    def find_by_id(self, review_space_id: str) -> ReviewSpace | None: ...

    def find_by_project_id(
        self,
        project_id: str,
        *,
        search: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[ReviewSpace]: ...

    def count_by_project_id(self, project_id: str, *, search: str | None = None) -> int: ...

    def save(self, space: ReviewSpace) -> ReviewSpace: ...

    def update(self, space: ReviewSpace) -> bool:
        """Write an existing space; False when it no longer exists."""
        ...

    def delete_cascade(self, review_space_id: str) -> bool:
        """Remove the space, its targets and their histories in one atomic step."""
        ...


class ReviewTargetsRepository(Protocol):
    def find_by_id(self, review_target_id: str) -> ReviewTarget | None: ...

    def find_by_review_space_id(self, review_space_id: str) -> list[ReviewTarget]: ...

    def create_with_history(self, *, target: ReviewTarget, history: QaHistory) -> ReviewTarget | None:
        """Insert the target and its first history together; None when the space is gone."""
        ...


class QaHistoriesRepository(Protocol):
    def find_by_id(self, qa_history_id: str) -> QaHistory | None: ...

    def find_by_review_target_id(self, review_target_id: str) -> list[QaHistory]: ...

    def insert_if_idle(self, history: QaHistory) -> bool:
        """Insert unless the target is gone or another of its records is pending or processing."""
        ...

    def compare_and_set(
        self,
        history: QaHistory,
        *,
        expected_status: str,
        expected_attempt: int,
        require_idle_target: bool = False,
    ) -> bool: ...
