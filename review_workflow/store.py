from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any

from review_workflow.config import WorkflowSettings
from review_workflow.db.postgres import PostgresTxRunner
from review_workflow.repositories import (
    InMemoryProjectsRepository,
    InMemoryQaHistoriesRepository,
    InMemoryReviewSpacesRepository,
    InMemoryReviewTargetsRepository,
    InMemoryUsersRepository,
    PostgresProjectsRepository,
    PostgresQaHistoriesRepository,
    PostgresReviewSpacesRepository,
    PostgresReviewTargetsRepository,
    PostgresUsersRepository,
)
from review_workflow.services import (
    IdentityService,
    ProjectAccessGuard,
    QaHistoryService,
    QaTransitionHandler,
    ReviewSpaceService,
    ReviewTargetService,
)

logger = logging.getLogger(__name__)


class InMemoryWorkflowStore:
    """Composition root: repositories for one backend wired into the services."""

    backend = "memory"

    def __init__(self, settings: WorkflowSettings | None = None) -> None:
        self.settings = settings or WorkflowSettings.from_env()
        self._lock = threading.RLock()
        self.users: dict[str, dict[str, Any]] = {}
        self.projects: dict[str, dict[str, Any]] = {}
        self.review_spaces: dict[str, dict[str, Any]] = {}
        self.review_targets: dict[str, dict[str, Any]] = {}
        self.qa_histories: dict[str, dict[str, Any]] = {}
        self._bind_repositories()
        self._bind_services()

    def _bind_repositories(self) -> None:
        self.users_repository = InMemoryUsersRepository(self.users, self._lock)
        self.projects_repository = InMemoryProjectsRepository(self.projects, self._lock)
        self.review_spaces_repository = InMemoryReviewSpacesRepository(
            spaces=self.review_spaces,
            targets=self.review_targets,
            histories=self.qa_histories,
            lock=self._lock,
        )
        self.review_targets_repository = InMemoryReviewTargetsRepository(
            spaces=self.review_spaces,
            targets=self.review_targets,
            histories=self.qa_histories,
            lock=self._lock,
        )
        self.qa_histories_repository = InMemoryQaHistoriesRepository(
            targets=self.review_targets,
            histories=self.qa_histories,
            lock=self._lock,
        )

    def _bind_services(self) -> None:
        settings = self.settings
        guard = ProjectAccessGuard(
            projects=self.projects_repository,
            spaces=self.review_spaces_repository,
            targets=self.review_targets_repository,
            histories=self.qa_histories_repository,
        )
        self.access_guard = guard
        self.identity = IdentityService(users=self.users_repository)
        self.spaces = ReviewSpaceService(
            spaces=self.review_spaces_repository,
            guard=guard,
            default_limit=settings.list_default_limit,
            max_limit=settings.list_max_limit,
        )
        self.targets = ReviewTargetService(
            targets=self.review_targets_repository,
            histories=self.qa_histories_repository,
            guard=guard,
            max_limit=settings.list_max_limit,
        )
        self.qa = QaHistoryService(
            histories=self.qa_histories_repository,
            guard=guard,
            default_limit=settings.qa_history_default_limit,
            max_limit=settings.list_max_limit,
        )
        self.transitions = QaTransitionHandler(histories=self.qa_histories_repository)

    def upsert_project(self, *, project_id: str, name: str, member_ids: list[str]) -> dict[str, Any]:
        project = self.projects_repository.upsert(project_id=project_id, name=name, member_ids=member_ids)
        return {"id": project.id, "name": project.name, "member_ids": sorted(project.member_ids)}

    def reset(self) -> None:
        with self._lock:
            self.users.clear()
            self.projects.clear()
            self.review_spaces.clear()
            self.review_targets.clear()
            self.qa_histories.clear()
        self.settings = WorkflowSettings.from_env()
        self._bind_services()


class PostgresWorkflowStore(InMemoryWorkflowStore):
    """Same services over PostgreSQL; the in-memory tables stay empty."""

    backend = "postgres"

    def __init__(self, *, dsn: str, settings: WorkflowSettings | None = None, apply_schema: bool = True) -> None:
        self._tx_runner = PostgresTxRunner(dsn)
        if apply_schema:
            tables = self._tx_runner.apply_schema()
            logger.info("postgres schema ready tables=%s", ",".join(tables))
        super().__init__(settings)

    def _bind_repositories(self) -> None:
        self.users_repository = PostgresUsersRepository(tx_runner=self._tx_runner, table_name="users")
        self.projects_repository = PostgresProjectsRepository(
            tx_runner=self._tx_runner,
            projects_table="projects",
            members_table="project_members",
        )
        self.review_spaces_repository = PostgresReviewSpacesRepository(
            tx_runner=self._tx_runner,
            table_name="review_spaces",
        )
        self.review_targets_repository = PostgresReviewTargetsRepository(
            tx_runner=self._tx_runner,
            table_name="review_targets",
        )
        self.qa_histories_repository = PostgresQaHistoriesRepository(
            tx_runner=self._tx_runner,
            table_name="qa_histories",
        )

    def reset(self) -> None:
        def _op(conn: Any) -> None:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    TRUNCATE TABLE
                      qa_histories,
                      review_targets,
                      review_spaces,
                      project_members,
                      projects,
                      users
                    """
                )

        self._tx_runner.run_in_tx(fn=_op)
        super().reset()


def create_store_from_env(environ: Mapping[str, str] | None = None) -> InMemoryWorkflowStore:
    settings = WorkflowSettings.from_env(environ)
    if settings.store_backend == "postgres":
        if not settings.postgres_dsn:
            raise ValueError("POSTGRES_DSN must be set when REVIEW_STORE_BACKEND=postgres")
        return PostgresWorkflowStore(dsn=settings.postgres_dsn, settings=settings)
    if settings.store_backend != "memory":
        raise ValueError(f"unsupported REVIEW_STORE_BACKEND: {settings.store_backend}")
    return InMemoryWorkflowStore(settings)


store = create_store_from_env()
