from review_workflow.repositories.projects import InMemoryProjectsRepository, PostgresProjectsRepository
from review_workflow.repositories.qa_histories import InMemoryQaHistoriesRepository, PostgresQaHistoriesRepository
from review_workflow.repositories.review_spaces import (
    InMemoryReviewSpacesRepository,
    PostgresReviewSpacesRepository,
)
from review_workflow.repositories.review_targets import (
    InMemoryReviewTargetsRepository,
    PostgresReviewTargetsRepository,
)
from review_workflow.repositories.users import InMemoryUsersRepository, PostgresUsersRepository

__all__ = [
    "InMemoryProjectsRepository",
    "InMemoryQaHistoriesRepository",
    "InMemoryReviewSpacesRepository",
    "InMemoryReviewTargetsRepository",
    "InMemoryUsersRepository",
    "PostgresProjectsRepository",
    "PostgresQaHistoriesRepository",
    "PostgresReviewSpacesRepository",
    "PostgresReviewTargetsRepository",
    "PostgresUsersRepository",
]
