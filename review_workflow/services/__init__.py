from review_workflow.services.authorization import ProjectAccessGuard
from review_workflow.services.identity import IdentityService
from review_workflow.services.qa_histories import QaHistoryService
from review_workflow.services.qa_transitions import QaTransitionHandler
from review_workflow.services.review_spaces import ReviewSpaceService
from review_workflow.services.review_targets import ReviewTargetService

__all__ = [
    "IdentityService",
    "ProjectAccessGuard",
    "QaHistoryService",
    "QaTransitionHandler",
    "ReviewSpaceService",
    "ReviewTargetService",
]
