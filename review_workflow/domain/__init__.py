from review_workflow.domain.project import Project
from review_workflow.domain.qa_history import QaHistory
from review_workflow.domain.qa_status import ALLOWED_TRANSITIONS, QA_STATUS_VALUES, QaStatus
from review_workflow.domain.review_result import ReviewResult, latest_history, result_view
from review_workflow.domain.review_space import ReviewSpace, ReviewSpaceDescription, ReviewSpaceName
from review_workflow.domain.review_target import ReviewTarget
from review_workflow.domain.user import EmployeeId, User

__all__ = [
    "ALLOWED_TRANSITIONS",
    "QA_STATUS_VALUES",
    "EmployeeId",
    "Project",
    "QaHistory",
    "QaStatus",
    "ReviewResult",
    "ReviewSpace",
    "ReviewSpaceDescription",
    "ReviewSpaceName",
    "ReviewTarget",
    "User",
    "latest_history",
    "result_view",
]
