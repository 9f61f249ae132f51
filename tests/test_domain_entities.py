from datetime import UTC, datetime, timedelta

import pytest

from review_workflow.domain import (
    EmployeeId,
    QaHistory,
    ReviewResult,
    ReviewSpace,
    ReviewSpaceDescription,
    ReviewSpaceName,
    ReviewTarget,
    User,
    latest_history,
    result_view,
)
from review_workflow.domain.ids import validate_id
from review_workflow.errors import ApiError


def _code(fn, *args, **kwargs) -> str:
    with pytest.raises(ApiError) as exc:
        fn(*args, **kwargs)
    return exc.value.code


def test_review_space_name_bounds():
    assert ReviewSpaceName.create("a").value == "a"
    assert ReviewSpaceName.create("x" * 100).value == "x" * 100
    assert _code(ReviewSpaceName.create, "") == "REVIEW_SPACE_NAME_EMPTY"
    assert _code(ReviewSpaceName.create, "   ") == "REVIEW_SPACE_NAME_EMPTY"
    assert _code(ReviewSpaceName.create, "x" * 101) == "REVIEW_SPACE_NAME_TOO_LONG"


def test_review_space_description_is_optional_and_bounded():
    assert ReviewSpaceDescription.create(None).value is None
    assert ReviewSpaceDescription.create("  ").value is None
    assert ReviewSpaceDescription.create(" Q1 docs ").value == "Q1 docs"
    assert ReviewSpaceDescription.create("d" * 1000).value == "d" * 1000
    assert _code(ReviewSpaceDescription.create, "d" * 1001) == "REVIEW_SPACE_DESCRIPTION_TOO_LONG"


def test_review_space_rename_keeps_identity():
    space = ReviewSpace.create(project_id="prj_p", name="Spec Review", description="Q1 docs")
    renamed = space.rename("Design Review")

    assert renamed.id == space.id
    assert renamed.name.value == "Design Review"
    assert renamed.description.value == "Q1 docs"
    assert space.name.value == "Spec Review"
    assert ReviewSpace.reconstruct(renamed.to_row()) == renamed


def test_review_target_validates_inputs():
    target = ReviewTarget.create(review_space_id="rs_1", name=" report.pdf ", artifact_ref=" s3://bucket/report.pdf ")
    assert target.name == "report.pdf"
    assert target.artifact_ref == "s3://bucket/report.pdf"
    assert _code(ReviewTarget.create, review_space_id="rs_1", name="", artifact_ref="x") == "REVIEW_TARGET_NAME_EMPTY"
    assert (
        _code(ReviewTarget.create, review_space_id="rs_1", name="n", artifact_ref=" ")
        == "REVIEW_TARGET_ARTIFACT_REF_EMPTY"
    )


def test_qa_history_lifecycle_sets_payload_only_on_terminal_states():
    history = QaHistory.create(review_target_id="rt_1", requested_by="usr_1")
    assert history.status.is_pending()
    assert history.outcome is None
    assert history.attempt == 1

    processing = history.start_processing()
    completed = processing.complete({"score": 0.9})
    assert completed.outcome == {"score": 0.9}
    assert completed.error_detail is None

    failed = processing.fail("  timeout  ")
    assert failed.error_detail == "timeout"
    assert failed.outcome is None


def test_qa_history_requires_payloads():
    processing = QaHistory.create(review_target_id="rt_1").start_processing()
    assert _code(processing.complete, None) == "QA_OUTCOME_REQUIRED"
    assert _code(processing.fail, "") == "QA_ERROR_DETAIL_REQUIRED"


def test_qa_history_requeue_bumps_attempt_and_clears_detail():
    failed = QaHistory.create(review_target_id="rt_1").start_processing().fail("timeout")
    requeued = failed.requeue()

    assert requeued.status.is_pending()
    assert requeued.error_detail is None
    assert requeued.attempt == 2
    assert _code(requeued.requeue) == "QA_STATUS_TRANSITION_INVALID"


def test_result_view_is_tagged_by_latest_status():
    assert result_view(None) == {"status": "pending"}

    history = QaHistory.create(review_target_id="rt_1")
    assert result_view(history) == {"status": "pending", "qa_history_id": history.id}

    completed = history.start_processing().complete({"score": 0.9})
    view = result_view(completed)
    assert view["status"] == "completed"
    assert view["outcome"] == {"score": 0.9}

    failed = history.start_processing().fail("timeout")
    assert result_view(failed) == {"status": "error", "detail": "timeout", "qa_history_id": history.id}


def test_latest_history_prefers_most_recently_updated_record():
    base = datetime(2026, 1, 1, tzinfo=UTC)
    older = QaHistory.create(review_target_id="rt_1").start_processing().fail("timeout")
    older = QaHistory.reconstruct({**older.to_row(), "created_at": base, "updated_at": base})
    newer = QaHistory.create(review_target_id="rt_1").start_processing().complete({"score": 0.5})
    newer = QaHistory.reconstruct(
        {**newer.to_row(), "created_at": base + timedelta(minutes=5), "updated_at": base + timedelta(minutes=6)}
    )

    assert latest_history([]) is None
    assert latest_history([older, newer]) == newer

    retried = QaHistory.reconstruct(
        {**older.requeue().to_row(), "created_at": base, "updated_at": base + timedelta(minutes=10)}
    )
    assert latest_history([retried, newer]) == retried

    result = ReviewResult.from_history(newer)
    assert result.outcome == {"score": 0.5}
    with pytest.raises(ValueError):
        ReviewResult.from_history(older)


def test_user_sync_helpers_and_employee_id():
    user = User.create(employee_id=" E1001 ", display_name="Alice")
    assert user.employee_id.value == "E1001"
    assert not user.has_display_name_changed("Alice")
    assert user.update_display_name("Alice B").display_name == "Alice B"
    assert _code(EmployeeId.create, "") == "EMPLOYEE_ID_EMPTY"
    assert _code(EmployeeId.create, "e" * 256) == "EMPLOYEE_ID_TOO_LONG"


def test_validate_id_rejects_malformed_identifiers():
    assert validate_id("rs_abc-1") == "rs_abc-1"
    assert _code(validate_id, "rs 1; drop") == "IDENTIFIER_INVALID"
    assert _code(validate_id, "") == "IDENTIFIER_INVALID"
