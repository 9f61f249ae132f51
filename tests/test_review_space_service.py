import pytest

from review_workflow.errors import ApiError
from review_workflow.store import store


def _error(fn, **kwargs) -> ApiError:
    with pytest.raises(ApiError) as exc:
        fn(**kwargs)
    return exc.value


def test_create_then_get_returns_same_fields(project_p):
    created = store.spaces.create_review_space(
        project_id="prj_p",
        user_id=project_p["member_id"],
        name="Spec Review",
        description="Q1 docs",
    )

    loaded = store.spaces.get_review_space(review_space_id=created["id"], user_id=project_p["member_id"])
    assert loaded["name"] == "Spec Review"
    assert loaded["description"] == "Q1 docs"
    assert loaded["project_id"] == "prj_p"


def test_non_member_cannot_create(project_p):
    err = _error(
        store.spaces.create_review_space,
        project_id="prj_p",
        user_id=project_p["outsider_id"],
        name="Spec Review",
    )
    assert err.code == "PROJECT_ACCESS_DENIED"
    assert err.http_status == 403
    assert store.review_spaces == {}


def test_invalid_name_is_rejected_before_any_write(project_p):
    err = _error(
        store.spaces.create_review_space,
        project_id="prj_p",
        user_id=project_p["member_id"],
        name="x" * 101,
    )
    assert err.code == "REVIEW_SPACE_NAME_TOO_LONG"
    assert store.review_spaces == {}


def test_non_member_is_forbidden_on_get_update_delete(project_p):
    space = store.spaces.create_review_space(project_id="prj_p", user_id=project_p["member_id"], name="S1")
    outsider = project_p["outsider_id"]

    for fn in (store.spaces.get_review_space, store.spaces.update_review_space, store.spaces.delete_review_space):
        assert _error(fn, review_space_id=space["id"], user_id=outsider).code == "PROJECT_ACCESS_DENIED"
        err = _error(fn, review_space_id=space["id"], user_id=outsider, project_id="prj_p")
        assert err.code == "PROJECT_ACCESS_DENIED"
        # scoped lookups deny before revealing whether the space exists
        err = _error(fn, review_space_id="rs_missing", user_id=outsider, project_id="prj_p")
        assert err.code == "PROJECT_ACCESS_DENIED"


def test_missing_space_is_not_found_for_member(project_p):
    err = _error(store.spaces.get_review_space, review_space_id="rs_missing", user_id=project_p["member_id"])
    assert err.code == "REVIEW_SPACE_NOT_FOUND"
    assert err.http_status == 404


def test_space_from_other_project_is_not_found_in_scope(project_p):
    member = project_p["member_id"]
    store.upsert_project(project_id="prj_q", name="Project Q", member_ids=[member])
    other = store.spaces.create_review_space(project_id="prj_q", user_id=member, name="Elsewhere")

    err = _error(store.spaces.get_review_space, review_space_id=other["id"], user_id=member, project_id="prj_p")
    assert err.code == "REVIEW_SPACE_NOT_FOUND"


def test_partial_update_changes_only_given_fields(project_p):
    member = project_p["member_id"]
    space = store.spaces.create_review_space(project_id="prj_p", user_id=member, name="S1", description="keep me")

    renamed = store.spaces.update_review_space(review_space_id=space["id"], user_id=member, name="S2")
    assert renamed["name"] == "S2"
    assert renamed["description"] == "keep me"

    cleared = store.spaces.update_review_space(review_space_id=space["id"], user_id=member, description="")
    assert cleared["name"] == "S2"
    assert cleared["description"] is None

    err = _error(store.spaces.update_review_space, review_space_id=space["id"], user_id=member, name=" ")
    assert err.code == "REVIEW_SPACE_NAME_EMPTY"
    assert store.spaces.get_review_space(review_space_id=space["id"], user_id=member)["name"] == "S2"


def test_delete_cascades_targets_and_histories(project_p):
    member = project_p["member_id"]
    space = store.spaces.create_review_space(project_id="prj_p", user_id=member, name="S1")
    submitted = store.targets.submit_review_target(
        review_space_id=space["id"],
        user_id=member,
        name="spec.pdf",
        artifact_ref="files/spec.pdf",
    )
    target_id = submitted["review_target"]["id"]
    history_id = submitted["qa_history"]["id"]

    assert store.spaces.delete_review_space(review_space_id=space["id"], user_id=member) == {
        "id": space["id"],
        "deleted": True,
    }

    assert store.review_targets_repository.find_by_id(target_id) is None
    assert store.qa_histories_repository.find_by_id(history_id) is None
    assert store.qa_histories_repository.find_by_review_target_id(target_id) == []
    assert _error(store.targets.get_review_target, review_target_id=target_id, user_id=member).http_status == 404
    err = _error(store.spaces.delete_review_space, review_space_id=space["id"], user_id=member)
    assert err.code == "REVIEW_SPACE_NOT_FOUND"


def test_list_filters_paginates_and_orders_by_update(project_p):
    member = project_p["member_id"]
    ids = [
        store.spaces.create_review_space(project_id="prj_p", user_id=member, name=f"Spec {i}")["id"]
        for i in range(3)
    ]
    store.spaces.create_review_space(project_id="prj_p", user_id=member, name="Budget")
    store.spaces.update_review_space(review_space_id=ids[0], user_id=member, name="Spec 0 final")

    page = store.spaces.list_project_review_spaces(project_id="prj_p", user_id=member, search="spec", limit=2)
    assert page["total"] == 3
    assert page["page"] == 1
    assert page["limit"] == 2
    assert [x["id"] for x in page["spaces"]][0] == ids[0]
    assert len(page["spaces"]) == 2

    second = store.spaces.list_project_review_spaces(
        project_id="prj_p",
        user_id=member,
        search="SPEC",
        page=2,
        limit=2,
    )
    assert len(second["spaces"]) == 1

    everything = store.spaces.list_project_review_spaces(project_id="prj_p", user_id=member, limit=1000)
    assert everything["limit"] == 100
    assert everything["total"] == 4


def test_list_uses_default_page_size(project_p):
    listing = store.spaces.list_project_review_spaces(project_id="prj_p", user_id=project_p["member_id"])
    assert listing == {"spaces": [], "total": 0, "page": 1, "limit": 12}


def test_list_is_membership_checked(project_p):
    err = _error(store.spaces.list_project_review_spaces, project_id="prj_p", user_id=project_p["outsider_id"])
    assert err.code == "PROJECT_ACCESS_DENIED"


def test_update_racing_delete_does_not_resurrect_space(project_p, monkeypatch):
    member = project_p["member_id"]
    space = store.spaces.create_review_space(project_id="prj_p", user_id=member, name="S1")
    authorize = store.access_guard.authorize_space

    def authorize_then_delete(**kwargs):
        loaded = authorize(**kwargs)
        store.review_spaces_repository.delete_cascade(loaded.id)
        return loaded

    monkeypatch.setattr(store.access_guard, "authorize_space", authorize_then_delete)

    err = _error(store.spaces.update_review_space, review_space_id=space["id"], user_id=member, name="Renamed")

    assert err.code == "REVIEW_SPACE_NOT_FOUND"
    assert store.review_spaces_repository.find_by_id(space["id"]) is None


def test_list_search_matches_name_only(project_p):
    member = project_p["member_id"]
    named = store.spaces.create_review_space(project_id="prj_p", user_id=member, name="Spec Review")
    store.spaces.create_review_space(project_id="prj_p", user_id=member, name="Budget", description="spec appendix")
    store.spaces.create_review_space(project_id="prj_p", user_id=member, name="100% done")

    listing = store.spaces.list_project_review_spaces(project_id="prj_p", user_id=member, search="spec")
    assert [x["id"] for x in listing["spaces"]] == [named["id"]]

    assert store.spaces.list_project_review_spaces(project_id="prj_p", user_id=member, search="%")["total"] == 1
