import pytest

from review_workflow.config import WorkflowSettings
from review_workflow.store import InMemoryWorkflowStore, create_store_from_env


def test_settings_defaults():
    settings = WorkflowSettings.from_env({})
    assert settings.store_backend == "memory"
    assert settings.list_default_limit == 12
    assert settings.list_max_limit == 100
    assert settings.qa_history_default_limit == 20
    assert settings.engine_callback_token == ""


def test_settings_parse_and_clamp_values():
    settings = WorkflowSettings.from_env(
        {
            "REVIEW_LIST_DEFAULT_LIMIT": "30",
            "REVIEW_LIST_MAX_LIMIT": "10",
            "QA_HISTORY_DEFAULT_LIMIT": "not-a-number",
            "CORS_ALLOW_ORIGINS": "https://a.example, ,https://b.example",
        }
    )
    assert settings.list_default_limit == 30
    assert settings.list_max_limit == 30
    assert settings.qa_history_default_limit == 20
    assert settings.cors_allow_origins == ("https://a.example", "https://b.example")


def test_true_stack_requires_postgres():
    with pytest.raises(RuntimeError, match="must be postgres"):
        WorkflowSettings.from_env({"REVIEW_REQUIRE_TRUESTACK": "true"})


def test_store_factory_backends():
    assert isinstance(create_store_from_env({}), InMemoryWorkflowStore)
    with pytest.raises(ValueError, match="POSTGRES_DSN"):
        create_store_from_env({"REVIEW_STORE_BACKEND": "postgres"})
    with pytest.raises(ValueError, match="unsupported"):
        create_store_from_env({"REVIEW_STORE_BACKEND": "sqlite"})


def test_store_reset_reloads_settings(monkeypatch):
    store = InMemoryWorkflowStore(WorkflowSettings.from_env({}))
    store.identity.sync_user(employee_id="E1", display_name="One")
    monkeypatch.setenv("REVIEW_LIST_DEFAULT_LIMIT", "5")

    store.reset()

    assert store.users == {}
    assert store.settings.list_default_limit == 5
    assert store.identity.sync_user(employee_id="E1", display_name="One")["created"] is True
