import pathlib
import sys
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi.testclient import TestClient

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from review_workflow.main import create_app
from review_workflow.store import store

JWT_SECRET = "jwt_test_secret_for_review_workflow_suite"
ENGINE_TOKEN = "engine_test_token"


def issue_token(*, employee_id: str, display_name: str | None = None, ttl_minutes: int = 30) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": f"sub_{employee_id}",
        "preferred_username": employee_id,
        "name": display_name or f"Employee {employee_id}",
        "exp": int((now + timedelta(minutes=ttl_minutes)).timestamp()),
        "iat": int(now.timestamp()),
        "iss": "test-issuer",
        "aud": "test-audience",
    }
    return jwt.encode(payload, JWT_SECRET, algorithm="HS256")


class AuthenticatedClient:
    def __init__(self, client: TestClient, *, employee_id: str = "emp_u1"):
        self._client = client
        self.employee_id = employee_id

    def as_employee(self, employee_id: str) -> "AuthenticatedClient":
        return AuthenticatedClient(self._client, employee_id=employee_id)

    def request(self, method: str, url: str, **kwargs):
        headers = dict(kwargs.pop("headers", {}) or {})
        if url.startswith("/api/v1/") and not url.startswith("/api/v1/internal/"):
            if "Authorization" not in headers:
                headers["Authorization"] = f"Bearer {issue_token(employee_id=self.employee_id)}"
        if url.startswith("/api/v1/internal/") and "x-engine-token" not in headers:
            headers["x-engine-token"] = ENGINE_TOKEN
        return self._client.request(method, url, headers=headers, **kwargs)

    def __getattr__(self, name: str):
        return getattr(self._client, name)

    def get(self, url: str, **kwargs):
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs):
        return self.request("POST", url, **kwargs)

    def put(self, url: str, **kwargs):
        return self.request("PUT", url, **kwargs)

    def delete(self, url: str, **kwargs):
        return self.request("DELETE", url, **kwargs)


@pytest.fixture(autouse=True)
def reset_store(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("REVIEW_STORE_BACKEND", "memory")
    monkeypatch.setenv("JWT_SHARED_SECRET", JWT_SECRET)
    monkeypatch.setenv("JWT_ISSUER", "test-issuer")
    monkeypatch.setenv("JWT_AUDIENCE", "test-audience")
    monkeypatch.setenv("QA_ENGINE_CALLBACK_TOKEN", ENGINE_TOKEN)
    monkeypatch.delenv("JWT_REQUIRED_CLAIMS", raising=False)
    monkeypatch.delenv("REVIEW_REQUIRE_TRUESTACK", raising=False)
    store.reset()
    yield


@pytest.fixture
def client() -> AuthenticatedClient:
    app = create_app()
    return AuthenticatedClient(TestClient(app))


@pytest.fixture
def project_p():
    """Project P with synced member U1 and a synced outsider U2."""
    u1 = store.identity.sync_user(employee_id="emp_u1", display_name="User One")
    u2 = store.identity.sync_user(employee_id="emp_u2", display_name="User Two")
    store.upsert_project(project_id="prj_p", name="Project P", member_ids=[u1["id"]])
    return {"project_id": "prj_p", "member_id": u1["id"], "outsider_id": u2["id"]}
