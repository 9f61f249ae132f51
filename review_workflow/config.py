from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass


def _as_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(env: Mapping[str, str], name: str, *, default: int, minimum: int = 0) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(minimum, value)


def _split_csv(raw: str) -> list[str]:
    return [x.strip() for x in raw.split(",") if x.strip()]


def true_stack_required(environ: Mapping[str, str] | None = None) -> bool:
    env = os.environ if environ is None else environ
    return _as_bool(env.get("REVIEW_REQUIRE_TRUESTACK", "false"))


@dataclass(frozen=True)
class WorkflowSettings:
    store_backend: str
    postgres_dsn: str
    list_default_limit: int
    list_max_limit: int
    qa_history_default_limit: int
    engine_callback_token: str
    cors_allow_origins: tuple[str, ...]

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "WorkflowSettings":
        env = os.environ if environ is None else environ
        backend = env.get("REVIEW_STORE_BACKEND", "memory").strip().lower() or "memory"
        if true_stack_required(env) and backend != "postgres":
            raise RuntimeError("REVIEW_STORE_BACKEND must be postgres when REVIEW_REQUIRE_TRUESTACK=true")
        default_limit = _env_int(env, "REVIEW_LIST_DEFAULT_LIMIT", default=12, minimum=1)
        return cls(
            store_backend=backend,
            postgres_dsn=env.get("POSTGRES_DSN", "").strip(),
            list_default_limit=default_limit,
            list_max_limit=_env_int(env, "REVIEW_LIST_MAX_LIMIT", default=100, minimum=default_limit),
            qa_history_default_limit=_env_int(env, "QA_HISTORY_DEFAULT_LIMIT", default=20, minimum=1),
            engine_callback_token=env.get("QA_ENGINE_CALLBACK_TOKEN", "").strip(),
            cors_allow_origins=tuple(
                _split_csv(env.get("CORS_ALLOW_ORIGINS", "http://127.0.0.1:3000,http://localhost:3000"))
            ),
        )
