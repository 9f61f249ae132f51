from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import Any

from review_workflow.errors import StorageError

logger = logging.getLogger(__name__)


def _import_psycopg() -> Any:
    try:
        import psycopg  # type: ignore
    except ImportError as exc:
        raise RuntimeError("psycopg is required for PostgreSQL backends; install psycopg[binary]") from exc
    return psycopg


def validate_identifier(name: str) -> str:
    if not re.fullmatch(r"[A-Za-z_][A-Za-z0-9_]*", name):
        raise ValueError(f"invalid SQL identifier: {name}")
    return name


SCHEMA_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS users (
      user_id TEXT PRIMARY KEY,
      employee_id TEXT NOT NULL UNIQUE,
      display_name TEXT NOT NULL,
      created_at TIMESTAMPTZ NOT NULL,
      updated_at TIMESTAMPTZ NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS projects (
      project_id TEXT PRIMARY KEY,
      name TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS project_members (
      project_id TEXT NOT NULL REFERENCES projects(project_id) ON DELETE CASCADE,
      user_id TEXT NOT NULL,
      PRIMARY KEY (project_id, user_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS review_spaces (
      review_space_id TEXT PRIMARY KEY,
      project_id TEXT NOT NULL REFERENCES projects(project_id) ON DELETE CASCADE,
      name VARCHAR(100) NOT NULL,
      description VARCHAR(1000),
      created_at TIMESTAMPTZ NOT NULL,
      updated_at TIMESTAMPTZ NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS review_targets (
      review_target_id TEXT PRIMARY KEY,
      review_space_id TEXT NOT NULL REFERENCES review_spaces(review_space_id) ON DELETE CASCADE,
      name TEXT NOT NULL,
      artifact_ref TEXT NOT NULL,
      submitted_at TIMESTAMPTZ NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS qa_histories (
      qa_history_id TEXT PRIMARY KEY,
      review_target_id TEXT NOT NULL REFERENCES review_targets(review_target_id) ON DELETE CASCADE,
      status TEXT NOT NULL CHECK (status IN ('pending', 'processing', 'completed', 'error')),
      question TEXT,
      requested_by TEXT,
      outcome JSONB,
      error_detail TEXT,
      attempt INTEGER NOT NULL DEFAULT 1,
      created_at TIMESTAMPTZ NOT NULL,
      updated_at TIMESTAMPTZ NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_review_spaces_project ON review_spaces (project_id, updated_at DESC)",
    "CREATE INDEX IF NOT EXISTS idx_review_targets_space ON review_targets (review_space_id, submitted_at)",
    "CREATE INDEX IF NOT EXISTS idx_qa_histories_target ON qa_histories (review_target_id, created_at)",
)


class PostgresTxRunner:
    """Run callback logic in one PostgreSQL transaction; driver errors surface as StorageError."""

    def __init__(self, dsn: str) -> None:
        if not dsn.strip():
            raise ValueError("POSTGRES_DSN must not be empty")
        self._dsn = dsn.strip()

    def run_in_tx(self, *, fn: Callable[[Any], Any]) -> Any:
        psycopg = _import_psycopg()
        try:
            with psycopg.connect(self._dsn) as conn:
                result = fn(conn)
                conn.commit()
                return result
        except psycopg.Error as exc:
            logger.exception("postgres transaction failed: %s", type(exc).__name__)
            raise StorageError() from exc

    def apply_schema(self) -> list[str]:
        def _op(conn: Any) -> list[str]:
            with conn.cursor() as cur:
                for statement in SCHEMA_STATEMENTS:
                    cur.execute(statement)
            return ["users", "projects", "project_members", "review_spaces", "review_targets", "qa_histories"]

        return self.run_in_tx(fn=_op)
