from __future__ import annotations

import threading
from typing import Any

from review_workflow.db.postgres import PostgresTxRunner, validate_identifier
from review_workflow.domain import Project


class InMemoryProjectsRepository:
    def __init__(self, projects: dict[str, dict[str, Any]], lock: threading.RLock) -> None:
        self._projects = projects
        self._lock = lock

    def upsert(self, *, project_id: str, name: str, member_ids: list[str] | set[str]) -> Project:
        row = {"project_id": project_id, "name": name, "member_ids": sorted(set(member_ids))}
        with self._lock:
            self._projects[project_id] = row
        return Project.reconstruct(row)

    def find_by_id(self, project_id: str) -> Project | None:
        with self._lock:
            row = self._projects.get(project_id)
            return Project.reconstruct(dict(row)) if row is not None else None

    def is_member(self, *, project_id: str, user_id: str) -> bool:
        project = self.find_by_id(project_id)
        return project is not None and project.has_member(user_id)


class PostgresProjectsRepository:
    def __init__(
        self,
        *,
        tx_runner: PostgresTxRunner,
        projects_table: str = "projects",
        members_table: str = "project_members",
    ) -> None:
        self._tx_runner = tx_runner
        self._projects_table = validate_identifier(projects_table)
        self._members_table = validate_identifier(members_table)

    def upsert(self, *, project_id: str, name: str, member_ids: list[str] | set[str]) -> Project:
        members = sorted(set(member_ids))
        upsert_sql = f"""
            INSERT INTO {self._projects_table} (project_id, name) VALUES (%s, %s)
            ON CONFLICT(project_id) DO UPDATE SET name = EXCLUDED.name
        """
        clear_sql = f"DELETE FROM {self._members_table} WHERE project_id = %s"
        member_sql = f"INSERT INTO {self._members_table} (project_id, user_id) VALUES (%s, %s)"

        def _op(conn: Any) -> Project:
            with conn.cursor() as cur:
                cur.execute(upsert_sql, (project_id, name))
                cur.execute(clear_sql, (project_id,))
                for user_id in members:
                    cur.execute(member_sql, (project_id, user_id))
            return Project.reconstruct({"project_id": project_id, "name": name, "member_ids": members})

        return self._tx_runner.run_in_tx(fn=_op)

    def find_by_id(self, project_id: str) -> Project | None:
        project_sql = f"SELECT project_id, name FROM {self._projects_table} WHERE project_id = %s LIMIT 1"
        members_sql = f"SELECT user_id FROM {self._members_table} WHERE project_id = %s"

        def _op(conn: Any) -> Project | None:
            with conn.cursor() as cur:
                cur.execute(project_sql, (project_id,))
                row = cur.fetchone()
                if row is None:
                    return None
                cur.execute(members_sql, (project_id,))
                members = [x[0] for x in cur.fetchall() or []]
            return Project.reconstruct({"project_id": row[0], "name": row[1], "member_ids": members})

        return self._tx_runner.run_in_tx(fn=_op)

    def is_member(self, *, project_id: str, user_id: str) -> bool:
        sql = f"SELECT 1 FROM {self._members_table} WHERE project_id = %s AND user_id = %s LIMIT 1"

        def _op(conn: Any) -> bool:
            with conn.cursor() as cur:
                cur.execute(sql, (project_id, user_id))
                return cur.fetchone() is not None

        return self._tx_runner.run_in_tx(fn=_op)
