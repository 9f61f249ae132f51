from __future__ import annotations

import threading
from typing import Any

from review_workflow.db.postgres import PostgresTxRunner, validate_identifier
from review_workflow.domain import ReviewSpace


def _matches(row: dict[str, Any], search: str | None) -> bool:
    if not search:
        return True
    return search.lower() in str(row.get("name") or "").lower()


def like_pattern(search: str) -> str:
    """Substring ILIKE pattern with the caller's wildcards taken literally."""
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class InMemoryReviewSpacesRepository:
    def __init__(
        self,
        *,
        spaces: dict[str, dict[str, Any]],
        targets: dict[str, dict[str, Any]],
        histories: dict[str, dict[str, Any]],
        lock: threading.RLock,
    ) -> None:
        self._spaces = spaces
        self._targets = targets
        self._histories = histories
        self._lock = lock

    def find_by_id(self, review_space_id: str) -> ReviewSpace | None:
        with self._lock:
            row = self._spaces.get(review_space_id)
            return ReviewSpace.reconstruct(dict(row)) if row is not None else None

    def _project_rows(self, project_id: str, search: str | None) -> list[dict[str, Any]]:
        rows = [
            dict(x)
            for x in self._spaces.values()
            if x.get("project_id") == project_id and _matches(x, search)
        ]
        rows.sort(key=lambda x: x["updated_at"], reverse=True)
        return rows

    def find_by_project_id(
        self,
        project_id: str,
        *,
        search: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[ReviewSpace]:
        with self._lock:
            rows = self._project_rows(project_id, search)
        end = None if limit is None else offset + limit
        return [ReviewSpace.reconstruct(x) for x in rows[offset:end]]

    def count_by_project_id(self, project_id: str, *, search: str | None = None) -> int:
        with self._lock:
            return len(self._project_rows(project_id, search))

    def save(self, space: ReviewSpace) -> ReviewSpace:
        with self._lock:
            self._spaces[space.id] = space.to_row()
        return space

    def update(self, space: ReviewSpace) -> bool:
        with self._lock:
            if space.id not in self._spaces:
                return False
            self._spaces[space.id] = space.to_row()
        return True

    def delete_cascade(self, review_space_id: str) -> bool:
        with self._lock:
            if self._spaces.pop(review_space_id, None) is None:
                return False
            target_ids = {
                target_id
                for target_id, row in self._targets.items()
                if row.get("review_space_id") == review_space_id
            }
            for target_id in target_ids:
                self._targets.pop(target_id, None)
            for history_id in [
                history_id
                for history_id, row in self._histories.items()
                if row.get("review_target_id") in target_ids
            ]:
                self._histories.pop(history_id, None)
        return True


class PostgresReviewSpacesRepository:
    def __init__(
        self,
        *,
        tx_runner: PostgresTxRunner,
        table_name: str = "review_spaces",
        targets_table: str = "review_targets",
        histories_table: str = "qa_histories",
    ) -> None:
        self._tx_runner = tx_runner
        self._table_name = validate_identifier(table_name)
        self._targets_table = validate_identifier(targets_table)
        self._histories_table = validate_identifier(histories_table)

    @staticmethod
    def _to_space(row: tuple) -> ReviewSpace:
        return ReviewSpace.reconstruct(
            {
                "review_space_id": row[0],
                "project_id": row[1],
                "name": row[2],
                "description": row[3],
                "created_at": row[4],
                "updated_at": row[5],
            }
        )

    @staticmethod
    def _search_clause(search: str | None) -> tuple[str, tuple[Any, ...]]:
        if not search:
            return "", ()
        return " AND name ILIKE %s ESCAPE '\\'", (like_pattern(search),)

    def find_by_id(self, review_space_id: str) -> ReviewSpace | None:
        sql = f"""
            SELECT review_space_id, project_id, name, description, created_at, updated_at
            FROM {self._table_name}
            WHERE review_space_id = %s
            LIMIT 1
        """

        def _op(conn: Any) -> ReviewSpace | None:
            with conn.cursor() as cur:
                cur.execute(sql, (review_space_id,))
                row = cur.fetchone()
            return self._to_space(row) if row is not None else None

        return self._tx_runner.run_in_tx(fn=_op)

    def find_by_project_id(
        self,
        project_id: str,
        *,
        search: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[ReviewSpace]:
        clause, params = self._search_clause(search)
        sql = f"""
            SELECT review_space_id, project_id, name, description, created_at, updated_at
            FROM {self._table_name}
            WHERE project_id = %s{clause}
            ORDER BY updated_at DESC
        """
        args: tuple[Any, ...] = (project_id, *params)
        if limit is not None:
            sql += " LIMIT %s OFFSET %s"
            args = (*args, limit, offset)

        def _op(conn: Any) -> list[ReviewSpace]:
            with conn.cursor() as cur:
                cur.execute(sql, args)
                rows = cur.fetchall()
            return [self._to_space(x) for x in rows or []]

        return self._tx_runner.run_in_tx(fn=_op)

    def count_by_project_id(self, project_id: str, *, search: str | None = None) -> int:
        clause, params = self._search_clause(search)
        sql = f"SELECT COUNT(*) FROM {self._table_name} WHERE project_id = %s{clause}"

        def _op(conn: Any) -> int:
            with conn.cursor() as cur:
                cur.execute(sql, (project_id, *params))
                row = cur.fetchone()
            return int(row[0]) if row is not None else 0

        return self._tx_runner.run_in_tx(fn=_op)

    def save(self, space: ReviewSpace) -> ReviewSpace:
        sql = f"""
            INSERT INTO {self._table_name}
                (review_space_id, project_id, name, description, created_at, updated_at)
            VALUES (%s, %s, %s, %s, %s, %s)
            ON CONFLICT(review_space_id) DO UPDATE SET
                name = EXCLUDED.name,
                description = EXCLUDED.description,
                updated_at = EXCLUDED.updated_at
        """
        row = space.to_row()

        def _op(conn: Any) -> ReviewSpace:
            with conn.cursor() as cur:
                cur.execute(
                    sql,
                    (
                        row["review_space_id"],
                        row["project_id"],
                        row["name"],
                        row["description"],
                        row["created_at"],
                        row["updated_at"],
                    ),
                )
            return space

        return self._tx_runner.run_in_tx(fn=_op)

    def update(self, space: ReviewSpace) -> bool:
        sql = f"""
            UPDATE {self._table_name}
            SET name = %s, description = %s, updated_at = %s
            WHERE review_space_id = %s
        """
        row = space.to_row()

        def _op(conn: Any) -> bool:
            with conn.cursor() as cur:
                cur.execute(sql, (row["name"], row["description"], row["updated_at"], row["review_space_id"]))
                return (cur.rowcount or 0) == 1

        return self._tx_runner.run_in_tx(fn=_op)

    def delete_cascade(self, review_space_id: str) -> bool:
        lock_sql = f"SELECT review_space_id FROM {self._table_name} WHERE review_space_id = %s FOR UPDATE"
        histories_sql = f"""
            DELETE FROM {self._histories_table}
            WHERE review_target_id IN (
                SELECT review_target_id FROM {self._targets_table} WHERE review_space_id = %s
            )
        """
        targets_sql = f"DELETE FROM {self._targets_table} WHERE review_space_id = %s"
        space_sql = f"DELETE FROM {self._table_name} WHERE review_space_id = %s"

        def _op(conn: Any) -> bool:
            with conn.cursor() as cur:
                cur.execute(lock_sql, (review_space_id,))
                if cur.fetchone() is None:
                    return False
                cur.execute(histories_sql, (review_space_id,))
                cur.execute(targets_sql, (review_space_id,))
                cur.execute(space_sql, (review_space_id,))
            return True

        return self._tx_runner.run_in_tx(fn=_op)
