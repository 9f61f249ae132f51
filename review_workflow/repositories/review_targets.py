from __future__ import annotations

import copy
import threading
from typing import Any

from review_workflow.db.postgres import PostgresTxRunner, validate_identifier
from review_workflow.domain import QaHistory, ReviewTarget
from review_workflow.repositories.qa_histories import HISTORY_COLUMNS, history_insert_params


class InMemoryReviewTargetsRepository:
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

    def find_by_id(self, review_target_id: str) -> ReviewTarget | None:
        with self._lock:
            row = self._targets.get(review_target_id)
            return ReviewTarget.reconstruct(dict(row)) if row is not None else None

    def find_by_review_space_id(self, review_space_id: str) -> list[ReviewTarget]:
        with self._lock:
            rows = [dict(x) for x in self._targets.values() if x.get("review_space_id") == review_space_id]
        rows.sort(key=lambda x: x["submitted_at"])
        return [ReviewTarget.reconstruct(x) for x in rows]

    def create_with_history(self, *, target: ReviewTarget, history: QaHistory) -> ReviewTarget | None:
        if history.review_target_id != target.id:
            raise ValueError("history must belong to the target being created")
        with self._lock:
            if target.review_space_id not in self._spaces:
                return None
            self._targets[target.id] = target.to_row()
            self._histories[history.id] = copy.deepcopy(history.to_row())
        return target


class PostgresReviewTargetsRepository:
    def __init__(
        self,
        *,
        tx_runner: PostgresTxRunner,
        table_name: str = "review_targets",
        spaces_table: str = "review_spaces",
        histories_table: str = "qa_histories",
    ) -> None:
        self._tx_runner = tx_runner
        self._table_name = validate_identifier(table_name)
        self._spaces_table = validate_identifier(spaces_table)
        self._histories_table = validate_identifier(histories_table)

    @staticmethod
    def _to_target(row: tuple) -> ReviewTarget:
        return ReviewTarget.reconstruct(
            {
                "review_target_id": row[0],
                "review_space_id": row[1],
                "name": row[2],
                "artifact_ref": row[3],
                "submitted_at": row[4],
            }
        )

    def find_by_id(self, review_target_id: str) -> ReviewTarget | None:
        sql = f"""
            SELECT review_target_id, review_space_id, name, artifact_ref, submitted_at
            FROM {self._table_name}
            WHERE review_target_id = %s
            LIMIT 1
        """

        def _op(conn: Any) -> ReviewTarget | None:
            with conn.cursor() as cur:
                cur.execute(sql, (review_target_id,))
                row = cur.fetchone()
            return self._to_target(row) if row is not None else None

        return self._tx_runner.run_in_tx(fn=_op)

    def find_by_review_space_id(self, review_space_id: str) -> list[ReviewTarget]:
        sql = f"""
            SELECT review_target_id, review_space_id, name, artifact_ref, submitted_at
            FROM {self._table_name}
            WHERE review_space_id = %s
            ORDER BY submitted_at ASC
        """

        def _op(conn: Any) -> list[ReviewTarget]:
            with conn.cursor() as cur:
                cur.execute(sql, (review_space_id,))
                rows = cur.fetchall()
            return [self._to_target(x) for x in rows or []]

        return self._tx_runner.run_in_tx(fn=_op)

    def create_with_history(self, *, target: ReviewTarget, history: QaHistory) -> ReviewTarget | None:
        if history.review_target_id != target.id:
            raise ValueError("history must belong to the target being created")
        # row lock on the parent space serializes intake with delete_cascade
        space_sql = f"SELECT review_space_id FROM {self._spaces_table} WHERE review_space_id = %s FOR UPDATE"
        target_sql = f"""
            INSERT INTO {self._table_name}
                (review_target_id, review_space_id, name, artifact_ref, submitted_at)
            VALUES (%s, %s, %s, %s, %s)
        """
        history_sql = f"""
            INSERT INTO {self._histories_table} ({HISTORY_COLUMNS})
            VALUES (%s, %s, %s, %s, %s, %s::jsonb, %s, %s, %s, %s)
        """
        row = target.to_row()

        def _op(conn: Any) -> ReviewTarget | None:
            with conn.cursor() as cur:
                cur.execute(space_sql, (row["review_space_id"],))
                if cur.fetchone() is None:
                    return None
                cur.execute(
                    target_sql,
                    (
                        row["review_target_id"],
                        row["review_space_id"],
                        row["name"],
                        row["artifact_ref"],
                        row["submitted_at"],
                    ),
                )
                cur.execute(history_sql, history_insert_params(history))
            return target

        return self._tx_runner.run_in_tx(fn=_op)
