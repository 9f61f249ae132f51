from __future__ import annotations

import copy
import json
import threading
from typing import Any

from review_workflow.db.postgres import PostgresTxRunner, validate_identifier
from review_workflow.domain import QaHistory

ACTIVE_STATUSES = ("pending", "processing")

HISTORY_COLUMNS = (
    "qa_history_id, review_target_id, status, question, requested_by, "
    "outcome, error_detail, attempt, created_at, updated_at"
)


def history_insert_params(history: QaHistory) -> tuple[Any, ...]:
    row = history.to_row()
    outcome = row["outcome"]
    return (
        row["qa_history_id"],
        row["review_target_id"],
        row["status"],
        row["question"],
        row["requested_by"],
        json.dumps(outcome, ensure_ascii=False) if outcome is not None else None,
        row["error_detail"],
        row["attempt"],
        row["created_at"],
        row["updated_at"],
    )


def history_from_db_row(row: tuple) -> QaHistory:
    outcome = row[5]
    if isinstance(outcome, str):
        outcome = json.loads(outcome)
    return QaHistory.reconstruct(
        {
            "qa_history_id": row[0],
            "review_target_id": row[1],
            "status": row[2],
            "question": row[3],
            "requested_by": row[4],
            "outcome": outcome,
            "error_detail": row[6],
            "attempt": row[7],
            "created_at": row[8],
            "updated_at": row[9],
        }
    )


class InMemoryQaHistoriesRepository:
    def __init__(
        self,
        *,
        targets: dict[str, dict[str, Any]],
        histories: dict[str, dict[str, Any]],
        lock: threading.RLock,
    ) -> None:
        self._targets = targets
        self._histories = histories
        self._lock = lock

    def find_by_id(self, qa_history_id: str) -> QaHistory | None:
        with self._lock:
            row = self._histories.get(qa_history_id)
            return QaHistory.reconstruct(copy.deepcopy(row)) if row is not None else None

    def find_by_review_target_id(self, review_target_id: str) -> list[QaHistory]:
        with self._lock:
            rows = [
                copy.deepcopy(x)
                for x in self._histories.values()
                if x.get("review_target_id") == review_target_id
            ]
        rows.sort(key=lambda x: x["created_at"])
        return [QaHistory.reconstruct(x) for x in rows]

    def _target_is_idle(self, review_target_id: str, *, exclude_id: str | None = None) -> bool:
        """False when the target is gone or another of its runs is pending or processing."""
        if review_target_id not in self._targets:
            return False
        return not any(
            row.get("review_target_id") == review_target_id
            and row.get("status") in ACTIVE_STATUSES
            and row.get("qa_history_id") != exclude_id
            for row in self._histories.values()
        )

    def insert_if_idle(self, history: QaHistory) -> bool:
        with self._lock:
            if not self._target_is_idle(history.review_target_id):
                return False
            self._histories[history.id] = copy.deepcopy(history.to_row())
        return True

    def compare_and_set(
        self,
        history: QaHistory,
        *,
        expected_status: str,
        expected_attempt: int,
        require_idle_target: bool = False,
    ) -> bool:
        with self._lock:
            current = self._histories.get(history.id)
            if current is None:
                return False
            if current.get("status") != expected_status or int(current.get("attempt") or 1) != expected_attempt:
                return False
            if require_idle_target and not self._target_is_idle(history.review_target_id, exclude_id=history.id):
                return False
            self._histories[history.id] = copy.deepcopy(history.to_row())
        return True


class PostgresQaHistoriesRepository:
    def __init__(
        self,
        *,
        tx_runner: PostgresTxRunner,
        table_name: str = "qa_histories",
        targets_table: str = "review_targets",
    ) -> None:
        self._tx_runner = tx_runner
        self._table_name = validate_identifier(table_name)
        self._targets_table = validate_identifier(targets_table)

    def find_by_id(self, qa_history_id: str) -> QaHistory | None:
        sql = f"""
            SELECT {HISTORY_COLUMNS}
            FROM {self._table_name}
            WHERE qa_history_id = %s
            LIMIT 1
        """

        def _op(conn: Any) -> QaHistory | None:
            with conn.cursor() as cur:
                cur.execute(sql, (qa_history_id,))
                row = cur.fetchone()
            return history_from_db_row(row) if row is not None else None

        return self._tx_runner.run_in_tx(fn=_op)

    def find_by_review_target_id(self, review_target_id: str) -> list[QaHistory]:
        sql = f"""
            SELECT {HISTORY_COLUMNS}
            FROM {self._table_name}
            WHERE review_target_id = %s
            ORDER BY created_at ASC
        """

        def _op(conn: Any) -> list[QaHistory]:
            with conn.cursor() as cur:
                cur.execute(sql, (review_target_id,))
                rows = cur.fetchall()
            return [history_from_db_row(x) for x in rows or []]

        return self._tx_runner.run_in_tx(fn=_op)

    def _lock_target_and_check_idle(self, cur: Any, review_target_id: str, *, exclude_id: str | None) -> bool:
        # row lock on the parent target serializes intake for that target
        cur.execute(
            f"SELECT review_target_id FROM {self._targets_table} WHERE review_target_id = %s FOR UPDATE",
            (review_target_id,),
        )
        if cur.fetchone() is None:
            return False
        cur.execute(
            f"""
            SELECT 1 FROM {self._table_name}
            WHERE review_target_id = %s
              AND status IN ('pending', 'processing')
              AND qa_history_id <> %s
            LIMIT 1
            """,
            (review_target_id, exclude_id or ""),
        )
        return cur.fetchone() is None

    def insert_if_idle(self, history: QaHistory) -> bool:
        sql = f"""
            INSERT INTO {self._table_name} ({HISTORY_COLUMNS})
            VALUES (%s, %s, %s, %s, %s, %s::jsonb, %s, %s, %s, %s)
        """

        def _op(conn: Any) -> bool:
            with conn.cursor() as cur:
                if not self._lock_target_and_check_idle(cur, history.review_target_id, exclude_id=None):
                    return False
                cur.execute(sql, history_insert_params(history))
            return True

        return self._tx_runner.run_in_tx(fn=_op)

    def compare_and_set(
        self,
        history: QaHistory,
        *,
        expected_status: str,
        expected_attempt: int,
        require_idle_target: bool = False,
    ) -> bool:
        sql = f"""
            UPDATE {self._table_name}
            SET status = %s,
                outcome = %s::jsonb,
                error_detail = %s,
                attempt = %s,
                updated_at = %s
            WHERE qa_history_id = %s
              AND status = %s
              AND attempt = %s
        """
        row = history.to_row()
        outcome = row["outcome"]

        def _op(conn: Any) -> bool:
            with conn.cursor() as cur:
                if require_idle_target and not self._lock_target_and_check_idle(
                    cur, history.review_target_id, exclude_id=history.id
                ):
                    return False
                cur.execute(
                    sql,
                    (
                        row["status"],
                        json.dumps(outcome, ensure_ascii=False) if outcome is not None else None,
                        row["error_detail"],
                        row["attempt"],
                        row["updated_at"],
                        history.id,
                        expected_status,
                        expected_attempt,
                    ),
                )
                return (cur.rowcount or 0) == 1

        return self._tx_runner.run_in_tx(fn=_op)
