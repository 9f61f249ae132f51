from __future__ import annotations

import threading
from typing import Any

from review_workflow.db.postgres import PostgresTxRunner, validate_identifier
from review_workflow.domain import User


class InMemoryUsersRepository:
    def __init__(self, users: dict[str, dict[str, Any]], lock: threading.RLock) -> None:
        self._users = users
        self._lock = lock

    def find_by_id(self, user_id: str) -> User | None:
        with self._lock:
            row = self._users.get(user_id)
            return User.reconstruct(dict(row)) if row is not None else None

    def find_by_employee_id(self, employee_id: str) -> User | None:
        with self._lock:
            for row in self._users.values():
                if row.get("employee_id") == employee_id:
                    return User.reconstruct(dict(row))
        return None

    def save(self, user: User) -> User:
        with self._lock:
            self._users[user.id] = user.to_row()
        return user


class PostgresUsersRepository:
    def __init__(self, *, tx_runner: PostgresTxRunner, table_name: str = "users") -> None:
        self._tx_runner = tx_runner
        self._table_name = validate_identifier(table_name)

    @staticmethod
    def _to_user(row: tuple) -> User:
        return User.reconstruct(
            {
                "user_id": row[0],
                "employee_id": row[1],
                "display_name": row[2],
                "created_at": row[3],
                "updated_at": row[4],
            }
        )

    def _find_one(self, column: str, value: str) -> User | None:
        sql = f"""
            SELECT user_id, employee_id, display_name, created_at, updated_at
            FROM {self._table_name}
            WHERE {column} = %s
            LIMIT 1
        """

        def _op(conn: Any) -> User | None:
            with conn.cursor() as cur:
                cur.execute(sql, (value,))
                row = cur.fetchone()
            return self._to_user(row) if row is not None else None

        return self._tx_runner.run_in_tx(fn=_op)

    def find_by_id(self, user_id: str) -> User | None:
        return self._find_one("user_id", user_id)

    def find_by_employee_id(self, employee_id: str) -> User | None:
        return self._find_one("employee_id", employee_id)

    def save(self, user: User) -> User:
        sql = f"""
            INSERT INTO {self._table_name} (user_id, employee_id, display_name, created_at, updated_at)
            VALUES (%s, %s, %s, %s, %s)
            ON CONFLICT(user_id) DO UPDATE SET
                display_name = EXCLUDED.display_name,
                updated_at = EXCLUDED.updated_at
        """
        row = user.to_row()

        def _op(conn: Any) -> User:
            with conn.cursor() as cur:
                cur.execute(
                    sql,
                    (
                        row["user_id"],
                        row["employee_id"],
                        row["display_name"],
                        row["created_at"],
                        row["updated_at"],
                    ),
                )
            return user

        return self._tx_runner.run_in_tx(fn=_op)
