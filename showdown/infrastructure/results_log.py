"""
Relational results log and leaderboard (PostgreSQL via psycopg).

Holds the users who run benchmarks, their scores, and one row per timed
benchmark operation. The connection is opened by the caller
(`connect_relational`) and passed in.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from psycopg import AsyncConnection
from psycopg.rows import dict_row

from showdown.domain.models import OperationResult

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS showdown_users (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        score INTEGER NOT NULL DEFAULT 0,
        created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS test_results (
        id BIGSERIAL PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES showdown_users (id),
        test_type TEXT NOT NULL,
        database TEXT NOT NULL,
        operation TEXT NOT NULL,
        operation_number INTEGER NOT NULL,
        response_time_ms DOUBLE PRECISION NOT NULL,
        success BOOLEAN NOT NULL,
        error_message TEXT,
        created_at TIMESTAMPTZ NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS test_results_user_idx ON test_results (user_id)",
)


class ResultsLog(Protocol):
    """What the benchmark harness needs from a results store."""

    async def record(self, user_id: str, result: OperationResult, test_type: str) -> None:
        ...

    async def award(self, user_id: str, points: int) -> int:
        ...


class PostgresResultsLog:
    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def ensure_schema(self) -> None:
        async with self._conn.cursor() as cur:
            for statement in SCHEMA:
                await cur.execute(statement)
        await self._conn.commit()

    async def register_user(self, user_id: str, name: Optional[str] = None) -> None:
        async with self._conn.cursor() as cur:
            await cur.execute(
                """
                INSERT INTO showdown_users (id, name) VALUES (%s, %s)
                ON CONFLICT (id) DO NOTHING
                """,
                (user_id, name or user_id),
            )
        await self._conn.commit()

    async def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        async with self._conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(
                "SELECT id, name, score FROM showdown_users WHERE id = %s", (user_id,)
            )
            return await cur.fetchone()

    async def record(self, user_id: str, result: OperationResult, test_type: str) -> None:
        async with self._conn.cursor() as cur:
            await cur.execute(
                """
                INSERT INTO test_results (
                    user_id, test_type, database, operation, operation_number,
                    response_time_ms, success, error_message, created_at
                ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    user_id,
                    test_type,
                    result.database,
                    result.operation,
                    result.operation_number,
                    result.response_time_ms,
                    result.success,
                    result.error_message,
                    result.timestamp,
                ),
            )
        await self._conn.commit()

    async def award(self, user_id: str, points: int) -> int:
        """Add `points` to the user's score and return the new score."""
        async with self._conn.cursor() as cur:
            await cur.execute(
                "UPDATE showdown_users SET score = score + %s WHERE id = %s RETURNING score",
                (points, user_id),
            )
            row = await cur.fetchone()
        await self._conn.commit()
        if row is None:
            raise LookupError(f"User '{user_id}' not found")
        return int(row[0])

    async def leaderboard(self, limit: int = 10) -> List[Dict[str, Any]]:
        async with self._conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(
                """
                SELECT u.id, u.name, u.score, count(r.id) AS operations
                FROM showdown_users u
                LEFT JOIN test_results r ON r.user_id = u.id
                GROUP BY u.id, u.name, u.score
                ORDER BY u.score DESC, u.name
                LIMIT %s
                """,
                (limit,),
            )
            return list(await cur.fetchall())


__all__ = ["ResultsLog", "PostgresResultsLog", "SCHEMA"]
