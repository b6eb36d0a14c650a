from datetime import datetime
from typing import Any

from psycopg.rows import dict_row

from contract_pipeline.database.connection import get_connection
from contract_pipeline.idempotency.models import IdempotencyRecord, IdempotencyStatus
from contract_pipeline.idempotency.store import BaseIdempotencyStore


def _to_record(row: dict[str, Any]) -> IdempotencyRecord:
    return IdempotencyRecord(
        key=row["key"],
        fingerprint=row["fingerprint"],
        status=IdempotencyStatus(row["status"]),
        result_id=row["result_id"],
        error_code=row["error_code"],
        error_message=row["error_message"],
        locked_until=row["locked_until"],
        expires_at=row["expires_at"],
    )


class PostgresIdempotencyStore(BaseIdempotencyStore):
    """Database operations for the idempotency table.

    The primary key on ``key`` is what prevents two processes from running
    the same request.
    """

    def get(self, key: str) -> IdempotencyRecord | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT key, fingerprint, status, result_id, error_code,
                           error_message, locked_until, expires_at
                    FROM idempotency
                    WHERE key = %s
                    """,
                    (key,),
                )
                row = cur.fetchone()

        return _to_record(row) if row is not None else None

    def create(self, record: IdempotencyRecord) -> bool:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO idempotency
                        (key, fingerprint, status, locked_until, expires_at,
                         created_at, updated_at)
                    VALUES (%s, %s, %s, %s, %s, NOW(), NOW())
                    ON CONFLICT (key) DO NOTHING
                    RETURNING key
                    """,
                    (
                        record.key,
                        record.fingerprint,
                        record.status.value,
                        record.locked_until,
                        record.expires_at,
                    ),
                )
                created = cur.fetchone() is not None
            conn.commit()
        return created

    def restart(self, key: str, locked_until: datetime) -> bool:
        with get_connection() as conn:
            cur = conn.execute(
                """
                UPDATE idempotency
                SET status = %s, locked_until = %s, error_code = NULL,
                    error_message = NULL, updated_at = NOW()
                WHERE key = %s AND status = %s
                """,
                (
                    IdempotencyStatus.PENDING.value,
                    locked_until,
                    key,
                    IdempotencyStatus.FAILED.value,
                ),
            )
            restarted = cur.rowcount == 1
            conn.commit()
        return restarted

    def mark_succeeded(self, key: str, result_id: str) -> None:
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE idempotency
                SET status = %s, result_id = %s, locked_until = NULL, updated_at = NOW()
                WHERE key = %s
                """,
                (IdempotencyStatus.SUCCEEDED.value, result_id, key),
            )
            conn.commit()

    def mark_failed(self, key: str, error_code: str, error_message: str) -> None:
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE idempotency
                SET status = %s, error_code = %s, error_message = %s,
                    locked_until = NULL, updated_at = NOW()
                WHERE key = %s
                """,
                (IdempotencyStatus.FAILED.value, error_code, error_message, key),
            )
            conn.commit()

    def expire_stale(self, key: str, now: datetime, error_code: str, error_message: str) -> bool:
        with get_connection() as conn:
            cur = conn.execute(
                """
                UPDATE idempotency
                SET status = %s, error_code = %s, error_message = %s,
                    locked_until = NULL, updated_at = NOW()
                WHERE key = %s AND status = %s AND locked_until <= %s
                """,
                (
                    IdempotencyStatus.FAILED.value,
                    error_code,
                    error_message,
                    key,
                    IdempotencyStatus.PENDING.value,
                    now,
                ),
            )
            expired = cur.rowcount == 1
            conn.commit()
        return expired

    def delete(self, key: str) -> None:
        with get_connection() as conn:
            conn.execute("DELETE FROM idempotency WHERE key = %s", (key,))
            conn.commit()

    def purge_expired(self, now: datetime) -> int:
        with get_connection() as conn:
            cur = conn.execute("DELETE FROM idempotency WHERE expires_at <= %s", (now,))
            removed = cur.rowcount
            conn.commit()
        return removed
