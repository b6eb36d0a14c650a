import uuid
from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from contract_pipeline.database.connection import get_connection
from contract_pipeline.detection.models import ContractType
from contract_pipeline.orchestrator.exceptions import (
    AccountNotFoundError,
    AnalysisNotFoundError,
    GuestQuotaExceededError,
    InsufficientBalanceError,
)
from contract_pipeline.orchestrator.ledger import BaseAnalysisLedger
from contract_pipeline.orchestrator.models import AnalysisDraft, PersistedAnalysis


class PostgresAnalysisLedger(BaseAnalysisLedger):
    """Database operations for the analyses, accounts and guest_quotas tables.

    ``persist_and_debit`` runs in one transaction: the balance row is locked
    with SELECT ... FOR UPDATE, the analysis inserted, the balance decremented.
    Any error rolls back all three.
    """

    def __init__(self, guest_limit: int = 3, guest_window_hours: int = 24) -> None:
        self._guest_limit = guest_limit
        self._guest_window_hours = guest_window_hours

    def persist_and_debit(self, draft: AnalysisDraft) -> PersistedAnalysis:
        analysis_id = str(uuid.uuid4())
        payload = draft.result.to_payload()

        with get_connection() as conn:
            with conn.transaction():
                if draft.is_guest:
                    remaining = self._consume_guest_quota(conn, draft.account_ref)
                else:
                    remaining = self._debit_credit(conn, draft.account_ref)
                created_at = self._insert_analysis(conn, analysis_id, draft, payload)

        return PersistedAnalysis(
            id=analysis_id,
            account_ref=draft.account_ref,
            is_guest=draft.is_guest,
            filename=draft.filename,
            contract_type=draft.contract_type,
            payload=payload,
            created_at=created_at,
            remaining_balance=remaining,
        )

    def get_analysis(self, analysis_id: str) -> PersistedAnalysis:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, account_ref, is_guest, filename, contract_type,
                           payload, created_at
                    FROM analyses
                    WHERE id = %s
                    """,
                    (analysis_id,),
                )
                row = cur.fetchone()

        if row is None:
            raise AnalysisNotFoundError(analysis_id)

        return PersistedAnalysis(
            id=str(row["id"]),
            account_ref=row["account_ref"],
            is_guest=row["is_guest"],
            filename=row["filename"],
            contract_type=ContractType(row["contract_type"]),
            payload=row["payload"],
            created_at=row["created_at"],
        )

    def get_balance(self, account_ref: str, is_guest: bool) -> int | None:
        with get_connection() as conn:
            with conn.cursor() as cur:
                if is_guest:
                    cur.execute(
                        """
                        SELECT used FROM guest_quotas
                        WHERE id = %s AND expires_at > NOW()
                        """,
                        (account_ref,),
                    )
                    row = cur.fetchone()
                    return self._guest_limit - (row[0] if row is not None else 0)

                cur.execute("SELECT credits FROM accounts WHERE id = %s", (account_ref,))
                row = cur.fetchone()

        return row[0] if row is not None else None

    def _debit_credit(self, conn: psycopg.Connection[Any], account_ref: str) -> int:
        with conn.cursor() as cur:
            cur.execute(
                "SELECT credits FROM accounts WHERE id = %s FOR UPDATE",
                (account_ref,),
            )
            row = cur.fetchone()
            if row is None:
                raise AccountNotFoundError(account_ref)
            if row[0] < 1:
                raise InsufficientBalanceError(account_ref, row[0])

            cur.execute(
                "UPDATE accounts SET credits = credits - 1 WHERE id = %s RETURNING credits",
                (account_ref,),
            )
            updated = cur.fetchone()
        return updated[0]

    def _consume_guest_quota(self, conn: psycopg.Connection[Any], guest_ref: str) -> int:
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO guest_quotas (id, used, expires_at)
                VALUES (%s, 0, NOW() + make_interval(hours => %s))
                ON CONFLICT (id) DO NOTHING
                """,
                (guest_ref, self._guest_window_hours),
            )
            cur.execute(
                """
                SELECT used, expires_at <= NOW() AS expired
                FROM guest_quotas
                WHERE id = %s
                FOR UPDATE
                """,
                (guest_ref,),
            )
            used, expired = cur.fetchone()
            if expired:
                used = 0
            if used >= self._guest_limit:
                raise GuestQuotaExceededError(guest_ref, self._guest_limit)

            if expired:
                cur.execute(
                    """
                    UPDATE guest_quotas
                    SET used = 1, expires_at = NOW() + make_interval(hours => %s)
                    WHERE id = %s
                    """,
                    (self._guest_window_hours, guest_ref),
                )
            else:
                cur.execute(
                    "UPDATE guest_quotas SET used = used + 1 WHERE id = %s",
                    (guest_ref,),
                )
        return self._guest_limit - used - 1

    @staticmethod
    def _insert_analysis(
        conn: psycopg.Connection[Any],
        analysis_id: str,
        draft: AnalysisDraft,
        payload: dict[str, object],
    ) -> Any:
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO analyses
                    (id, account_ref, is_guest, filename, contract_type,
                     type_confidence, text_length, summary, risk_score, payload,
                     created_at)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, NOW())
                RETURNING created_at
                """,
                (
                    analysis_id,
                    draft.account_ref,
                    draft.is_guest,
                    draft.filename,
                    draft.contract_type.value,
                    draft.type_confidence,
                    draft.text_length,
                    "\n".join(draft.result.summary),
                    draft.result.risk_score,
                    Jsonb(payload),
                ),
            )
            row = cur.fetchone()
        return row[0]
