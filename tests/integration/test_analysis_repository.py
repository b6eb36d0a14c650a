from typing import Any

import psycopg
import pytest

from contract_pipeline.analysis.models import AnalysisResult, RedFlag
from contract_pipeline.database.repositories.analysis_repository import PostgresAnalysisLedger
from contract_pipeline.detection.models import ContractType
from contract_pipeline.orchestrator.exceptions import (
    AccountNotFoundError,
    AnalysisNotFoundError,
    GuestQuotaExceededError,
    InsufficientBalanceError,
)
from contract_pipeline.orchestrator.models import AnalysisDraft

RESULT = AnalysisResult(
    summary=["Point un du contrat.", "Point deux du contrat.", "Point trois du contrat."],
    risk_score=55,
    risk_justification="Pénalités de retard élevées pour le prestataire.",
    red_flags=[
        RedFlag(
            title="Pénalités",
            severity="high",
            why="Le montant des pénalités n'est pas plafonné.",
            clause_excerpt="Tout retard entraîne des pénalités de retard.",
        )
    ],
)


def _draft(account_ref: str, is_guest: bool = False) -> AnalysisDraft:
    return AnalysisDraft(
        account_ref=account_ref,
        is_guest=is_guest,
        filename="mission.pdf",
        contract_type=ContractType.FREELANCE,
        type_confidence=0.91,
        text_length=2400,
        result=RESULT,
    )


def _count_analyses(db_conn: psycopg.Connection[Any], account_ref: str) -> int:
    with db_conn.cursor() as cur:
        cur.execute("SELECT COUNT(*) FROM analyses WHERE account_ref = %s", (account_ref,))
        row = cur.fetchone()
    db_conn.commit()
    assert row is not None
    return row[0]


@pytest.mark.integration
class TestPersistAndDebit:
    def test_debits_and_stores(self, seed_account: str, db_conn) -> None:
        ledger = PostgresAnalysisLedger()
        persisted = ledger.persist_and_debit(_draft(seed_account))

        assert persisted.remaining_balance == 1
        assert persisted.created_at is not None
        assert ledger.get_balance(seed_account, is_guest=False) == 1
        assert _count_analyses(db_conn, seed_account) == 1

        stored = ledger.get_analysis(persisted.id)
        assert stored.payload["riskScore"] == 55
        assert stored.payload["redFlags"][0]["severity"] == "high"
        assert stored.contract_type is ContractType.FREELANCE

    def test_insufficient_balance_rolls_back(self, seed_account: str, db_conn) -> None:
        ledger = PostgresAnalysisLedger()
        ledger.persist_and_debit(_draft(seed_account))
        ledger.persist_and_debit(_draft(seed_account))

        with pytest.raises(InsufficientBalanceError):
            ledger.persist_and_debit(_draft(seed_account))
        assert ledger.get_balance(seed_account, is_guest=False) == 0
        assert _count_analyses(db_conn, seed_account) == 2

    def test_unknown_account(self, integration_pool: None) -> None:
        with pytest.raises(AccountNotFoundError):
            PostgresAnalysisLedger().persist_and_debit(_draft("acc-does-not-exist"))

    def test_guest_quota(self, guest_ref: str, db_conn) -> None:
        ledger = PostgresAnalysisLedger(guest_limit=2)
        assert ledger.get_balance(guest_ref, is_guest=True) == 2

        assert ledger.persist_and_debit(_draft(guest_ref, True)).remaining_balance == 1
        assert ledger.persist_and_debit(_draft(guest_ref, True)).remaining_balance == 0
        with pytest.raises(GuestQuotaExceededError):
            ledger.persist_and_debit(_draft(guest_ref, True))
        assert _count_analyses(db_conn, guest_ref) == 2

    def test_expired_guest_quota_resets(self, guest_ref: str, db_conn) -> None:
        with db_conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO guest_quotas (id, used, expires_at)
                VALUES (%s, 2, NOW() - INTERVAL '1 hour')
                """,
                (guest_ref,),
            )
        db_conn.commit()

        ledger = PostgresAnalysisLedger(guest_limit=2)
        assert ledger.get_balance(guest_ref, is_guest=True) == 2
        assert ledger.persist_and_debit(_draft(guest_ref, True)).remaining_balance == 1


@pytest.mark.integration
def test_unknown_analysis(integration_pool: None) -> None:
    with pytest.raises(AnalysisNotFoundError):
        PostgresAnalysisLedger().get_analysis("00000000-0000-0000-0000-000000000000")
