from datetime import UTC, datetime, timedelta

import pytest

from contract_pipeline.analysis.models import AnalysisResult
from contract_pipeline.detection.models import ContractType
from contract_pipeline.orchestrator.exceptions import (
    AccountNotFoundError,
    AnalysisNotFoundError,
    GuestQuotaExceededError,
    InsufficientBalanceError,
)
from contract_pipeline.orchestrator.ledger import InMemoryAnalysisLedger
from contract_pipeline.orchestrator.models import AnalysisDraft

RESULT = AnalysisResult(
    summary=["Point un du contrat.", "Point deux du contrat.", "Point trois du contrat."],
    risk_score=20,
    risk_justification="Contrat équilibré sans clause abusive.",
)


def _draft(account_ref: str = "acc-1", is_guest: bool = False) -> AnalysisDraft:
    return AnalysisDraft(
        account_ref=account_ref,
        is_guest=is_guest,
        filename="contrat.pdf",
        contract_type=ContractType.NDA,
        type_confidence=0.9,
        text_length=1200,
        result=RESULT,
    )


class MovableClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now


class TestAccounts:
    def test_persist_debits_one_credit(self) -> None:
        ledger = InMemoryAnalysisLedger({"acc-1": 3})
        persisted = ledger.persist_and_debit(_draft())

        assert persisted.remaining_balance == 2
        assert ledger.get_balance("acc-1", is_guest=False) == 2
        stored = ledger.get_analysis(persisted.id)
        assert stored.payload["riskScore"] == 20
        assert stored.contract_type is ContractType.NDA

    def test_insufficient_balance_stores_nothing(self) -> None:
        ledger = InMemoryAnalysisLedger({"acc-1": 0})
        with pytest.raises(InsufficientBalanceError) as exc_info:
            ledger.persist_and_debit(_draft())
        assert exc_info.value.balance == 0
        assert ledger.get_balance("acc-1", is_guest=False) == 0

    def test_unknown_account(self) -> None:
        ledger = InMemoryAnalysisLedger()
        with pytest.raises(AccountNotFoundError):
            ledger.persist_and_debit(_draft("nobody"))
        assert ledger.get_balance("nobody", is_guest=False) is None

    def test_set_credits(self) -> None:
        ledger = InMemoryAnalysisLedger()
        ledger.set_credits("acc-1", 5)
        assert ledger.get_balance("acc-1", is_guest=False) == 5

    def test_unknown_analysis(self) -> None:
        with pytest.raises(AnalysisNotFoundError):
            InMemoryAnalysisLedger().get_analysis("missing")


class TestGuests:
    def test_quota_counts_down_then_refuses(self) -> None:
        ledger = InMemoryAnalysisLedger(guest_limit=2)
        assert ledger.get_balance("guest-1", is_guest=True) == 2

        assert ledger.persist_and_debit(_draft("guest-1", True)).remaining_balance == 1
        assert ledger.persist_and_debit(_draft("guest-1", True)).remaining_balance == 0
        with pytest.raises(GuestQuotaExceededError):
            ledger.persist_and_debit(_draft("guest-1", True))

    def test_quota_resets_after_window(self) -> None:
        clock = MovableClock()
        ledger = InMemoryAnalysisLedger(guest_limit=1, guest_window=timedelta(hours=24), clock=clock)
        ledger.persist_and_debit(_draft("guest-1", True))
        assert ledger.get_balance("guest-1", is_guest=True) == 0

        clock.now += timedelta(hours=25)
        assert ledger.get_balance("guest-1", is_guest=True) == 1
        assert ledger.persist_and_debit(_draft("guest-1", True)).remaining_balance == 0
