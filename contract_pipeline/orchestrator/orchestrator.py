"""Idempotent, paid contract analysis: LLM call + persist + debit."""

from datetime import timedelta

from contract_pipeline.analysis.analyzer import ContractAnalyzer, build_analyzer
from contract_pipeline.config.settings import Settings
from contract_pipeline.database.connection import init_pool
from contract_pipeline.database.repositories.analysis_repository import PostgresAnalysisLedger
from contract_pipeline.database.repositories.idempotency_repository import (
    PostgresIdempotencyStore,
)
from contract_pipeline.idempotency.coordinator import IdempotencyCoordinator, build_coordinator
from contract_pipeline.idempotency.fingerprint import create_fingerprint
from contract_pipeline.idempotency.store import BaseIdempotencyStore, InMemoryIdempotencyStore
from contract_pipeline.llm.client_base import BaseLlmClient
from contract_pipeline.llm.factory import LlmClientFactory
from contract_pipeline.logging.logger import Log
from contract_pipeline.orchestrator.ledger import BaseAnalysisLedger, InMemoryAnalysisLedger
from contract_pipeline.orchestrator.models import AnalysisDraft, AnalysisOutcome, AnalysisRequest

FINGERPRINT_TEXT_LENGTH = 1000


def request_fingerprint(request: AnalysisRequest) -> str:
    return create_fingerprint(
        {
            "account_ref": request.account_ref,
            "clean_text": request.clean_text[:FINGERPRINT_TEXT_LENGTH],
            "contract_type": request.contract_type.value,
            "filename": request.filename,
        }
    )


class AnalysisOrchestrator:
    """Runs one analysis request exactly once per idempotency key.

    On a new key the LLM analysis runs, then the analysis is stored and one
    credit (or guest-quota unit) is debited in a single ledger call. A replay
    returns the stored payload without calling the LLM or debiting again.
    """

    def __init__(
        self,
        *,
        analyzer: ContractAnalyzer,
        ledger: BaseAnalysisLedger,
        coordinator: IdempotencyCoordinator,
    ) -> None:
        self._analyzer = analyzer
        self._ledger = ledger
        self._coordinator = coordinator

    def run(self, request: AnalysisRequest) -> AnalysisOutcome:
        Log.info(
            f"Analysis requested: key={request.idempotency_key} "
            f"type={request.contract_type.value} guest={request.is_guest}"
        )
        remaining: dict[str, int | None] = {}

        def analyze_and_persist() -> str:
            result = self._analyzer.analyze(request.clean_text, request.contract_type)
            persisted = self._ledger.persist_and_debit(
                AnalysisDraft(
                    account_ref=request.account_ref,
                    is_guest=request.is_guest,
                    filename=request.filename,
                    contract_type=request.contract_type,
                    type_confidence=request.type_confidence,
                    text_length=len(request.clean_text),
                    result=result,
                )
            )
            remaining["balance"] = persisted.remaining_balance
            Log.info(
                f"Analysis {persisted.id} stored, balance debited "
                f"(remaining {persisted.remaining_balance})"
            )
            return persisted.id

        outcome = self._coordinator.execute(
            request.idempotency_key, request_fingerprint(request), analyze_and_persist
        )
        analysis = self._ledger.get_analysis(outcome.result_id)

        if outcome.is_replay:
            balance = self._ledger.get_balance(request.account_ref, request.is_guest)
        else:
            balance = remaining.get("balance")

        return AnalysisOutcome(
            analysis_id=analysis.id,
            analysis_payload=analysis.payload,
            is_replay=outcome.is_replay,
            remaining_balance=balance,
        )


def build_orchestrator(
    settings: Settings,
    client: BaseLlmClient | None = None,
    ledger: BaseAnalysisLedger | None = None,
    store: BaseIdempotencyStore | None = None,
) -> AnalysisOrchestrator:
    """Wire the orchestrator for the configured persistence backend."""
    if client is None:
        client = LlmClientFactory.create(settings)

    if settings.persistence_backend == "memory":
        ledger = ledger or InMemoryAnalysisLedger(
            guest_limit=settings.guest_quota_limit,
            guest_window=timedelta(hours=settings.guest_quota_window_hours),
        )
        store = store or InMemoryIdempotencyStore()
    elif settings.persistence_backend == "postgres":
        init_pool(settings)
        ledger = ledger or PostgresAnalysisLedger(
            guest_limit=settings.guest_quota_limit,
            guest_window_hours=settings.guest_quota_window_hours,
        )
        store = store or PostgresIdempotencyStore()
    else:
        raise ValueError(f"Unknown persistence backend: '{settings.persistence_backend}'")

    return AnalysisOrchestrator(
        analyzer=build_analyzer(settings, client),
        ledger=ledger,
        coordinator=build_coordinator(settings, store),
    )
