import threading
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from contract_pipeline.orchestrator.exceptions import (
    AccountNotFoundError,
    AnalysisNotFoundError,
    GuestQuotaExceededError,
    InsufficientBalanceError,
)
from contract_pipeline.orchestrator.models import AnalysisDraft, PersistedAnalysis


class BaseAnalysisLedger(ABC):
    """Stores analyses and the credit or guest-quota balance paying for them."""

    @abstractmethod
    def persist_and_debit(self, draft: AnalysisDraft) -> PersistedAnalysis:
        """Atomically re-check the balance, store the analysis, and debit one unit.

        Raises:
            AccountNotFoundError: unknown account.
            InsufficientBalanceError: account has no credit left.
            GuestQuotaExceededError: guest used its whole quota.
        """

    @abstractmethod
    def get_analysis(self, analysis_id: str) -> PersistedAnalysis:
        """Raises AnalysisNotFoundError when the id is unknown."""

    @abstractmethod
    def get_balance(self, account_ref: str, is_guest: bool) -> int | None:
        """Remaining credits, or remaining guest analyses. None if unknown."""


class InMemoryAnalysisLedger(BaseAnalysisLedger):
    """Thread-safe ledger for development and tests."""

    def __init__(
        self,
        credits: dict[str, int] | None = None,
        *,
        guest_limit: int = 3,
        guest_window: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._credits = dict(credits or {})
        self._guest_limit = guest_limit
        self._guest_window = guest_window
        self._clock = clock
        self._guests: dict[str, tuple[int, datetime]] = {}
        self._analyses: dict[str, PersistedAnalysis] = {}
        self._lock = threading.Lock()

    def set_credits(self, account_ref: str, credits: int) -> None:
        with self._lock:
            self._credits[account_ref] = credits

    def persist_and_debit(self, draft: AnalysisDraft) -> PersistedAnalysis:
        with self._lock:
            now = self._clock()
            if draft.is_guest:
                used = self._guest_used(draft.account_ref, now)
                if used >= self._guest_limit:
                    raise GuestQuotaExceededError(draft.account_ref, self._guest_limit)
                expires_at = self._guests.get(draft.account_ref, (0, now + self._guest_window))[1]
                self._guests[draft.account_ref] = (used + 1, expires_at)
                remaining = self._guest_limit - used - 1
            else:
                if draft.account_ref not in self._credits:
                    raise AccountNotFoundError(draft.account_ref)
                balance = self._credits[draft.account_ref]
                if balance < 1:
                    raise InsufficientBalanceError(draft.account_ref, balance)
                remaining = balance - 1
                self._credits[draft.account_ref] = remaining

            analysis = PersistedAnalysis(
                id=str(uuid.uuid4()),
                account_ref=draft.account_ref,
                is_guest=draft.is_guest,
                filename=draft.filename,
                contract_type=draft.contract_type,
                payload=draft.result.to_payload(),
                created_at=now,
                remaining_balance=remaining,
            )
            self._analyses[analysis.id] = analysis
            return analysis

    def get_analysis(self, analysis_id: str) -> PersistedAnalysis:
        with self._lock:
            if analysis_id not in self._analyses:
                raise AnalysisNotFoundError(analysis_id)
            return self._analyses[analysis_id]

    def get_balance(self, account_ref: str, is_guest: bool) -> int | None:
        with self._lock:
            if is_guest:
                return self._guest_limit - self._guest_used(account_ref, self._clock())
            return self._credits.get(account_ref)

    def _guest_used(self, guest_ref: str, now: datetime) -> int:
        entry = self._guests.get(guest_ref)
        if entry is None:
            return 0
        used, expires_at = entry
        if expires_at <= now:
            del self._guests[guest_ref]
            return 0
        return used
