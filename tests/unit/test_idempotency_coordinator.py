import threading
from datetime import UTC, datetime, timedelta

import pytest

from contract_pipeline.config.settings import Settings
from contract_pipeline.idempotency.coordinator import IdempotencyCoordinator, build_coordinator
from contract_pipeline.idempotency.exceptions import (
    IdempotencyInProgressError,
    IdempotencyKeyConflictError,
)
from contract_pipeline.idempotency.models import IdempotencyRecord, IdempotencyStatus
from contract_pipeline.idempotency.store import InMemoryIdempotencyStore
from contract_pipeline.llm.exceptions import LlmTransientError


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store() -> InMemoryIdempotencyStore:
    return InMemoryIdempotencyStore()


@pytest.fixture()
def coordinator(store: InMemoryIdempotencyStore, clock: FakeClock) -> IdempotencyCoordinator:
    return IdempotencyCoordinator(
        store, lock_timeout=timedelta(minutes=2), ttl=timedelta(hours=24), clock=clock
    )


class Counter:
    def __init__(self, result: str = "analysis-1") -> None:
        self.calls = 0
        self.result = result

    def __call__(self) -> str:
        self.calls += 1
        return self.result


class FinishingWorkerStore(InMemoryIdempotencyStore):
    """Lets the original worker finish right after a caller reads its PENDING record."""

    def __init__(self) -> None:
        super().__init__()
        self.finish_on_get = False

    def get(self, key: str) -> IdempotencyRecord | None:
        record = super().get(key)
        if self.finish_on_get and record is not None and record.status is IdempotencyStatus.PENDING:
            self.finish_on_get = False
            self.mark_succeeded(key, "analysis-original")
        return record


class BrokenFailureStore(InMemoryIdempotencyStore):
    def __init__(self) -> None:
        super().__init__()
        self.mark_failed_calls = 0

    def mark_failed(self, key: str, error_code: str, error_message: str) -> None:
        self.mark_failed_calls += 1
        raise RuntimeError("database unavailable")


class TestExecute:
    def test_new_key_runs_once_and_succeeds(
        self, coordinator: IdempotencyCoordinator, store: InMemoryIdempotencyStore
    ) -> None:
        fn = Counter()
        result = coordinator.execute("k1", "fp", fn)

        assert result.result_id == "analysis-1"
        assert result.is_replay is False
        assert fn.calls == 1
        record = store.get("k1")
        assert record is not None
        assert record.status is IdempotencyStatus.SUCCEEDED

    def test_same_key_replays_without_running(self, coordinator: IdempotencyCoordinator) -> None:
        fn = Counter()
        coordinator.execute("k1", "fp", fn)
        replay = coordinator.execute("k1", "fp", fn)

        assert replay.is_replay is True
        assert replay.result_id == "analysis-1"
        assert fn.calls == 1

    def test_conflicting_fingerprint(self, coordinator: IdempotencyCoordinator) -> None:
        coordinator.execute("k1", "fp", Counter())
        other = Counter()

        with pytest.raises(IdempotencyKeyConflictError) as exc_info:
            coordinator.execute("k1", "another-fp", other)
        assert exc_info.value.code == "IDEMPOTENCY_KEY_CONFLICT"
        assert other.calls == 0

    def test_failure_is_recorded_and_retry_allowed(
        self, coordinator: IdempotencyCoordinator, store: InMemoryIdempotencyStore
    ) -> None:
        def failing() -> str:
            raise LlmTransientError("timeout")

        with pytest.raises(LlmTransientError):
            coordinator.execute("k1", "fp", failing)

        record = store.get("k1")
        assert record is not None
        assert record.status is IdempotencyStatus.FAILED
        assert record.error_code == "LLM_TRANSIENT"

        fn = Counter()
        result = coordinator.execute("k1", "fp", fn)
        assert result.is_replay is False
        assert fn.calls == 1

    def test_failure_without_code_uses_class_name(
        self, coordinator: IdempotencyCoordinator, store: InMemoryIdempotencyStore
    ) -> None:
        def failing() -> str:
            raise ValueError("bad")

        with pytest.raises(ValueError):
            coordinator.execute("k1", "fp", failing)
        record = store.get("k1")
        assert record is not None
        assert record.error_code == "ValueError"

    def test_live_pending_record_is_in_progress(
        self,
        coordinator: IdempotencyCoordinator,
        store: InMemoryIdempotencyStore,
        clock: FakeClock,
    ) -> None:
        store.create(
            IdempotencyRecord(
                key="k1",
                fingerprint="fp",
                status=IdempotencyStatus.PENDING,
                locked_until=clock.now + timedelta(minutes=1),
                expires_at=clock.now + timedelta(hours=24),
            )
        )
        fn = Counter()

        with pytest.raises(IdempotencyInProgressError):
            coordinator.execute("k1", "fp", fn)
        assert fn.calls == 0

    def test_stale_pending_record_is_taken_over(
        self,
        coordinator: IdempotencyCoordinator,
        store: InMemoryIdempotencyStore,
        clock: FakeClock,
    ) -> None:
        store.create(
            IdempotencyRecord(
                key="k1",
                fingerprint="fp",
                status=IdempotencyStatus.PENDING,
                locked_until=clock.now + timedelta(minutes=2),
                expires_at=clock.now + timedelta(hours=24),
            )
        )
        clock.advance(timedelta(minutes=3))
        fn = Counter()

        result = coordinator.execute("k1", "fp", fn)
        assert result.is_replay is False
        assert fn.calls == 1

    def test_expired_record_with_same_fingerprint_is_treated_as_new(
        self, coordinator: IdempotencyCoordinator, clock: FakeClock
    ) -> None:
        coordinator.execute("k1", "fp", Counter("analysis-1"))
        clock.advance(timedelta(hours=25))

        fn = Counter("analysis-2")
        result = coordinator.execute("k1", "fp", fn)
        assert result.result_id == "analysis-2"
        assert result.is_replay is False
        assert fn.calls == 1

    def test_expired_record_with_other_fingerprint_still_conflicts(
        self,
        coordinator: IdempotencyCoordinator,
        store: InMemoryIdempotencyStore,
        clock: FakeClock,
    ) -> None:
        coordinator.execute("k1", "fp", Counter("analysis-1"))
        clock.advance(timedelta(hours=25))
        fn = Counter("analysis-2")

        with pytest.raises(IdempotencyKeyConflictError):
            coordinator.execute("k1", "another-fp", fn)
        assert fn.calls == 0
        record = store.get("k1")
        assert record is not None
        assert record.result_id == "analysis-1"

    def test_stale_takeover_keeps_a_result_that_landed_meanwhile(self, clock: FakeClock) -> None:
        store = FinishingWorkerStore()
        coordinator = IdempotencyCoordinator(
            store, lock_timeout=timedelta(minutes=2), ttl=timedelta(hours=24), clock=clock
        )
        store.create(
            IdempotencyRecord(
                key="k1",
                fingerprint="fp",
                status=IdempotencyStatus.PENDING,
                locked_until=clock.now + timedelta(minutes=2),
                expires_at=clock.now + timedelta(hours=24),
            )
        )
        clock.advance(timedelta(minutes=3))
        store.finish_on_get = True
        fn = Counter("analysis-2")

        result = coordinator.execute("k1", "fp", fn)

        assert fn.calls == 0
        assert result.is_replay is True
        assert result.result_id == "analysis-original"
        record = store.get("k1")
        assert record is not None
        assert record.status is IdempotencyStatus.SUCCEEDED
        assert record.result_id == "analysis-original"

    def test_store_error_while_recording_failure_keeps_original_error(
        self, clock: FakeClock
    ) -> None:
        store = BrokenFailureStore()
        coordinator = IdempotencyCoordinator(store, clock=clock)

        def failing() -> str:
            raise LlmTransientError("timeout")

        with pytest.raises(LlmTransientError, match="timeout"):
            coordinator.execute("k1", "fp", failing)
        assert store.mark_failed_calls == 1

    def test_concurrent_callers_run_once(self, coordinator: IdempotencyCoordinator) -> None:
        started = threading.Event()
        release = threading.Event()
        calls: list[int] = []

        def slow() -> str:
            calls.append(1)
            started.set()
            release.wait(timeout=5)
            return "analysis-1"

        results = {}

        def first() -> None:
            results["first"] = coordinator.execute("k1", "fp", slow)

        def second() -> None:
            started.wait(timeout=5)
            results["second"] = coordinator.execute("k1", "fp", slow)

        threads = [threading.Thread(target=first), threading.Thread(target=second)]
        for t in threads:
            t.start()
        started.wait(timeout=5)
        release.set()
        for t in threads:
            t.join(timeout=5)

        assert len(calls) == 1
        assert results["first"].is_replay is False
        assert results["second"].is_replay is True
        assert results["second"].result_id == results["first"].result_id


class TestPurgeExpired:
    def test_purges_only_expired(
        self,
        coordinator: IdempotencyCoordinator,
        store: InMemoryIdempotencyStore,
        clock: FakeClock,
    ) -> None:
        coordinator.execute("old", "fp", Counter())
        clock.advance(timedelta(hours=23))
        coordinator.execute("fresh", "fp", Counter())
        clock.advance(timedelta(hours=2))

        assert coordinator.purge_expired() == 1
        assert store.get("old") is None
        assert store.get("fresh") is not None


def test_build_coordinator_uses_settings(store: InMemoryIdempotencyStore) -> None:
    coordinator = build_coordinator(
        Settings(idempotency_lock_timeout_seconds=30, idempotency_ttl_hours=1), store
    )
    coordinator.execute("k1", "fp", Counter())

    record = store.get("k1")
    assert record is not None
    assert record.expires_at - datetime.now(UTC) <= timedelta(hours=1)
