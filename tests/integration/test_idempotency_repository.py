import uuid
from datetime import UTC, datetime, timedelta

import pytest

from contract_pipeline.database.repositories.idempotency_repository import (
    PostgresIdempotencyStore,
)
from contract_pipeline.idempotency.coordinator import IdempotencyCoordinator
from contract_pipeline.idempotency.models import IdempotencyRecord, IdempotencyStatus


@pytest.fixture
def key(integration_cleanup: list[tuple[str, str]]) -> str:
    value = f"idem-{uuid.uuid4()}"
    integration_cleanup.append(("idempotency", value))
    return value


def _record(key: str, expires_in: timedelta = timedelta(hours=24)) -> IdempotencyRecord:
    now = datetime.now(UTC)
    return IdempotencyRecord(
        key=key,
        fingerprint="fp",
        status=IdempotencyStatus.PENDING,
        locked_until=now + timedelta(minutes=2),
        expires_at=now + expires_in,
    )


@pytest.mark.integration
class TestPostgresIdempotencyStore:
    def test_create_is_unique(self, key: str) -> None:
        store = PostgresIdempotencyStore()
        assert store.create(_record(key)) is True
        assert store.create(_record(key)) is False

        record = store.get(key)
        assert record is not None
        assert record.status is IdempotencyStatus.PENDING
        assert record.fingerprint == "fp"

    def test_get_missing(self, integration_pool: None) -> None:
        assert PostgresIdempotencyStore().get(f"missing-{uuid.uuid4()}") is None

    def test_succeeded(self, key: str) -> None:
        store = PostgresIdempotencyStore()
        store.create(_record(key))
        store.mark_succeeded(key, "analysis-1")

        record = store.get(key)
        assert record is not None
        assert record.status is IdempotencyStatus.SUCCEEDED
        assert record.result_id == "analysis-1"
        assert record.locked_until is None

    def test_failed_then_restart(self, key: str) -> None:
        store = PostgresIdempotencyStore()
        store.create(_record(key))
        assert store.restart(key, datetime.now(UTC)) is False

        store.mark_failed(key, "LLM_TRANSIENT", "timeout")
        failed = store.get(key)
        assert failed is not None
        assert failed.status is IdempotencyStatus.FAILED
        assert failed.error_code == "LLM_TRANSIENT"

        assert store.restart(key, datetime.now(UTC) + timedelta(minutes=2)) is True
        restarted = store.get(key)
        assert restarted is not None
        assert restarted.status is IdempotencyStatus.PENDING
        assert restarted.error_code is None

    def test_expire_stale_is_conditional(self, key: str) -> None:
        store = PostgresIdempotencyStore()
        store.create(_record(key))
        now = datetime.now(UTC)

        assert store.expire_stale(key, now, "TIMEOUT", "Lock expired") is False
        store.mark_succeeded(key, "analysis-1")
        assert store.expire_stale(key, now + timedelta(minutes=3), "TIMEOUT", "Lock expired") is False

        record = store.get(key)
        assert record is not None
        assert record.status is IdempotencyStatus.SUCCEEDED

    def test_expire_stale_fails_a_pending_record(self, key: str) -> None:
        store = PostgresIdempotencyStore()
        store.create(_record(key))

        later = datetime.now(UTC) + timedelta(minutes=3)
        assert store.expire_stale(key, later, "TIMEOUT", "Lock expired") is True
        record = store.get(key)
        assert record is not None
        assert record.status is IdempotencyStatus.FAILED
        assert record.error_code == "TIMEOUT"
        assert record.locked_until is None

    def test_purge_expired(self, key: str, integration_cleanup: list[tuple[str, str]]) -> None:
        fresh_key = f"idem-{uuid.uuid4()}"
        integration_cleanup.append(("idempotency", fresh_key))
        store = PostgresIdempotencyStore()
        store.create(_record(key, expires_in=timedelta(hours=-1)))
        store.create(_record(fresh_key))

        assert store.purge_expired(datetime.now(UTC)) >= 1
        assert store.get(key) is None
        assert store.get(fresh_key) is not None

    def test_coordinator_replays_from_database(self, key: str) -> None:
        coordinator = IdempotencyCoordinator(PostgresIdempotencyStore())
        calls: list[int] = []

        def run() -> str:
            calls.append(1)
            return "analysis-1"

        first = coordinator.execute(key, "fp", run)
        second = coordinator.execute(key, "fp", run)

        assert first.is_replay is False
        assert second.is_replay is True
        assert second.result_id == "analysis-1"
        assert len(calls) == 1
