"""Key + fingerprint deduplication of retried requests."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from contract_pipeline.config.settings import Settings
from contract_pipeline.idempotency.exceptions import (
    IdempotencyInProgressError,
    IdempotencyKeyConflictError,
)
from contract_pipeline.idempotency.locks import KeyedLocks
from contract_pipeline.idempotency.models import (
    IdempotencyRecord,
    IdempotencyResult,
    IdempotencyStatus,
)
from contract_pipeline.idempotency.store import BaseIdempotencyStore
from contract_pipeline.logging.logger import Log

DEFAULT_LOCK_TIMEOUT = timedelta(minutes=2)
DEFAULT_TTL = timedelta(hours=24)
STALE_LOCK_ERROR_CODE = "TIMEOUT"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class IdempotencyCoordinator:
    """Runs a callable at most once per idempotency key.

    Record lifecycle: absent -> PENDING -> SUCCEEDED | FAILED.

    * SUCCEEDED records are replayed without calling ``fn`` again.
    * FAILED records may be retried with the same key and fingerprint; the
      record is moved back to PENDING under the in-process lock.
    * PENDING records whose lock expired (crashed worker) are marked FAILED,
      only if still PENDING, and can then be retried.
    * Reusing a key with another fingerprint raises IdempotencyKeyConflictError,
      even once the record has expired but not yet been purged.

    Concurrent callers in one process serialize on ``KeyedLocks``; across
    processes the unique key in the store decides who runs.
    """

    def __init__(
        self,
        store: BaseIdempotencyStore,
        locks: KeyedLocks | None = None,
        *,
        lock_timeout: timedelta = DEFAULT_LOCK_TIMEOUT,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._locks = locks if locks is not None else KeyedLocks()
        self._lock_timeout = lock_timeout
        self._ttl = ttl
        self._clock = clock

    def execute(self, key: str, fingerprint: str, fn: Callable[[], str]) -> IdempotencyResult:
        """Run ``fn`` for a new key or replay the stored result id.

        Raises:
            IdempotencyKeyConflictError: key already bound to another fingerprint.
            IdempotencyInProgressError: another process holds a live lock.
            Exception: whatever ``fn`` raises, after the record is marked FAILED.
        """
        record = self._inspect(key, fingerprint)
        if record is not None and record.status is IdempotencyStatus.SUCCEEDED:
            return self._replay(record)

        with self._locks.hold(key):
            record = self._inspect(key, fingerprint)
            now = self._clock()

            if record is None:
                if not self._store.create(self._new_record(key, fingerprint, now)):
                    # another process inserted the key between our read and insert
                    record = self._inspect(key, fingerprint)
                    if record is not None and record.status is IdempotencyStatus.SUCCEEDED:
                        return self._replay(record)
                    raise IdempotencyInProgressError(key)
            elif record.status is IdempotencyStatus.SUCCEEDED:
                return self._replay(record)
            elif record.status is IdempotencyStatus.PENDING:
                raise IdempotencyInProgressError(key)
            else:
                if not self._store.restart(key, now + self._lock_timeout):
                    raise IdempotencyInProgressError(key)
                Log.info(f"Retrying failed idempotent request {key} (was {record.error_code})")

            return self._run(key, fn)

    def purge_expired(self) -> int:
        removed = self._store.purge_expired(self._clock())
        if removed:
            Log.info(f"Purged {removed} expired idempotency record(s)")
        return removed

    def _run(self, key: str, fn: Callable[[], str]) -> IdempotencyResult:
        try:
            result_id = fn()
        except Exception as exc:
            code = getattr(exc, "code", None) or type(exc).__name__
            Log.warning(f"Idempotent request {key} failed: {code}")
            try:
                self._store.mark_failed(key, str(code), str(exc))
            except Exception as store_exc:
                Log.error(f"Failed to record failure of idempotent request {key}: {store_exc}")
            raise

        self._store.mark_succeeded(key, result_id)
        Log.info(f"Idempotent request {key} succeeded: result {result_id}")
        return IdempotencyResult(key=key, result_id=result_id, is_replay=False)

    def _inspect(self, key: str, fingerprint: str) -> IdempotencyRecord | None:
        """Current live record for ``key``, after expiry and stale-lock handling."""
        record = self._store.get(key)
        if record is None:
            return None

        # a key stays bound to its fingerprint until the record is purged
        if record.fingerprint != fingerprint:
            Log.warning(f"Idempotency key {key} reused with a different fingerprint")
            raise IdempotencyKeyConflictError(key)

        now = self._clock()
        if record.is_expired(now):
            self._store.delete(key)
            return None

        if record.status is IdempotencyStatus.PENDING and not record.is_locked(now):
            if self._store.expire_stale(
                key, now, STALE_LOCK_ERROR_CODE, "Lock expired before completion"
            ):
                Log.warning(f"Idempotency lock for {key} expired, marked as failed")
            return self._store.get(key)

        return record

    def _new_record(self, key: str, fingerprint: str, now: datetime) -> IdempotencyRecord:
        return IdempotencyRecord(
            key=key,
            fingerprint=fingerprint,
            status=IdempotencyStatus.PENDING,
            locked_until=now + self._lock_timeout,
            expires_at=now + self._ttl,
        )

    @staticmethod
    def _replay(record: IdempotencyRecord) -> IdempotencyResult:
        Log.info(f"Replaying idempotent request {record.key}")
        return IdempotencyResult(key=record.key, result_id=str(record.result_id), is_replay=True)


def build_coordinator(settings: Settings, store: BaseIdempotencyStore) -> IdempotencyCoordinator:
    return IdempotencyCoordinator(
        store,
        KeyedLocks(),
        lock_timeout=timedelta(seconds=settings.idempotency_lock_timeout_seconds),
        ttl=timedelta(hours=settings.idempotency_ttl_hours),
    )
