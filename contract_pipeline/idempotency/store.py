import threading
from abc import ABC, abstractmethod
from datetime import datetime

from contract_pipeline.idempotency.models import IdempotencyRecord, IdempotencyStatus


class BaseIdempotencyStore(ABC):
    """Persistence port for idempotency records."""

    @abstractmethod
    def get(self, key: str) -> IdempotencyRecord | None:
        """Return the record for ``key`` or None."""

    @abstractmethod
    def create(self, record: IdempotencyRecord) -> bool:
        """Insert a new record. False when the key already exists."""

    @abstractmethod
    def restart(self, key: str, locked_until: datetime) -> bool:
        """Move a FAILED record back to PENDING. False if it was not FAILED."""

    @abstractmethod
    def mark_succeeded(self, key: str, result_id: str) -> None:
        ...

    @abstractmethod
    def mark_failed(self, key: str, error_code: str, error_message: str) -> None:
        ...

    @abstractmethod
    def expire_stale(self, key: str, now: datetime, error_code: str, error_message: str) -> bool:
        """Mark a PENDING record whose lock ran out as FAILED.

        False when the record is gone, no longer PENDING or still locked.
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def purge_expired(self, now: datetime) -> int:
        """Delete expired records and return how many were removed."""


class InMemoryIdempotencyStore(BaseIdempotencyStore):
    """Process-local store for development and tests."""

    def __init__(self) -> None:
        self._records: dict[str, IdempotencyRecord] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> IdempotencyRecord | None:
        with self._lock:
            return self._records.get(key)

    def create(self, record: IdempotencyRecord) -> bool:
        with self._lock:
            if record.key in self._records:
                return False
            self._records[record.key] = record
            return True

    def restart(self, key: str, locked_until: datetime) -> bool:
        with self._lock:
            record = self._records.get(key)
            if record is None or record.status is not IdempotencyStatus.FAILED:
                return False
            self._records[key] = record.with_status(
                IdempotencyStatus.PENDING,
                locked_until=locked_until,
                error_code=None,
                error_message=None,
            )
            return True

    def mark_succeeded(self, key: str, result_id: str) -> None:
        with self._lock:
            record = self._records[key]
            self._records[key] = record.with_status(
                IdempotencyStatus.SUCCEEDED, result_id=result_id, locked_until=None
            )

    def mark_failed(self, key: str, error_code: str, error_message: str) -> None:
        with self._lock:
            record = self._records[key]
            self._records[key] = record.with_status(
                IdempotencyStatus.FAILED,
                error_code=error_code,
                error_message=error_message,
                locked_until=None,
            )

    def expire_stale(self, key: str, now: datetime, error_code: str, error_message: str) -> bool:
        with self._lock:
            record = self._records.get(key)
            if (
                record is None
                or record.status is not IdempotencyStatus.PENDING
                or record.locked_until is None
                or record.locked_until > now
            ):
                return False
            self._records[key] = record.with_status(
                IdempotencyStatus.FAILED,
                error_code=error_code,
                error_message=error_message,
                locked_until=None,
            )
            return True

    def delete(self, key: str) -> None:
        with self._lock:
            self._records.pop(key, None)

    def purge_expired(self, now: datetime) -> int:
        with self._lock:
            expired = [key for key, record in self._records.items() if record.is_expired(now)]
            for key in expired:
                del self._records[key]
            return len(expired)
