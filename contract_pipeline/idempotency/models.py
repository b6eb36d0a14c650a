from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum


class IdempotencyStatus(str, Enum):
    PENDING = "PENDING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class IdempotencyRecord:
    key: str
    fingerprint: str
    status: IdempotencyStatus
    expires_at: datetime
    locked_until: datetime | None = None
    result_id: str | None = None
    error_code: str | None = None
    error_message: str | None = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def is_locked(self, now: datetime) -> bool:
        return (
            self.status is IdempotencyStatus.PENDING
            and self.locked_until is not None
            and self.locked_until > now
        )

    def with_status(self, status: IdempotencyStatus, **changes: object) -> "IdempotencyRecord":
        return replace(self, status=status, **changes)  # type: ignore[arg-type]


@dataclass(frozen=True)
class IdempotencyResult:
    """What ``execute`` hands back: the result id and whether it was replayed."""

    key: str
    result_id: str
    is_replay: bool
