class IdempotencyError(Exception):
    code = "IDEMPOTENCY_ERROR"


class IdempotencyKeyConflictError(IdempotencyError):
    """The key was already used with a different request fingerprint."""

    code = "IDEMPOTENCY_KEY_CONFLICT"

    def __init__(self, key: str) -> None:
        super().__init__(f"Idempotency key '{key}' was already used for a different request")
        self.key = key


class IdempotencyInProgressError(IdempotencyError):
    """Another worker holds a live lock on the key."""

    code = "IDEMPOTENCY_IN_PROGRESS"

    def __init__(self, key: str) -> None:
        super().__init__(f"Request with idempotency key '{key}' is already in progress")
        self.key = key
