class LlmError(Exception):
    """Raised when an LLM provider call fails."""

    code = "LLM_ERROR"


class LlmRateLimitedError(LlmError):
    """Provider answered 429."""

    code = "LLM_RATE_LIMITED"

    def __init__(self, message: str, retry_after: int | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class LlmTransientError(LlmError):
    """5xx answers and timeouts; a later retry may succeed."""

    code = "LLM_TRANSIENT"


class LlmUnavailableError(LlmError):
    """The provider cannot be reached at all."""

    code = "LLM_UNAVAILABLE"
