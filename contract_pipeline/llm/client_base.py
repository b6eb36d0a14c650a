from abc import ABC, abstractmethod


class BaseLlmClient(ABC):
    """Contract for provider-specific chat completion clients."""

    @abstractmethod
    def complete(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int | None = None,
    ) -> str:
        """Return the provider response as plain text.

        Raises:
            LlmRateLimitedError, LlmTransientError, LlmUnavailableError, LlmError.
        """
