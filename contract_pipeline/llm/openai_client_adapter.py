import httpx
import openai

from contract_pipeline.llm.client_base import BaseLlmClient
from contract_pipeline.llm.exceptions import (
    LlmError,
    LlmRateLimitedError,
    LlmTransientError,
    LlmUnavailableError,
)


def _retry_after(exc: openai.APIStatusError) -> int | None:
    raw = exc.response.headers.get("retry-after") if exc.response is not None else None
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


class OpenAIClientAdapter(BaseLlmClient):
    """Chat completion client for OpenAI and OpenAI-compatible APIs."""

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
        json_mode: bool = True,
    ) -> None:
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
        )
        self._json_mode = json_mode

    def complete(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int | None = None,
    ) -> str:
        extra: dict[str, object] = {}
        if self._json_mode:
            extra["response_format"] = {"type": "json_object"}
        if max_tokens is not None:
            extra["max_tokens"] = max_tokens
        try:
            response = self._client.chat.completions.create(
                model=model,
                temperature=temperature,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                **extra,  # type: ignore[arg-type]
            )
        except openai.RateLimitError as exc:
            raise LlmRateLimitedError(
                f"AI provider rate limit exceeded: {exc}", retry_after=_retry_after(exc)
            ) from exc
        except openai.InternalServerError as exc:
            raise LlmTransientError(f"AI provider server error: {exc}") from exc
        except (openai.APITimeoutError, httpx.TimeoutException) as exc:
            raise LlmTransientError(f"AI provider timeout: {exc}") from exc
        except (openai.APIConnectionError, httpx.ConnectError) as exc:
            raise LlmUnavailableError(f"AI provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise LlmError(f"AI provider API error: {exc}") from exc

        if not response.choices:
            raise LlmError("AI returned no choices")
        content = response.choices[0].message.content
        if content is None:
            raise LlmError("AI returned empty response")
        return content
