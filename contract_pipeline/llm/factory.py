from typing import ClassVar

from contract_pipeline.config.settings import Settings
from contract_pipeline.llm.client_base import BaseLlmClient
from contract_pipeline.llm.example_client_adapter import ExampleClientAdapter
from contract_pipeline.llm.openai_client_adapter import OpenAIClientAdapter


class LlmClientFactory:
    """Creates the configured LLM client."""

    OPENAI_COMPATIBLE_BASE_URLS: ClassVar[dict[str, str]] = {
        "openrouter": "https://openrouter.ai/api/v1",
        "groq": "https://api.groq.com/openai/v1",
        "together": "https://api.together.xyz/v1",
        "deepseek": "https://api.deepseek.com/v1",
        "ollama": "http://localhost:11434/v1",
    }

    # ollama's OpenAI endpoint rejects response_format on many models
    NO_JSON_MODE: ClassVar[frozenset[str]] = frozenset({"ollama"})

    @classmethod
    def create(cls, settings: Settings) -> BaseLlmClient:
        provider = settings.llm_provider.lower()
        if provider == "example":
            return ExampleClientAdapter()
        return OpenAIClientAdapter(
            api_key=settings.llm_api_key or cls._placeholder_key(provider),
            timeout_seconds=settings.llm_timeout_seconds,
            base_url=cls._resolve_base_url(provider, settings),
            json_mode=provider not in cls.NO_JSON_MODE,
        )

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str | None:
        override = settings.llm_base_url.strip()
        if provider == "openai":
            return override or None
        if provider == "openai_compatible":
            if not override:
                raise ValueError(
                    "llm_base_url is required for llm_provider=openai_compatible"
                )
            return override
        default_base_url = cls.OPENAI_COMPATIBLE_BASE_URLS.get(provider)
        if default_base_url is not None:
            return override or default_base_url
        supported = [
            "example",
            "openai",
            "openai_compatible",
            *sorted(cls.OPENAI_COMPATIBLE_BASE_URLS),
        ]
        raise ValueError(f"Unknown LLM provider '{provider}'. Choose from: {supported}")

    @staticmethod
    def _placeholder_key(provider: str) -> str:
        # the openai client refuses an empty key; local servers ignore it
        return provider if provider == "ollama" else ""
