from unittest.mock import patch

import pytest

from contract_pipeline.config.settings import Settings
from contract_pipeline.llm.example_client_adapter import ExampleClientAdapter
from contract_pipeline.llm.factory import LlmClientFactory
from contract_pipeline.llm.openai_client_adapter import OpenAIClientAdapter

_OPENAI = "contract_pipeline.llm.openai_client_adapter.openai.OpenAI"


class TestLlmClientFactory:
    def test_example_provider(self) -> None:
        client = LlmClientFactory.create(Settings(llm_provider="example"))
        assert isinstance(client, ExampleClientAdapter)

    def test_openai_provider(self) -> None:
        with patch(_OPENAI) as openai_cls:
            client = LlmClientFactory.create(Settings(llm_provider="openai", llm_api_key="k"))
        assert isinstance(client, OpenAIClientAdapter)
        assert openai_cls.call_args.kwargs["base_url"] is None
        assert openai_cls.call_args.kwargs["api_key"] == "k"

    def test_known_compatible_provider_uses_default_url(self) -> None:
        with patch(_OPENAI) as openai_cls:
            LlmClientFactory.create(Settings(llm_provider="groq", llm_api_key="k"))
        assert openai_cls.call_args.kwargs["base_url"] == "https://api.groq.com/openai/v1"

    def test_base_url_override(self) -> None:
        with patch(_OPENAI) as openai_cls:
            LlmClientFactory.create(
                Settings(llm_provider="ollama", llm_base_url="http://gpu:11434/v1")
            )
        assert openai_cls.call_args.kwargs["base_url"] == "http://gpu:11434/v1"
        assert openai_cls.call_args.kwargs["api_key"] == "ollama"

    def test_ollama_disables_json_mode(self) -> None:
        with patch(_OPENAI):
            client = LlmClientFactory.create(Settings(llm_provider="ollama"))
        assert isinstance(client, OpenAIClientAdapter)
        assert client._json_mode is False

    def test_openai_compatible_requires_base_url(self) -> None:
        with pytest.raises(ValueError, match="llm_base_url is required"):
            LlmClientFactory.create(Settings(llm_provider="openai_compatible"))

    def test_unknown_provider(self) -> None:
        with pytest.raises(ValueError, match="Unknown LLM provider"):
            LlmClientFactory.create(Settings(llm_provider="mystery"))
