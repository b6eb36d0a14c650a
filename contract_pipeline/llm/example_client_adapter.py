"""Offline LLM client.

Returns one fixed JSON document that satisfies both the type-detection and
the contract-analysis response shapes. Useful for local development, tests,
and as a template when adding a provider adapter.
"""

import json
from typing import ClassVar

from contract_pipeline.llm.client_base import BaseLlmClient


class ExampleClientAdapter(BaseLlmClient):
    """Adapter that never touches the network."""

    DEFAULT_RESPONSE: ClassVar[dict[str, object]] = {
        "type": "other",
        "confidence": 0.5,
        "reason": "Offline example provider does not classify documents.",
        "summary": [
            "Example analysis produced without calling a provider.",
            "The contract text was received and not inspected.",
            "Configure a real provider to obtain a meaningful analysis.",
        ],
        "riskScore": 0,
        "riskJustification": "No risk assessment was performed by the example provider.",
        "redFlags": [],
        "clauses": [],
    }

    def complete(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int | None = None,
    ) -> str:
        _ = model, system_prompt, user_prompt, temperature, max_tokens
        return json.dumps(self.DEFAULT_RESPONSE)
