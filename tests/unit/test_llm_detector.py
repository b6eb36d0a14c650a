import json
from unittest.mock import MagicMock

import pytest

from contract_pipeline.detection.exceptions import TypeDetectionError
from contract_pipeline.detection.llm_detector import LlmTypeDetector, build_excerpt, parse_detection
from contract_pipeline.detection.models import ContractType


class TestParseDetection:
    def test_valid_answer(self) -> None:
        detection = parse_detection('{"type": "NDA", "confidence": 0.9, "reason": "secret"}')
        assert detection.type == ContractType.NDA
        assert detection.confidence == 0.9
        assert detection.reason == "secret"

    def test_code_fences_are_stripped(self) -> None:
        raw = '```json\n{"type": "quote", "confidence": 1, "reason": "devis"}\n```'
        assert parse_detection(raw).type == ContractType.QUOTE

    @pytest.mark.parametrize(
        "raw",
        [
            "not json",
            "[]",
            '{"type": "lease", "confidence": 0.5, "reason": "x"}',
            '{"type": "nda", "confidence": 1.5, "reason": "x"}',
            '{"type": "nda", "confidence": true, "reason": "x"}',
            '{"type": "nda", "confidence": 0.5}',
        ],
    )
    def test_invalid_answers(self, raw: str) -> None:
        with pytest.raises(TypeDetectionError):
            parse_detection(raw)


class TestBuildExcerpt:
    def test_includes_head_and_keyword_lines(self) -> None:
        lines = [f"ligne {i}" for i in range(100)]
        lines[95] = "Clause de confidentiel renforcée"
        excerpt = build_excerpt("\n".join(lines), ContractType.NDA)
        assert excerpt.startswith("ligne 0")
        assert "--- KEY SECTIONS ---" in excerpt
        assert "ligne 85" not in excerpt.split("--- KEY SECTIONS ---")[0]

    def test_is_capped(self) -> None:
        excerpt = build_excerpt("contrat " * 2000, None)
        assert len(excerpt) <= 1200


class TestLlmTypeDetector:
    def test_calls_client_with_json_prompt(self) -> None:
        client = MagicMock()
        client.complete.return_value = json.dumps(
            {"type": "freelance", "confidence": 0.85, "reason": "mission"}
        )
        detector = LlmTypeDetector(client=client, model="small-model")

        detection = detector.detect("Contrat de mission freelance", ContractType.FREELANCE)

        assert detection.type == ContractType.FREELANCE
        kwargs = client.complete.call_args.kwargs
        assert kwargs["model"] == "small-model"
        assert kwargs["max_tokens"] == 150
        assert kwargs["temperature"] == 0.3
        assert "freelance" in kwargs["user_prompt"]
        assert "Contrat de mission freelance" in kwargs["user_prompt"]

    def test_invalid_answer_raises(self) -> None:
        client = MagicMock()
        client.complete.return_value = "I think it is an NDA"
        with pytest.raises(TypeDetectionError):
            LlmTypeDetector(client=client, model="m").detect("texte")
