import json

from contract_pipeline.analysis.validator import validate_and_build
from contract_pipeline.detection.llm_detector import parse_detection
from contract_pipeline.detection.models import ContractType
from contract_pipeline.llm.example_client_adapter import ExampleClientAdapter


class TestExampleClientAdapter:
    def _complete(self) -> str:
        return ExampleClientAdapter().complete(
            model="any", system_prompt="s", user_prompt="u", temperature=0.3
        )

    def test_returns_json(self) -> None:
        assert json.loads(self._complete())["type"] == "other"

    def test_response_is_a_valid_detection(self) -> None:
        assert parse_detection(self._complete()).type == ContractType.OTHER

    def test_response_is_a_valid_analysis(self) -> None:
        result = validate_and_build(json.loads(self._complete()))
        assert result.risk_score == 0
        assert len(result.summary) == 3
