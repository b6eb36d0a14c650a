import json
import time

from contract_pipeline.detection.exceptions import TypeDetectionError
from contract_pipeline.detection.models import ContractType, LlmDetection
from contract_pipeline.detection.vocabulary import DEFAULT_HINT_KEYWORDS, HINT_KEYWORDS
from contract_pipeline.llm.client_base import BaseLlmClient
from contract_pipeline.llm.prompt_loader import load_prompt
from contract_pipeline.logging.logger import Log

EXCERPT_HEAD_LINES = 80
EXCERPT_KEYWORD_LINES = 10
EXCERPT_MAX_CHARS = 1200
DETECTION_MAX_TOKENS = 150


def build_excerpt(text: str, hint: ContractType | None) -> str:
    """Opening lines plus a few hint-keyword lines, capped at ~300 tokens."""
    lines = text.split("\n")
    head = "\n".join(lines[:EXCERPT_HEAD_LINES])
    keywords = HINT_KEYWORDS.get(hint, DEFAULT_HINT_KEYWORDS) if hint else DEFAULT_HINT_KEYWORDS

    keyword_lines: list[str] = []
    for line in lines:
        lowered = line.lower()
        if any(keyword in lowered for keyword in keywords):
            keyword_lines.append(line)
            if len(keyword_lines) >= EXCERPT_KEYWORD_LINES:
                break

    combined = f"{head}\n\n--- KEY SECTIONS ---\n" + "\n".join(keyword_lines)
    return combined[:EXCERPT_MAX_CHARS]


def parse_detection(raw: str) -> LlmDetection:
    """Validate the detector's JSON answer.

    Raises:
        TypeDetectionError: on malformed JSON or out-of-range fields.
    """
    cleaned = raw.strip()
    if cleaned.startswith("```"):
        lines = cleaned.splitlines()[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        cleaned = "\n".join(lines)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise TypeDetectionError(f"Invalid JSON from type detector: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeDetectionError("Type detector response must be an object")

    raw_type = data.get("type")
    try:
        contract_type = ContractType(str(raw_type).strip().lower())
    except ValueError as exc:
        raise TypeDetectionError(f"Unknown contract type {raw_type!r}") from exc

    confidence = data.get("confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        raise TypeDetectionError("'confidence' must be a number")
    if not 0.0 <= confidence <= 1.0:
        raise TypeDetectionError(f"'confidence' out of range: {confidence}")

    reason = data.get("reason")
    if not isinstance(reason, str):
        raise TypeDetectionError("'reason' must be a string")

    return LlmDetection(type=contract_type, confidence=float(confidence), reason=reason)


class LlmTypeDetector:
    """Asks an LLM to label a short excerpt of the contract."""

    def __init__(
        self,
        *,
        client: BaseLlmClient,
        model: str,
        temperature: float = 0.3,
        max_tokens: int = DETECTION_MAX_TOKENS,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._system_prompt = load_prompt("detection_system")
        self._user_template = load_prompt("detection_user")

    def detect(self, text: str, hint: ContractType | None = None) -> LlmDetection:
        started = time.perf_counter()
        excerpt = build_excerpt(text, hint)
        user_prompt = self._user_template.format(
            hint=hint.value if hint else "none",
            excerpt=excerpt,
        )
        raw = self._client.complete(
            model=self._model,
            system_prompt=self._system_prompt,
            user_prompt=user_prompt,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        detection = parse_detection(raw)
        Log.info(
            f"LLM detection: {detection.type.value} confidence={detection.confidence:.2f} "
            f"({(time.perf_counter() - started) * 1000:.0f}ms)"
        )
        return detection
