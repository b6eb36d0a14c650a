from dataclasses import dataclass, field
from enum import Enum


class ContractType(str, Enum):
    TERMS_OF_SERVICE = "terms_of_service"
    FREELANCE = "freelance"
    EMPLOYMENT = "employment"
    NDA = "nda"
    QUOTE = "quote"
    PARTNERSHIP = "partnership"
    ADMINISTRATIVE_FORM = "administrative_form"
    TABULAR_COMMERCIAL = "tabular_commercial"
    OTHER = "other"


class DetectionSource(str, Enum):
    HEURISTIC = "heuristic"
    LLM = "llm"
    HYBRID = "hybrid"


MAX_EVIDENCE = 5


@dataclass(frozen=True)
class HeuristicResult:
    type: ContractType
    confidence: float
    evidence: list[str] = field(default_factory=list)
    scores: dict[ContractType, float] = field(default_factory=dict)


@dataclass(frozen=True)
class LlmDetection:
    type: ContractType
    confidence: float
    reason: str


@dataclass(frozen=True)
class DetectionResult:
    """Final contract-type label handed to the analysis step."""

    type: ContractType
    confidence: float
    source: DetectionSource
    evidence: list[str] = field(default_factory=list)
    reason: str | None = None
