from dataclasses import dataclass
from datetime import datetime

from contract_pipeline.analysis.models import AnalysisResult
from contract_pipeline.detection.models import ContractType


@dataclass(frozen=True)
class AnalysisRequest:
    """One paid analysis request for an already prepared text."""

    account_ref: str
    is_guest: bool
    clean_text: str
    contract_type: ContractType
    filename: str
    idempotency_key: str
    type_confidence: float | None = None


@dataclass(frozen=True)
class AnalysisDraft:
    account_ref: str
    is_guest: bool
    filename: str
    contract_type: ContractType
    type_confidence: float | None
    text_length: int
    result: AnalysisResult


@dataclass(frozen=True)
class PersistedAnalysis:
    id: str
    account_ref: str
    is_guest: bool
    filename: str
    contract_type: ContractType
    payload: dict[str, object]
    created_at: datetime | None = None
    remaining_balance: int | None = None


@dataclass(frozen=True)
class AnalysisOutcome:
    analysis_id: str
    analysis_payload: dict[str, object]
    is_replay: bool
    remaining_balance: int | None = None
