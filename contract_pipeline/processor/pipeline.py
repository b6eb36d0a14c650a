from abc import ABC, abstractmethod
from dataclasses import dataclass

from contract_pipeline.detection.models import DetectionResult
from contract_pipeline.layout.models import LayoutScore
from contract_pipeline.normalization.models import NormalizationResult
from contract_pipeline.pdf.models import ExtractionResult


@dataclass(slots=True)
class PipelineContext:
    path: str
    password: str | None = None
    detect_type: bool = True
    raw_bytes: bytes = b""
    layout_score: LayoutScore | None = None
    extraction: ExtractionResult | None = None
    normalization: NormalizationResult | None = None
    detection: DetectionResult | None = None


class PipelineStep(ABC):
    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
