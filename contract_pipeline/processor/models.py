from dataclasses import dataclass, field

from contract_pipeline.detection.models import DetectionResult
from contract_pipeline.normalization.models import DocumentSections, NormalizationStats
from contract_pipeline.pdf.models import PdfMetadata


@dataclass(frozen=True)
class PreparedText:
    """Output of the text-preparation pipeline, ready for paid analysis."""

    clean_text: str
    page_count: int
    approx_token_count: int
    engine_used: str
    metadata: PdfMetadata
    stats: NormalizationStats
    sections: DocumentSections
    timed_out_pages: list[int] = field(default_factory=list)
    form_likelihood: float | None = None
    detection: DetectionResult | None = None
