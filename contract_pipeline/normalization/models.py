from dataclasses import dataclass, field

from contract_pipeline.pdf.models import PdfMetadata


@dataclass(frozen=True)
class NormalizationInput:
    raw_text: str
    page_count: int
    metadata: PdfMetadata | None = None


@dataclass(frozen=True)
class NormalizationStats:
    raw_length: int
    clean_length: int
    header_footer_removed_ratio: float = 0.0
    hyphen_joins: int = 0
    lines_merged: int = 0
    truncated: bool = False


@dataclass(frozen=True)
class Heading:
    """A detected heading. ``line_index`` points into the clean text lines."""

    level: int
    text: str
    line_index: int


@dataclass(frozen=True)
class DocumentSections:
    title: str | None = None
    headings: list[Heading] = field(default_factory=list)


@dataclass(frozen=True)
class NormalizationResult:
    """Clean, LLM-ready text plus the stats of how it was produced."""

    clean_text: str
    approx_token_count: int
    stats: NormalizationStats
    sections: DocumentSections = field(default_factory=DocumentSections)
