from dataclasses import dataclass, field

from contract_pipeline.config.settings import Settings

MIN_CONCURRENCY = 1
MAX_CONCURRENCY = 8
MIN_PAGE_TIMEOUT_MS = 200
MAX_PAGE_TIMEOUT_MS = 3000


def _clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(upper, value))


@dataclass
class ExtractionOptions:
    """Per-call extraction limits. Concurrency and timeout are clamped on init."""

    password: str | None = None
    max_concurrency: int = 4
    per_page_timeout_ms: int = 800
    max_size_bytes: int = 10 * 1024 * 1024
    max_pages: int = 500
    min_text_length: int = 50

    def __post_init__(self) -> None:
        self.max_concurrency = _clamp(self.max_concurrency, MIN_CONCURRENCY, MAX_CONCURRENCY)
        self.per_page_timeout_ms = _clamp(
            self.per_page_timeout_ms, MIN_PAGE_TIMEOUT_MS, MAX_PAGE_TIMEOUT_MS
        )

    @classmethod
    def from_settings(cls, settings: Settings, password: str | None = None) -> "ExtractionOptions":
        return cls(
            password=password,
            max_concurrency=settings.pdf_max_concurrency,
            per_page_timeout_ms=settings.pdf_page_timeout_ms,
            max_size_bytes=settings.pdf_max_size_bytes,
            max_pages=settings.pdf_max_pages,
            min_text_length=settings.pdf_min_text_length,
        )


@dataclass(frozen=True)
class PdfMetadata:
    title: str | None = None
    author: str | None = None
    producer: str | None = None
    creator: str | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class TextFragment:
    """A positioned run of text. Coordinates use a top-left page origin."""

    text: str
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class MemoryStats:
    input_bytes: int
    extracted_text_bytes: int
    estimated_peak_bytes: int


@dataclass(frozen=True)
class ExtractionResult:
    """Output of the extractor, consumed once by the normalizer."""

    raw_text: str
    page_count: int
    text_length: int
    engine_used: str
    metadata: PdfMetadata = field(default_factory=PdfMetadata)
    per_page_durations_ms: list[float] = field(default_factory=list)
    timed_out_pages: list[int] = field(default_factory=list)
    total_duration_ms: float = 0.0
    avg_page_ms: float = 0.0
    memory: MemoryStats | None = None
