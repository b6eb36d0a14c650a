from dataclasses import dataclass, field


@dataclass(frozen=True)
class TextBlock:
    page: int
    text: str
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class TableLikeRegion:
    page: int
    text: str


@dataclass(frozen=True)
class FormIndicators:
    checkbox_count: int = 0
    colon_label_count: int = 0
    field_label_count: int = 0


@dataclass(frozen=True)
class LayoutInfo:
    """Positional view of a document, built independently of text extraction."""

    text_blocks: list[TextBlock] = field(default_factory=list)
    headings: list[str] = field(default_factory=list)
    table_like_regions: list[TableLikeRegion] = field(default_factory=list)
    form_indicators: FormIndicators = field(default_factory=FormIndicators)


@dataclass(frozen=True)
class FormScoreBreakdown:
    colon_labels: float = 0.0
    field_labels: float = 0.0
    checkboxes: float = 0.0
    short_lines: float = 0.0
    column_density: float = 0.0
    penalty: float = 0.0

    @property
    def total(self) -> float:
        raw = (
            self.colon_labels
            + self.field_labels
            + self.checkboxes
            + self.short_lines
            + self.column_density
        )
        return min(max(0.0, raw - self.penalty), 1.0)


@dataclass(frozen=True)
class LayoutScore:
    layout: LayoutInfo
    form_likelihood: float
