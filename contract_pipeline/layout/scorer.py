"""Layout pass: positional analysis of text fragments to spot form-like PDFs."""

import time

from contract_pipeline.layout.models import (
    FormIndicators,
    FormScoreBreakdown,
    LayoutInfo,
    LayoutScore,
    TableLikeRegion,
    TextBlock,
)
from contract_pipeline.logging.logger import Log
from contract_pipeline.pdf.base import BasePdfEngine, PdfDocumentHandle
from contract_pipeline.pdf.exceptions import PdfExtractionError, classify_open_error

FORM_FIELD_LABELS = (
    "nom",
    "prénom",
    "prenom",
    "adresse",
    "code postal",
    "ville",
    "commune",
    "département",
    "departement",
    "téléphone",
    "telephone",
    "email",
    "date de naissance",
    "lieu de naissance",
    "nationalité",
    "nationalite",
    "profession",
    "signature",
    "cachet",
    "date",
    "numéro",
    "numero",
    "siret",
    "siren",
)

CHECKBOX_GLYPHS = frozenset("☐☑☒□■▢▣⬜⬛❏❐❑❒")

HEADING_MIN_HEIGHT = 14.0
COLON_LABEL_MIN_LENGTH = 3
COLON_LABEL_MAX_LENGTH = 50
TABLE_MIN_BLOCKS = 10
TABLE_COLUMN_TOLERANCE = 5.0
TABLE_MIN_COLUMNS = 3
TABLE_MIN_COLUMN_SIZE = 5
TABLE_SAMPLE_LENGTH = 200
SHORT_LINE_MAX_LENGTH = 30
ANTI_PATTERN_PENALTY = 0.1


def is_checkbox(text: str) -> bool:
    return any(char in CHECKBOX_GLYPHS for char in text)


def is_colon_label(text: str) -> bool:
    return text.endswith(":") and COLON_LABEL_MIN_LENGTH <= len(text) <= COLON_LABEL_MAX_LENGTH


def is_field_label(text: str) -> bool:
    lowered = text.lower()
    return any(label in lowered for label in FORM_FIELD_LABELS)


def detect_table_region(page: int, blocks: list[TextBlock]) -> TableLikeRegion | None:
    """A page is table-like when 3+ x-aligned columns hold 5+ blocks each."""
    if len(blocks) < TABLE_MIN_BLOCKS:
        return None

    columns: dict[float, list[TextBlock]] = {}
    for block in blocks:
        for column_x, members in columns.items():
            if abs(block.x - column_x) < TABLE_COLUMN_TOLERANCE:
                members.append(block)
                break
        else:
            columns[block.x] = [block]

    significant = [m for m in columns.values() if len(m) >= TABLE_MIN_COLUMN_SIZE]
    if len(significant) < TABLE_MIN_COLUMNS:
        return None
    sample = " ".join(block.text for block in blocks)[:TABLE_SAMPLE_LENGTH]
    return TableLikeRegion(page=page, text=sample)


def form_score_breakdown(layout: LayoutInfo) -> FormScoreBreakdown:
    """Weighted form signals of a layout, before capping."""
    blocks = layout.text_blocks
    if not blocks:
        return FormScoreBreakdown()

    total = len(blocks)
    indicators = layout.form_indicators

    colon_density = indicators.colon_label_count / total
    if colon_density > 0.15:
        colon = 0.35
    elif colon_density > 0.08:
        colon = 0.25
    elif colon_density > 0.04:
        colon = 0.15
    else:
        colon = 0.0

    field_density = indicators.field_label_count / total
    if field_density > 0.10:
        field = 0.25
    elif field_density > 0.05:
        field = 0.15
    elif field_density > 0.02:
        field = 0.08
    else:
        field = 0.0

    checkboxes = indicators.checkbox_count
    if checkboxes >= 10:
        checkbox = 0.25
    elif checkboxes >= 5:
        checkbox = 0.15
    elif checkboxes >= 2:
        checkbox = 0.08
    else:
        checkbox = 0.0

    short_density = sum(1 for b in blocks if len(b.text) <= SHORT_LINE_MAX_LENGTH) / total
    if short_density > 0.6:
        short = 0.15
    elif short_density > 0.4:
        short = 0.10
    elif short_density > 0.25:
        short = 0.05
    else:
        short = 0.0

    unique_columns = len({round(b.x / 10) * 10 for b in blocks})
    column_density = unique_columns / total
    if column_density < 0.15 and unique_columns >= 3:
        column = 0.15
    elif column_density < 0.25 and unique_columns >= 2:
        column = 0.08
    else:
        column = 0.0

    # numbered-article contracts: many "Article N :" labels, almost no form fields
    penalty = ANTI_PATTERN_PENALTY if colon_density > 0.15 and field_density < 0.015 else 0.0

    return FormScoreBreakdown(
        colon_labels=colon,
        field_labels=field,
        checkboxes=checkbox,
        short_lines=short,
        column_density=column,
        penalty=penalty,
    )


def compute_form_likelihood(layout: LayoutInfo) -> float:
    """Form likelihood in [0, 1]; 0.45 and above reads as an administrative form."""
    breakdown = form_score_breakdown(layout)
    if breakdown.penalty:
        Log.info(
            f"Form score anti-pattern: {layout.form_indicators.colon_label_count} colon "
            f"labels vs {layout.form_indicators.field_label_count} field labels, "
            f"penalty {breakdown.penalty}"
        )
    Log.debug(
        f"Form score breakdown: colon={breakdown.colon_labels:.2f} "
        f"field={breakdown.field_labels:.2f} checkbox={breakdown.checkboxes:.2f} "
        f"short={breakdown.short_lines:.2f} columns={breakdown.column_density:.2f} "
        f"=> {breakdown.total:.2f}"
    )
    return breakdown.total


class LayoutScorer:
    """Re-opens a PDF for positional data and scores how form-like it is."""

    def __init__(self, engine: BasePdfEngine) -> None:
        self._engine = engine

    def score(self, pdf_bytes: bytes, password: str | None = None) -> LayoutScore:
        layout = self.analyze(pdf_bytes, password)
        return LayoutScore(layout=layout, form_likelihood=compute_form_likelihood(layout))

    def analyze(self, pdf_bytes: bytes, password: str | None = None) -> LayoutInfo:
        started = time.perf_counter()
        handle = self._open(pdf_bytes, password)
        try:
            layout = self._collect(handle)
        finally:
            handle.close()

        indicators = layout.form_indicators
        Log.info(
            f"Layout analysis complete: {len(layout.text_blocks)} blocks, "
            f"{indicators.colon_label_count} labels, {indicators.checkbox_count} checkboxes, "
            f"{len(layout.table_like_regions)} table-like pages "
            f"({(time.perf_counter() - started) * 1000:.0f}ms)"
        )
        return layout

    def _open(self, pdf_bytes: bytes, password: str | None) -> PdfDocumentHandle:
        try:
            return self._engine.open(pdf_bytes, password)
        except PdfExtractionError:
            raise
        except Exception as exc:
            raise classify_open_error(exc, password) from exc

    @staticmethod
    def _collect(handle: PdfDocumentHandle) -> LayoutInfo:
        blocks: list[TextBlock] = []
        headings: list[str] = []
        regions: list[TableLikeRegion] = []
        checkboxes = colon_labels = field_labels = 0

        for page in range(1, handle.page_count + 1):
            page_blocks: list[TextBlock] = []
            for fragment in handle.fragments(page):
                text = fragment.text.strip()
                if not text:
                    continue
                block = TextBlock(
                    page=page,
                    text=text,
                    x=fragment.x,
                    y=fragment.y,
                    width=fragment.width,
                    height=fragment.height,
                )
                page_blocks.append(block)

                if block.height > HEADING_MIN_HEIGHT and len(text) > 3:
                    headings.append(text)
                if is_checkbox(text):
                    checkboxes += 1
                if is_colon_label(text):
                    colon_labels += 1
                if is_field_label(text):
                    field_labels += 1

            region = detect_table_region(page, page_blocks)
            if region is not None:
                regions.append(region)
            blocks.extend(page_blocks)

        return LayoutInfo(
            text_blocks=blocks,
            headings=headings,
            table_like_regions=regions,
            form_indicators=FormIndicators(
                checkbox_count=checkboxes,
                colon_label_count=colon_labels,
                field_label_count=field_labels,
            ),
        )
