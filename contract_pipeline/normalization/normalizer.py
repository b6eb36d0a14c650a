"""Deterministic cleanup of extracted PDF text into dense, LLM-ready text."""

import math
import re

from contract_pipeline.logging.logger import Log
from contract_pipeline.normalization.exceptions import TextTooShortError
from contract_pipeline.normalization.models import (
    NormalizationInput,
    NormalizationResult,
    NormalizationStats,
)
from contract_pipeline.normalization.sections import (
    LOWER,
    UPPER,
    detect_sections,
    is_all_caps_heading,
    is_article_heading,
)
from contract_pipeline.pdf.models import ExtractionResult

MIN_CLEAN_LENGTH = 200
MAX_CLEAN_LENGTH = 200_000
CHARS_PER_TOKEN = 4

PAGE_BREAK = "\f"

_PAGE_MARKER = re.compile(r"\n*---\s*Page\s+\d+\s*---\n*", re.IGNORECASE)
_HYPHENATED = re.compile(rf"([{UPPER}{LOWER}])-\n([{LOWER}])")
_BULLET = re.compile(r"^[•◦▪▫■□●○]\s", re.MULTILINE)
_STAR_BULLET = re.compile(r"^\*\s", re.MULTILINE)
_PAGE_NUMBER = re.compile(r"^\s*\d+\s*$")
_INNER_SPACES = re.compile(r"(?<=\S) {2,}")
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
_NBSP = re.compile(r"[\u00a0\u202f\u2007]")
_LIST_ITEM = re.compile(r"^[-•*]\s")
_NUMBERED_ITEM = re.compile(r"^\d+\.")

_PRODUCER_SIGNATURES = (
    re.compile(r"generated\s+by", re.IGNORECASE),
    re.compile(r"pdf\s+producer", re.IGNORECASE),
    re.compile(r"created\s+with", re.IGNORECASE),
    re.compile(r"adobe\s+acrobat", re.IGNORECASE),
    re.compile(r"microsoft\s+word", re.IGNORECASE),
)

_TYPOGRAPHY = (
    ("ﬁ", "fi"),
    ("ﬂ", "fl"),
    ("ﬀ", "ff"),
    ("ﬃ", "ffi"),
    ("ﬄ", "ffl"),
    ("“", '"'),
    ("”", '"'),
    ("„", '"'),
    ("‘", "'"),
    ("’", "'"),
    ("‚", "'"),
    ("—", " - "),
    ("–", "-"),
    ("‑", "-"),
    ("…", "..."),
)

HEADER_FOOTER_MIN_LENGTH = 6
HEADER_FOOTER_MAX_LENGTH = 99
HEADER_FOOTER_PAGE_SHARE = 0.5


class Normalizer:
    """Turns raw extractor output into clean text with detected sections.

    The stages run in a fixed order and each assumes the shape produced by
    the previous one. Running the normalizer on its own output is a no-op
    modulo whitespace.
    """

    def __init__(
        self,
        min_length: int = MIN_CLEAN_LENGTH,
        max_length: int = MAX_CLEAN_LENGTH,
    ) -> None:
        self._min_length = min_length
        self._max_length = max_length

    def normalize(self, data: NormalizationInput) -> NormalizationResult:
        """Clean ``data.raw_text``.

        Raises:
            TextTooShortError: if fewer than ``min_length`` characters survive.
        """
        raw_length = len(data.raw_text)

        text = self._mark_page_breaks(data.raw_text)
        text = self._normalize_typography(text)
        text, hyphen_joins = self._join_hyphenated_words(text)
        text = self._normalize_bullets(text)
        text, removed_ratio = self._remove_headers_footers(text, data.page_count)
        text = self._remove_page_numbers_and_signatures(text)
        text, lines_merged = self._normalize_whitespace(text)
        text = self._strip_control_characters(text)
        text = text.strip()

        if len(text) < self._min_length:
            raise TextTooShortError(len(text), self._min_length)

        truncated = len(text) > self._max_length
        if truncated:
            text = text[: self._max_length]
            Log.warning(f"Clean text truncated to {self._max_length} chars")

        sections = detect_sections(text)
        stats = NormalizationStats(
            raw_length=raw_length,
            clean_length=len(text),
            header_footer_removed_ratio=removed_ratio,
            hyphen_joins=hyphen_joins,
            lines_merged=lines_merged,
            truncated=truncated,
        )
        Log.info(
            f"Normalized text: {raw_length} -> {len(text)} chars, "
            f"{hyphen_joins} hyphen joins, {lines_merged} lines merged, "
            f"{removed_ratio:.1%} header/footer removed, "
            f"{len(sections.headings)} headings"
        )
        return NormalizationResult(
            clean_text=text,
            approx_token_count=math.ceil(len(text) / CHARS_PER_TOKEN),
            stats=stats,
            sections=sections,
        )

    def normalize_extraction(self, extraction: ExtractionResult) -> NormalizationResult:
        return self.normalize(
            NormalizationInput(
                raw_text=extraction.raw_text,
                page_count=extraction.page_count,
                metadata=extraction.metadata,
            )
        )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    @staticmethod
    def _mark_page_breaks(text: str) -> str:
        text = text.replace("\r\n", "\n")
        return _PAGE_MARKER.sub(f"\n{PAGE_BREAK}\n", text)

    @staticmethod
    def _normalize_typography(text: str) -> str:
        for source, target in _TYPOGRAPHY:
            text = text.replace(source, target)
        return text

    @staticmethod
    def _join_hyphenated_words(text: str) -> tuple[str, int]:
        text, joins = _HYPHENATED.subn(r"\1\2", text)
        return text, joins

    @staticmethod
    def _normalize_bullets(text: str) -> str:
        text = _BULLET.sub("- ", text)
        return _STAR_BULLET.sub("- ", text)

    @staticmethod
    def _remove_headers_footers(text: str, page_count: int) -> tuple[str, float]:
        lines = text.split("\n")
        removed_ratio = 0.0

        if page_count >= 2:
            pages_by_line: dict[str, set[int]] = {}
            page_index = 0
            for line in lines:
                if line == PAGE_BREAK:
                    page_index += 1
                    continue
                trimmed = line.strip()
                if HEADER_FOOTER_MIN_LENGTH <= len(trimmed) <= HEADER_FOOTER_MAX_LENGTH:
                    pages_by_line.setdefault(trimmed, set()).add(page_index)

            threshold = max(2, math.ceil(page_count * HEADER_FOOTER_PAGE_SHARE))
            repeated = {
                line for line, pages in pages_by_line.items() if len(pages) >= threshold
            }
            if repeated:
                kept = [line for line in lines if line.strip() not in repeated]
                removed = len(text) - len("\n".join(kept))
                removed_ratio = removed / len(text) if text else 0.0
                lines = kept
                Log.debug(f"Removed {len(repeated)} repeated header/footer line(s)")

        return "\n".join("" if line == PAGE_BREAK else line for line in lines), removed_ratio

    @staticmethod
    def _remove_page_numbers_and_signatures(text: str) -> str:
        kept: list[str] = []
        for line in text.split("\n"):
            if _PAGE_NUMBER.match(line):
                kept.append("")
                continue
            if any(pattern.search(line) for pattern in _PRODUCER_SIGNATURES):
                continue
            kept.append(line)
        return "\n".join(kept)

    def _normalize_whitespace(self, text: str) -> tuple[str, int]:
        text = text.replace("\r\n", "\n")
        lines = [_INNER_SPACES.sub(" ", line.rstrip(" \t")) for line in text.split("\n")]

        merged: list[str] = []
        lines_merged = 0
        for line in lines:
            if not line:
                if merged and merged[-1] == "":
                    continue
                merged.append("")
                continue
            if merged and merged[-1] and self._can_merge(merged[-1], line):
                merged[-1] = f"{merged[-1]} {line.lstrip()}"
                lines_merged += 1
                continue
            merged.append(line)
        return "\n".join(merged), lines_merged

    @staticmethod
    def _can_merge(previous: str, following: str) -> bool:
        head = previous.strip()
        if is_all_caps_heading(head) or is_article_heading(head):
            return False
        nxt = following.strip()
        if _LIST_ITEM.match(nxt) or _NUMBERED_ITEM.match(nxt):
            return False
        return not (is_all_caps_heading(nxt) or is_article_heading(nxt))

    @staticmethod
    def _strip_control_characters(text: str) -> str:
        text = _CONTROL_CHARS.sub("", text)
        text = _NBSP.sub(" ", text)
        return "\n".join(_INNER_SPACES.sub(" ", line).rstrip() for line in text.split("\n"))


def normalize_text(raw_text: str, page_count: int = 1) -> NormalizationResult:
    """Normalize with default limits."""
    return Normalizer().normalize(NormalizationInput(raw_text=raw_text, page_count=page_count))
