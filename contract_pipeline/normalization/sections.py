"""Title and heading detection over clean contract text."""

import re

from contract_pipeline.normalization.models import DocumentSections, Heading

UPPER = "A-ZÀ-ÖØ-Þ"
LOWER = "a-zß-öø-ÿ"

_ALL_CAPS = re.compile(rf"^(?=.*[{UPPER}])[{UPPER}\s'’-]{{5,}}$")
_TITLE_CASE = re.compile(rf"^[{UPPER}][{LOWER}]+(?:\s+[{UPPER}][{LOWER}]+)*$")
_TITLE_CASE_MULTI = re.compile(rf"^[{UPPER}][{LOWER}]+(?:\s+[{UPPER}][{LOWER}]+)+$")
_ARTICLE = re.compile(r"^(ARTICLE|SECTION|CHAPITRE|PARTIE)\s+\d+", re.IGNORECASE)
_NUMBERED = re.compile(rf"^(\d+(?:\.\d+)+\.?|\d+\.)\s+[{UPPER}]")
_CLAUSE_PREFIX = re.compile(r"^(Clause|Article|Annexe)\s+", re.IGNORECASE)

TITLE_MIN_LENGTH = 5
TITLE_MAX_LENGTH = 100


def is_all_caps_heading(line: str) -> bool:
    return bool(_ALL_CAPS.match(line))


def is_article_heading(line: str) -> bool:
    return bool(_ARTICLE.match(line))


def numbered_heading_level(line: str) -> int | None:
    """2 for ``1.`` style numbering, 3 once the number has an inner dot."""
    match = _NUMBERED.match(line)
    if match is None:
        return None
    numbering = match.group(1).rstrip(".")
    return 3 if "." in numbering else 2


def detect_title(text: str) -> str | None:
    for line in text.split("\n"):
        trimmed = line.strip()
        if not TITLE_MIN_LENGTH <= len(trimmed) <= TITLE_MAX_LENGTH:
            continue
        if is_all_caps_heading(trimmed) or _TITLE_CASE.match(trimmed):
            return trimmed
    return None


def detect_headings(text: str) -> list[Heading]:
    headings: list[Heading] = []
    for index, line in enumerate(text.split("\n")):
        trimmed = line.strip()
        if not trimmed:
            continue
        level = _heading_level(trimmed)
        if level is not None:
            headings.append(Heading(level=level, text=trimmed, line_index=index))
    return headings


def _heading_level(line: str) -> int | None:
    if is_all_caps_heading(line) or is_article_heading(line):
        return 1
    numbered = numbered_heading_level(line)
    if numbered is not None:
        return numbered
    if _TITLE_CASE_MULTI.match(line) and 10 <= len(line) <= 80:
        return 2
    if _CLAUSE_PREFIX.match(line):
        return 3
    return None


def detect_sections(text: str) -> DocumentSections:
    return DocumentSections(title=detect_title(text), headings=detect_headings(text))
