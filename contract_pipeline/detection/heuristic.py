"""Fast offline contract-type detection from titles, keywords and clause headers."""

import re
import time
from functools import lru_cache

from contract_pipeline.detection.models import MAX_EVIDENCE, ContractType, HeuristicResult
from contract_pipeline.detection.vocabulary import (
    DISCRIMINANT_KEYWORDS,
    STRUCTURAL_PATTERNS,
    TYPE_ALIASES,
    word_pattern,
)
from contract_pipeline.logging.logger import Log

TITLE_WINDOW = 500
TITLE_CONFIDENCE = 0.95
TITLE_WEIGHT = 0.4
KEYWORD_WEIGHT = 0.5
STRUCTURAL_WEIGHT = 0.1
EVIDENCE_CONTEXT = 50
EVIDENCE_MAX_LENGTH = 150


@lru_cache(maxsize=None)
def _pattern(term: str) -> re.Pattern[str]:
    return word_pattern(term)


@lru_cache(maxsize=None)
def _evidence_pattern(term: str) -> re.Pattern[str]:
    context = EVIDENCE_CONTEXT
    return re.compile(
        rf"(.{{0,{context}}}(?<!\w){re.escape(term)}(?!\w).{{0,{context}}})",
        re.IGNORECASE,
    )


class HeuristicTypeDetector:
    """Scores every contract type and returns the best one.

    A title alias in the opening window short-circuits at 0.95 confidence.
    Otherwise keyword and structural scores are combined per type and
    renormalized so the confidences sum to one.
    """

    def detect(self, text: str) -> HeuristicResult:
        started = time.perf_counter()

        title_type = self.detect_title(text)
        if title_type is not None:
            Log.debug(f"Title alias matched: {title_type.value}")
            return HeuristicResult(
                type=title_type,
                confidence=TITLE_CONFIDENCE,
                evidence=self.extract_evidence(text, title_type),
                scores={title_type: TITLE_CONFIDENCE},
            )

        keyword_scores = self.score_keywords(text)
        structural_scores = self.score_structure(text)
        combined = {
            contract_type: KEYWORD_WEIGHT * keyword_scores[contract_type]
            + STRUCTURAL_WEIGHT * structural_scores[contract_type]
            for contract_type in ContractType
        }
        total = sum(combined.values())
        if total > 0:
            combined = {key: value / total for key, value in combined.items()}

        best_type = ContractType.OTHER
        best_score = 0.0
        for contract_type, score in combined.items():
            if score > best_score:
                best_type, best_score = contract_type, score

        Log.info(
            f"Heuristic detection: {best_type.value} confidence={best_score:.2f} "
            f"({(time.perf_counter() - started) * 1000:.1f}ms)"
        )
        return HeuristicResult(
            type=best_type,
            confidence=best_score,
            evidence=self.extract_evidence(text, best_type),
            scores=combined,
        )

    @staticmethod
    def detect_title(text: str) -> ContractType | None:
        window = text[:TITLE_WINDOW]
        for contract_type, aliases in TYPE_ALIASES.items():
            if any(_pattern(alias).search(window) for alias in aliases):
                return contract_type
        return None

    @staticmethod
    def score_keywords(text: str) -> dict[ContractType, float]:
        """Weighted keyword hits per type, normalized by the best type's score."""
        raw: dict[ContractType, float] = {}
        for contract_type in ContractType:
            keywords = DISCRIMINANT_KEYWORDS.get(contract_type, {})
            raw[contract_type] = float(
                sum(len(_pattern(term).findall(text)) * weight for term, weight in keywords.items())
            )
        top = max(max(raw.values()), 1.0)
        return {key: value / top for key, value in raw.items()}

    @staticmethod
    def score_structure(text: str) -> dict[ContractType, float]:
        scores: dict[ContractType, float] = {}
        for contract_type in ContractType:
            patterns = STRUCTURAL_PATTERNS.get(contract_type, ())
            if not patterns:
                scores[contract_type] = 0.0
                continue
            matched = sum(1 for pattern in patterns if pattern.search(text))
            scores[contract_type] = matched / len(patterns)
        return scores

    @staticmethod
    def extract_evidence(text: str, contract_type: ContractType) -> list[str]:
        """Short excerpts around the type's heaviest keywords."""
        keywords = DISCRIMINANT_KEYWORDS.get(contract_type, {})
        strongest = sorted(keywords.items(), key=lambda item: item[1], reverse=True)[:MAX_EVIDENCE]

        evidence: list[str] = []
        for term, _ in strongest:
            match = _evidence_pattern(term).search(text)
            if match is None:
                continue
            excerpt = match.group(1).strip()[:EVIDENCE_MAX_LENGTH]
            if excerpt not in evidence:
                evidence.append(excerpt)
            if len(evidence) >= MAX_EVIDENCE:
                break
        return evidence
