"""Validates the raw analysis JSON returned by the LLM."""

from typing import Any

from contract_pipeline.analysis.exceptions import AnalysisValidationError
from contract_pipeline.analysis.models import AnalysisResult, Clause, RedFlag

SUMMARY_MIN_ITEMS = 3
SUMMARY_MAX_ITEMS = 10
SEVERITIES = frozenset({"low", "medium", "high"})


def validate_and_build(data: Any) -> AnalysisResult:
    """Check every field and build an AnalysisResult.

    Unlike a fail-fast check, all problems are collected so a repair prompt
    can report them together.

    Raises:
        AnalysisValidationError: listing every validation failure.
    """
    if not isinstance(data, dict):
        raise AnalysisValidationError(["response must be a JSON object"])

    errors: list[str] = []
    summary = _check_summary(data.get("summary"), errors)
    risk_score = _check_risk_score(data.get("riskScore"), errors)
    justification = _check_text(
        data.get("riskJustification"), "riskJustification", 20, 1000, errors
    )
    red_flags = _check_red_flags(data.get("redFlags"), errors)
    clauses = _check_clauses(data.get("clauses"), errors)

    if errors:
        raise AnalysisValidationError(errors)
    return AnalysisResult(
        summary=summary,
        risk_score=risk_score,
        risk_justification=justification,
        red_flags=red_flags,
        clauses=clauses,
    )


def _check_text(raw: Any, path: str, min_len: int, max_len: int, errors: list[str]) -> str:
    if not isinstance(raw, str):
        errors.append(f"{path}: expected string")
        return ""
    if len(raw) < min_len:
        errors.append(f"{path}: must contain at least {min_len} character(s)")
    elif len(raw) > max_len:
        errors.append(f"{path}: must contain at most {max_len} character(s)")
    return raw


def _check_summary(raw: Any, errors: list[str]) -> list[str]:
    if not isinstance(raw, list):
        errors.append("summary: expected array")
        return []
    if not SUMMARY_MIN_ITEMS <= len(raw) <= SUMMARY_MAX_ITEMS:
        errors.append(
            f"summary: must contain {SUMMARY_MIN_ITEMS}-{SUMMARY_MAX_ITEMS} items, got {len(raw)}"
        )
    return [_check_text(item, f"summary.{i}", 10, 500, errors) for i, item in enumerate(raw)]


def _check_risk_score(raw: Any, errors: list[str]) -> int:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        errors.append("riskScore: expected number")
        return 0
    if isinstance(raw, float) and not raw.is_integer():
        errors.append("riskScore: expected integer")
        return 0
    score = int(raw)
    if not 0 <= score <= 100:
        errors.append(f"riskScore: must be between 0 and 100, got {score}")
    return score


def _check_red_flags(raw: Any, errors: list[str]) -> list[RedFlag]:
    if not isinstance(raw, list):
        errors.append("redFlags: expected array")
        return []
    flags: list[RedFlag] = []
    for i, item in enumerate(raw):
        path = f"redFlags.{i}"
        if not isinstance(item, dict):
            errors.append(f"{path}: expected object")
            continue
        severity = item.get("severity")
        if severity not in SEVERITIES:
            errors.append(f"{path}.severity: must be one of {sorted(SEVERITIES)}, got {severity!r}")
        flags.append(
            RedFlag(
                title=_check_text(item.get("title"), f"{path}.title", 1, 200, errors),
                severity=str(severity),
                why=_check_text(item.get("why"), f"{path}.why", 10, 1000, errors),
                clause_excerpt=_check_text(
                    item.get("clause_excerpt"), f"{path}.clause_excerpt", 10, 500, errors
                ),
            )
        )
    return flags


def _check_clauses(raw: Any, errors: list[str]) -> list[Clause]:
    if not isinstance(raw, list):
        errors.append("clauses: expected array")
        return []
    clauses: list[Clause] = []
    for i, item in enumerate(raw):
        path = f"clauses.{i}"
        if not isinstance(item, dict):
            errors.append(f"{path}: expected object")
            continue
        clauses.append(
            Clause(
                type=_check_text(item.get("type"), f"{path}.type", 1, 100, errors),
                text=_check_text(item.get("text"), f"{path}.text", 10, 2000, errors),
            )
        )
    return clauses
