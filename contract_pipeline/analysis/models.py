from dataclasses import asdict, dataclass, field


@dataclass(frozen=True)
class RedFlag:
    title: str
    severity: str
    why: str
    clause_excerpt: str


@dataclass(frozen=True)
class Clause:
    type: str
    text: str


@dataclass(frozen=True)
class AnalysisResult:
    """Validated LLM analysis of one contract."""

    summary: list[str]
    risk_score: int
    risk_justification: str
    red_flags: list[RedFlag] = field(default_factory=list)
    clauses: list[Clause] = field(default_factory=list)

    def to_payload(self) -> dict[str, object]:
        """JSON shape stored with the analysis record."""
        return {
            "summary": list(self.summary),
            "riskScore": self.risk_score,
            "riskJustification": self.risk_justification,
            "redFlags": [asdict(flag) for flag in self.red_flags],
            "clauses": [asdict(clause) for clause in self.clauses],
        }
