class AnalysisError(Exception):
    """Raised when the contract analysis step fails."""

    code = "ANALYSIS_FAILED"


class AnalysisValidationError(AnalysisError):
    """One LLM answer failed validation. Carries every problem found."""

    code = "ANALYSIS_VALIDATION_FAILED"

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = errors


class AnalysisInvalidError(AnalysisError):
    """The LLM answer was still invalid after every repair attempt."""

    code = "ANALYSIS_INVALID"

    def __init__(self, validation_errors: list[str], attempts: int = 0) -> None:
        super().__init__(
            f"LLM analysis output invalid after {attempts} attempt(s): "
            + "; ".join(validation_errors)
        )
        self.validation_errors = validation_errors
        self.attempts = attempts
