class NormalizationError(Exception):
    """Raised when raw text cannot be turned into clean text."""

    code = "NORMALIZATION_FAILED"


class TextTooShortError(NormalizationError):
    """Raised when the cleaned text is below the minimum usable length."""

    code = "TEXT_TOO_SHORT"

    def __init__(self, length: int, minimum: int = 200) -> None:
        super().__init__(
            f"Text too short after cleanup: {length} characters (minimum: {minimum})"
        )
        self.length = length
        self.minimum = minimum
