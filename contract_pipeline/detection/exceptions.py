class TypeDetectionError(Exception):
    """Raised when the LLM type detector cannot produce a usable answer."""

    code = "TYPE_DETECTION_FAILED"
