class PdfExtractionError(Exception):
    """Base class for PDF extraction failures. ``code`` is machine-readable."""

    code = "PDF_EXTRACTION_FAILED"


class PdfPasswordRequiredError(PdfExtractionError):
    code = "PDF_PASSWORD_REQUIRED"

    def __init__(self) -> None:
        super().__init__("PDF is password protected")


class PdfPasswordInvalidError(PdfExtractionError):
    code = "PDF_PASSWORD_INVALID"

    def __init__(self) -> None:
        super().__init__("Incorrect PDF password")


class PdfPageTimeoutError(PdfExtractionError):
    code = "PDF_PAGE_TIMEOUT"

    def __init__(self, page_number: int, timeout_ms: int) -> None:
        super().__init__(f"Page {page_number} extraction timed out after {timeout_ms}ms")
        self.page_number = page_number
        self.timeout_ms = timeout_ms


class PdfParseFailedError(PdfExtractionError):
    code = "PDF_PARSE_FAILED"

    def __init__(self, message: str = "Failed to parse PDF", cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class PdfFileTooLargeError(PdfExtractionError):
    code = "PDF_FILE_TOO_LARGE"

    def __init__(self, size_bytes: int, max_size_bytes: int) -> None:
        super().__init__(
            f"PDF file too large: {size_bytes / 1024 / 1024:.2f}MB "
            f"(max {max_size_bytes / 1024 / 1024:.2f}MB)"
        )
        self.size_bytes = size_bytes
        self.max_size_bytes = max_size_bytes


class PdfTooManyPagesError(PdfExtractionError):
    code = "PDF_TOO_MANY_PAGES"

    def __init__(self, page_count: int, max_pages: int) -> None:
        super().__init__(f"PDF has too many pages: {page_count} (max {max_pages})")
        self.page_count = page_count
        self.max_pages = max_pages


class PdfTextEmptyError(PdfExtractionError):
    code = "PDF_TEXT_EMPTY"

    def __init__(self, text_length: int) -> None:
        super().__init__(
            f"PDF contains no extractable text ({text_length} chars); "
            "it may be a scanned document"
        )
        self.text_length = text_length


_RECOVERABLE = (PdfPasswordRequiredError, PdfPasswordInvalidError, PdfPageTimeoutError)

_USER_MESSAGES: dict[str, str] = {
    PdfPasswordRequiredError.code: "This PDF is password protected. Please provide the password.",
    PdfPasswordInvalidError.code: "The password is incorrect. Please try again.",
    PdfPageTimeoutError.code: "Some pages took too long to process. Please try a simpler PDF.",
    PdfParseFailedError.code: "The PDF file appears to be corrupted or invalid.",
    PdfFileTooLargeError.code: "The PDF file is too large. Maximum size is 10MB.",
    PdfTooManyPagesError.code: "The PDF has too many pages. Maximum is 500 pages.",
    PdfTextEmptyError.code: "No text found in the PDF. It may be a scanned document.",
}


def is_password_error(exc: BaseException) -> bool:
    return isinstance(exc, (PdfPasswordRequiredError, PdfPasswordInvalidError))


def is_recoverable_error(exc: BaseException) -> bool:
    """True when the caller can retry, e.g. with a password or a lighter file."""
    return isinstance(exc, _RECOVERABLE)


def user_facing_message(exc: BaseException) -> str:
    if isinstance(exc, PdfExtractionError):
        return _USER_MESSAGES.get(exc.code, "Failed to extract text from PDF.")
    return "An unexpected error occurred while processing the PDF."


def _error_chain_text(exc: BaseException) -> str:
    """Lower-cased type names, messages and nested causes of an exception."""
    parts: list[str] = []
    seen: set[int] = set()
    pending: list[BaseException] = [exc]
    while pending:
        current = pending.pop()
        if id(current) in seen:
            continue
        seen.add(id(current))
        parts.append(type(current).__name__)
        parts.append(str(current))
        for arg in current.args:
            if isinstance(arg, BaseException):
                pending.append(arg)
            else:
                parts.append(str(arg))
        for linked in (current.__cause__, current.__context__):
            if linked is not None:
                pending.append(linked)
    return " ".join(parts).lower()


def classify_open_error(exc: BaseException, password: str | None) -> PdfExtractionError:
    """Map a parser failure raised while opening a document to a typed error."""
    text = _error_chain_text(exc)
    if "password" in text:
        if password:
            return PdfPasswordInvalidError()
        return PdfPasswordRequiredError()
    if "invalid" in text or "corrupted" in text:
        return PdfParseFailedError(f"Invalid or corrupted PDF: {exc}", cause=exc)
    return PdfParseFailedError(f"Failed to open PDF: {exc}", cause=exc)
