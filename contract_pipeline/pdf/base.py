from abc import ABC, abstractmethod

from contract_pipeline.pdf.models import PdfMetadata, TextFragment


class PdfDocumentHandle(ABC):
    """An opened PDF, used from one thread at a time. Raises once closed."""

    @property
    @abstractmethod
    def page_count(self) -> int:
        """Number of pages in the document."""

    @abstractmethod
    def metadata(self) -> PdfMetadata:
        """Document info dictionary, best-effort."""

    @abstractmethod
    def page_text(self, page_number: int) -> str:
        """Plain text of a 1-based page."""

    @abstractmethod
    def fragments(self, page_number: int) -> list[TextFragment]:
        """Positioned text runs of a 1-based page."""

    @abstractmethod
    def close(self) -> None:
        """Release parser resources."""


class BasePdfEngine(ABC):
    """Contract for all PDF engine adapters."""

    name: str = ""

    @abstractmethod
    def open(self, pdf_bytes: bytes, password: str | None = None) -> PdfDocumentHandle:
        """Open PDF bytes, decrypting with ``password`` when given.

        Raises:
            PdfPasswordRequiredError / PdfPasswordInvalidError when the adapter
            can tell; any other parser exception is left for the caller to
            classify.
        """
