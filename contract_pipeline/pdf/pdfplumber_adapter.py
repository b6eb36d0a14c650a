import io
from typing import Any

import pdfplumber

from contract_pipeline.pdf.base import BasePdfEngine, PdfDocumentHandle
from contract_pipeline.pdf.models import PdfMetadata, TextFragment


def _meta_value(raw: Any) -> str | None:
    if raw is None:
        return None
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="ignore")
    value = str(raw).strip()
    return value or None


class PdfPlumberDocument(PdfDocumentHandle):
    """pdfplumber document backed by a single parser.

    pdfminer objects are not thread-safe; the extractor gives every worker
    process its own handle instead of sharing this one.
    """

    def __init__(self, pdf_bytes: bytes, password: str | None) -> None:
        self._pdf = pdfplumber.open(io.BytesIO(pdf_bytes), password=password or "")
        self._closed = False
        try:
            self._page_count = len(self._pdf.pages)
        except Exception:
            self.close()
            raise

    def _page(self, page_number: int) -> Any:
        if self._closed:
            raise RuntimeError("document is closed")
        return self._pdf.pages[page_number - 1]

    @property
    def page_count(self) -> int:
        return self._page_count

    def metadata(self) -> PdfMetadata:
        if self._closed:
            raise RuntimeError("document is closed")
        info = self._pdf.metadata or {}
        return PdfMetadata(
            title=_meta_value(info.get("Title")),
            author=_meta_value(info.get("Author")),
            producer=_meta_value(info.get("Producer")),
            creator=_meta_value(info.get("Creator")),
            created_at=_meta_value(info.get("CreationDate")),
        )

    def page_text(self, page_number: int) -> str:
        return self._page(page_number).extract_text() or ""

    def fragments(self, page_number: int) -> list[TextFragment]:
        words = self._page(page_number).extract_words(keep_blank_chars=True, extra_attrs=["size"])
        return [
            TextFragment(
                text=word["text"],
                x=float(word["x0"]),
                y=float(word["top"]),
                width=float(word["x1"] - word["x0"]),
                height=float(word["bottom"] - word["top"]),
            )
            for word in words
        ]

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._pdf.close()


class PdfPlumberAdapter(BasePdfEngine):
    """Opens PDFs with pdfplumber (pdfminer.six underneath)."""

    name = "pdfplumber"

    def open(self, pdf_bytes: bytes, password: str | None = None) -> PdfDocumentHandle:
        return PdfPlumberDocument(pdf_bytes, password)
