import threading
from typing import Any

import pymupdf

from contract_pipeline.pdf.base import BasePdfEngine, PdfDocumentHandle
from contract_pipeline.pdf.exceptions import PdfPasswordInvalidError, PdfPasswordRequiredError
from contract_pipeline.pdf.models import PdfMetadata, TextFragment


class PyMuPdfDocument(PdfDocumentHandle):
    """PyMuPDF document. MuPDF is not thread-safe, page access is serialized."""

    def __init__(self, doc: Any) -> None:
        self._doc = doc
        self._lock = threading.Lock()
        self._closed = False

    def _page(self, page_number: int) -> Any:
        if self._closed:
            raise RuntimeError("document is closed")
        return self._doc[page_number - 1]

    @property
    def page_count(self) -> int:
        return int(self._doc.page_count)

    def metadata(self) -> PdfMetadata:
        info = self._doc.metadata or {}
        return PdfMetadata(
            title=info.get("title") or None,
            author=info.get("author") or None,
            producer=info.get("producer") or None,
            creator=info.get("creator") or None,
            created_at=info.get("creationDate") or None,
        )

    def page_text(self, page_number: int) -> str:
        with self._lock:
            return str(self._page(page_number).get_text())

    def fragments(self, page_number: int) -> list[TextFragment]:
        with self._lock:
            layout = self._page(page_number).get_text("dict")
        fragments: list[TextFragment] = []
        for block in layout.get("blocks", []):
            for line in block.get("lines", []):
                for span in line.get("spans", []):
                    x0, y0, x1, y1 = span["bbox"]
                    fragments.append(
                        TextFragment(
                            text=span.get("text", ""),
                            x=float(x0),
                            y=float(y0),
                            width=float(x1 - x0),
                            height=float(y1 - y0),
                        )
                    )
        return fragments

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._doc.close()


class PyMuPdfAdapter(BasePdfEngine):
    """Opens PDFs with PyMuPDF."""

    name = "pymupdf"

    def open(self, pdf_bytes: bytes, password: str | None = None) -> PdfDocumentHandle:
        doc = pymupdf.open(stream=pdf_bytes, filetype="pdf")  # type: ignore[no-untyped-call]
        if doc.needs_pass:
            if not password:
                doc.close()
                raise PdfPasswordRequiredError()
            if not doc.authenticate(password):
                doc.close()
                raise PdfPasswordInvalidError()
        return PyMuPdfDocument(doc)
