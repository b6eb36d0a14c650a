"""Parallel, timeout-bounded PDF text extraction."""

import time

from contract_pipeline.config.settings import Settings
from contract_pipeline.logging.logger import Log
from contract_pipeline.pdf.base import BasePdfEngine, PdfDocumentHandle
from contract_pipeline.pdf.exceptions import (
    PdfExtractionError,
    PdfFileTooLargeError,
    PdfPasswordInvalidError,
    PdfPasswordRequiredError,
    PdfTextEmptyError,
    PdfTooManyPagesError,
    classify_open_error,
)
from contract_pipeline.pdf.factory import PdfEngineFactory
from contract_pipeline.pdf.models import (
    ExtractionOptions,
    ExtractionResult,
    MemoryStats,
    PdfMetadata,
)
from contract_pipeline.pdf.workers import PageWorkerPool

LARGE_PAGE_COUNT = 300
LARGE_TEXT_BYTES = 5 * 1024 * 1024
PAGE_OVERHEAD_BYTES = 1024


def page_marker(page_number: int) -> str:
    return f"\n--- Page {page_number} ---\n"


def timeout_placeholder(page_number: int) -> str:
    return f"[Page {page_number} - extraction timed out]"


class Extractor:
    """Pulls text per page from a PDF buffer.

    Pages are spread over up to ``max_concurrency`` worker processes, each
    holding its own parsed copy of the document. Every page has its own
    deadline counted from the moment a worker picks it up. A page that misses
    it is replaced by a placeholder and its worker is killed; any other page
    error aborts the call.
    """

    def __init__(self, engine: BasePdfEngine, options: ExtractionOptions | None = None) -> None:
        self._engine = engine
        self._options = options or ExtractionOptions()

    @property
    def options(self) -> ExtractionOptions:
        return self._options

    def extract(self, pdf_bytes: bytes, password: str | None = None) -> ExtractionResult:
        """Extract the document text.

        Raises:
            PdfFileTooLargeError, PdfPasswordRequiredError, PdfPasswordInvalidError,
            PdfParseFailedError, PdfTooManyPagesError, PdfTextEmptyError.
        """
        opts = self._options
        started = time.perf_counter()
        password = password if password is not None else opts.password

        Log.info(
            f"PDF extraction config: engine={self._engine.name} "
            f"concurrency={opts.max_concurrency} timeout={opts.per_page_timeout_ms}ms"
        )

        if len(pdf_bytes) > opts.max_size_bytes:
            raise PdfFileTooLargeError(len(pdf_bytes), opts.max_size_bytes)

        handle = self._open(pdf_bytes, password)
        try:
            page_count = handle.page_count
            if page_count > opts.max_pages:
                raise PdfTooManyPagesError(page_count, opts.max_pages)
            if page_count > LARGE_PAGE_COUNT:
                Log.warning(f"Large PDF detected: {page_count} pages")

            Log.info(
                f"PDF extraction started: {page_count} pages, "
                f"{len(pdf_bytes) / 1024:.1f}KB"
            )
            metadata = self._read_metadata(handle)
            texts, durations, timed_out = self._extract_pages(pdf_bytes, password, page_count)
        finally:
            handle.close()

        raw_text = "\n".join(
            f"{page_marker(number)}{text}" for number, text in enumerate(texts, start=1)
        )
        self._validate_text(raw_text)

        text_bytes = len(raw_text.encode("utf-8"))
        if text_bytes > LARGE_TEXT_BYTES:
            Log.warning(f"Large extracted text: {text_bytes / 1024 / 1024:.1f}MB")

        total_ms = (time.perf_counter() - started) * 1000
        avg_ms = total_ms / page_count if page_count else 0.0
        memory = MemoryStats(
            input_bytes=len(pdf_bytes),
            extracted_text_bytes=text_bytes,
            estimated_peak_bytes=len(pdf_bytes) + text_bytes + page_count * PAGE_OVERHEAD_BYTES,
        )

        Log.info(
            f"PDF extraction complete: {page_count} pages, {len(raw_text)} chars, "
            f"{total_ms:.0f}ms total ({avg_ms:.0f}ms/page), "
            f"{len(timed_out)} page(s) timed out"
        )

        return ExtractionResult(
            raw_text=raw_text,
            page_count=page_count,
            text_length=len(raw_text),
            engine_used=self._engine.name,
            metadata=metadata,
            per_page_durations_ms=durations,
            timed_out_pages=timed_out,
            total_duration_ms=total_ms,
            avg_page_ms=avg_ms,
            memory=memory,
        )

    def is_password_protected(self, pdf_bytes: bytes) -> bool:
        """True when the document cannot be opened without a password."""
        try:
            handle = self._open(pdf_bytes, None)
        except (PdfPasswordRequiredError, PdfPasswordInvalidError):
            return True
        except PdfExtractionError:
            return False
        handle.close()
        return False

    def page_count(self, pdf_bytes: bytes, password: str | None = None) -> int:
        handle = self._open(pdf_bytes, password)
        try:
            return handle.page_count
        finally:
            handle.close()

    # ------------------------------------------------------------------

    def _open(self, pdf_bytes: bytes, password: str | None) -> PdfDocumentHandle:
        try:
            return self._engine.open(pdf_bytes, password)
        except PdfExtractionError:
            raise
        except Exception as exc:
            raise classify_open_error(exc, password) from exc

    @staticmethod
    def _read_metadata(handle: PdfDocumentHandle) -> PdfMetadata:
        try:
            return handle.metadata()
        except Exception as exc:
            Log.warning(f"Failed to read PDF metadata: {exc}")
            return PdfMetadata()

    def _extract_pages(
        self, pdf_bytes: bytes, password: str | None, page_count: int
    ) -> tuple[list[str], list[float], list[int]]:
        opts = self._options
        pool = PageWorkerPool(
            self._engine,
            pdf_bytes,
            password,
            size=min(opts.max_concurrency, page_count),
            timeout_ms=opts.per_page_timeout_ms,
        )
        pages = list(range(1, page_count + 1))
        batch = pool.run(pages)

        texts = [batch.texts.get(number, timeout_placeholder(number)) for number in pages]
        durations = [batch.durations_ms.get(number, 0.0) for number in pages]
        return texts, durations, batch.timed_out

    def _validate_text(self, raw_text: str) -> None:
        minimum = self._options.min_text_length
        alnum_count = sum(1 for char in raw_text if char.isalnum())
        if alnum_count < minimum or len(raw_text) < minimum:
            raise PdfTextEmptyError(len(raw_text))


def build_extractor(settings: Settings) -> Extractor:
    """Build an Extractor wired to the configured engine and limits."""
    return Extractor(
        engine=PdfEngineFactory.create(settings),
        options=ExtractionOptions.from_settings(settings),
    )
