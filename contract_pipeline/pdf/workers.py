"""Worker processes that extract page text under a hard per-page deadline."""

import multiprocessing
import time
from collections import deque
from contextlib import suppress
from dataclasses import dataclass
from multiprocessing.connection import Connection, wait
from typing import Any

from contract_pipeline.logging.logger import Log
from contract_pipeline.pdf.base import BasePdfEngine
from contract_pipeline.pdf.exceptions import PdfParseFailedError

READY = "ready"
OPEN_FAILED = "open_failed"
PAGE_DONE = "page_done"
PAGE_FAILED = "page_failed"

STARTUP_TIMEOUT_SECONDS = 30.0
STOP_TIMEOUT_SECONDS = 2.0


def _mp_context() -> Any:
    # fork keeps the engine in memory; spawn needs it to be picklable
    if "fork" in multiprocessing.get_all_start_methods():
        return multiprocessing.get_context("fork")
    return multiprocessing.get_context("spawn")


def _serve_pages(
    engine: BasePdfEngine, pdf_bytes: bytes, password: str | None, conn: Connection
) -> None:
    """Worker entry point: open the document once, then answer page requests."""
    try:
        handle = engine.open(pdf_bytes, password)
    except Exception as exc:
        conn.send((OPEN_FAILED, 0, f"{type(exc).__name__}: {exc}", 0.0))
        conn.close()
        return

    try:
        conn.send((READY, 0, "", 0.0))
        while True:
            page_number = conn.recv()
            if page_number is None:
                return
            started = time.perf_counter()
            try:
                text = handle.page_text(page_number)
            except Exception as exc:
                conn.send((PAGE_FAILED, page_number, f"{type(exc).__name__}: {exc}", 0.0))
            else:
                conn.send((PAGE_DONE, page_number, text, (time.perf_counter() - started) * 1000))
    except (EOFError, OSError):
        # parent closed the pipe
        return
    finally:
        handle.close()
        conn.close()


@dataclass
class _Worker:
    process: Any
    conn: Connection
    started: float
    ready: bool = False
    page: int | None = None


@dataclass(frozen=True)
class PageBatchResult:
    texts: dict[int, str]
    durations_ms: dict[int, float]
    timed_out: list[int]


class PageWorkerPool:
    """Up to ``size`` worker processes, each with its own opened document.

    A page gets ``timeout_ms`` from the moment its worker receives it. A worker
    that misses the deadline is killed and replaced, so a stuck page never
    keeps running next to later ones. Any page error aborts the run.
    """

    def __init__(
        self,
        engine: BasePdfEngine,
        pdf_bytes: bytes,
        password: str | None,
        *,
        size: int,
        timeout_ms: int,
    ) -> None:
        self._engine = engine
        self._pdf_bytes = pdf_bytes
        self._password = password
        self._size = max(1, size)
        self._timeout_ms = timeout_ms
        self._timeout = timeout_ms / 1000
        self._ctx = _mp_context()
        self._workers: list[_Worker] = []

    def run(self, page_numbers: list[int]) -> PageBatchResult:
        pending = deque(page_numbers)
        texts: dict[int, str] = {}
        durations: dict[int, float] = {}
        timed_out: list[int] = []

        try:
            for _ in range(min(self._size, len(pending))):
                self._spawn()

            while pending or any(worker.page is not None for worker in self._workers):
                self._dispatch(pending)

                ready = wait([worker.conn for worker in self._workers], self._next_wait())
                for conn in ready:
                    worker = next(w for w in self._workers if w.conn is conn)
                    self._receive(worker, texts, durations)

                now = time.monotonic()
                for worker in list(self._workers):
                    if worker.page is not None and now - worker.started >= self._timeout:
                        Log.warning(
                            f"Page {worker.page} extraction timed out after {self._timeout_ms}ms"
                        )
                        timed_out.append(worker.page)
                        durations[worker.page] = float(self._timeout_ms)
                        self._retire(worker)
                        if pending:
                            self._spawn()
                    elif not worker.ready and now - worker.started >= STARTUP_TIMEOUT_SECONDS:
                        raise PdfParseFailedError("PDF page worker did not start in time")
        finally:
            self.close()

        return PageBatchResult(texts=texts, durations_ms=durations, timed_out=sorted(timed_out))

    def close(self) -> None:
        """Stop idle workers and kill busy ones."""
        workers, self._workers = self._workers, []
        for worker in workers:
            if worker.page is None and worker.ready:
                with suppress(OSError):
                    worker.conn.send(None)
                worker.process.join(STOP_TIMEOUT_SECONDS)
            self._stop(worker)

    def _spawn(self) -> None:
        parent_conn, child_conn = self._ctx.Pipe()
        process = self._ctx.Process(
            target=_serve_pages,
            args=(self._engine, self._pdf_bytes, self._password, child_conn),
            name="pdf-page-worker",
            daemon=True,
        )
        process.start()
        child_conn.close()
        self._workers.append(_Worker(process=process, conn=parent_conn, started=time.monotonic()))

    def _dispatch(self, pending: deque[int]) -> None:
        for worker in self._workers:
            if not pending:
                return
            if worker.ready and worker.page is None:
                worker.page = pending.popleft()
                worker.started = time.monotonic()
                worker.conn.send(worker.page)

    def _next_wait(self) -> float:
        deadlines = [
            worker.started + (self._timeout if worker.ready else STARTUP_TIMEOUT_SECONDS)
            for worker in self._workers
            if worker.page is not None or not worker.ready
        ]
        if not deadlines:
            return self._timeout
        return max(0.0, min(deadlines) - time.monotonic())

    def _receive(
        self, worker: _Worker, texts: dict[int, str], durations: dict[int, float]
    ) -> None:
        try:
            kind, page_number, payload, duration_ms = worker.conn.recv()
        except EOFError as exc:
            page = worker.page
            self._retire(worker)
            where = f" while extracting page {page}" if page is not None else ""
            raise PdfParseFailedError(f"PDF page worker exited{where}", cause=exc) from exc

        if kind == READY:
            worker.ready = True
        elif kind == OPEN_FAILED:
            raise PdfParseFailedError(f"PDF page worker could not open the document: {payload}")
        elif kind == PAGE_FAILED:
            raise PdfParseFailedError(f"Failed to extract page {page_number}: {payload}")
        else:
            texts[page_number] = payload
            durations[page_number] = duration_ms
            worker.page = None

    def _retire(self, worker: _Worker) -> None:
        self._workers.remove(worker)
        self._stop(worker)

    @staticmethod
    def _stop(worker: _Worker) -> None:
        if worker.process.is_alive():
            worker.process.terminate()
            worker.process.join(STOP_TIMEOUT_SECONDS)
        worker.conn.close()
