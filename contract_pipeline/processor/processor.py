import time

from contract_pipeline.config.settings import Settings
from contract_pipeline.detection.classifier import build_classifier
from contract_pipeline.layout.scorer import LayoutScorer
from contract_pipeline.llm.client_base import BaseLlmClient
from contract_pipeline.llm.factory import LlmClientFactory
from contract_pipeline.logging.logger import Log
from contract_pipeline.normalization.normalizer import Normalizer
from contract_pipeline.pdf.extractor import build_extractor
from contract_pipeline.pdf.factory import PdfEngineFactory
from contract_pipeline.processor.exceptions import PipelineStateError
from contract_pipeline.processor.models import PreparedText
from contract_pipeline.processor.pipeline import PipelineContext, PipelineStep
from contract_pipeline.processor.steps import (
    DetectTypeStep,
    ExtractTextStep,
    LayoutStep,
    LoadDocumentStep,
    NormalizeTextStep,
)
from contract_pipeline.storage.base import BaseObjectStore
from contract_pipeline.storage.local_store import build_object_store


class Processor:
    """Turns a stored PDF into clean, typed text.

    Pipeline: load -> layout -> extract -> normalize -> detect type.
    Layout and detection failures are logged and skipped; extraction and
    normalization errors propagate to the caller.
    """

    def __init__(self, object_store: BaseObjectStore, steps: list[PipelineStep]) -> None:
        self._object_store = object_store
        self._steps = steps

    def prepare(
        self, path: str, password: str | None = None, detect_type: bool = True
    ) -> PreparedText:
        Log.info(f"Preparing text for {path}")
        started = time.perf_counter()

        context = PipelineContext(path=path, password=password, detect_type=detect_type)
        for step in self._steps:
            context = step.run(context)

        extraction = context.extraction
        normalization = context.normalization
        if extraction is None or normalization is None:
            raise PipelineStateError("Pipeline finished without extraction and normalization")

        prepared = PreparedText(
            clean_text=normalization.clean_text,
            page_count=extraction.page_count,
            approx_token_count=normalization.approx_token_count,
            engine_used=extraction.engine_used,
            metadata=extraction.metadata,
            stats=normalization.stats,
            sections=normalization.sections,
            timed_out_pages=list(extraction.timed_out_pages),
            form_likelihood=(
                context.layout_score.form_likelihood if context.layout_score is not None else None
            ),
            detection=context.detection,
        )
        Log.info(
            f"Prepared {path}: {prepared.page_count} pages, "
            f"{len(prepared.clean_text)} chars, "
            f"type={prepared.detection.type.value if prepared.detection else 'n/a'} "
            f"({(time.perf_counter() - started) * 1000:.0f}ms)"
        )
        return prepared

    def discard(self, path: str) -> None:
        """Delete the source object. Failures are logged, never raised."""
        try:
            self._object_store.delete(path)
        except Exception as exc:
            Log.warning(f"Failed to delete {path}: {exc}")
        else:
            Log.info(f"Deleted source object {path}")


def build_processor(
    settings: Settings,
    object_store: BaseObjectStore | None = None,
    client: BaseLlmClient | None = None,
) -> Processor:
    """Build a Processor with all required adapters."""
    object_store = object_store or build_object_store(settings)
    engine = PdfEngineFactory.create(settings)
    extractor = build_extractor(settings)
    classifier = build_classifier(settings, client or LlmClientFactory.create(settings))
    steps: list[PipelineStep] = [
        LoadDocumentStep(object_store),
        LayoutStep(LayoutScorer(engine)),
        ExtractTextStep(extractor),
        NormalizeTextStep(Normalizer()),
        DetectTypeStep(classifier),
    ]
    return Processor(object_store=object_store, steps=steps)
