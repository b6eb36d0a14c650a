from contract_pipeline.detection.classifier import TypeClassifier
from contract_pipeline.layout.scorer import LayoutScorer
from contract_pipeline.logging.logger import Log
from contract_pipeline.normalization.normalizer import Normalizer
from contract_pipeline.pdf.extractor import Extractor
from contract_pipeline.processor.exceptions import PipelineStateError
from contract_pipeline.processor.pipeline import PipelineContext, PipelineStep
from contract_pipeline.storage.base import BaseObjectStore


class LoadDocumentStep(PipelineStep):
    def __init__(self, object_store: BaseObjectStore) -> None:
        self._object_store = object_store

    def run(self, context: PipelineContext) -> PipelineContext:
        context.raw_bytes = self._object_store.get(context.path)
        Log.info(f"Loaded {len(context.raw_bytes)} bytes from {context.path}")
        return context


class LayoutStep(PipelineStep):
    """Scores form likelihood. A failure only disables the form override."""

    def __init__(self, layout_scorer: LayoutScorer) -> None:
        self._layout_scorer = layout_scorer

    def run(self, context: PipelineContext) -> PipelineContext:
        try:
            context.layout_score = self._layout_scorer.score(context.raw_bytes, context.password)
        except Exception as exc:
            Log.warning(f"Layout analysis failed for {context.path}: {exc}")
        else:
            Log.info(
                f"Form likelihood for {context.path}: "
                f"{context.layout_score.form_likelihood:.2f}"
            )
        return context


class ExtractTextStep(PipelineStep):
    def __init__(self, extractor: Extractor) -> None:
        self._extractor = extractor

    def run(self, context: PipelineContext) -> PipelineContext:
        context.extraction = self._extractor.extract(context.raw_bytes, context.password)
        return context


class NormalizeTextStep(PipelineStep):
    def __init__(self, normalizer: Normalizer) -> None:
        self._normalizer = normalizer

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.extraction is None:
            raise PipelineStateError("PipelineContext.extraction must be set before normalization")
        context.normalization = self._normalizer.normalize_extraction(context.extraction)
        return context


class DetectTypeStep(PipelineStep):
    """Labels the contract type. Failures leave ``detection`` unset."""

    def __init__(self, classifier: TypeClassifier) -> None:
        self._classifier = classifier

    def run(self, context: PipelineContext) -> PipelineContext:
        if not context.detect_type:
            return context
        if context.normalization is None:
            raise PipelineStateError("PipelineContext.normalization must be set before detection")

        form_likelihood = (
            context.layout_score.form_likelihood if context.layout_score is not None else None
        )
        try:
            context.detection = self._classifier.classify(
                context.normalization.clean_text, form_likelihood
            )
        except Exception as exc:
            Log.warning(f"Type detection failed for {context.path}: {exc}")
        return context
