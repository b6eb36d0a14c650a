"""Hybrid contract-type classification: heuristic first, LLM when unsure."""

import time

from contract_pipeline.config.settings import Settings
from contract_pipeline.detection.heuristic import HeuristicTypeDetector
from contract_pipeline.detection.llm_detector import LlmTypeDetector
from contract_pipeline.detection.models import (
    ContractType,
    DetectionResult,
    DetectionSource,
    HeuristicResult,
    LlmDetection,
)
from contract_pipeline.detection.rate_limiter import TokenBucket
from contract_pipeline.llm.client_base import BaseLlmClient
from contract_pipeline.logging.logger import Log

HEURISTIC_THRESHOLD = 0.8
LLM_TRUST_THRESHOLD = 0.7
FORM_THRESHOLD = 0.44
FORM_CONFIDENCE = 0.85
HEURISTIC_SHARE = 0.4
LLM_SHARE = 0.6


class TypeClassifier:
    """Labels a clean contract text. ``classify`` never raises.

    Order of decisions:
      1. a layout form-likelihood at or above ``form_threshold`` forces
         ``administrative_form``;
      2. a confident heuristic answer is returned as is;
      3. with no token left in the rate limiter, the heuristic answer is
         returned with a note;
      4. otherwise the LLM is consulted and both answers are combined.
    """

    def __init__(
        self,
        *,
        heuristic: HeuristicTypeDetector,
        llm_detector: LlmTypeDetector | None,
        rate_limiter: TokenBucket,
        heuristic_threshold: float = HEURISTIC_THRESHOLD,
        llm_trust_threshold: float = LLM_TRUST_THRESHOLD,
        form_threshold: float = FORM_THRESHOLD,
    ) -> None:
        self._heuristic = heuristic
        self._llm_detector = llm_detector
        self._rate_limiter = rate_limiter
        self._heuristic_threshold = heuristic_threshold
        self._llm_trust_threshold = llm_trust_threshold
        self._form_threshold = form_threshold

    def classify(self, clean_text: str, form_likelihood: float | None = None) -> DetectionResult:
        started = time.perf_counter()

        if form_likelihood is not None and form_likelihood >= self._form_threshold:
            Log.info(
                f"Form likelihood {form_likelihood:.2f} >= {self._form_threshold}, "
                f"classifying as {ContractType.ADMINISTRATIVE_FORM.value}"
            )
            return DetectionResult(
                type=ContractType.ADMINISTRATIVE_FORM,
                confidence=FORM_CONFIDENCE,
                source=DetectionSource.HEURISTIC,
                evidence=[f"Layout form likelihood {form_likelihood:.2f}"],
                reason="Layout analysis indicates an administrative form",
            )

        heuristic = self._heuristic.detect(clean_text)
        if heuristic.confidence >= self._heuristic_threshold:
            Log.info(
                f"Using heuristic only: {heuristic.type.value} "
                f"(confidence {heuristic.confidence:.2f})"
            )
            return self._from_heuristic(heuristic)

        if self._llm_detector is None:
            return self._from_heuristic(heuristic, reason="LLM detection disabled")

        if not self._rate_limiter.try_consume():
            Log.warning(
                f"Type detection rate limit reached, using heuristic: {heuristic.type.value}"
            )
            return self._from_heuristic(heuristic, reason="Rate limit exceeded, LLM not called")

        try:
            llm = self._llm_detector.detect(clean_text, heuristic.type)
        except Exception as exc:
            Log.warning(f"LLM type detection failed, using heuristic: {exc}")
            return self._from_heuristic(heuristic, reason="LLM call failed, using heuristic only")

        result = self._combine(heuristic, llm)
        Log.info(
            f"Type detection: {result.type.value} source={result.source.value} "
            f"confidence={result.confidence:.2f} "
            f"({(time.perf_counter() - started) * 1000:.0f}ms)"
        )
        return result

    def _combine(self, heuristic: HeuristicResult, llm: LlmDetection) -> DetectionResult:
        if llm.confidence >= self._llm_trust_threshold:
            return DetectionResult(
                type=llm.type,
                confidence=llm.confidence,
                source=DetectionSource.LLM,
                evidence=heuristic.evidence,
                reason=llm.reason,
            )

        if heuristic.type == llm.type:
            return DetectionResult(
                type=heuristic.type,
                confidence=HEURISTIC_SHARE * heuristic.confidence + LLM_SHARE * llm.confidence,
                source=DetectionSource.HYBRID,
                evidence=heuristic.evidence,
                reason=f"Both heuristic and LLM agree: {llm.reason}",
            )

        heuristic_wins = heuristic.confidence >= llm.confidence
        return DetectionResult(
            type=heuristic.type if heuristic_wins else llm.type,
            confidence=max(heuristic.confidence, llm.confidence),
            source=DetectionSource.HYBRID,
            evidence=heuristic.evidence,
            reason=(
                f"Heuristic suggested {heuristic.type.value}, "
                f"LLM suggested {llm.type.value}. {llm.reason}"
            ),
        )

    @staticmethod
    def _from_heuristic(heuristic: HeuristicResult, reason: str | None = None) -> DetectionResult:
        return DetectionResult(
            type=heuristic.type,
            confidence=heuristic.confidence,
            source=DetectionSource.HEURISTIC,
            evidence=heuristic.evidence,
            reason=reason,
        )


def build_classifier(settings: Settings, client: BaseLlmClient | None) -> TypeClassifier:
    """Build a TypeClassifier owning its own rate limiter."""
    llm_detector = None
    if client is not None:
        llm_detector = LlmTypeDetector(
            client=client,
            model=settings.llm_detection_model_name,
            temperature=settings.llm_temperature,
        )
    return TypeClassifier(
        heuristic=HeuristicTypeDetector(),
        llm_detector=llm_detector,
        rate_limiter=TokenBucket(
            capacity=settings.detection_rate_capacity,
            refill_per_second=settings.detection_rate_refill_per_second,
        ),
        heuristic_threshold=settings.detection_llm_threshold,
        form_threshold=settings.detection_form_threshold,
    )
