from contract_pipeline.normalization.exceptions import TextTooShortError
from contract_pipeline.normalization.models import NormalizationInput, NormalizationResult
from contract_pipeline.normalization.normalizer import Normalizer, normalize_text

__all__ = [
    "NormalizationInput",
    "NormalizationResult",
    "Normalizer",
    "TextTooShortError",
    "normalize_text",
]
