"""AI-assisted pattern vectorization pipeline."""

from .inference import OpenRouterClient
from .models import (
    ModelConfig,
    PatternMode,
    PreparedImage,
    RawInferenceResult,
    TargetLayer,
    VectorizeRequest,
    VectorizeResult,
)
from .orchestrate import MODEL_CHAIN, RETRY_DELAYS_S, vectorize_with_retry
from .preprocess_image import prepare_image
from .transform import to_vectorize_result
from .validate_response import validate_inference_result

__all__ = [
    "MODEL_CHAIN",
    "RETRY_DELAYS_S",
    "ModelConfig",
    "OpenRouterClient",
    "PatternMode",
    "PreparedImage",
    "RawInferenceResult",
    "TargetLayer",
    "VectorizeRequest",
    "VectorizeResult",
    "prepare_image",
    "to_vectorize_result",
    "validate_inference_result",
    "vectorize_with_retry",
]
