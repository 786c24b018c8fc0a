"""Model fallback orchestration for pattern vectorization.

Tries each model in ``MODEL_CHAIN`` in order, retrying a model on the
``RETRY_DELAYS_S`` schedule:
1. Response at or above MIN_CONFIDENCE wins and stops the chain
2. Low confidence or transport faults sleep and retry the same model
3. Schema faults skip the remaining retries and move to the next model
4. A model that runs out of retries moves to the next model
5. When every model is exhausted, AllModelsExhaustedError carries the trail

Attempts are strictly sequential.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Sequence

from exceptions import AllModelsExhaustedError, FaultKind, InferenceError, LowConfidenceError
from vectorization.inference import OpenRouterClient
from vectorization.models import AttemptRecord, ModelConfig, PatternMode, PreparedImage, RawInferenceResult

logger = logging.getLogger(__name__)

# Fastest vision models first, slower fallbacks with longer budgets last
MODEL_CHAIN: List[ModelConfig] = [
    ModelConfig(id="google/gemini-2.0-flash-exp", timeout_ms=20000),
    ModelConfig(id="google/gemini-1.5-flash", timeout_ms=20000),
    ModelConfig(id="anthropic/claude-3-5-haiku-20241022", timeout_ms=25000),
    ModelConfig(id="openai/gpt-4o-mini", timeout_ms=25000),
]

# Pause before the next attempt on the same model
RETRY_DELAYS_S: List[float] = [0.5, 1.0, 2.0]

MIN_CONFIDENCE = 20


async def vectorize_with_retry(
    client: OpenRouterClient,
    image: PreparedImage,
    mode: PatternMode,
    model_chain: Sequence[ModelConfig] = MODEL_CHAIN,
    retry_delays: Sequence[float] = RETRY_DELAYS_S,
    min_confidence: float = MIN_CONFIDENCE,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
) -> RawInferenceResult:
    """Run the model chain until one response clears the confidence gate.

    Performs at most ``len(model_chain) * (1 + len(retry_delays))`` calls.

    Args:
        client: Inference client exposing ``infer(model_id, image, mode, timeout_ms)``
        image: Prepared image to analyze
        mode: Pattern mode
        model_chain: Ordered model configurations
        retry_delays: Seconds to wait before each retry on the same model
        min_confidence: Lowest accepted overall confidence (0-100)
        sleep: Awaitable sleep, injectable for tests

    Returns:
        First RawInferenceResult with confidence >= min_confidence

    Raises:
        AllModelsExhaustedError: If every attempt on every model failed
        ConfigurationError: Propagated unchanged, never retried
    """
    attempts: List[AttemptRecord] = []
    max_attempts = 1 + len(retry_delays)

    for model in model_chain:
        for attempt in range(max_attempts):
            try:
                result = await client.infer(model.id, image, mode, model.timeout_ms)
                if result.confidence < min_confidence:
                    raise LowConfidenceError(result.confidence, min_confidence)

                logger.info(
                    f"{model.id} succeeded on attempt {attempt + 1} "
                    f"(confidence {result.confidence:g})"
                )
                return result

            except InferenceError as e:
                attempts.append(AttemptRecord(
                    model=model.id,
                    attempt=attempt + 1,
                    kind=e.kind,
                    error=str(e),
                ))
                logger.warning(
                    f"{model.id} attempt {attempt + 1}/{max_attempts} failed [{e.kind.value}]: {e}"
                )

                if e.kind is FaultKind.SCHEMA:
                    logger.info(f"Schema fault from {model.id}, advancing to next model")
                    break

                if attempt < len(retry_delays):
                    await sleep(retry_delays[attempt])

    logger.error(f"All models exhausted after {len(attempts)} attempts")
    raise AllModelsExhaustedError(attempts)
