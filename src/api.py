"""
Public API for pattern vectorization.

This module provides the request handler that external surfaces (the
FastAPI backend, scripts) call to turn an uploaded pattern photo into a
calibrated, persisted VectorizeResult.

Collaborators (image store, piece store, inference client) are passed in
through ``PipelineDependencies``; nothing here reads the environment.

Example usage:
    from api import PipelineDependencies, handle_vectorize_request

    deps = PipelineDependencies(
        image_store=LocalImageStore(root),
        piece_store=LocalPieceStore(root),
        inference_client=OpenRouterClient(api_key=get_openrouter_api_key()),
    )
    result = await handle_vectorize_request(
        {"project_id": "p1", "image_id": "img1", "mode": "sewing", "scale_mm_per_px": 0.5},
        caller_id="user-123",
        deps=deps,
    )
    print(f"Created piece {result.piece_id}")
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence

from pydantic import ValidationError

from exceptions import (
    AllModelsExhaustedError,
    ErrorCategory,
    ImageNotFoundError,
    VectorizeAPIError,
)
from storage.base import ImageStore, PieceStore, upload_path
from vectorization.inference import OpenRouterClient
from vectorization.models import ModelConfig, VectorizeRequest, VectorizeResult
from vectorization.orchestrate import MODEL_CHAIN, RETRY_DELAYS_S, vectorize_with_retry
from vectorization.preprocess_image import prepare_image
from vectorization.transform import to_vectorize_result

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("project_id", "image_id", "mode")
# Latency goal for one invocation, reported alongside the measured total
TARGET_TOTAL_MS = 20000


@dataclass
class PipelineDependencies:
    """External collaborators and tunables for one pipeline.

    Attributes:
        image_store: Source photo storage
        piece_store: Result document storage
        inference_client: Client exposing ``infer(model_id, image, mode, timeout_ms)``
        model_chain: Ordered models to try
        retry_delays: Per-model retry schedule in seconds
        sleep: Awaitable sleep used between retries
    """
    image_store: ImageStore
    piece_store: PieceStore
    inference_client: OpenRouterClient
    model_chain: Sequence[ModelConfig] = field(default_factory=lambda: list(MODEL_CHAIN))
    retry_delays: Sequence[float] = field(default_factory=lambda: list(RETRY_DELAYS_S))
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_request(payload: Mapping[str, Any]) -> VectorizeRequest:
    """
    Check request shape and build a VectorizeRequest.

    Raises:
        VectorizeAPIError: INVALID_ARGUMENT for missing or invalid fields
    """
    if not isinstance(payload, Mapping):
        raise VectorizeAPIError(ErrorCategory.INVALID_ARGUMENT, "Request body must be an object")

    if any(_is_missing(payload.get(name)) for name in REQUIRED_FIELDS):
        raise VectorizeAPIError(
            ErrorCategory.INVALID_ARGUMENT,
            "Missing required fields: project_id, image_id, mode"
        )

    scale = payload.get("scale_mm_per_px")
    if isinstance(scale, bool) or not isinstance(scale, (int, float)) or not scale > 0:
        raise VectorizeAPIError(ErrorCategory.INVALID_ARGUMENT, "Invalid or missing scale_mm_per_px")

    try:
        return VectorizeRequest(
            project_id=payload["project_id"],
            image_id=payload["image_id"],
            mode=payload["mode"],
            scale_mm_per_px=scale,
            targets=payload.get("targets"),
        )
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise VectorizeAPIError(ErrorCategory.INVALID_ARGUMENT, f"Invalid request: {problems}") from e


async def handle_vectorize_request(
    payload: Mapping[str, Any],
    caller_id: Optional[str],
    deps: PipelineDependencies
) -> VectorizeResult:
    """
    Vectorize an uploaded pattern photo and persist the result.

    Pipeline:
    1. Authenticate caller and validate the request (before any I/O)
    2. Fetch image bytes from users/{uid}/uploads/{image_id}.jpg
    3. Prepare image (downscale, JPEG, base64)
    4. Run the model fallback chain
    5. Transform pixels to millimetres
    6. Persist under users/{uid}/projects/{project_id}/pieces/{piece_id}

    Nothing is persisted unless every step succeeds.

    Args:
        payload: Untrusted request body (project_id, image_id, mode,
                 scale_mm_per_px, optional targets)
        caller_id: Authenticated caller id, or None
        deps: Pipeline collaborators

    Returns:
        The persisted VectorizeResult

    Raises:
        VectorizeAPIError: With category unauthenticated, invalid-argument,
                 not-found, unavailable or internal
    """
    if not caller_id:
        raise VectorizeAPIError(
            ErrorCategory.UNAUTHENTICATED,
            "Must be logged in to vectorize patterns"
        )

    request = parse_request(payload)

    try:
        start = time.monotonic()

        image_path = upload_path(caller_id, request.image_id)
        if not await deps.image_store.exists(image_path):
            raise ImageNotFoundError(image_path)
        image_bytes = await deps.image_store.download(image_path)
        fetch_ms = (time.monotonic() - start) * 1000
        logger.info(f"Image fetch: {fetch_ms:.0f}ms")

        prepared = prepare_image(image_bytes)
        prepare_ms = (time.monotonic() - start) * 1000 - fetch_ms
        logger.info(f"Image optimization: {prepare_ms:.0f}ms")

        ai_start = time.monotonic()
        inference = await vectorize_with_retry(
            deps.inference_client,
            prepared,
            request.mode,
            model_chain=deps.model_chain,
            retry_delays=deps.retry_delays,
            sleep=deps.sleep,
        )
        logger.info(f"AI processing: {(time.monotonic() - ai_start) * 1000:.0f}ms")

        total_ms = (time.monotonic() - start) * 1000
        logger.info(f"Total vectorize time: {total_ms:.0f}ms (target: <={TARGET_TOTAL_MS}ms)")

        result = to_vectorize_result(inference, request, fallback_size=(prepared.width, prepared.height))

        key = await deps.piece_store.save_piece(caller_id, request.project_id, result)
        logger.info(f"Piece saved: {key}")
        return result

    except ImageNotFoundError as e:
        logger.warning(str(e))
        raise VectorizeAPIError(ErrorCategory.NOT_FOUND, str(e)) from e

    except AllModelsExhaustedError as e:
        logger.error(f"Vectorize unavailable: {e}")
        raise VectorizeAPIError(
            ErrorCategory.UNAVAILABLE,
            e.user_message,
            details=e.to_details()
        ) from e

    except Exception as e:
        logger.error(f"Vectorize error: {e}", exc_info=True)
        raise VectorizeAPIError(
            ErrorCategory.INTERNAL,
            "Failed to process pattern",
            details={"error": str(e)}
        ) from e
