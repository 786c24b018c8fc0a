"""Centralized exception hierarchy for the TraceCast vectorization service.

Usage:
    from exceptions import SchemaError, AllModelsExhaustedError

    raise SchemaError("layers.cutlines")
    raise ImageNotFoundError("users/abc/uploads/img1.jpg")

Attempt-level inference failures carry a ``FaultKind`` tag so the fallback
orchestrator can decide between retrying and advancing the model chain
without inspecting error text.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class TraceCastError(Exception):
    """Base exception for all TraceCast errors."""
    pass


class ConfigurationError(TraceCastError):
    """Raised when configuration is invalid or missing.

    Examples:
        - Missing OPENROUTER_API_KEY
        - Malformed TRACECAST_AUTH_TOKENS
    """
    pass


class DecodeError(TraceCastError):
    """Raised when an image cannot be decoded or has no dimensions."""
    pass


class ImageNotFoundError(TraceCastError):
    """Raised when the source image is absent from storage."""

    def __init__(self, path: str):
        super().__init__(f"Image not found: {path}")
        self.path = path


class FaultKind(str, Enum):
    """Classification of a single failed inference attempt."""
    TRANSPORT = "transport"
    SCHEMA = "schema"
    CONFIDENCE = "confidence"


class InferenceError(TraceCastError):
    """Base class for failures of one inference attempt.

    Subclasses set ``kind``; only ``FaultKind.SCHEMA`` abandons the
    remaining retries on a model.
    """
    kind: FaultKind = FaultKind.TRANSPORT

    @property
    def retryable(self) -> bool:
        return self.kind is not FaultKind.SCHEMA


class InferenceTimeoutError(InferenceError):
    """Raised when a model call exceeds its wall-clock budget."""

    def __init__(self, model_id: str, timeout_ms: int):
        super().__init__(f"{model_id} timed out after {timeout_ms}ms")
        self.model_id = model_id
        self.timeout_ms = timeout_ms


class InferenceTransportError(InferenceError):
    """Raised when the request never produced an HTTP response."""
    pass


class InferenceHTTPError(InferenceError):
    """Raised when the endpoint answers with a non-2xx status."""

    def __init__(self, status: int, body: str):
        super().__init__(f"OpenRouter API error: {status} - {body}")
        self.status = status
        self.body = body


class EmptyResponseError(InferenceError):
    """Raised when the response envelope carries no text payload."""
    pass


class ResponseParseError(InferenceError):
    """Raised when the text payload is not valid JSON."""
    pass


class SchemaError(InferenceError):
    """Raised when a parsed response fails structural validation.

    Attributes:
        field: Dotted name of the first offending field (e.g. "layers.labels")
    """
    kind = FaultKind.SCHEMA

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(message or f"Missing or invalid '{field}' field")
        self.field = field


class LowConfidenceError(InferenceError):
    """Raised when a structurally valid response is below the confidence gate."""
    kind = FaultKind.CONFIDENCE

    def __init__(self, confidence: float, threshold: float):
        super().__init__(f"Confidence too low: {confidence} (minimum {threshold})")
        self.confidence = confidence
        self.threshold = threshold


class AllModelsExhaustedError(TraceCastError):
    """Raised when every model in the chain failed.

    ``str(err)`` is the operator-facing summary; ``user_message`` is safe to
    show to end users. ``attempts`` holds one entry per failed attempt.
    """
    code = "AI_UNAVAILABLE"
    user_message = "Couldn't analyze pattern, please try again"

    def __init__(self, attempts: List[Any]):
        super().__init__(f"All AI models failed ({len(attempts)} attempts)")
        self.attempts = attempts

    def to_details(self) -> Dict[str, Any]:
        """Structured diagnostic payload for operators."""
        return {
            "code": self.code,
            "details": {
                "errors": [
                    attempt.model_dump(mode="json") if hasattr(attempt, "model_dump") else attempt
                    for attempt in self.attempts
                ]
            },
        }


class ErrorCategory(str, Enum):
    """Caller-facing failure categories."""
    UNAUTHENTICATED = "unauthenticated"
    INVALID_ARGUMENT = "invalid-argument"
    NOT_FOUND = "not-found"
    UNAVAILABLE = "unavailable"
    INTERNAL = "internal"


class VectorizeAPIError(TraceCastError):
    """Raised at the public boundary of the vectorize call.

    Wraps internal errors so callers see a category and a short message.
    The original exception is preserved as __cause__ for debugging.
    """

    def __init__(
        self,
        category: ErrorCategory,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.category = category
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"status": self.category.value, "message": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload
