"""Structural validation of untrusted model output.

This is the only place raw JSON from an inference endpoint is inspected.
Past this seam the pipeline works with typed ``RawInferenceResult`` models.
"""
import logging
import math
from typing import Any, List, Optional, Tuple

from exceptions import SchemaError
from vectorization.models import (
    BoundingBox,
    ImageDimensions,
    InferenceLayers,
    LabelRecord,
    PathRecord,
    RawInferenceResult,
)

logger = logging.getLogger(__name__)

LAYER_NAMES = ("cutlines", "markings", "labels")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _finite(value: Any) -> Optional[float]:
    """``value`` as a finite float, or None."""
    if not _is_number(value):
        return None
    try:
        number = float(value)
    except OverflowError:
        # JSON integers beyond float range
        return None
    return number if math.isfinite(number) else None


def _number(value: Any, default: float = 0.0) -> float:
    number = _finite(value)
    return default if number is None else number


def _point(value: Any) -> Optional[Tuple[float, float]]:
    if isinstance(value, (list, tuple)) and len(value) >= 2:
        x, y = _finite(value[0]), _finite(value[1])
        if x is not None and y is not None:
            return x, y
    return None


def _coerce_path(raw: dict) -> PathRecord:
    """Carry a path through with defaults for missing or mistyped fields."""
    raw_points = raw.get("points")
    points = []
    if isinstance(raw_points, list):
        for entry in raw_points:
            point = _point(entry)
            if point is None:
                logger.debug(f"Dropping unusable point {entry!r} in path {raw.get('id')!r}")
                continue
            points.append(point)

    return PathRecord(
        id=str(raw.get("id", "")),
        path_type=str(raw.get("path_type", "cutline")),
        closed=raw.get("closed") is True,
        points=points,
        confidence=_number(raw.get("confidence")),
    )


def _coerce_label(raw: dict) -> LabelRecord:
    box = raw.get("bounding_box")
    if not isinstance(box, dict):
        box = {}
    return LabelRecord(
        id=str(raw.get("id", "")),
        text=str(raw.get("text", "")),
        bounding_box=BoundingBox(
            x=_number(box.get("x")),
            y=_number(box.get("y")),
            width=_number(box.get("width")),
            height=_number(box.get("height")),
        ),
        confidence=_number(raw.get("confidence")),
    )


def _coerce_entries(entries: list, coerce, layer: str) -> list:
    records = []
    for entry in entries:
        if not isinstance(entry, dict):
            logger.debug(f"Skipping non-object entry in layers.{layer}: {entry!r}")
            continue
        records.append(coerce(entry))
    return records


def _coerce_dimensions(raw: Any) -> Optional[ImageDimensions]:
    if not isinstance(raw, dict):
        return None
    return ImageDimensions(width=_number(raw.get("width")), height=_number(raw.get("height")))


def _coerce_warnings(raw: Any) -> List[str]:
    if isinstance(raw, list):
        return [str(w) for w in raw]
    if isinstance(raw, str) and raw:
        return [raw]
    return []


def validate_inference_result(candidate: Any) -> RawInferenceResult:
    """Enforce the minimal shape an inference response must have.

    Checks run in order and stop at the first failure: object, ``success``
    boolean, ``confidence`` number in [0, 100], ``layers`` object, and each
    of ``layers.cutlines``, ``layers.markings``, ``layers.labels`` a list.
    Individual paths and labels are not validated; missing or mistyped
    fields inside them fall back to defaults.

    Args:
        candidate: Parsed JSON payload from the model

    Returns:
        Typed RawInferenceResult

    Raises:
        SchemaError: Naming the first offending field
    """
    if not isinstance(candidate, dict):
        raise SchemaError("response", "Response is not an object")

    if not isinstance(candidate.get("success"), bool):
        raise SchemaError("success")

    confidence = candidate.get("confidence")
    if not _is_number(confidence) or not 0 <= confidence <= 100:
        raise SchemaError("confidence")

    layers = candidate.get("layers")
    if not isinstance(layers, dict):
        raise SchemaError("layers", "Missing 'layers' object")

    for name in LAYER_NAMES:
        if not isinstance(layers.get(name), list):
            raise SchemaError(f"layers.{name}", f"Missing 'layers.{name}' array")

    notes = candidate.get("processing_notes")

    return RawInferenceResult(
        success=candidate["success"],
        confidence=float(confidence),
        image_dimensions=_coerce_dimensions(candidate.get("image_dimensions")),
        layers=InferenceLayers(
            cutlines=_coerce_entries(layers["cutlines"], _coerce_path, "cutlines"),
            markings=_coerce_entries(layers["markings"], _coerce_path, "markings"),
            labels=_coerce_entries(layers["labels"], _coerce_label, "labels"),
        ),
        warnings=_coerce_warnings(candidate.get("warnings")),
        processing_notes=notes if isinstance(notes, str) else "",
    )
