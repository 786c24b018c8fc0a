"""Pixel-space to millimetre conversion of validated model output."""

import uuid
from typing import Optional, Tuple

from vectorization.models import (
    LabelRecord,
    PathRecord,
    PointMM,
    PositionMM,
    QAReport,
    RawInferenceResult,
    ResultLayers,
    SizeMM,
    TargetLayer,
    TextBox,
    VectorizeRequest,
    VectorizeResult,
    VectorPath,
)

DEFAULT_STROKE_HINT_MM = 0.5


def _normalize_confidence(value: float) -> float:
    """0-100 model confidence to 0-1."""
    return value / 100


def transform_path(path: PathRecord, scale: float) -> VectorPath:
    """Scale a path's points; kind, closed flag and point order are unchanged."""
    return VectorPath(
        path_id=path.id,
        path_type=path.path_type,
        closed=path.closed,
        points=[PointMM(x_mm=x * scale, y_mm=y * scale) for x, y in path.points],
        stroke_hint_mm=DEFAULT_STROKE_HINT_MM,
        confidence=_normalize_confidence(path.confidence),
    )


def transform_label(label: LabelRecord, scale: float) -> TextBox:
    box = label.bounding_box
    return TextBox(
        label_id=label.id,
        text=label.text,
        position=PositionMM(x_mm=box.x * scale, y_mm=box.y * scale),
        size=SizeMM(width_mm=box.width * scale, height_mm=box.height * scale),
        confidence=_normalize_confidence(label.confidence),
    )


def to_vectorize_result(
    result: RawInferenceResult,
    request: VectorizeRequest,
    fallback_size: Optional[Tuple[int, int]] = None
) -> VectorizeResult:
    """
    Convert a validated inference result into the calibrated client format.

    Every coordinate is multiplied by ``request.scale_mm_per_px`` and every
    confidence is divided by 100. Layers excluded by ``request.targets`` are
    left empty. Closed paths are passed through as reported.

    Args:
        result: Output of validate_inference_result
        request: The originating request (scale, image id, targets)
        fallback_size: (width, height) in pixels used when the model did not
            report image dimensions

    Returns:
        VectorizeResult with a fresh piece_id
    """
    scale = request.scale_mm_per_px

    if result.image_dimensions is not None:
        width_px, height_px = result.image_dimensions.width, result.image_dimensions.height
    elif fallback_size is not None:
        width_px, height_px = fallback_size
    else:
        width_px, height_px = 0.0, 0.0

    layers = ResultLayers()
    if request.wants(TargetLayer.CUTLINE):
        layers.cutline = [transform_path(p, scale) for p in result.layers.cutlines]
    if request.wants(TargetLayer.MARKINGS):
        layers.markings = [transform_path(p, scale) for p in result.layers.markings]
    if request.wants(TargetLayer.LABELS):
        layers.labels = [transform_label(label, scale) for label in result.layers.labels]

    return VectorizeResult(
        piece_id=str(uuid.uuid4()),
        source_image_id=request.image_id,
        scale_mm_per_px=scale,
        width_mm=width_px * scale,
        height_mm=height_px * scale,
        layers=layers,
        qa=QAReport(
            confidence=_normalize_confidence(result.confidence),
            warnings=list(result.warnings),
        ),
    )
