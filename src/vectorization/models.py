"""Data models for the pattern vectorization pipeline."""

from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from exceptions import FaultKind


class PatternMode(str, Enum):
    """Kind of craft pattern in the photo."""
    SEWING = "sewing"
    QUILTING = "quilting"
    STENCIL = "stencil"
    MAKER = "maker"
    CUSTOM = "custom"


class TargetLayer(str, Enum):
    """Output layers a caller can ask for."""
    CUTLINE = "cutline"
    MARKINGS = "markings"
    LABELS = "labels"


class VectorizeRequest(BaseModel):
    """Caller input for one vectorize invocation."""

    model_config = ConfigDict(frozen=True)

    project_id: str = Field(..., min_length=1)
    image_id: str = Field(..., min_length=1)
    mode: PatternMode
    scale_mm_per_px: float = Field(..., gt=0, allow_inf_nan=False)
    targets: Optional[Tuple[TargetLayer, ...]] = None

    @field_validator("project_id", "image_id")
    @classmethod
    def _single_path_segment(cls, value: str) -> str:
        # Identifiers become storage key segments
        if "/" in value or "\\" in value or value in (".", ".."):
            raise ValueError("must be a single identifier, not a path")
        return value

    @field_validator("targets", mode="before")
    @classmethod
    def _dedupe_targets(cls, value):
        if isinstance(value, (list, tuple)):
            return tuple(dict.fromkeys(value))
        return value

    def wants(self, layer: TargetLayer) -> bool:
        """True if ``layer`` should be populated in the result."""
        return self.targets is None or layer in self.targets


class PreparedImage(BaseModel):
    """Image ready for transmission to an inference endpoint.

    Attributes:
        data_base64: Base64 encoded image bytes
        width: Effective pixel width after any downscaling
        height: Effective pixel height after any downscaling
        mime_type: Always "image/jpeg"
        size_bytes: Size of the encoded (pre-base64) payload
    """

    model_config = ConfigDict(frozen=True)

    data_base64: str
    width: int
    height: int
    mime_type: str = "image/jpeg"
    size_bytes: int = 0

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data_base64}"


class ModelConfig(BaseModel):
    """One entry of the ordered model chain."""

    model_config = ConfigDict(frozen=True)

    id: str
    timeout_ms: int = Field(..., gt=0)


# ---------------------------------------------------------------------------
# Inference result (pixel space). Built only by validate_response.
# ---------------------------------------------------------------------------

class ImageDimensions(BaseModel):
    width: float = 0.0
    height: float = 0.0


class PathRecord(BaseModel):
    """A detected path in pixel coordinates."""
    id: str = ""
    path_type: str = "cutline"  # cutline, dart, notch, grainline, fold_line, seam_line
    closed: bool = False
    points: List[Tuple[float, float]] = Field(default_factory=list)
    confidence: float = 0.0  # 0-100


class BoundingBox(BaseModel):
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0


class LabelRecord(BaseModel):
    """A recognized text label in pixel coordinates."""
    id: str = ""
    text: str = ""
    bounding_box: BoundingBox = Field(default_factory=BoundingBox)
    confidence: float = 0.0  # 0-100


class InferenceLayers(BaseModel):
    cutlines: List[PathRecord] = Field(default_factory=list)
    markings: List[PathRecord] = Field(default_factory=list)
    labels: List[LabelRecord] = Field(default_factory=list)


class RawInferenceResult(BaseModel):
    """Model output that has passed structural validation."""
    success: bool
    confidence: float  # 0-100
    image_dimensions: Optional[ImageDimensions] = None
    layers: InferenceLayers
    warnings: List[str] = Field(default_factory=list)
    processing_notes: str = ""


class AttemptRecord(BaseModel):
    """One failed inference attempt in the diagnostic trail."""
    model: str
    attempt: int  # 1-indexed within the model
    kind: FaultKind
    error: str


# ---------------------------------------------------------------------------
# Calibrated result (millimetres). Persisted and returned to the client.
# ---------------------------------------------------------------------------

class PointMM(BaseModel):
    x_mm: float
    y_mm: float


class VectorPath(BaseModel):
    path_id: str
    path_type: str
    closed: bool
    points: List[PointMM]
    stroke_hint_mm: float
    confidence: float  # 0-1


class PositionMM(BaseModel):
    x_mm: float
    y_mm: float


class SizeMM(BaseModel):
    width_mm: float
    height_mm: float


class TextBox(BaseModel):
    label_id: str
    text: str
    position: PositionMM
    size: SizeMM
    confidence: float  # 0-1


class ResultLayers(BaseModel):
    cutline: List[VectorPath] = Field(default_factory=list)
    markings: List[VectorPath] = Field(default_factory=list)
    labels: List[TextBox] = Field(default_factory=list)


class QAReport(BaseModel):
    confidence: float  # 0-1
    warnings: List[str] = Field(default_factory=list)


class VectorizeResult(BaseModel):
    """Calibrated pattern piece, written once to the piece store."""
    piece_id: str
    source_image_id: str
    scale_mm_per_px: float
    width_mm: float
    height_mm: float
    layers: ResultLayers
    qa: QAReport
