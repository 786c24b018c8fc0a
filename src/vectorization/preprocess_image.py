"""Image preparation for vision model requests."""
import base64
import io
import logging

from PIL import Image, UnidentifiedImageError

from exceptions import DecodeError
from vectorization.models import PreparedImage

logger = logging.getLogger(__name__)

# Larger than 1024 for detail, smaller than 2048 for latency
MAX_IMAGE_DIMENSION = 1536
JPEG_QUALITY = 85
JPEG_FORMATS = ("JPEG", "MPO")


def _scaled_size(width: int, height: int, max_dimension: int) -> tuple[int, int]:
    """Dimensions after a uniform downscale so neither side exceeds max_dimension."""
    if width <= max_dimension and height <= max_dimension:
        return width, height
    scale = max_dimension / max(width, height)
    # Round half up, never collapse a side to zero
    new_width = max(1, min(max_dimension, int(width * scale + 0.5)))
    new_height = max(1, min(max_dimension, int(height * scale + 0.5)))
    return new_width, new_height


def prepare_image(image_bytes: bytes, max_dimension: int = MAX_IMAGE_DIMENSION) -> PreparedImage:
    """Normalize a raw photo into a bounded JPEG payload.

    Downscales so that max(width, height) <= max_dimension, preserving aspect
    ratio. The image is re-encoded as JPEG when it was resized or is not
    already a JPEG; otherwise the original bytes are passed through.

    Args:
        image_bytes: Raw image file contents
        max_dimension: Cap for the longer side in pixels

    Returns:
        PreparedImage with base64 payload and effective dimensions

    Raises:
        DecodeError: If the image cannot be read or has no dimensions
    """
    try:
        img = Image.open(io.BytesIO(image_bytes))
        source_width, source_height = img.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise DecodeError(f"Could not determine image dimensions: {e}") from e

    if not source_width or not source_height:
        raise DecodeError("Could not determine image dimensions")

    width, height = _scaled_size(source_width, source_height, max_dimension)
    needs_resize = (width, height) != (source_width, source_height)

    # Pillow reports multi-frame camera JPEGs as MPO
    if needs_resize or img.format not in JPEG_FORMATS:
        try:
            if needs_resize:
                img = img.resize((width, height), Image.Resampling.LANCZOS)
            if img.mode != "RGB":
                img = img.convert("RGB")
            output_buffer = io.BytesIO()
            img.save(output_buffer, format="JPEG", quality=JPEG_QUALITY)
        except OSError as e:
            raise DecodeError(f"Could not re-encode image: {e}") from e
        processed = output_buffer.getvalue()
    else:
        processed = image_bytes

    logger.info(
        f"Image optimized: {source_width}x{source_height} -> {width}x{height} "
        f"({round(len(processed) / 1024)}KB)"
    )

    return PreparedImage(
        data_base64=base64.b64encode(processed).decode("ascii"),
        width=width,
        height=height,
        size_bytes=len(processed),
    )
