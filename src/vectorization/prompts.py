"""Prompt contract for pattern vectorization requests."""

from vectorization.models import PatternMode

SYSTEM_PROMPT = """You are a specialized pattern vectorization AI for TraceCast, an app that digitizes sewing patterns, quilting templates, and craft stencils for projector use.

Your task is to analyze a photograph of a pattern piece and extract:
1. The primary cutline (outer boundary for cutting)
2. Internal markings (darts, notches, grainlines, fold lines)
3. Text labels (pattern piece names, sizes, quantities)

CRITICAL REQUIREMENTS:
- All coordinates must be in PIXELS relative to the image dimensions provided
- Paths must be arrays of [x, y] coordinate pairs
- Cutlines should form CLOSED paths (first point = last point)
- Ignore wrinkles, shadows, stains, and background noise
- Focus only on the intentional printed/drawn lines
- If you cannot detect a clear cutline, set confidence to 0 and explain in warnings

OUTPUT FORMAT:
You must respond with ONLY valid JSON matching the schema provided. No markdown, no explanation, no preamble. Just the JSON object."""

RESPONSE_SCHEMA = """{
  "success": boolean,
  "confidence": number (0-100),
  "image_dimensions": { "width": number, "height": number },
  "layers": {
    "cutlines": [
      {
        "id": "cutline_1",
        "path_type": "cutline",
        "closed": boolean,
        "points": [[x, y], [x, y], ...],
        "confidence": number (0-100)
      }
    ],
    "markings": [
      {
        "id": "marking_1",
        "path_type": "dart" | "notch" | "grainline" | "fold_line" | "seam_line",
        "closed": boolean,
        "points": [[x, y], [x, y], ...],
        "confidence": number (0-100)
      }
    ],
    "labels": [
      {
        "id": "label_1",
        "text": "string",
        "bounding_box": { "x": number, "y": number, "width": number, "height": number },
        "confidence": number (0-100)
      }
    ]
  },
  "warnings": ["string"],
  "processing_notes": "string"
}"""


def build_user_prompt(width: int, height: int, mode: PatternMode) -> str:
    """Per-request instruction embedding image size and pattern mode."""
    return f"""Analyze this pattern photograph and extract vector data.

IMAGE DIMENSIONS: {width}px x {height}px
PATTERN MODE: {PatternMode(mode).value}

Extract all visible:
- Cutlines (outer boundaries)
- Darts (triangular fold markings)
- Notches (small marks on edges for alignment)
- Grainlines (arrows indicating fabric direction)
- Fold lines (dashed lines indicating where to fold)
- Text labels (piece names, sizes, cutting instructions)

Respond with JSON matching this exact schema:

{RESPONSE_SCHEMA}"""
