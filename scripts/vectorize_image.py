#!/usr/bin/env python3
"""
Vectorize a local pattern photo with the live model chain.

Runs image preparation, the model fallback chain and the millimetre
transform, then prints the VectorizeResult JSON. Nothing is written to the
piece store.

Usage:
    python scripts/vectorize_image.py photo.jpg --scale 0.42
    python scripts/vectorize_image.py photo.png --scale 0.5 --mode quilting --output piece.json
"""

import asyncio
import json
import logging
import sys
from pathlib import Path

# Setup paths
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from config import get_openrouter_api_key, get_openrouter_url  # noqa: E402
from exceptions import AllModelsExhaustedError, TraceCastError  # noqa: E402
from logging_config import setup_logging  # noqa: E402
from vectorization import (  # noqa: E402
    OpenRouterClient,
    PatternMode,
    VectorizeRequest,
    prepare_image,
    to_vectorize_result,
    vectorize_with_retry,
)


async def run(image_path: Path, request: VectorizeRequest) -> dict:
    client = OpenRouterClient(api_key=get_openrouter_api_key(), base_url=get_openrouter_url())
    prepared = prepare_image(image_path.read_bytes())
    inference = await vectorize_with_retry(client, prepared, request.mode)
    result = to_vectorize_result(inference, request, fallback_size=(prepared.width, prepared.height))
    return result.model_dump(mode="json")


def main():
    import argparse

    parser = argparse.ArgumentParser(description="Vectorize a pattern photo into millimetre paths")
    parser.add_argument("image", type=Path, help="Path to the pattern photo")
    parser.add_argument(
        "--scale",
        type=float,
        required=True,
        help="Calibration scale in millimetres per pixel"
    )
    parser.add_argument(
        "--mode",
        choices=[m.value for m in PatternMode],
        default=PatternMode.SEWING.value,
        help="Pattern mode (default: sewing)"
    )
    parser.add_argument("--output", type=Path, help="Write the result JSON to this file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show detailed logging")
    args = parser.parse_args()
    if not args.scale > 0:
        parser.error("--scale must be greater than 0")

    logger = setup_logging(
        "vectorize_image",
        level=logging.DEBUG if args.verbose else logging.INFO,
    )

    if not args.image.exists():
        logger.error(f"File not found: {args.image}")
        sys.exit(1)

    request = VectorizeRequest(
        project_id="local",
        image_id=args.image.stem,
        mode=args.mode,
        scale_mm_per_px=args.scale,
    )

    try:
        result = asyncio.run(run(args.image, request))
    except AllModelsExhaustedError as e:
        logger.error(f"{e.user_message}\n{json.dumps(e.to_details(), indent=2)}")
        sys.exit(2)
    except TraceCastError as e:
        logger.error(str(e))
        sys.exit(1)

    output = json.dumps(result, indent=2)
    if args.output:
        args.output.write_text(output)
        logger.info(f"Wrote {args.output}")
    else:
        print(output)


if __name__ == "__main__":
    main()
