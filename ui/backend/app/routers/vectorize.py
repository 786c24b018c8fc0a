"""Pattern vectorization endpoint."""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from api import PipelineDependencies, handle_vectorize_request
from app.services.vectorize_service import get_authenticator, get_pipeline_dependencies
from auth import Authenticator, bearer_token
from exceptions import ErrorCategory, VectorizeAPIError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["vectorize"])

STATUS_CODES = {
    ErrorCategory.UNAUTHENTICATED: 401,
    ErrorCategory.INVALID_ARGUMENT: 400,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.UNAVAILABLE: 503,
    ErrorCategory.INTERNAL: 500,
}


async def _read_json_body(request: Request) -> Any:
    """Parsed JSON body, or None when the body is empty or not valid JSON."""
    try:
        return await request.json()
    except ValueError:
        logger.debug("Vectorize request body is not valid JSON")
        return None


@router.post("/vectorize")
async def vectorize(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    authenticator: Authenticator = Depends(get_authenticator),
    deps: PipelineDependencies = Depends(get_pipeline_dependencies),
) -> Dict[str, Any]:
    """
    Vectorize an uploaded pattern photo.

    Args:
        request: JSON body with:
            - project_id: Project the piece belongs to
            - image_id: Uploaded image id (users/{uid}/uploads/{image_id}.jpg)
            - mode: sewing | quilting | stencil | maker | custom
            - scale_mm_per_px: Calibration scale, > 0
            - targets: Optional subset of cutline, markings, labels
        authorization: "Bearer <token>" header

    Returns:
        VectorizeResult as JSON

    Raises:
        HTTPException 401: Missing or unknown token
        HTTPException 400: Body not a JSON object, or missing or invalid fields
        HTTPException 404: Source image not found
        HTTPException 503: All AI models failed
        HTTPException 500: Any other failure
    """
    caller_id = await authenticator.resolve(bearer_token(authorization))
    payload = await _read_json_body(request)

    try:
        result = await handle_vectorize_request(payload, caller_id, deps)
    except VectorizeAPIError as e:
        logger.info(f"Vectorize request rejected: {e.category.value}")
        raise HTTPException(status_code=STATUS_CODES[e.category], detail=e.to_dict()) from e

    return result.model_dump(mode="json")
