"""Dependency wiring for the vectorize endpoint.

Collaborators are built once, on first use, from configuration. Tests
replace them with ``app.dependency_overrides``.
"""

import logging
from functools import lru_cache

from app.config import settings
from api import PipelineDependencies
from auth import Authenticator, StaticTokenAuthenticator
from config import get_auth_tokens, get_openrouter_api_key, get_openrouter_url
from exceptions import ConfigurationError
from storage import LocalImageStore, LocalPieceStore
from vectorization import OpenRouterClient

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_pipeline_dependencies() -> PipelineDependencies:
    """Stores and inference client for the running service."""
    try:
        api_key = get_openrouter_api_key()
    except ConfigurationError:
        # Surfaces per request as an internal configuration fault
        logger.error("OPENROUTER_API_KEY not configured; vectorize requests will fail")
        api_key = None

    return PipelineDependencies(
        image_store=LocalImageStore(settings.STORAGE_ROOT),
        piece_store=LocalPieceStore(settings.STORAGE_ROOT),
        inference_client=OpenRouterClient(api_key=api_key, base_url=get_openrouter_url()),
    )


@lru_cache(maxsize=1)
def get_authenticator() -> Authenticator:
    """Token authenticator built from TRACECAST_AUTH_TOKENS."""
    return StaticTokenAuthenticator(get_auth_tokens())
