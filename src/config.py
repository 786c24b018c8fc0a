"""Centralized configuration for the TraceCast vectorization service.

This module provides:
- PROJECT_ROOT and SRC_DIR paths
- Environment variable access with get_env()
- Automatic .env loading

Values are resolved once by the surrounding process (backend startup,
scripts) and injected into the pipeline; pipeline code never reads the
environment itself.

Usage:
    from config import get_openrouter_api_key, get_storage_root

    client = OpenRouterClient(api_key=get_openrouter_api_key())
"""

import logging
import os
from pathlib import Path
from typing import Dict, Optional
from dotenv import load_dotenv

from exceptions import ConfigurationError

# Calculate paths once at import time
SRC_DIR = Path(__file__).parent.resolve()
PROJECT_ROOT = SRC_DIR.parent.resolve()

# Load .env from project root
_env_path = PROJECT_ROOT / ".env"
if _env_path.exists():
    load_dotenv(_env_path)

DEFAULT_OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"


def get_env(key: str, default: Optional[str] = None) -> str:
    """Get environment variable value.

    Args:
        key: Environment variable name
        default: Default value if not set. If None and key not found, raises KeyError.

    Returns:
        Environment variable value or default

    Raises:
        KeyError: If key not found and no default provided
    """
    value = os.environ.get(key)
    if value is not None:
        return value
    if default is not None:
        return default
    raise KeyError(f"Environment variable '{key}' not set and no default provided")


def get_openrouter_api_key() -> str:
    """Get the OpenRouter bearer credential.

    Raises:
        ConfigurationError: If OPENROUTER_API_KEY is unset or empty
    """
    api_key = os.environ.get("OPENROUTER_API_KEY", "").strip()
    if not api_key:
        raise ConfigurationError("OPENROUTER_API_KEY not configured")
    return api_key


def get_openrouter_url() -> str:
    """Get the chat completions endpoint URL."""
    return get_env("OPENROUTER_URL", default=DEFAULT_OPENROUTER_URL)


def get_storage_root() -> Path:
    """Get the root directory for uploaded images and piece documents."""
    return Path(get_env("TRACECAST_STORAGE_ROOT", default=str(PROJECT_ROOT / "data" / "storage")))


def get_auth_tokens() -> Dict[str, str]:
    """Parse TRACECAST_AUTH_TOKENS into a token -> caller id map.

    Format: ``token1:uid1,token2:uid2``. Unset means no caller can
    authenticate.

    Raises:
        ConfigurationError: If an entry is not of the form token:uid
    """
    raw = get_env("TRACECAST_AUTH_TOKENS", default="")
    tokens = {}
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        token, sep, uid = entry.partition(":")
        if not sep or not token.strip() or not uid.strip():
            raise ConfigurationError(f"Malformed TRACECAST_AUTH_TOKENS entry: '{entry}'")
        tokens[token.strip()] = uid.strip()
    return tokens


def get_log_level() -> int:
    """Get the logging level from TRACECAST_LOG_LEVEL (default INFO)."""
    name = get_env("TRACECAST_LOG_LEVEL", default="INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO
