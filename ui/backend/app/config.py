"""Configuration for the vectorization backend."""
import sys
from pathlib import Path

# Add project src to path
project_root = Path(__file__).parent.parent.parent.parent
sys.path.insert(0, str(project_root / "src"))

from config import get_log_level, get_storage_root  # noqa: E402


class Settings:
    """Application settings."""

    # Service
    SERVICE_NAME = "tracecast-vectorize-api"
    CORS_ORIGINS = ["http://localhost:5173", "http://localhost:5174"]  # Vite ports

    # Storage root for uploads and piece documents
    STORAGE_ROOT = get_storage_root()

    LOG_LEVEL = get_log_level()


# Global settings instance
settings = Settings()
