"""
Shared pytest fixtures for TraceCast vectorization tests.
"""

import os
import sys
import pytest
from pathlib import Path

# Make shared fakes importable from backend tests as well
sys.path.insert(0, str(Path(__file__).parent))

from pipeline_fakes import (  # noqa: E402
    InMemoryImageStore,
    InMemoryPieceStore,
    make_image_bytes,
)

DEFAULT_MARKEXPR = "smoke or (not integration and not slow)"


def pytest_addoption(parser):
    """Add --full flag to run entire test suite"""
    parser.addoption(
        "--full",
        action="store_true",
        default=False,
        help="Run full test suite (including integration and slow tests)"
    )


def pytest_configure(config):
    """Configure test run based on flags"""
    if config.getoption("--full"):
        # Only clear default marker if no explicit -m flag was provided
        if config.option.markexpr == DEFAULT_MARKEXPR:
            config.option.markexpr = ""  # Run all tests


# Project root
PROJECT_ROOT = Path(__file__).parent.parent


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture(scope="session")
def check_api_key():
    """Check if the OpenRouter API key is available."""
    from dotenv import load_dotenv
    load_dotenv(PROJECT_ROOT / ".env")
    api_key = os.getenv("OPENROUTER_API_KEY")
    if not api_key:
        pytest.skip("OpenRouter API key not found. Set OPENROUTER_API_KEY in .env file.")
    return api_key


@pytest.fixture
def jpeg_bytes():
    """A small JPEG photo (100x80)."""
    return make_image_bytes(100, 80, fmt="JPEG")


@pytest.fixture
def image_store(jpeg_bytes):
    """Image store holding users/user-1/uploads/img-1.jpg."""
    return InMemoryImageStore({"users/user-1/uploads/img-1.jpg": jpeg_bytes})


@pytest.fixture
def piece_store():
    return InMemoryPieceStore()


@pytest.fixture
def recorded_sleeps():
    """Sleep stand-in that records requested delays."""
    delays = []

    async def _sleep(seconds: float) -> None:
        delays.append(seconds)

    _sleep.delays = delays
    return _sleep
