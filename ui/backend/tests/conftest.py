"""Pytest configuration for UI backend tests."""
import sys
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Add backend root to path so imports work
backend_root = Path(__file__).parent.parent
sys.path.insert(0, str(backend_root))

# Load env from project root for API keys
project_root = backend_root.parent.parent
load_dotenv(project_root / ".env")

# Project src and shared test fakes
sys.path.insert(0, str(project_root / "src"))
sys.path.insert(0, str(project_root / "tests"))

from app.main import app  # noqa: E402
from app.services.vectorize_service import get_authenticator, get_pipeline_dependencies  # noqa: E402
from api import PipelineDependencies  # noqa: E402
from auth import StaticTokenAuthenticator  # noqa: E402
from pipeline_fakes import (  # noqa: E402
    InMemoryImageStore,
    InMemoryPieceStore,
    ScriptedInferenceClient,
    make_image_bytes,
)

TEST_TOKEN = "test-token"
TEST_CALLER_ID = "user-1"


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {TEST_TOKEN}"}


@pytest.fixture
def piece_store():
    return InMemoryPieceStore()


@pytest.fixture
def override_pipeline(piece_store):
    """Install in-memory collaborators; returns an installer taking the inference script."""
    image_store = InMemoryImageStore({
        f"users/{TEST_CALLER_ID}/uploads/img-1.jpg": make_image_bytes(400, 300),
    })

    async def _no_sleep(seconds):
        pass

    def _install(script):
        deps = PipelineDependencies(
            image_store=image_store,
            piece_store=piece_store,
            inference_client=ScriptedInferenceClient(script),
            sleep=_no_sleep,
        )
        app.dependency_overrides[get_pipeline_dependencies] = lambda: deps
        app.dependency_overrides[get_authenticator] = lambda: StaticTokenAuthenticator({TEST_TOKEN: TEST_CALLER_ID})
        return deps

    yield _install
    app.dependency_overrides.clear()
