"""Interfaces for the image store and piece store collaborators."""
from abc import ABC, abstractmethod

from vectorization.models import VectorizeResult


def upload_path(owner_id: str, image_id: str) -> str:
    """Storage key of a user's uploaded source photo."""
    return f"users/{owner_id}/uploads/{image_id}.jpg"


def piece_path(owner_id: str, project_id: str, piece_id: str) -> str:
    """Document key of a vectorized piece."""
    return f"users/{owner_id}/projects/{project_id}/pieces/{piece_id}"


class ImageStore(ABC):
    """Read access to uploaded source images."""

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Return True if an object is stored at ``path``."""
        pass

    @abstractmethod
    async def download(self, path: str) -> bytes:
        """Return the bytes stored at ``path``."""
        pass


class PieceStore(ABC):
    """Write access to vectorized piece documents."""

    @abstractmethod
    async def save_piece(self, owner_id: str, project_id: str, result: VectorizeResult) -> str:
        """
        Persist ``result`` with server-assigned created_at/updated_at timestamps.

        Returns:
            Document key the piece was written to
        """
        pass
