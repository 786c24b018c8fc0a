"""Storage collaborators for source images and vectorized pieces.

This module provides:
- ImageStore / PieceStore: interfaces the pipeline depends on
- LocalImageStore / LocalPieceStore: filesystem implementations
- upload_path / piece_path: deterministic storage keys
"""

from .base import ImageStore, PieceStore, piece_path, upload_path
from .local import LocalImageStore, LocalPieceStore

__all__ = [
    "ImageStore",
    "PieceStore",
    "LocalImageStore",
    "LocalPieceStore",
    "piece_path",
    "upload_path",
]
