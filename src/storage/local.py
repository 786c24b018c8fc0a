"""Filesystem-backed image and piece stores.

Layout under the storage root mirrors the document keys:
    users/{uid}/uploads/{image_id}.jpg
    users/{uid}/projects/{project_id}/pieces/{piece_id}.json
"""
import asyncio
import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from storage.base import ImageStore, PieceStore, piece_path
from vectorization.models import VectorizeResult

logger = logging.getLogger(__name__)


def _resolve(root: Path, key: str) -> Path:
    """Map a storage key onto a path under ``root``, refusing traversal."""
    root = root.resolve()
    path = (root / key).resolve()
    if root != path and root not in path.parents:
        raise ValueError(f"Storage key escapes storage root: {key}")
    return path


class LocalImageStore(ImageStore):
    """Reads uploaded images from a directory tree."""

    def __init__(self, root: Path):
        self.root = Path(root)

    async def exists(self, path: str) -> bool:
        return await asyncio.to_thread(_resolve(self.root, path).is_file)

    async def download(self, path: str) -> bytes:
        return await asyncio.to_thread(_resolve(self.root, path).read_bytes)


def _write_json_atomic(path: Path, document: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-", suffix=".json")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class LocalPieceStore(PieceStore):
    """Writes piece documents as JSON files."""

    def __init__(self, root: Path):
        self.root = Path(root)

    async def save_piece(self, owner_id: str, project_id: str, result: VectorizeResult) -> str:
        key = piece_path(owner_id, project_id, result.piece_id)
        now = datetime.now(timezone.utc).isoformat()
        document = {
            **result.model_dump(mode="json"),
            "created_at": now,
            "updated_at": now,
        }

        target = _resolve(self.root, f"{key}.json")
        await asyncio.to_thread(_write_json_atomic, target, document)
        logger.debug(f"Saved piece {result.piece_id} to {target}")
        return key
