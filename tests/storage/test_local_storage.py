"""Tests for filesystem-backed image and piece stores."""

import json

import pytest

from storage.base import piece_path, upload_path
from storage.local import LocalImageStore, LocalPieceStore
from vectorization.models import QAReport, ResultLayers, VectorizeResult


def _result(piece_id="piece-1") -> VectorizeResult:
    return VectorizeResult(
        piece_id=piece_id,
        source_image_id="img-1",
        scale_mm_per_px=0.5,
        width_mm=200,
        height_mm=150,
        layers=ResultLayers(),
        qa=QAReport(confidence=0.8),
    )


@pytest.mark.unit
class TestKeys:
    def test_upload_path(self):
        assert upload_path("u1", "img1") == "users/u1/uploads/img1.jpg"

    def test_piece_path(self):
        assert piece_path("u1", "p1", "pc1") == "users/u1/projects/p1/pieces/pc1"


@pytest.mark.unit
@pytest.mark.asyncio
class TestLocalImageStore:
    async def test_exists_and_download(self, tmp_path, jpeg_bytes):
        target = tmp_path / "users" / "u1" / "uploads" / "img1.jpg"
        target.parent.mkdir(parents=True)
        target.write_bytes(jpeg_bytes)
        store = LocalImageStore(tmp_path)

        assert await store.exists("users/u1/uploads/img1.jpg") is True
        assert await store.download("users/u1/uploads/img1.jpg") == jpeg_bytes

    async def test_missing_image(self, tmp_path):
        store = LocalImageStore(tmp_path)

        assert await store.exists("users/u1/uploads/nope.jpg") is False
        with pytest.raises(FileNotFoundError):
            await store.download("users/u1/uploads/nope.jpg")

    async def test_directory_is_not_an_image(self, tmp_path):
        (tmp_path / "users" / "u1" / "uploads" / "dir.jpg").mkdir(parents=True)

        assert await LocalImageStore(tmp_path).exists("users/u1/uploads/dir.jpg") is False

    async def test_traversal_rejected(self, tmp_path):
        with pytest.raises(ValueError, match="escapes storage root"):
            await LocalImageStore(tmp_path / "root").exists("../outside.jpg")


@pytest.mark.unit
@pytest.mark.asyncio
class TestLocalPieceStore:
    @pytest.mark.smoke
    async def test_save_piece_writes_document(self, tmp_path):
        store = LocalPieceStore(tmp_path)

        key = await store.save_piece("u1", "p1", _result("piece-9"))

        assert key == "users/u1/projects/p1/pieces/piece-9"
        document = json.loads((tmp_path / f"{key}.json").read_text(encoding="utf-8"))
        assert document["piece_id"] == "piece-9"
        assert document["qa"] == {"confidence": 0.8, "warnings": []}
        assert document["layers"] == {"cutline": [], "markings": [], "labels": []}

    async def test_timestamps_are_server_assigned(self, tmp_path):
        key = await LocalPieceStore(tmp_path).save_piece("u1", "p1", _result())

        document = json.loads((tmp_path / f"{key}.json").read_text(encoding="utf-8"))
        assert document["created_at"] == document["updated_at"]
        assert document["created_at"].endswith("+00:00")

    async def test_no_temp_files_left_behind(self, tmp_path):
        key = await LocalPieceStore(tmp_path).save_piece("u1", "p1", _result())

        siblings = list((tmp_path / key).parent.iterdir())
        assert [p.name for p in siblings] == ["piece-1.json"]
