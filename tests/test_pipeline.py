from unittest import mock

import pytest

from conftest import image_bytes
from review_images.aws.clients import dynamodb_table as dynamodb_table_factory
from review_images.aws.records import ImageRecordStore
from review_images.core.config import settings
from review_images.core.errors import (
    BadRequestError,
    ConflictError,
    FileStorageError,
    NotFoundError,
    PayloadTooLargeError,
    UnsupportedFormatError,
)
from review_images.core.models import AnimeOwner, LightNovelOwner, MediaType
from review_images.pipeline import UploadPipeline, filename_from_url
from review_images.storage.backends import LocalStorageBackend, S3StorageBackend


@pytest.fixture
def local_pipeline(aws_mock, tmp_path):
    backend = LocalStorageBackend(str(tmp_path), port=8000)
    return UploadPipeline(backend, ImageRecordStore(dynamodb_table_factory()), max_size=2 * 1024 * 1024)


@pytest.fixture
def s3_pipeline(aws_mock):
    backend = S3StorageBackend(aws_mock, settings.bucket_name)
    return UploadPipeline(backend, ImageRecordStore(dynamodb_table_factory()), max_size=2 * 1024 * 1024)


def test_upload_then_delete_round_trip_local(local_pipeline, tmp_path):
    data = image_bytes()
    image = local_pipeline.upload(data, "cover.png", "image/png", MediaType.ANIME, "anime-1")

    assert image.owner == AnimeOwner(id="anime-1")
    assert image.filename == f"{image.id}.png"
    assert image.url == f"http://localhost:8000/uploads/{image.filename}"
    assert (tmp_path / image.filename).read_bytes() == data
    assert local_pipeline.records.get(image.id) == image

    local_pipeline.delete(image.id)
    assert local_pipeline.records.get(image.id) is None
    assert not (tmp_path / image.filename).exists()


def test_upload_then_delete_round_trip_s3(s3_pipeline, aws_mock):
    image = s3_pipeline.upload(image_bytes("JPEG"), "cover.jpeg", "image/jpeg", "LIGHT_NOVEL", "ln-9")

    assert image.owner == LightNovelOwner(id="ln-9")
    assert image.url.endswith(f"/review-image/{image.id}.jpeg")
    aws_mock.head_object(Bucket=settings.bucket_name, Key=f"review-image/{image.filename}")

    s3_pipeline.delete(image.id)
    assert s3_pipeline.records.get(image.id) is None
    assert s3_pipeline.backend.list_filenames() == []


def test_upload_unknown_media_type_never_stores(local_pipeline):
    with mock.patch.object(local_pipeline.backend, "store") as store:
        with pytest.raises(BadRequestError):
            local_pipeline.upload(image_bytes(), "a.png", "image/png", "MOVIE", "x")
    store.assert_not_called()


def test_upload_unsupported_mime_never_stores(local_pipeline):
    with mock.patch.object(local_pipeline.backend, "store") as store:
        with pytest.raises(UnsupportedFormatError):
            local_pipeline.upload(image_bytes("GIF"), "a.gif", "image/gif", "ANIME", "x")
    store.assert_not_called()


def test_upload_still_too_large_is_fatal(local_pipeline, monkeypatch):
    monkeypatch.setattr(local_pipeline.compressor, "compress", lambda data, mime: b"x" * (3 * 1024 * 1024))
    with mock.patch.object(local_pipeline.backend, "store") as store:
        with pytest.raises(PayloadTooLargeError):
            local_pipeline.upload(b"\xff" * (5 * 1024 * 1024), "big.jpg", "image/jpeg", "MANGA", "m1")
    store.assert_not_called()


def test_upload_compressed_under_limit_is_stored(local_pipeline, monkeypatch, tmp_path):
    small = b"x" * (1024 * 1024)
    monkeypatch.setattr(local_pipeline.compressor, "compress", lambda data, mime: small)
    image = local_pipeline.upload(b"\xff" * (5 * 1024 * 1024), "big.jpg", "image/jpeg", "MANGA", "m1")
    assert (tmp_path / image.filename).stat().st_size == len(small)


def test_upload_backend_failure_writes_no_record(local_pipeline):
    with mock.patch.object(local_pipeline.backend, "store", side_effect=FileStorageError("disk full")):
        with pytest.raises(FileStorageError):
            local_pipeline.upload(image_bytes(), "a.png", "image/png", "ANIME", "a1")
    assert local_pipeline.records.list_images() == []


def test_upload_duplicate_url_is_conflict(local_pipeline):
    with mock.patch.object(local_pipeline.backend, "store", return_value="http://localhost:8000/uploads/same.png"):
        local_pipeline.upload(image_bytes(), "a.png", "image/png", "ANIME", "a1")
        with pytest.raises(ConflictError):
            local_pipeline.upload(image_bytes(), "b.png", "image/png", "ANIME", "a2")
    assert len(local_pipeline.records.list_images()) == 1


def test_delete_missing_id_never_touches_backend(local_pipeline):
    with mock.patch.object(local_pipeline.backend, "delete") as delete:
        with pytest.raises(NotFoundError):
            local_pipeline.delete("nope")
    delete.assert_not_called()


def test_delete_swallows_backend_failure(local_pipeline):
    image = local_pipeline.upload(image_bytes(), "a.png", "image/png", "ANIME", "a1")
    with mock.patch.object(local_pipeline.backend, "delete", side_effect=FileStorageError("boom")):
        local_pipeline.delete(image.id)
    assert local_pipeline.records.get(image.id) is None


def test_delete_missing_local_file_still_removes_record(local_pipeline, tmp_path):
    image = local_pipeline.upload(image_bytes(), "a.png", "image/png", "ANIME", "a1")
    (tmp_path / image.filename).unlink()
    local_pipeline.delete(image.id)
    assert local_pipeline.records.get(image.id) is None


def test_find_orphans(local_pipeline, tmp_path):
    kept = local_pipeline.upload(image_bytes(), "a.png", "image/png", "ANIME", "a1")
    lost = local_pipeline.upload(image_bytes(), "b.png", "image/png", "MANGA", "m1")
    (tmp_path / lost.filename).unlink()
    (tmp_path / "stray.png").write_bytes(b"x")

    report = local_pipeline.find_orphans()
    assert report.objects == ["stray.png"]
    assert report.records == [lost.id]
    assert kept.filename not in report.objects


def test_filename_from_url():
    assert filename_from_url("https://b.s3.us-east-1.amazonaws.com/review-image/abc.png") == "abc.png"
    assert filename_from_url("http://localhost:8000/uploads/abc.png") == "abc.png"
