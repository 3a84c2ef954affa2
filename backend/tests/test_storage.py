"""
Tests for resume blob storage
"""
from unittest.mock import patch

import pytest

from hireflow.config import Settings
from hireflow.services import storage
from hireflow.services.storage import (
    CloudinaryStore,
    LocalDiskStore,
    StorageError,
    build_blob_store,
    safe_filename,
)


def test_safe_filename():
    assert safe_filename("My (Final) Resume #2.pdf") == "My_Final_Resume_2.pdf"
    assert safe_filename("../../etc/passwd") == ".._.._etc_passwd"
    assert safe_filename(None) == "resume"


async def test_local_disk_store_put_and_cleanup(tmp_path):
    store = LocalDiskStore(str(tmp_path))

    locator = await store.put(b"resume bytes", "application/pdf", "jane doe.pdf")

    assert locator.startswith("/uploads/resumes/")
    assert locator.endswith("_jane_doe.pdf")
    path = store.path_for(locator)
    with open(path, "rb") as fh:
        assert fh.read() == b"resume bytes"

    await store.cleanup(locator)
    assert not (tmp_path / path.split("/")[-1]).exists()


async def test_local_cleanup_of_missing_file_is_quiet(tmp_path):
    store = LocalDiskStore(str(tmp_path))
    await store.cleanup("/uploads/resumes/never_written.pdf")
    await store.cleanup("https://elsewhere.example.com/file.pdf")


async def test_local_cleanup_failure_is_logged(tmp_path, caplog):
    store = LocalDiskStore(str(tmp_path))
    locator = await store.put(b"data", "text/plain", "cv.txt")

    with patch.object(storage.os, "remove", side_effect=PermissionError("read-only")):
        await store.cleanup(locator)

    assert "Failed to remove stored resume" in caplog.text



async def test_local_put_into_unusable_directory_raises_storage_error(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("regular file")
    store = LocalDiskStore(str(blocker / "resumes"))

    with pytest.raises(StorageError) as exc_info:
        await store.put(b"data", "text/plain", "cv.txt")
    assert exc_info.value.reason == StorageError.UPLOAD_FAILED

def test_cloudinary_store_requires_credentials():
    with pytest.raises(StorageError) as exc_info:
        CloudinaryStore(cloud_name="", api_key="", api_secret="")
    assert exc_info.value.reason == StorageError.NOT_CONFIGURED


async def test_cloudinary_store_uploads_raw_resource():
    store = CloudinaryStore(cloud_name="demo", api_key="key", api_secret="secret", folder="tests/resumes")

    with patch.object(storage.cloudinary.uploader, "upload") as upload:
        upload.return_value = {"secure_url": "https://res.cloudinary.com/demo/raw/upload/cv.pdf"}
        locator = await store.put(b"%PDF", "application/pdf", "cv.pdf")

    assert locator == "https://res.cloudinary.com/demo/raw/upload/cv.pdf"
    kwargs = upload.call_args.kwargs
    assert kwargs["resource_type"] == "raw"
    assert kwargs["folder"] == "tests/resumes"


async def test_cloudinary_upload_error_becomes_storage_error():
    store = CloudinaryStore(cloud_name="demo", api_key="key", api_secret="secret")

    with patch.object(storage.cloudinary.uploader, "upload", side_effect=RuntimeError("network down")):
        with pytest.raises(StorageError) as exc_info:
            await store.put(b"%PDF", "application/pdf", "cv.pdf")
    assert exc_info.value.reason == StorageError.UPLOAD_FAILED


def test_build_blob_store_selects_driver(tmp_path):
    disk = build_blob_store(Settings(resume_storage_driver="disk", upload_dir=str(tmp_path)))
    assert isinstance(disk, LocalDiskStore)

    cloud = build_blob_store(Settings(
        resume_storage_driver="cloudinary",
        cloudinary_cloud_name="demo",
        cloudinary_api_key="key",
        cloudinary_api_secret="secret",
    ))
    assert isinstance(cloud, CloudinaryStore)
