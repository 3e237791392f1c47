import asyncio
import io
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError
from fastapi import UploadFile
from starlette.datastructures import Headers

from brandcollab.errors import BadRequestError
from brandcollab.settings import settings
from brandcollab.uploads.s3 import FileKind, s3_service, validate_upload


def upload(filename: str, content: bytes = b"data", content_type: str = "image/png") -> UploadFile:
    return UploadFile(io.BytesIO(content), filename=filename, headers=Headers({"content-type": content_type}))


@pytest.fixture
def bucket(monkeypatch):
    client = MagicMock()
    monkeypatch.setattr(s3_service, "bucket_name", "brandcollab-test")
    monkeypatch.setattr(s3_service, "region", "ap-south-1")
    monkeypatch.setattr(s3_service, "_client", client)
    return client


def test_extension_rules_per_kind():
    assert validate_upload("Photo.JPG", 10, FileKind.IMAGE) == "jpg"
    assert validate_upload("gst.pdf", 10, FileKind.DOCUMENT) == "pdf"

    with pytest.raises(BadRequestError, match="Invalid file type"):
        validate_upload("gst.pdf", 10, FileKind.IMAGE)
    with pytest.raises(BadRequestError, match="Invalid file type"):
        validate_upload("logo.webp", 10, FileKind.DOCUMENT)
    with pytest.raises(BadRequestError, match="Invalid file type"):
        validate_upload("no-extension", 10, FileKind.IMAGE)
    with pytest.raises(BadRequestError, match="Invalid file type"):
        validate_upload(None, 10, FileKind.IMAGE)


def test_size_limit():
    limit = settings.max_upload_size_mb * 1024 * 1024

    assert validate_upload("photo.png", limit, FileKind.IMAGE) == "png"
    with pytest.raises(BadRequestError, match="File too large"):
        validate_upload("photo.png", limit + 1, FileKind.IMAGE)


def test_upload_stores_object(bucket):
    url = asyncio.run(s3_service.upload_file(upload("logo.png"), "profiles/brands"))

    kwargs = bucket.put_object.call_args.kwargs
    assert kwargs["Bucket"] == "brandcollab-test"
    assert kwargs["Key"].startswith("profiles/brands/")
    assert kwargs["Key"].endswith(".png")
    assert kwargs["Body"] == b"data"
    assert kwargs["ContentType"] == "image/png"
    assert url == f"https://brandcollab-test.s3.ap-south-1.amazonaws.com/{kwargs['Key']}"


def test_invalid_upload_never_reaches_bucket(bucket):
    with pytest.raises(BadRequestError):
        asyncio.run(s3_service.upload_file(upload("script.exe"), "profiles/brands"))

    bucket.put_object.assert_not_called()


def test_storage_failure(bucket):
    bucket.put_object.side_effect = ClientError({"Error": {"Code": "AccessDenied"}}, "PutObject")

    with pytest.raises(BadRequestError, match="File upload failed"):
        asyncio.run(s3_service.upload_file(upload("logo.png"), "profiles/brands"))


def test_missing_bucket(monkeypatch):
    monkeypatch.setattr(s3_service, "bucket_name", None)

    with pytest.raises(BadRequestError, match="not configured"):
        asyncio.run(s3_service.upload_file(upload("logo.png"), "profiles/brands"))
