"""S3 file uploads for profile images and brand documents."""

import asyncio
import uuid
from enum import Enum

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import UploadFile

from brandcollab.errors import BadRequestError
from brandcollab.logging_config import get_logger
from brandcollab.settings import settings

logger = get_logger(__name__)


class FileKind(str, Enum):
    IMAGE = "image"
    DOCUMENT = "document"


ALLOWED_EXTENSIONS = {
    FileKind.IMAGE: {"jpg", "jpeg", "png", "webp"},
    FileKind.DOCUMENT: {"pdf", "jpg", "jpeg", "png"},
}


def file_extension(filename: str | None) -> str:
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].lower()


def validate_upload(filename: str | None, size: int, kind: FileKind) -> str:
    """Check extension and size of an upload.

    Args:
        filename: Client supplied file name
        size: Size in bytes
        kind: Image or document

    Returns:
        The lower-cased extension

    Raises:
        BadRequestError: If the type or size is not allowed
    """
    ext = file_extension(filename)
    allowed = ALLOWED_EXTENSIONS[kind]
    if ext not in allowed:
        raise BadRequestError(f"Invalid file type. Allowed: {', '.join(sorted(allowed))}")

    max_bytes = settings.max_upload_size_mb * 1024 * 1024
    if size > max_bytes:
        raise BadRequestError(f"File too large. Maximum size is {settings.max_upload_size_mb}MB")

    return ext


class S3Service:
    """Uploads files to the configured bucket and returns public URLs."""

    def __init__(self):
        self.bucket_name = settings.aws_s3_bucket_name
        self.region = settings.aws_region
        self._client = None

        if not self.bucket_name:
            logger.warning("s3_service_disabled", reason="AWS_S3_BUCKET_NAME not set")

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=self.region,
                aws_access_key_id=settings.aws_access_key_id,
                aws_secret_access_key=settings.aws_secret_access_key,
                config=Config(retries={"max_attempts": 3, "mode": "standard"}),
            )
        return self._client

    def get_file_url(self, key: str) -> str:
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{key}"

    async def upload_file(self, file: UploadFile, folder: str, kind: FileKind = FileKind.IMAGE) -> str:
        """Validate and upload a file.

        Args:
            file: Uploaded file from the request
            folder: Key prefix, e.g. profiles/influencers
            kind: Image or document rules

        Returns:
            Public URL of the stored object

        Raises:
            BadRequestError: Invalid file or storage failure
        """
        content = await file.read()
        ext = validate_upload(file.filename, len(content), kind)

        if not self.bucket_name:
            raise BadRequestError("File storage is not configured")

        key = f"{folder}/{uuid.uuid4().hex}.{ext}"

        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket_name,
                Key=key,
                Body=content,
                ContentType=file.content_type or "application/octet-stream",
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("s3_upload_failed", key=key, error=str(e))
            raise BadRequestError("File upload failed")

        logger.info("s3_file_uploaded", key=key, size=len(content))
        return self.get_file_url(key)


s3_service = S3Service()
