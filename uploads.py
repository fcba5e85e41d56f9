"""
Image upload service.

Bytes are inspected with Pillow for their dimensions and then handed to a
storage backend which returns a public URL.
"""

import io
import logging
import os
import uuid
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

from config import Settings, get_settings
from errors import UpstreamError, ValidationError
from schemas import ImageAsset

logger = logging.getLogger(__name__)

WORKS_FOLDER = "portfolio/works"
ADMIN_FOLDER = "portfolio/admin"


class Storage:
    def save_bytes(self, data: bytes, *, folder: str, content_type: Optional[str] = None, key_hint: Optional[str] = None) -> str:
        raise NotImplementedError


def _object_name(folder: str, key_hint: Optional[str]) -> str:
    ext = ""
    if key_hint and "." in key_hint:
        ext = "." + key_hint.rsplit(".", 1)[-1].lower()
    return f"{folder.strip('/')}/{uuid.uuid4().hex}{ext}"


class LocalStorage(Storage):
    def __init__(self, base_dir: Path, public_base: str = "/static") -> None:
        self.base_dir = Path(base_dir)
        self.public_base = public_base.rstrip("/")
        os.makedirs(self.base_dir, exist_ok=True)

    def save_bytes(self, data: bytes, *, folder: str, content_type: Optional[str] = None, key_hint: Optional[str] = None) -> str:
        name = _object_name(folder, key_hint)
        path = self.base_dir / name
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise UpstreamError("Failed to store upload") from exc
        return f"{self.public_base}/{name}"


class S3Storage(Storage):
    def __init__(
        self,
        *,
        bucket: str,
        endpoint_url: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        region: Optional[str] = None,
        public_base_url: Optional[str] = None,
        client=None,
    ) -> None:
        if client is None:
            import boto3
            from botocore.config import Config

            client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
                config=Config(signature_version="s3v4", retries={"max_attempts": 1, "mode": "standard"}),
            )
        self.client = client
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None

    def save_bytes(self, data: bytes, *, folder: str, content_type: Optional[str] = None, key_hint: Optional[str] = None) -> str:
        from botocore.exceptions import BotoCoreError, ClientError

        key = _object_name(folder, key_hint)
        extra_args = {}
        if content_type:
            extra_args["ContentType"] = content_type
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=data, **extra_args)
        except (BotoCoreError, ClientError) as exc:
            raise UpstreamError("Failed to upload image") from exc
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        endpoint = self.client.meta.endpoint_url.rstrip("/")
        return f"{endpoint}/{self.bucket}/{key}"


ALLOWED_FORMATS = ("JPEG", "PNG", "WEBP")


def image_dimensions(data: bytes) -> tuple:
    """Return (width, height) for a JPEG, PNG or WEBP image."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
            size = img.size
    except (UnidentifiedImageError, OSError) as exc:
        raise ValidationError("File is not a valid image") from exc
    if fmt not in ALLOWED_FORMATS:
        raise ValidationError("Only JPG, PNG, and WEBP images are allowed")
    return size


class ImageUploader:
    def __init__(self, storage: Storage) -> None:
        self.storage = storage

    def upload(self, data: bytes, *, filename: Optional[str] = None, content_type: Optional[str] = None, folder: str = WORKS_FOLDER) -> ImageAsset:
        if not data:
            raise ValidationError("No file provided")
        width, height = image_dimensions(data)
        url = self.storage.save_bytes(data, folder=folder, content_type=content_type, key_hint=filename)
        logger.info("Uploaded %s (%dx%d) to %s", filename or "image", width, height, url)
        return ImageAsset(url=url, width=width, height=height)


def get_storage(settings: Optional[Settings] = None) -> Storage:
    settings = settings or get_settings()
    if settings.storage_backend == "s3":
        if not settings.s3_bucket:
            raise UpstreamError("S3 storage is not configured")
        return S3Storage(
            bucket=settings.s3_bucket,
            endpoint_url=settings.s3_endpoint_url,
            access_key=settings.s3_access_key_id,
            secret_key=settings.s3_secret_access_key,
            region=settings.s3_region,
            public_base_url=settings.public_base_url,
        )
    return LocalStorage(base_dir=settings.upload_dir, public_base="/static")


def get_uploader() -> ImageUploader:
    """FastAPI dependency."""
    return ImageUploader(get_storage())
