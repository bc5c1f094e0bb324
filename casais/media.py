"""Media upload bridge for casal photos.

Images are pushed to S3-compatible object storage and addressed by a public
URL plus the object key, which doubles as the handle used to delete the
object later. An in-memory backend serves local development and tests.
"""

from __future__ import annotations

import io
import logging
import mimetypes
import uuid
from dataclasses import dataclass, field
from typing import Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .config import Settings

logger = logging.getLogger(__name__)

ALLOWED_FORMATS = frozenset({"jpg", "jpeg", "png"})


class MediaError(Exception):
    """Raised when the media host rejects or fails an operation."""


@dataclass(frozen=True, slots=True)
class MediaRef:
    url: str
    public_id: str


class MediaBridge(Protocol):
    """Operations the API needs from the media host."""

    def upload(self, data: bytes, *, filename: str, content_type: str) -> MediaRef:
        ...

    def destroy(self, public_id: str) -> None:
        ...


def image_extension(filename: str, content_type: str) -> str | None:
    """Return the normalised image extension when the format is accepted."""
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if not ext and content_type:
        guessed = mimetypes.guess_extension(content_type) or ""
        ext = guessed.lstrip(".").lower()
    if ext == "jpe":
        ext = "jpg"
    return ext if ext in ALLOWED_FORMATS else None


def _object_key(folder: str, filename: str, content_type: str) -> str:
    ext = image_extension(filename, content_type) or "bin"
    return f"{folder.strip('/')}/{uuid.uuid4().hex}.{ext}"


@dataclass
class InMemoryMediaBridge:
    """Keeps uploads in a dict; used by the ``memory`` backend and tests."""

    base_url: str = "https://media.example.test"
    folder: str = "casais_app"
    stored_objects: dict[str, bytes] = field(default_factory=dict)
    destroyed: list[str] = field(default_factory=list)

    def upload(self, data: bytes, *, filename: str, content_type: str) -> MediaRef:
        key = _object_key(self.folder, filename, content_type)
        self.stored_objects[key] = bytes(data)
        return MediaRef(url=f"{self.base_url}/{key}", public_id=key)

    def destroy(self, public_id: str) -> None:
        if public_id not in self.stored_objects:
            raise MediaError(f"unknown media handle {public_id}")
        del self.stored_objects[public_id]
        self.destroyed.append(public_id)


@dataclass
class S3MediaBridge:
    """S3-compatible object storage client."""

    bucket: str
    region: str
    endpoint: str
    access_key_id: str
    secret_access_key: str
    public_base_url: str = ""
    folder: str = "casais_app"

    def __post_init__(self):
        config = Config(signature_version="s3v4", retries={"max_attempts": 1, "mode": "standard"})
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )

    def _public_url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{key}"
        if self.endpoint:
            return f"{self.endpoint.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.amazonaws.com/{key}"

    def upload(self, data: bytes, *, filename: str, content_type: str) -> MediaRef:
        key = _object_key(self.folder, filename, content_type)
        try:
            self._client.upload_fileobj(
                io.BytesIO(data),
                self.bucket,
                key,
                ExtraArgs={"ContentType": content_type or "application/octet-stream"},
            )
        except (BotoCoreError, ClientError) as exc:
            raise MediaError(f"upload of {filename!r} failed: {exc}") from exc
        return MediaRef(url=self._public_url(key), public_id=key)

    def destroy(self, public_id: str) -> None:
        try:
            self._client.delete_object(Bucket=self.bucket, Key=public_id)
        except (BotoCoreError, ClientError) as exc:
            raise MediaError(f"delete of {public_id!r} failed: {exc}") from exc


def destroy_quietly(bridge: MediaBridge, public_id: str | None) -> bool:
    """Best-effort removal of an old image; failures are only logged."""
    if not public_id:
        return False
    try:
        bridge.destroy(public_id)
    except MediaError as exc:
        logger.warning("could not delete old image %s: %s", public_id, exc)
        return False
    return True


def build_media_bridge(settings: Settings) -> MediaBridge:
    if settings.media_backend == "memory":
        logger.info("media bridge using in-memory backend")
        return InMemoryMediaBridge(
            base_url=settings.media_public_base_url or "https://media.example.test",
            folder=settings.media_folder,
        )
    if not settings.media_bucket:
        raise RuntimeError("MEDIA_BUCKET must be set when MEDIA_BACKEND=s3")
    logger.info("media bridge using bucket %s", settings.media_bucket)
    return S3MediaBridge(
        bucket=settings.media_bucket,
        region=settings.media_region,
        endpoint=settings.media_endpoint,
        access_key_id=settings.media_access_key_id,
        secret_access_key=settings.media_secret_access_key,
        public_base_url=settings.media_public_base_url,
        folder=settings.media_folder,
    )
