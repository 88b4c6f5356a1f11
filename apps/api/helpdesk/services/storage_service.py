"""Object storage for ticket images and comment attachments.

Two backends, selected by STORAGE_BACKEND: "s3" (any S3-compatible endpoint,
through boto3) and "local" (files under LOCAL_STORAGE_PATH, served by the API
at /uploads). Blocking calls run in a worker thread from the async helpers.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import mimetypes
import os
import re
import secrets
import time

import boto3
from botocore.client import BaseClient

from helpdesk.core.config import settings

logger = logging.getLogger(__name__)

MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024  # 10 MB
DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.+)$", re.S)


class StorageError(Exception):
    """Raised when an object cannot be written or decoded."""


# =============================================================================
# Backend
# =============================================================================

def get_s3_client() -> BaseClient:
    """Return a configured S3 client (supports S3-compatible endpoints)."""
    endpoint = settings.S3_ENDPOINT_URL.rstrip("/") if settings.S3_ENDPOINT_URL else None
    return boto3.client(
        "s3",
        region_name=settings.S3_REGION or None,
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
        endpoint_url=endpoint,
    )


def _get_storage_backend() -> str:
    return (settings.STORAGE_BACKEND or "local").lower()


def _local_path(storage_key: str) -> str:
    root = os.path.abspath(settings.LOCAL_STORAGE_PATH)
    path = os.path.abspath(os.path.join(root, storage_key))
    if not path.startswith(root + os.sep):
        raise StorageError(f"Invalid storage key '{storage_key}'")
    return path


def public_url(storage_key: str) -> str:
    """URL at which a stored object can be fetched."""
    if _get_storage_backend() == "s3":
        if settings.S3_PUBLIC_BASE_URL:
            return f"{settings.S3_PUBLIC_BASE_URL.rstrip('/')}/{storage_key}"
        if settings.S3_ENDPOINT_URL:
            return f"{settings.S3_ENDPOINT_URL.rstrip('/')}/{settings.S3_BUCKET}/{storage_key}"
        return f"https://{settings.S3_BUCKET}.s3.{settings.S3_REGION}.amazonaws.com/{storage_key}"
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/uploads/{storage_key}"


def store_bytes(storage_key: str, data: bytes, content_type: str) -> str:
    """Store bytes to the configured backend and return the public URL."""
    if _get_storage_backend() == "s3":
        get_s3_client().put_object(
            Bucket=settings.S3_BUCKET,
            Key=storage_key,
            Body=data,
            ContentType=content_type,
        )
    else:
        path = _local_path(storage_key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)
    return public_url(storage_key)


def delete_object(storage_key: str) -> None:
    """Delete an object; missing objects are ignored."""
    if _get_storage_backend() == "s3":
        get_s3_client().delete_object(Bucket=settings.S3_BUCKET, Key=storage_key)
    else:
        path = _local_path(storage_key)
        if os.path.exists(path):
            os.remove(path)


async def store_bytes_async(storage_key: str, data: bytes, content_type: str) -> str:
    return await asyncio.to_thread(store_bytes, storage_key, data, content_type)


async def delete_objects(storage_keys: list[str]) -> None:
    """Best-effort cleanup used when a multi-file operation aborts."""
    for key in storage_keys:
        try:
            await asyncio.to_thread(delete_object, key)
        except Exception:
            logger.warning("Failed to remove stored object %s", key, exc_info=True)


# =============================================================================
# Payload helpers
# =============================================================================

def decode_data_url(data: str, *, content_type: str | None = None) -> tuple[bytes, str]:
    """
    Decode a base64 payload, either a data URL or bare base64.

    Returns (bytes, mime type). Raises StorageError on malformed input.
    """
    match = DATA_URL_RE.match(data.strip())
    if match:
        mime = match.group("mime").lower()
        encoded = match.group("data")
    else:
        mime = (content_type or "application/octet-stream").lower()
        encoded = data.strip()
    try:
        raw = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise StorageError("Invalid base64 payload") from exc
    if len(raw) > MAX_FILE_SIZE_BYTES:
        max_mb = MAX_FILE_SIZE_BYTES / (1024 * 1024)
        raise StorageError(f"File size exceeds {max_mb:.0f} MB limit")
    return raw, mime


def file_extension(filename: str | None, mime: str) -> str:
    """Extension from the filename, else guessed from the MIME type."""
    if filename and "." in filename:
        ext = filename.rsplit(".", 1)[-1].lower()
        if ext.isalnum():
            return ext
    guessed = mimetypes.guess_extension(mime) or ".bin"
    return guessed.lstrip(".")


def random_token(nbytes: int = 6) -> str:
    return secrets.token_hex(nbytes)


def ticket_image_key(filename: str | None, mime: str) -> str:
    """Key for a public-intake image: tickets/{ts}-{random}.{ext}."""
    ts = int(time.time() * 1000)
    return f"tickets/{ts}-{random_token()}.{file_extension(filename, mime)}"


def comment_attachment_key(ticket_id: str, filename: str | None, mime: str) -> str:
    """Key for a comment attachment: tickets/{ticket_id}/comments/{random}.{ext}."""
    return f"tickets/{ticket_id}/comments/{random_token(8)}.{file_extension(filename, mime)}"
