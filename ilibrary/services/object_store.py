import logging
import random
import re
import time
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import HTTPException

from ilibrary.core.config import get_settings

logger = logging.getLogger(__name__)

ALLOWED_FOLDERS = ("books", "authors")


class ObjectStoreError(Exception):
    pass


class ObjectNotFound(ObjectStoreError):
    pass


@dataclass
class StoredObject:
    body: Iterator[bytes]
    content_type: Optional[str] = None
    content_length: Optional[int] = None
    close: Optional[Callable[[], None]] = None


def sanitize_filename(filename: str) -> str:
    return re.sub(r"[^a-zA-Z0-9.-]", "-", filename or "file")


def build_object_name(filename: str) -> str:
    unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    return f"{unique_suffix}-{sanitize_filename(filename)}"


def _chunks_then_close(body) -> Iterator[bytes]:
    try:
        yield from body.iter_chunks()
    finally:
        body.close()


class S3ObjectStore:
    """Opaque blob store; uploaded images are read back through the API."""

    def __init__(self, client, bucket: str):
        self.client = client
        self.bucket = bucket

    def upload(self, data: bytes, filename: str, content_type: Optional[str], folder: str = "books") -> str:
        name = build_object_name(filename)
        key = f"{folder}/{name}"
        extra = {"ContentType": content_type} if content_type else {}
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=data, **extra)
        except (BotoCoreError, ClientError) as e:
            logger.exception("S3 upload failed for key %s", key)
            raise ObjectStoreError("Failed to upload file to S3") from e
        # proxy URL served by GET /api/uploads/{folder}/{filename}
        return f"/api/uploads/{key}"

    def retrieve(self, key: str) -> StoredObject:
        try:
            resp = self.client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            code = (e.response.get("Error") or {}).get("Code")
            if code in ("NoSuchKey", "404", "NotFound"):
                raise ObjectNotFound(key) from e
            logger.exception("S3 retrieve failed for key %s", key)
            raise ObjectStoreError("Failed to retrieve file from S3") from e
        except BotoCoreError as e:
            logger.exception("S3 retrieve failed for key %s", key)
            raise ObjectStoreError("Failed to retrieve file from S3") from e
        body = resp["Body"]
        return StoredObject(
            body=_chunks_then_close(body),
            content_type=resp.get("ContentType"),
            content_length=resp.get("ContentLength"),
            close=body.close,
        )


def get_object_store() -> S3ObjectStore:
    settings = get_settings()
    if not (settings.aws_access_key_id and settings.aws_secret_access_key):
        raise HTTPException(status_code=501, detail="S3 not configured")
    s3 = boto3.client(
        "s3",
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
        region_name=settings.aws_region,
        endpoint_url=settings.s3_endpoint_url,
        config=BotoConfig(signature_version="s3v4"),
    )
    return S3ObjectStore(s3, settings.s3_bucket)
