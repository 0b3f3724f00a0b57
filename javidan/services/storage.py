"""
Object storage adapter for media uploads.

Stores files in a Cloudflare R2 bucket through its S3-compatible API. Both
the server-side upload path and the browser-direct presigned path produce
public URLs of the same shape: {public_base_url}/{key}.
"""

import logging
import re
import time
import uuid
from typing import Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from javidan.config import Settings
from javidan.errors import StorageError

logger = logging.getLogger(__name__)


def media_type_for(content_type: Optional[str]) -> str:
    """
    Classify a MIME type as image, video or document.

    Args:
        content_type: MIME type like "image/jpeg"

    Returns:
        'image', 'video' or 'document'
    """
    content_type = content_type or ""
    if content_type.startswith("image/"):
        return "image"
    if content_type.startswith("video/"):
        return "video"
    return "document"


def sanitize_file_name(file_name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9.-]", "_", file_name)


def generate_key(file_name: str, media_type: str) -> str:
    """
    Build a collision-resistant storage key.

    Args:
        file_name: Original file name from the client
        media_type: 'image', 'video' or 'document'

    Returns:
        Key like "uploads/image/1700000000000-a1b2c3d4-photo.jpg"
    """
    timestamp = int(time.time() * 1000)
    token = uuid.uuid4().hex[:8]
    return f"uploads/{media_type}/{timestamp}-{token}-{sanitize_file_name(file_name)}"


class ObjectStorage:
    """Thin wrapper over an S3 client bound to one bucket"""

    def __init__(self, client, bucket: str, public_base_url: str, presign_expiry: int = 3600):
        self.client = client
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")
        self.presign_expiry = presign_expiry

    @classmethod
    def from_settings(cls, settings: Settings) -> "ObjectStorage":
        """
        Create the storage adapter from application settings.

        When R2 credentials are missing the adapter is still constructed,
        but every operation fails with a StorageError.
        """
        client = None
        if settings.r2_configured:
            config = Config(
                signature_version='s3v4',
                s3={'addressing_style': 'path'}
            )
            client = boto3.client(
                's3',
                endpoint_url=settings.r2_endpoint,
                aws_access_key_id=settings.r2_access_key_id,
                aws_secret_access_key=settings.r2_secret_access_key,
                region_name='auto',
                config=config,
            )
        else:
            logger.warning("Cloudflare R2 credentials not configured. Media uploads will not work.")

        return cls(
            client,
            bucket=settings.r2_bucket_name,
            public_base_url=settings.r2_public_url,
            presign_expiry=settings.presign_expiry_seconds,
        )

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"

    def _require_client(self):
        if self.client is None:
            raise StorageError("Storage is not configured")
        return self.client

    def upload(self, data: bytes, key: str, content_type: str) -> str:
        """
        Upload bytes under the given key.

        Args:
            data: File contents
            key: Storage key (see generate_key)
            content_type: MIME type stored with the object

        Returns:
            Public URL of the stored object

        Raises:
            StorageError: If the upload fails
        """
        client = self._require_client()
        try:
            client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type or "application/octet-stream",
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Upload of {key} failed: {e}")
            raise StorageError("Failed to upload file")

        return self.public_url(key)

    def presign(self, file_name: str, content_type: str) -> Dict[str, str]:
        """
        Create a presigned PUT URL so the browser can upload directly.

        Returns:
            Dict with presignedUrl, publicUrl and key
        """
        client = self._require_client()
        key = generate_key(file_name, media_type_for(content_type))
        try:
            presigned_url = client.generate_presigned_url(
                'put_object',
                Params={'Bucket': self.bucket, 'Key': key, 'ContentType': content_type},
                ExpiresIn=self.presign_expiry,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Presigning {key} failed: {e}")
            raise StorageError("Failed to generate upload URL")

        return {
            "presignedUrl": presigned_url,
            "publicUrl": self.public_url(key),
            "key": key,
        }
