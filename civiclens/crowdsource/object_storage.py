"""
Object storage for report photos
Uploads to Cloudflare R2 through its S3-compatible API
"""

import logging
import time
import uuid
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from civiclens.core.config import settings
from civiclens.classification.image_intake import IntakeImage

logger = logging.getLogger(__name__)


class ObjectStorage:
    """
    Stores report photos and returns a durable public URL.

    When storage is not configured, or an upload fails, the photo is kept
    inline as a data URL so the submission still goes through.
    """

    KEY_PREFIX = "reports"

    def __init__(
        self,
        account_id: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        bucket_name: Optional[str] = None,
        public_url: Optional[str] = None,
        client: Optional[Any] = None
    ):
        """
        Initialize object storage.

        Args:
            account_id: R2 account id (builds the endpoint URL)
            access_key_id: R2 access key
            secret_access_key: R2 secret key
            bucket_name: Destination bucket
            public_url: Public host serving the bucket
            client: Pre-built S3 client (tests, other S3-compatible stores)
        """
        self.account_id = account_id or settings.r2_account_id
        self.access_key_id = access_key_id or settings.r2_access_key_id
        self.secret_access_key = secret_access_key or settings.r2_secret_access_key
        self.bucket_name = bucket_name or settings.r2_bucket_name
        self.public_url = (public_url or settings.r2_public_url or "").rstrip("/")

        self._client = client
        if self._client is None and self._has_credentials:
            self._client = boto3.client(
                "s3",
                region_name="auto",
                endpoint_url=f"https://{self.account_id}.r2.cloudflarestorage.com",
                aws_access_key_id=self.access_key_id,
                aws_secret_access_key=self.secret_access_key,
            )

        if self.is_configured:
            logger.info(f"Object storage enabled (bucket={self.bucket_name})")
        else:
            logger.info("Object storage not configured - photos will be stored inline")

    @property
    def _has_credentials(self) -> bool:
        return bool(self.account_id and self.access_key_id and self.secret_access_key)

    @property
    def is_configured(self) -> bool:
        return self._client is not None and bool(self.bucket_name)

    def _object_key(self, image: IntakeImage) -> str:
        millis = int(time.time() * 1000)
        suffix = uuid.uuid4().hex[:7]
        return f"{self.KEY_PREFIX}/{millis}-{suffix}.{image.extension}"

    def public_url_for(self, key: str) -> str:
        host = self.public_url
        if not host.startswith(("http://", "https://")):
            host = f"https://{host}"
        return f"{host}/{key}"

    def upload(self, image: IntakeImage) -> str:
        """
        Upload a photo.

        Returns:
            Public URL of the stored object

        Raises:
            RuntimeError: If storage is not configured
            BotoCoreError, ClientError: If the upload fails
        """
        if not self.is_configured:
            raise RuntimeError("Object storage not configured")

        key = self._object_key(image)
        self._client.put_object(
            Bucket=self.bucket_name,
            Key=key,
            Body=image.raw_bytes,
            ContentType=image.mime_type,
            ContentDisposition="inline",
        )
        logger.info(f"Uploaded report photo: {key}")
        return self.public_url_for(key)

    def store(self, image: IntakeImage) -> str:
        """
        Store a photo, degrading to an inline data URL.

        Args:
            image: Validated intake image

        Returns:
            Public URL, or the image's data URL when upload is unavailable
        """
        if not self.is_configured:
            return image.data_url

        try:
            return self.upload(image)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Photo upload failed, storing inline: {e}")
            return image.data_url
