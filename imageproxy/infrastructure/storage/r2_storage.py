import asyncio
import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ...application.ports.object_store import (
    ObjectNotFoundError,
    ObjectStore,
    ObjectStoreUnavailableError,
)
from ...config import Settings

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


class S3ObjectStore(ObjectStore):
    """Read-only access to a Cloudflare R2 (S3 compatible) bucket via boto3."""

    def __init__(self, bucket: str, client=None) -> None:
        self.bucket = bucket
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3ObjectStore":
        if not settings.r2_configured:
            logger.info("S3 client disabled (R2 credentials not set)")
            return cls(bucket=settings.R2_BUCKET_NAME)
        session = boto3.session.Session()
        client = session.client(
            "s3",
            endpoint_url=settings.r2_endpoint,
            region_name=settings.R2_REGION,
            aws_access_key_id=settings.R2_ACCESS_KEY_ID,
            aws_secret_access_key=settings.R2_SECRET_ACCESS_KEY,
        )
        return cls(bucket=settings.R2_BUCKET_NAME, client=client)

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def verify(self) -> bool:
        """List a single key to prove the credentials work; disable the store otherwise."""
        if self.client is None:
            return False
        try:
            await asyncio.to_thread(self.client.list_objects_v2, Bucket=self.bucket, MaxKeys=1)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"S3 client initialization failed: {e}")
            self.client = None
            return False
        logger.info("S3 client enabled for R2")
        return True

    async def get_object(self, key: str) -> bytes:
        if self.client is None:
            raise ObjectStoreUnavailableError("S3 client not initialized. Please set R2 credentials.")
        try:
            response = await asyncio.to_thread(self.client.get_object, Bucket=self.bucket, Key=key)
            body = response["Body"]
            try:
                return await asyncio.to_thread(body.read)
            finally:
                body.close()
        except ClientError as e:
            error_code = _error_code(e)
            if error_code in NOT_FOUND_CODES:
                raise ObjectNotFoundError(key) from e
            raise

    def status(self) -> dict:
        return {"enabled": self.enabled, "bucket": self.bucket or None}


def _error_code(exc: ClientError) -> Optional[str]:
    return exc.response.get("Error", {}).get("Code")
