"""
Object Storage (S3)

Presigned uploads and existence checks for profile photos.
"""

import asyncio
import logging
from functools import lru_cache

import boto3
from botocore.exceptions import ClientError

from alumni.core.config import settings

logger = logging.getLogger(__name__)

UPLOAD_URL_EXPIRY_SECONDS = 300


@lru_cache(maxsize=1)
def get_s3_client():
    return boto3.client("s3", region_name=settings.aws_region)


async def generate_upload_url(
    key: str,
    content_type: str,
    expires_in: int = UPLOAD_URL_EXPIRY_SECONDS,
) -> str:
    """Create a presigned PUT URL for `key` in the photos bucket."""
    s3 = get_s3_client()
    return await asyncio.to_thread(
        s3.generate_presigned_url,
        ClientMethod="put_object",
        Params={
            "Bucket": settings.photos_bucket,
            "Key": key,
            "ContentType": content_type,
        },
        ExpiresIn=expires_in,
    )


async def object_exists(key: str) -> bool:
    """
    Check whether an object exists in the photos bucket.

    Raises:
        ClientError: For failures other than a missing object
    """
    s3 = get_s3_client()
    try:
        await asyncio.to_thread(s3.head_object, Bucket=settings.photos_bucket, Key=key)
    except ClientError as e:
        code = e.response.get("Error", {}).get("Code")
        if code in ("404", "NoSuchKey", "NotFound"):
            return False
        logger.error(f"Failed to check object {key}: {e}")
        raise
    return True


def public_url(key: str) -> str:
    """Public URL of an object, served via the CDN when configured."""
    return f"{settings.photos_base_url}/{key}"
