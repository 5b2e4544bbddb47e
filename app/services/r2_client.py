# app/services/r2_client.py
import boto3
from botocore.config import Config

from app.config import settings

_s3_client = None


def r2_endpoint_url() -> str:
    if settings.r2_endpoint_url:
        return settings.r2_endpoint_url
    return f"https://{settings.r2_account_id}.r2.cloudflarestorage.com"


def get_s3_client():
    """Lazily build the R2 client; None when object storage is not configured."""
    global _s3_client

    if not settings.r2_configured:
        return None

    if _s3_client is None:
        _s3_client = boto3.client(
            "s3",
            endpoint_url=r2_endpoint_url(),
            aws_access_key_id=settings.r2_access_key_id,
            aws_secret_access_key=settings.r2_secret_access_key,
            region_name="auto",
            config=Config(
                connect_timeout=settings.storage_timeout_seconds,
                read_timeout=settings.storage_timeout_seconds,
                retries={"max_attempts": 2},
            ),
        )
    return _s3_client


def reset_s3_client():
    global _s3_client
    _s3_client = None
