"""Presigned URL issuance against the Cloudflare R2 bucket (S3 compatible)."""
import logging
import os
import random
import re
import string
import time
from functools import lru_cache

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from config import Config
from constants import DOWNLOAD_URL_TTL, UPLOAD_URL_TTL

logger = logging.getLogger(__name__)


class StorageError(Exception):
    pass


@lru_cache(maxsize=1)
def get_client():
    return boto3.client(
        "s3",
        endpoint_url=f"https://{Config.R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=Config.R2_ACCESS_KEY_ID,
        aws_secret_access_key=Config.R2_SECRET_ACCESS_KEY,
        region_name=Config.R2_REGION,
        config=BotoConfig(signature_version="s3v4"),
    )


def issue_upload_url(key: str, content_type: str, ttl: int = UPLOAD_URL_TTL) -> str:
    try:
        return get_client().generate_presigned_url(
            "put_object",
            Params={"Bucket": Config.R2_BUCKET_NAME, "Key": key, "ContentType": content_type},
            ExpiresIn=ttl,
        )
    except (BotoCoreError, ClientError) as exc:
        logger.exception("Failed to presign upload for %s", key)
        raise StorageError("Failed to generate upload URL") from exc


def issue_download_url(key: str, ttl: int = DOWNLOAD_URL_TTL) -> str:
    try:
        return get_client().generate_presigned_url(
            "get_object",
            Params={"Bucket": Config.R2_BUCKET_NAME, "Key": key},
            ExpiresIn=ttl,
        )
    except (BotoCoreError, ClientError) as exc:
        logger.exception("Failed to presign download for %s", key)
        raise StorageError("Failed to generate download URL") from exc


def public_url(key: str) -> str:
    return f"{Config.R2_PUBLIC_URL.rstrip('/')}/{key}"


def file_extension(filename: str) -> str:
    return os.path.splitext(filename)[1].lower()


def generate_file_key(folder: str, filename: str) -> str:
    stem, extension = os.path.splitext(filename)
    timestamp = int(time.time() * 1000)
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
    sanitized = re.sub(r"[^a-zA-Z0-9]", "-", stem).lower()
    return f"{folder}/{timestamp}-{suffix}-{sanitized}{extension.lower()}"
