from __future__ import annotations

import logging
import os

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

PRESIGN_TTL_SECONDS = 15 * 60


class StorageError(RuntimeError):
    """Raised when the object store rejects or fails a request."""


class ObjectMissing(StorageError):
    """Raised when a requested key does not exist in the bucket."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Object '{key}' not found")


class ObjectStore:
    """Thin wrapper over an S3-compatible bucket (Cloudflare R2 in production)."""

    def __init__(self, client, bucket: str, public_base_url: str):
        if not bucket:
            raise StorageError("bucket is required")
        if not public_base_url:
            raise StorageError("public base url is required")
        self.client = client
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")

    def presign_put(self, key: str, *, content_type: str = "image/jpeg", expires_in: int = PRESIGN_TTL_SECONDS) -> str:
        try:
            return self.client.generate_presigned_url(
                "put_object",
                Params={"Bucket": self.bucket, "Key": key, "ContentType": content_type},
                ExpiresIn=int(expires_in),
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"presign failed for {key}: {exc}") from exc

    def get_bytes(self, key: str) -> bytes:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            return response["Body"].read()
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code") or "")
            if code in ("NoSuchKey", "404", "NotFound"):
                raise ObjectMissing(key) from exc
            raise StorageError(f"get failed for {key}: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"get failed for {key}: {exc}") from exc

    def put_bytes(self, key: str, data: bytes, *, content_type: str = "image/jpeg") -> None:
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"put failed for {key}: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"delete failed for {key}: {exc}") from exc

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{key.lstrip('/')}"


def build_object_store_from_env() -> ObjectStore | None:
    """Build the R2-backed store, or return None when storage is not configured."""
    access_key = (os.getenv("R2_ACCESS_KEY_ID") or "").strip()
    secret_key = (os.getenv("R2_SECRET_ACCESS_KEY") or "").strip()
    bucket = (os.getenv("R2_BUCKET") or "").strip()
    public_url = (os.getenv("R2_PUBLIC_URL") or "").strip()
    if not (access_key and secret_key and bucket):
        logger.info("object_store_disabled reason=missing_credentials")
        return None
    if not public_url:
        logger.warning("object_store_disabled reason=missing_public_url")
        return None

    endpoint = (os.getenv("R2_ENDPOINT") or "").strip()
    if not endpoint:
        account = (os.getenv("R2_ACCOUNT_ID") or "account").strip()
        endpoint = f"https://{account}.r2.cloudflarestorage.com"

    client = boto3.client(
        "s3",
        endpoint_url=endpoint,
        aws_access_key_id=access_key,
        aws_secret_access_key=secret_key,
        region_name="auto",
        config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
    )
    return ObjectStore(client, bucket, public_url)
