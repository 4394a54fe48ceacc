# studio/services/storage.py
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import boto3
from botocore.exceptions import ClientError

from studio.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    ".html": "text/html",
    ".pdf": "application/pdf",
    ".json": "application/json",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}


def content_type_for(key: str) -> str:
    return CONTENT_TYPES.get(Path(key).suffix.lower(), "application/octet-stream")


def check_key(key: str) -> str:
    """Reject keys that could escape the tenant prefix."""
    if not key:
        raise ValueError("storage key must not be empty")
    if key.startswith("/") or key.endswith("/"):
        raise ValueError(f"storage key has leading/trailing slash: {key!r}")
    if ".." in key.split("/"):
        raise ValueError(f"storage key contains path traversal: {key!r}")
    return key


# =========================
# Abstract storage
# =========================
class Storage(ABC):
    """Tenant-scoped blob storage for generated documents."""

    @abstractmethod
    def save_bytes(self, tenant_id: str, key: str, data: bytes) -> str:
        """Store (or overwrite) bytes under key; returns the key."""

    @abstractmethod
    def read_bytes(self, tenant_id: str, key: str) -> bytes:
        """Raises FileNotFoundError when the key does not exist."""

    @abstractmethod
    def public_url(self, tenant_id: str, key: str) -> str:
        ...

    @abstractmethod
    def exists(self, tenant_id: str, key: str) -> bool:
        ...

    @abstractmethod
    def delete(self, tenant_id: str, key: str) -> bool:
        ...


# =========================
# Local storage
# =========================
class LocalStorage(Storage):
    def __init__(self, base_path: str = "data", base_url: str = ""):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.base_url = base_url.rstrip("/")

    def _full_path(self, tenant_id: str, key: str) -> Path:
        return self.base_path / check_key(tenant_id) / check_key(key)

    def save_bytes(self, tenant_id: str, key: str, data: bytes) -> str:
        file_path = self._full_path(tenant_id, key)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        # atomic replace: an existing document is overwritten in one step
        tmp_path = file_path.with_name(file_path.name + ".tmp")
        with open(tmp_path, "wb") as f:
            f.write(data)
        tmp_path.replace(file_path)
        logger.info("File stored: %s (%d bytes)", file_path, len(data))
        return key

    def read_bytes(self, tenant_id: str, key: str) -> bytes:
        file_path = self._full_path(tenant_id, key)
        if not file_path.is_file():
            raise FileNotFoundError(f"{tenant_id}/{key}")
        return file_path.read_bytes()

    def public_url(self, tenant_id: str, key: str) -> str:
        return f"{self.base_url}/files/{tenant_id}/{key}"

    def exists(self, tenant_id: str, key: str) -> bool:
        return self._full_path(tenant_id, key).is_file()

    def delete(self, tenant_id: str, key: str) -> bool:
        p = self._full_path(tenant_id, key)
        if not p.exists():
            return False
        p.unlink()
        logger.info("File deleted: %s", p)
        return True


# =========================
# S3 storage
# =========================
class S3Storage(Storage):
    def __init__(self, bucket: str, region: str = "ap-south-1", client=None):
        self.bucket = bucket
        self.region = region
        self.s3_client = client or boto3.client("s3", region_name=region)

    def _tenant_key(self, tenant_id: str, key: str) -> str:
        return f"{check_key(tenant_id)}/{check_key(key)}"

    def save_bytes(self, tenant_id: str, key: str, data: bytes) -> str:
        s3_key = self._tenant_key(tenant_id, key)
        try:
            self.s3_client.put_object(
                Bucket=self.bucket,
                Key=s3_key,
                Body=data,
                ContentType=content_type_for(key),
            )
        except ClientError as e:
            logger.error("S3 upload failed for %s: %s", s3_key, e)
            raise RuntimeError(f"S3 upload failed: {e}") from e
        logger.info("File uploaded to S3: %s", s3_key)
        return key

    def read_bytes(self, tenant_id: str, key: str) -> bytes:
        s3_key = self._tenant_key(tenant_id, key)
        try:
            obj = self.s3_client.get_object(Bucket=self.bucket, Key=s3_key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                raise FileNotFoundError(s3_key) from e
            raise
        return obj["Body"].read()

    def public_url(self, tenant_id: str, key: str) -> str:
        s3_key = self._tenant_key(tenant_id, key)
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{s3_key}"

    def exists(self, tenant_id: str, key: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=self.bucket, Key=self._tenant_key(tenant_id, key))
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NotFound"):
                return False
            raise

    def delete(self, tenant_id: str, key: str) -> bool:
        s3_key = self._tenant_key(tenant_id, key)
        self.s3_client.delete_object(Bucket=self.bucket, Key=s3_key)
        logger.info("File deleted from S3: %s", s3_key)
        return True


# =========================
# Factory
# =========================
def get_storage(cfg: Optional[Settings] = None) -> Storage:
    cfg = cfg or default_settings
    backend = (cfg.storage_backend or "local").lower()

    if backend == "s3":
        if not cfg.s3_bucket:
            raise ValueError("S3_BUCKET is required for the s3 storage backend")
        return S3Storage(bucket=cfg.s3_bucket, region=cfg.s3_region)

    if backend == "local":
        return LocalStorage(base_path=cfg.local_storage_path, base_url=cfg.public_base_url)

    raise ValueError(f"Unknown storage backend: {backend}")
