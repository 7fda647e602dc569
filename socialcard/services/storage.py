"""S3-compatible storage for rendered cards.

boto3 is blocking, so every call runs in a worker thread.
"""
from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from socialcard.core.config import Settings, settings
from socialcard.core.errors import StorageError

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


class S3FileStorageService:
    def __init__(self, client: Any, bucket: str, cdn_endpoint: str):
        self.client = client
        self.bucket = bucket
        self.cdn_endpoint = cdn_endpoint if cdn_endpoint.endswith("/") else f"{cdn_endpoint}/"

    @classmethod
    def from_settings(cls, cfg: Optional[Settings] = None) -> "S3FileStorageService":
        cfg = cfg or settings
        client = boto3.client(
            "s3",
            endpoint_url=cfg.S3_ENDPOINT,
            aws_access_key_id=cfg.S3_ACCESS_KEY,
            aws_secret_access_key=cfg.S3_SECRET_KEY,
            region_name=cfg.S3_REGION,
            config=Config(signature_version="s3v4"),
        )
        return cls(client, cfg.S3_BUCKET or "", cfg.CDN_ENDPOINT)

    def get_cdn_endpoint(self) -> str:
        return self.cdn_endpoint

    def file_url(self, key: str) -> str:
        return f"{self.cdn_endpoint}{key}"

    async def _head(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            return await asyncio.to_thread(self.client.head_object, Bucket=self.bucket, Key=key)
        except ClientError as exc:
            if str(exc.response.get("Error", {}).get("Code")) in _MISSING_CODES:
                return None
            raise StorageError(f"head_object failed for {key}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"head_object failed for {key}") from exc

    async def file_exists(self, key: str) -> bool:
        return await self._head(key) is not None

    async def get_file_last_modified(self, key: str) -> Optional[datetime]:
        head = await self._head(key)
        return head.get("LastModified") if head else None

    async def get_file_meta(self, key: str) -> Optional[Dict[str, str]]:
        head = await self._head(key)
        return head.get("Metadata", {}) if head else None

    async def upload_file(
        self,
        body: bytes,
        key: str,
        content_type: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> None:
        kwargs: Dict[str, Any] = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": body,
            "ContentType": content_type,
        }
        if metadata:
            kwargs["Metadata"] = metadata
        try:
            await asyncio.to_thread(self.client.put_object, **kwargs)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"put_object failed for {key}") from exc
