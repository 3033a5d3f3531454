"""Avatar storage on S3-compatible buckets, with a local-disk fallback."""

import asyncio
import io
import logging
import secrets
import time
from pathlib import Path
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..core.errors import BadRequestError, InternalError, PayloadTooLargeError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}

LOCAL_URL_PREFIX = "/uploads"


class StorageService:
    """Stores uploaded files and returns their public URL."""

    def __init__(
        self,
        upload_dir: Path,
        max_bytes: int = 5 * 1024 * 1024,
        bucket_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        region_name: Optional[str] = None,
        public_domain: Optional[str] = None,
    ) -> None:
        self.upload_dir = upload_dir
        self.max_bytes = max_bytes
        self.bucket_name = bucket_name
        self.endpoint_url = endpoint_url
        self.public_domain = public_domain
        self.s3_client = None
        if bucket_name:
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region_name,
            )

    @property
    def uses_bucket(self) -> bool:
        return self.s3_client is not None

    def validate(self, content_type: Optional[str], size: int) -> str:
        """Return the file extension for an accepted upload or raise."""
        extension = ALLOWED_IMAGE_TYPES.get((content_type or "").lower())
        if extension is None:
            raise BadRequestError("Invalid file type. Only JPEG, PNG, GIF and WebP images are allowed.")
        if size > self.max_bytes:
            raise PayloadTooLargeError(
                f"File size exceeds {self.max_bytes // (1024 * 1024)}MB limit"
            )
        if size == 0:
            raise BadRequestError("Uploaded file is empty")
        return extension

    async def save_avatar(self, user_id: int, content_type: Optional[str], data: bytes) -> str:
        extension = self.validate(content_type, len(data))
        key = f"avatars/{user_id}-{int(time.time())}-{secrets.token_hex(4)}{extension}"
        if self.uses_bucket:
            return await self._upload_to_bucket(key, content_type or "application/octet-stream", data)
        return await self._write_local(key, data)

    async def _upload_to_bucket(self, key: str, content_type: str, data: bytes) -> str:
        def _upload() -> None:
            self.s3_client.upload_fileobj(
                io.BytesIO(data),
                self.bucket_name,
                key,
                ExtraArgs={"ContentType": content_type},
            )

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, _upload)
        except (BotoCoreError, ClientError) as exc:
            logger.error("Upload of %s to bucket %s failed: %s", key, self.bucket_name, exc)
            raise InternalError("Failed to store uploaded file") from exc

        if self.public_domain:
            return f"{self.public_domain.rstrip('/')}/{key}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket_name}/{key}"
        return f"https://{self.bucket_name}.s3.amazonaws.com/{key}"

    async def _write_local(self, key: str, data: bytes) -> str:
        target = self.upload_dir / key
        loop = asyncio.get_running_loop()

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

        try:
            await loop.run_in_executor(None, _write)
        except OSError as exc:
            logger.error("Writing upload %s failed: %s", target, exc)
            raise InternalError("Failed to store uploaded file") from exc
        return f"{LOCAL_URL_PREFIX}/{key}"
