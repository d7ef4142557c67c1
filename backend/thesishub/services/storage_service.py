"""
Storage Service - Project PDFs in S3/MinIO or on the local disk
With retry logic for resilient operations
"""

import asyncio
import re
import time
from functools import wraps
from pathlib import Path
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from thesishub.core.config import settings
from thesishub.core.exceptions import StorageDownloadError, StorageUploadError
from thesishub.core.logging_config import logger
from thesishub.core.types import generate_uuid

PDF_CONTENT_TYPE = "application/pdf"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def retry_with_backoff(max_retries: int = 3, base_delay: float = 1.0, max_delay: float = 30.0):
    """
    Decorator for retry logic with exponential backoff.

    Args:
        max_retries: Maximum number of attempts
        base_delay: Initial delay in seconds
        max_delay: Maximum delay cap in seconds
    """
    def decorator(func):
        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            last_exception = None
            for attempt in range(max_retries):
                try:
                    return await func(*args, **kwargs)
                except (ClientError, BotoCoreError, ConnectionError, TimeoutError) as e:
                    last_exception = e
                    if attempt < max_retries - 1:
                        delay = min(base_delay * (2 ** attempt), max_delay)
                        logger.warning(f"[Storage-Retry] Attempt {attempt + 1}/{max_retries} failed: {e}. Retrying in {delay:.1f}s...")
                        await asyncio.sleep(delay)
                    else:
                        logger.error(f"[Storage-Retry] All {max_retries} attempts failed: {e}")
            raise last_exception

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            last_exception = None
            for attempt in range(max_retries):
                try:
                    return func(*args, **kwargs)
                except (ClientError, BotoCoreError, ConnectionError, TimeoutError) as e:
                    last_exception = e
                    if attempt < max_retries - 1:
                        delay = min(base_delay * (2 ** attempt), max_delay)
                        logger.warning(f"[Storage-Retry] Attempt {attempt + 1}/{max_retries} failed: {e}. Retrying in {delay:.1f}s...")
                        time.sleep(delay)
                    else:
                        logger.error(f"[Storage-Retry] All {max_retries} attempts failed: {e}")
            raise last_exception

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper
    return decorator


def safe_filename(filename: Optional[str]) -> str:
    """Filename reduced to a conservative character set, always ending in .pdf"""
    name = Path(filename or "document.pdf").name
    stem = _UNSAFE_FILENAME_CHARS.sub("_", Path(name).stem).strip("._") or "document"
    return f"{stem[:100]}.pdf"


class StorageService:
    """
    PDF storage behind one interface.

    - local: files under LOCAL_STORAGE_PATH, URLs under PUBLIC_FILES_BASE_URL
    - s3 / minio: objects in S3_BUCKET_NAME
    """

    def __init__(self, mode: Optional[str] = None):
        self.mode = (mode or settings.STORAGE_MODE).lower()
        self._client = None
        self._bucket_name = settings.S3_BUCKET_NAME
        self._initialized = False
        logger.info(f"StorageService initialized (mode: {self.mode})")

    # ========== Backend setup ==========

    def _get_client(self):
        """Lazy initialization of S3/MinIO client"""
        if self._client is None:
            if self.mode == "minio":
                self._client = boto3.client(
                    's3',
                    endpoint_url=f"http://{settings.MINIO_ENDPOINT}",
                    aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
                    aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
                    config=Config(
                        signature_version='s3v4',
                        s3={'addressing_style': 'path'}
                    ),
                    region_name=settings.AWS_REGION
                )
            elif settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
                self._client = boto3.client(
                    's3',
                    aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
                    aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
                    region_name=settings.AWS_REGION
                )
            else:
                # IAM role credentials (ECS/EC2)
                self._client = boto3.client('s3', region_name=settings.AWS_REGION)
                logger.info("S3 client using IAM role credentials")

            self._ensure_bucket()

        return self._client

    def _ensure_bucket(self):
        """Create bucket if it doesn't exist"""
        if self._initialized:
            return

        try:
            self._client.head_bucket(Bucket=self._bucket_name)
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', '')
            if error_code in ['404', 'NoSuchBucket']:
                if self.mode != "minio" and settings.AWS_REGION != 'us-east-1':
                    self._client.create_bucket(
                        Bucket=self._bucket_name,
                        CreateBucketConfiguration={'LocationConstraint': settings.AWS_REGION}
                    )
                else:
                    self._client.create_bucket(Bucket=self._bucket_name)
                logger.info(f"Created bucket '{self._bucket_name}'")
            else:
                logger.error(f"Error checking bucket: {e}")

        self._initialized = True

    @staticmethod
    def generate_key(filename: Optional[str]) -> str:
        """Key format: pdfs/{uuid}-{safe filename}"""
        return f"pdfs/{generate_uuid()}-{safe_filename(filename)}"

    def _local_path(self, key: str) -> Path:
        root = settings.STORAGE_DIR.resolve()
        path = (root / key).resolve()
        if root not in path.parents:
            raise StorageDownloadError(key, "Invalid storage key")
        return path

    def public_url(self, key: str) -> str:
        if self.mode == "local":
            return f"{settings.PUBLIC_FILES_BASE_URL.rstrip('/')}/{key}"
        if self.mode == "minio":
            return f"http://{settings.MINIO_ENDPOINT}/{self._bucket_name}/{key}"
        return f"https://{self._bucket_name}.s3.{settings.AWS_REGION}.amazonaws.com/{key}"

    # ========== Operations ==========

    @retry_with_backoff(max_retries=3)
    async def _put(self, key: str, content: bytes, filename: str) -> None:
        if self.mode == "local":
            path = self._local_path(key)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
            return
        self._get_client().put_object(
            Bucket=self._bucket_name,
            Key=key,
            Body=content,
            ContentType=PDF_CONTENT_TYPE,
            Metadata={'original_filename': filename},
        )

    async def upload_pdf(self, content: bytes, filename: Optional[str]) -> dict:
        """
        Store a PDF and return {key, url, filename, size_bytes}.

        Raises StorageUploadError once every retry has failed.
        """
        key = self.generate_key(filename)
        clean_name = safe_filename(filename)
        try:
            await self._put(key, content, clean_name)
        except (ClientError, BotoCoreError, ConnectionError, TimeoutError, OSError) as e:
            logger.error(f"[Storage-Upload] ✗ {key}: {e}")
            raise StorageUploadError(key)

        logger.info(f"[Storage-Upload] ✓ Uploaded: {key} ({len(content)} bytes)")
        return {
            "key": key,
            "url": self.public_url(key),
            "filename": clean_name,
            "size_bytes": len(content),
        }

    @retry_with_backoff(max_retries=3)
    async def _get(self, key: str) -> bytes:
        if self.mode == "local":
            return self._local_path(key).read_bytes()
        response = self._get_client().get_object(Bucket=self._bucket_name, Key=key)
        return response['Body'].read()

    async def download(self, key: str) -> bytes:
        """Fetch a stored PDF; StorageDownloadError when it cannot be read"""
        try:
            return await self._get(key)
        except (ClientError, BotoCoreError, ConnectionError, TimeoutError, OSError) as e:
            logger.error(f"[Storage-Download] ✗ {key}: {e}")
            raise StorageDownloadError(key)

    async def delete(self, key: str) -> bool:
        """Best-effort removal; returns False on failure"""
        try:
            if self.mode == "local":
                self._local_path(key).unlink(missing_ok=True)
            else:
                self._get_client().delete_object(Bucket=self._bucket_name, Key=key)
            logger.info(f"Deleted stored file: {key}")
            return True
        except (ClientError, BotoCoreError, OSError, StorageDownloadError) as e:
            logger.error(f"Failed to delete stored file {key}: {e}")
            return False


# Singleton instance
storage_service = StorageService()


def get_storage_service() -> StorageService:
    """FastAPI dependency, overridable in tests"""
    return storage_service
