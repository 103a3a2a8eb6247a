"""Storage backends holding the image bytes.

Two implementations share the ``StorageBackend`` interface: local disk for
development and an S3 bucket for production. The active one is chosen once
by ``build_storage_backend`` and handed to the pipeline.
"""
import logging
import os
from abc import ABC, abstractmethod
from typing import List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from ..core.errors import FileStorageError

logger = logging.getLogger(__name__)

S3_KEY_PREFIX = "review-image/"


class StorageBackend(ABC):
    @abstractmethod
    def store(self, data: bytes, filename: str, content_type: str) -> str:
        """Write ``data`` under ``filename`` and return its public URL.

        Raises:
            FileStorageError: if the write fails.
        """

    @abstractmethod
    def delete(self, filename: str) -> None:
        """Remove ``filename``. A missing object is not an error."""

    @abstractmethod
    def list_filenames(self) -> List[str]:
        """All filenames currently held by the backend."""


class LocalStorageBackend(StorageBackend):
    def __init__(self, upload_dir: str, port: int, host: str = "localhost"):
        self.upload_dir = os.path.abspath(upload_dir)
        self.port = port
        self.host = host
        os.makedirs(self.upload_dir, exist_ok=True)

    def _path(self, filename: str) -> str:
        return os.path.join(self.upload_dir, os.path.basename(filename))

    def url_for(self, filename: str) -> str:
        return f"http://{self.host}:{self.port}/uploads/{filename}"

    def store(self, data: bytes, filename: str, content_type: str) -> str:
        try:
            with open(self._path(filename), "wb") as fh:
                fh.write(data)
        except OSError as e:
            raise FileStorageError(str(e)) from e
        return self.url_for(filename)

    def delete(self, filename: str) -> None:
        path = self._path(filename)
        if not os.path.exists(path):
            logger.warning("Local image file not found: %s", path)
            return
        try:
            os.remove(path)
        except OSError as e:
            raise FileStorageError(str(e)) from e

    def list_filenames(self) -> List[str]:
        return sorted(
            name for name in os.listdir(self.upload_dir)
            if os.path.isfile(os.path.join(self.upload_dir, name))
        )


class S3StorageBackend(StorageBackend):
    def __init__(
        self,
        s3_client,
        bucket_name: str,
        region: str = "us-east-1",
        public_base_url: Optional[str] = None,
    ):
        self.s3 = s3_client
        self.bucket_name = bucket_name
        self.region = region
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None

    def key_for(self, filename: str) -> str:
        return f"{S3_KEY_PREFIX}{filename}"

    def url_for(self, filename: str) -> str:
        key = self.key_for(filename)
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{key}"

    def store(self, data: bytes, filename: str, content_type: str) -> str:
        try:
            self.s3.put_object(
                Bucket=self.bucket_name,
                Key=self.key_for(filename),
                Body=data,
                ContentType=content_type,
                ACL="public-read",
            )
        except (ClientError, BotoCoreError) as e:
            raise FileStorageError(str(e)) from e
        return self.url_for(filename)

    def delete(self, filename: str) -> None:
        try:
            self.s3.delete_object(Bucket=self.bucket_name, Key=self.key_for(filename))
        except (ClientError, BotoCoreError) as e:
            raise FileStorageError(str(e)) from e

    def list_filenames(self) -> List[str]:
        names: List[str] = []
        paginator = self.s3.get_paginator("list_objects_v2")
        try:
            for page in paginator.paginate(Bucket=self.bucket_name, Prefix=S3_KEY_PREFIX):
                for obj in page.get("Contents", []):
                    names.append(obj["Key"][len(S3_KEY_PREFIX):])
        except (ClientError, BotoCoreError) as e:
            raise FileStorageError(str(e)) from e
        return sorted(names)


def build_storage_backend(settings, s3_client=None) -> StorageBackend:
    """Pick the backend for this process from ``settings.environment``."""
    if settings.is_production:
        if s3_client is None:
            from ..aws.clients import s3 as s3_client_factory
            s3_client = s3_client_factory()
        logger.info("Using S3 storage backend (bucket=%s)", settings.bucket_name)
        return S3StorageBackend(
            s3_client,
            settings.bucket_name,
            region=settings.aws_region,
            public_base_url=settings.public_base_url,
        )
    logger.info("Using local storage backend (%s)", settings.local_upload_dir)
    return LocalStorageBackend(settings.local_upload_dir, settings.port)
