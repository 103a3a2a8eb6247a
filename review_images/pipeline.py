"""Upload and delete orchestration for review images.

Upload: validate -> compress -> name -> store -> record.
Delete: look up -> delete stored object (best effort) -> delete record.

Storing and recording are two separate writes. A record failure after a
successful store leaves an orphaned object behind; ``find_orphans`` reports
those for an out-of-band cleanup.
"""
import logging
import time
from typing import Union

from .aws.records import ImageRecordStore
from .core.errors import (
    BadRequestError,
    FileStorageError,
    InternalError,
    NotFoundError,
    PayloadTooLargeError,
    PipelineError,
)
from .core.models import MediaType, OrphanReport, UploadedImage, owner_for
from .media.compressor import Compressor
from .media.filenames import generate_filename
from .storage.backends import StorageBackend

logger = logging.getLogger(__name__)


def filename_from_url(url: str) -> str:
    return url.rstrip("/").split("/")[-1]


class UploadPipeline:
    def __init__(self, backend: StorageBackend, records: ImageRecordStore, max_size: int):
        self.backend = backend
        self.records = records
        self.max_size = max_size
        self.compressor = Compressor(max_size)

    def upload(
        self,
        data: bytes,
        original_filename: str,
        mime_type: str,
        media_type: Union[MediaType, str],
        entity_id: str,
    ) -> UploadedImage:
        media_type = MediaType.parse(media_type)
        if not entity_id:
            raise BadRequestError("entity_id is required")
        if not data:
            raise BadRequestError("Empty image upload")

        compressed = self.compressor.compress(data, mime_type)
        if len(compressed) > self.max_size:
            raise PayloadTooLargeError(
                f"Image is {len(compressed)} bytes after compression, limit is {self.max_size}"
            )

        image_id, filename = generate_filename(original_filename, mime_type)
        url = self.backend.store(compressed, filename, mime_type)

        image = UploadedImage(
            id=image_id,
            url=url,
            filename=filename,
            owner=owner_for(media_type, entity_id),
            created_at=int(time.time()),
        )
        try:
            self.records.create(image)
        except PipelineError:
            logger.warning("Record write failed, stored object %s is orphaned", filename)
            raise
        except Exception as e:
            logger.warning("Record write failed, stored object %s is orphaned", filename)
            raise InternalError(str(e)) from e

        logger.info(
            "Stored image %s for %s %s (%d -> %d bytes)",
            image_id, media_type.value, entity_id, len(data), len(compressed),
        )
        return image

    def delete(self, image_id: str) -> None:
        image = self.records.get(image_id)
        if image is None:
            raise NotFoundError("Image not found!")

        filename = filename_from_url(image.url)
        try:
            self.backend.delete(filename)
        except FileStorageError as e:
            logger.warning("Could not delete stored object %s: %s", filename, e)

        self.records.delete(image_id)
        logger.info("Deleted image %s", image_id)

    def find_orphans(self) -> OrphanReport:
        stored = set(self.backend.list_filenames())
        images = self.records.list_images()
        referenced = {filename_from_url(image.url) for image in images}
        return OrphanReport(
            objects=sorted(stored - referenced),
            records=sorted(image.id for image in images if filename_from_url(image.url) not in stored),
        )
