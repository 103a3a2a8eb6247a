from functools import lru_cache

from .aws.clients import dynamodb_table
from .aws.records import ImageRecordStore
from .core.config import settings
from .pipeline import UploadPipeline
from .storage.backends import build_storage_backend


@lru_cache(maxsize=None)
def get_pipeline() -> UploadPipeline:
    """Process-wide pipeline; the storage backend is fixed on first use."""
    return UploadPipeline(
        backend=build_storage_backend(settings),
        records=ImageRecordStore(dynamodb_table()),
        max_size=settings.max_upload_size,
    )
