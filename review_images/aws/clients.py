"""boto3 handles for the two AWS resources the service touches.

Image bytes live in the S3 bucket (production only, see
``storage.backends.S3StorageBackend``); image records always live in the
DynamoDB table, whichever storage backend is active.
"""
import boto3
from ..core.config import settings


def _aws_kwargs() -> dict:
    # Read at call time so tests can point settings at moto
    return {
        "region_name": settings.aws_region,
        "endpoint_url": settings.aws_endpoint_url,
        "aws_access_key_id": settings.aws_access_key_id,
        "aws_secret_access_key": settings.aws_secret_access_key,
    }


def s3():
    """S3 client for the review image bucket (``settings.bucket_name``)."""
    return boto3.client("s3", **_aws_kwargs())


def dynamodb_table():
    """Table holding image records and their url guard items (``settings.table_name``)."""
    return boto3.resource("dynamodb", **_aws_kwargs()).Table(settings.table_name)
