import os, sys
from io import BytesIO

import boto3
import pytest
from moto import mock_aws
from PIL import Image

# Ensure project root on sys.path so `import review_images...` works
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from review_images.core.config import settings


def image_bytes(fmt="PNG", size=(3, 2), color=(0, 128, 255)) -> bytes:
    img = Image.new("RGB", size, color=color)
    buf = BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def noisy_jpeg(size=(400, 400)) -> bytes:
    # Random pixels compress badly, so quality changes move the size a lot
    img = Image.frombytes("RGB", size, os.urandom(size[0] * size[1] * 3))
    buf = BytesIO()
    img.save(buf, format="JPEG", quality=100)
    return buf.getvalue()


@pytest.fixture
def aws_mock(monkeypatch):
    with mock_aws():
        # Route boto3 to moto (no endpoint), use test resources
        monkeypatch.setattr(settings, "aws_endpoint_url", None)
        monkeypatch.setattr(settings, "aws_region", "us-east-1")
        monkeypatch.setattr(settings, "bucket_name", "test-bucket")
        monkeypatch.setattr(settings, "table_name", "ReviewImages")

        s3 = boto3.client("s3", region_name=settings.aws_region)
        s3.create_bucket(Bucket=settings.bucket_name)
        dynamodb = boto3.client("dynamodb", region_name=settings.aws_region)
        dynamodb.create_table(
            TableName=settings.table_name,
            AttributeDefinitions=[{"AttributeName": "image_id", "AttributeType": "S"}],
            KeySchema=[{"AttributeName": "image_id", "KeyType": "HASH"}],
            BillingMode="PAY_PER_REQUEST",
        )
        yield s3
