"""DynamoDB persistence for uploaded image records.

Each image is stored as one item keyed by ``image_id``. URL uniqueness is
enforced with a second "guard" item keyed ``url#<url>`` that is written and
deleted in the same transaction as the image item.
"""
import logging
from typing import Any, Dict, List, Optional

from boto3.dynamodb.conditions import Attr
from botocore.exceptions import BotoCoreError, ClientError

from ..core.errors import ConflictError, InternalError, NotFoundError
from ..core.models import UploadedImage

logger = logging.getLogger(__name__)

IMAGE_KIND = "image"
URL_GUARD_KIND = "url"


def _guard_key(url: str) -> str:
    return f"url#{url}"


def _to_item(image: UploadedImage) -> Dict[str, Any]:
    return {
        "image_id": image.id,
        "kind": IMAGE_KIND,
        "url": image.url,
        "filename": image.filename,
        "owner_kind": image.owner.kind,
        "owner_id": image.owner.id,
        "created_at": image.created_at,
    }


def _failed_condition(error: ClientError) -> bool:
    """True when a transaction was cancelled by one of our condition checks.

    Cancellations for other reasons (concurrent writers, throttling) are not
    conflicts and surface as internal errors.
    """
    if error.response.get("Error", {}).get("Code") != "TransactionCanceledException":
        return False
    reasons = error.response.get("CancellationReasons") or []
    return any(reason.get("Code") == "ConditionalCheckFailed" for reason in reasons)


def _from_item(item: Dict[str, Any]) -> UploadedImage:
    return UploadedImage(
        id=item["image_id"],
        url=item["url"],
        filename=item["filename"],
        owner={"kind": item["owner_kind"], "id": item["owner_id"]},
        created_at=int(item["created_at"]),
    )


class ImageRecordStore:
    def __init__(self, table):
        self.table = table

    @property
    def _client(self):
        # The resource's client serializes plain Python values for us.
        return self.table.meta.client

    def create(self, image: UploadedImage) -> UploadedImage:
        guard = {"image_id": _guard_key(image.url), "kind": URL_GUARD_KIND, "ref": image.id}
        try:
            self._client.transact_write_items(
                TransactItems=[
                    {
                        "Put": {
                            "TableName": self.table.name,
                            "Item": _to_item(image),
                            "ConditionExpression": "attribute_not_exists(image_id)",
                        }
                    },
                    {
                        "Put": {
                            "TableName": self.table.name,
                            "Item": guard,
                            "ConditionExpression": "attribute_not_exists(image_id)",
                        }
                    },
                ]
            )
        except ClientError as e:
            if _failed_condition(e):
                raise ConflictError("URL already exists!") from e
            raise InternalError(str(e)) from e
        except BotoCoreError as e:
            raise InternalError(str(e)) from e
        return image

    def get(self, image_id: str) -> Optional[UploadedImage]:
        try:
            resp = self.table.get_item(Key={"image_id": image_id})
        except (ClientError, BotoCoreError) as e:
            raise InternalError(str(e)) from e
        item = resp.get("Item")
        if not item or item.get("kind") != IMAGE_KIND:
            return None
        return _from_item(item)

    def delete(self, image_id: str) -> None:
        image = self.get(image_id)
        if image is None:
            raise NotFoundError("Image not found!")
        try:
            self._client.transact_write_items(
                TransactItems=[
                    {
                        "Delete": {
                            "TableName": self.table.name,
                            "Key": {"image_id": image.id},
                            "ConditionExpression": "attribute_exists(image_id)",
                        }
                    },
                    {
                        "Delete": {
                            "TableName": self.table.name,
                            "Key": {"image_id": _guard_key(image.url)},
                        }
                    },
                ]
            )
        except ClientError as e:
            if _failed_condition(e):
                raise NotFoundError("Image not found!") from e
            raise InternalError(str(e)) from e
        except BotoCoreError as e:
            raise InternalError(str(e)) from e

    def list_images(self) -> List[UploadedImage]:
        """Scan every image record. Meant for out-of-band jobs, not requests."""
        items: List[Dict[str, Any]] = []
        exclusive_start_key = None
        while True:
            params: Dict[str, Any] = {"FilterExpression": Attr("kind").eq(IMAGE_KIND)}
            if exclusive_start_key is not None:
                params["ExclusiveStartKey"] = exclusive_start_key
            try:
                resp = self.table.scan(**params)
            except (ClientError, BotoCoreError) as e:
                raise InternalError(str(e)) from e
            items.extend(resp.get("Items", []))
            exclusive_start_key = resp.get("LastEvaluatedKey")
            if not exclusive_start_key:
                break
        return [_from_item(item) for item in items]
