from enum import Enum
from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, Field

from .errors import BadRequestError


class MediaType(str, Enum):
    ANIME = "ANIME"
    MANGA = "MANGA"
    LIGHT_NOVEL = "LIGHT_NOVEL"

    @classmethod
    def parse(cls, value) -> "MediaType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise BadRequestError("Invalid media type!")


class AnimeOwner(BaseModel):
    kind: Literal["anime"] = "anime"
    id: str


class MangaOwner(BaseModel):
    kind: Literal["manga"] = "manga"
    id: str


class LightNovelOwner(BaseModel):
    kind: Literal["lightNovel"] = "lightNovel"
    id: str


# An image belongs to exactly one catalog entity.
Owner = Annotated[Union[AnimeOwner, MangaOwner, LightNovelOwner], Field(discriminator="kind")]

_OWNER_BY_MEDIA = {
    MediaType.ANIME: AnimeOwner,
    MediaType.MANGA: MangaOwner,
    MediaType.LIGHT_NOVEL: LightNovelOwner,
}


def owner_for(media_type: MediaType, entity_id: str):
    """Build the owner variant that matches ``media_type``."""
    return _OWNER_BY_MEDIA[MediaType.parse(media_type)](id=entity_id)


class UploadedImage(BaseModel):
    id: str
    url: str
    filename: str
    owner: Owner
    created_at: int


class UploadResponse(BaseModel):
    id: str
    url: str
    owner: Owner
    created_at: int


class DeleteResponse(BaseModel):
    deleted: str


class OrphanReport(BaseModel):
    """Stored objects with no record, and records with no stored object."""
    objects: list = []
    records: list = []

    @property
    def clean(self) -> bool:
        return not self.objects and not self.records


class ErrorResponse(BaseModel):
    detail: Optional[str] = None
