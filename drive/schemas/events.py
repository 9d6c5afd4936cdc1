"""Pydantic schemas for the ledger event wire format."""

import json
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from common.constants import (
    APP_TAG,
    EVENT_FILE_DELETE,
    EVENT_FILE_METADATA,
    EVENT_FILE_SHARE,
    EVENT_FILE_STAR,
)


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class MetadataData(_WireModel):
    """Full entity description carried by a file_metadata event."""
    id: str = Field(min_length=1)
    name: str
    kind: Literal["file", "folder"] = Field(alias="type")
    size: int = 0
    mime_type: str = Field(default="", alias="mimeType")
    parent_id: Optional[str] = Field(default=None, alias="parentId")
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    modified_at: Optional[str] = Field(default=None, alias="modifiedAt")
    shared: bool = False
    shared_with: List[str] = Field(default_factory=list, alias="sharedWith")
    content: Optional[str] = None

    @field_validator("size", mode="before")
    @classmethod
    def _size_or_zero(cls, value):
        return 0 if value is None else value

    @field_validator("mime_type", mode="before")
    @classmethod
    def _mime_or_empty(cls, value):
        return "" if value is None else value

    @field_validator("shared_with", mode="before")
    @classmethod
    def _accounts_or_empty(cls, value):
        return [] if value is None else value


class StarData(_WireModel):
    id: str = Field(min_length=1)
    starred: bool


class DeleteData(_WireModel):
    id: str = Field(min_length=1)


class ShareData(_WireModel):
    id: str = Field(min_length=1)
    shared_with: List[str] = Field(default_factory=list, alias="sharedWith")

    @field_validator("shared_with", mode="before")
    @classmethod
    def _accounts_or_empty(cls, value):
        return [] if value is None else value


class FileMetadataEvent(_WireModel):
    type: Literal["file_metadata"] = EVENT_FILE_METADATA
    app: Literal["hive_drive"] = APP_TAG
    data: MetadataData


class FileStarEvent(_WireModel):
    type: Literal["file_star"] = EVENT_FILE_STAR
    app: Literal["hive_drive"] = APP_TAG
    data: StarData


class FileDeleteEvent(_WireModel):
    type: Literal["file_delete"] = EVENT_FILE_DELETE
    app: Literal["hive_drive"] = APP_TAG
    data: DeleteData


class FileShareEvent(_WireModel):
    type: Literal["file_share"] = EVENT_FILE_SHARE
    app: Literal["hive_drive"] = APP_TAG
    data: ShareData


EventPayload = Annotated[
    Union[FileMetadataEvent, FileStarEvent, FileDeleteEvent, FileShareEvent],
    Field(discriminator="type"),
]

_payload_adapter: TypeAdapter = TypeAdapter(EventPayload)


def parse_event_payload(raw: Union[str, bytes, dict]) -> EventPayload:
    """
    Validate a raw event into its tagged variant.

    Args:
        raw: JSON text or an already-decoded dict

    Returns:
        One of FileMetadataEvent, FileStarEvent, FileDeleteEvent, FileShareEvent

    Raises:
        pydantic.ValidationError: If the payload does not match any variant
        ValueError: If the JSON text cannot be decoded
    """
    if isinstance(raw, (str, bytes)):
        raw = json.loads(raw)
    return _payload_adapter.validate_python(raw)


def dump_event_payload(event: EventPayload) -> str:
    """Serialize an event to the canonical wire JSON (camelCase keys, sorted)."""
    return json.dumps(event.model_dump(by_alias=True), sort_keys=True, separators=(",", ":"))
