"""Pydantic schemas for ledger event payloads."""

from drive.schemas.events import (
    EventPayload,
    FileDeleteEvent,
    FileMetadataEvent,
    FileShareEvent,
    FileStarEvent,
    MetadataData,
    StarData,
    DeleteData,
    ShareData,
    dump_event_payload,
    parse_event_payload,
)

__all__ = [
    "EventPayload",
    "FileDeleteEvent",
    "FileMetadataEvent",
    "FileShareEvent",
    "FileStarEvent",
    "MetadataData",
    "StarData",
    "DeleteData",
    "ShareData",
    "dump_event_payload",
    "parse_event_payload",
]
