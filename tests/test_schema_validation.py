"""Tests for the drive event wire schema."""

import json

import pytest
from pydantic import ValidationError

from drive.replication.operation_emitter import (
    build_delete_event,
    build_metadata_event,
    build_share_event,
    build_star_event,
)
from drive.schemas.events import (
    FileDeleteEvent,
    FileMetadataEvent,
    FileShareEvent,
    FileStarEvent,
    dump_event_payload,
    parse_event_payload,
)
from common.types import Entity, EntityKind


class TestParseEventPayload:
    @pytest.mark.parametrize("event_type,data,cls", [
        ("file_metadata", {"id": "f1", "name": "a", "type": "file"}, FileMetadataEvent),
        ("file_star", {"id": "f1", "starred": True}, FileStarEvent),
        ("file_delete", {"id": "f1"}, FileDeleteEvent),
        ("file_share", {"id": "f1", "sharedWith": ["bob"]}, FileShareEvent),
    ])
    def test_variants(self, make_event, event_type, data, cls):
        assert isinstance(parse_event_payload(make_event(event_type, **data)), cls)

    def test_accepts_json_text(self, make_event):
        raw = json.dumps(make_event("file_delete", id="f1"))
        assert parse_event_payload(raw).data.id == "f1"

    def test_camel_case_aliases(self, make_event):
        event = parse_event_payload(make_event(
            "file_metadata", id="f1", name="a", type="file",
            mimeType="text/plain", parentId="d1", createdAt="t0", modifiedAt="t1",
        ))

        assert event.data.mime_type == "text/plain"
        assert event.data.parent_id == "d1"
        assert event.data.created_at == "t0"
        assert event.data.modified_at == "t1"

    def test_nulls_are_coerced(self, make_event):
        event = parse_event_payload(make_event(
            "file_metadata", id="f1", name="a", type="file", size=None, mimeType=None, sharedWith=None,
        ))

        assert event.data.size == 0
        assert event.data.mime_type == ""
        assert event.data.shared_with == []

    def test_unknown_fields_ignored(self, make_event):
        event = parse_event_payload(make_event("file_delete", id="f1", extra="x"))
        assert event.data.id == "f1"

    @pytest.mark.parametrize("payload", [
        {"type": "file_rename", "app": "hive_drive", "data": {"id": "f1"}},
        {"type": "file_delete", "app": "other_app", "data": {"id": "f1"}},
        {"type": "file_delete", "app": "hive_drive", "data": {"id": ""}},
        {"type": "file_metadata", "app": "hive_drive", "data": {"id": "f1", "name": "a", "type": "link"}},
        {"app": "hive_drive", "data": {"id": "f1"}},
    ])
    def test_invalid_payloads(self, payload):
        with pytest.raises(ValidationError):
            parse_event_payload(payload)


class TestBuilders:
    def test_metadata_event_wire_format(self):
        entity = Entity(
            id="f1", name="a.txt", kind=EntityKind.FILE, owner="alice",
            created_at="t0", modified_at="t0", size=2, mime_type="text/plain", content="hi",
        )

        wire = json.loads(dump_event_payload(build_metadata_event(entity)))

        assert wire["type"] == "file_metadata"
        assert wire["app"] == "hive_drive"
        assert wire["data"]["type"] == "file"
        assert wire["data"]["mimeType"] == "text/plain"
        assert wire["data"]["content"] == "hi"
        assert "owner" not in wire["data"]

    def test_dump_is_canonical(self):
        first = dump_event_payload(build_star_event("f1", True))
        second = dump_event_payload(parse_event_payload(first))

        assert first == second
        assert " " not in first

    def test_share_event_dedups(self):
        event = build_share_event("f1", ["bob", "carol", "bob"])
        assert event.data.shared_with == ["bob", "carol"]

    def test_delete_event(self):
        assert json.loads(dump_event_payload(build_delete_event("f1"))) == {
            "app": "hive_drive", "data": {"id": "f1"}, "type": "file_delete",
        }
