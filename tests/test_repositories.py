"""Tests for the local cache store and session repository."""

import json

import pytest

from common.types import Entity, EntityKind
from drive.repositories.entity_repository import LocalCacheStore
from drive.repositories.session_repository import SessionRepository


def make_entity(entity_id, name="doc.txt", owner="alice", **extra):
    fields = dict(
        id=entity_id,
        name=name,
        kind=EntityKind.FILE,
        owner=owner,
        created_at="2024-01-01T00:00:00.000Z",
        modified_at="2024-01-01T00:00:00.000Z",
        size=10,
    )
    fields.update(extra)
    return Entity(**fields)


@pytest.fixture
def cache_path(tmp_path):
    return tmp_path / "entities.json"


class TestLocalCacheStore:
    def test_put_and_get(self):
        store = LocalCacheStore()
        store.put("alice", make_entity("f1"))

        assert store.get("alice", "f1").name == "doc.txt"
        assert store.get("bob", "f1") is None
        assert store.get("alice", "missing") is None

    def test_put_replaces_in_place(self):
        store = LocalCacheStore()
        for entity_id in ("f1", "f2", "f3"):
            store.put("alice", make_entity(entity_id))

        store.put("alice", make_entity("f2", name="renamed"))

        assert [e.id for e in store.list_entities("alice")] == ["f1", "f2", "f3"]
        assert store.get("alice", "f2").name == "renamed"

    def test_initialize_account_only_once(self):
        store = LocalCacheStore()

        assert store.initialize_account("alice", [make_entity("f1")]) is True
        assert store.initialize_account("alice", [make_entity("f2")]) is False
        assert [e.id for e in store.list_entities("alice")] == ["f1"]

    def test_initialize_with_empty_table(self):
        store = LocalCacheStore()
        store.initialize_account("alice", [])

        assert store.has_account("alice")
        assert store.list_entities("alice") == []

    def test_remove(self):
        store = LocalCacheStore()
        store.put("alice", make_entity("f1"))

        assert store.remove("alice", "f1") is True
        assert store.remove("alice", "f1") is False
        assert store.remove("nobody", "f1") is False

    def test_iter_accounts_is_snapshot(self):
        store = LocalCacheStore()
        store.put("alice", make_entity("f1"))
        store.put("bob", make_entity("f2", owner="bob"))

        snapshot = store.iter_accounts()
        store.put("carol", make_entity("f3", owner="carol"))

        assert sorted(owner for owner, _ in snapshot) == ["alice", "bob"]

    def test_persists_across_instances(self, cache_path):
        store = LocalCacheStore(cache_path)
        store.put("alice", make_entity("f1", starred=True, shared=True, shared_with=("bob",), content="hi"))
        store.initialize_account("bob", [])

        reloaded = LocalCacheStore(cache_path)
        entity = reloaded.get("alice", "f1")

        assert entity == store.get("alice", "f1")
        assert entity.shared_with == ("bob",)
        assert reloaded.has_account("bob")

    def test_file_uses_camel_case_schema(self, cache_path):
        LocalCacheStore(cache_path).put("alice", make_entity("f1", parent_id="d1"))

        with open(cache_path) as f:
            data = json.load(f)

        record = data["alice"][0]
        assert record["type"] == "file"
        assert record["parentId"] == "d1"
        assert "sharedWith" in record and "mimeType" in record

    def test_corrupt_file_is_backed_up(self, cache_path):
        cache_path.write_text("{ not json")

        store = LocalCacheStore(cache_path)

        assert store.iter_accounts() == []
        assert cache_path.with_suffix(".json.bak").exists()

    def test_clear(self, cache_path):
        store = LocalCacheStore(cache_path)
        store.put("alice", make_entity("f1"))
        store.clear()

        assert LocalCacheStore(cache_path).iter_accounts() == []


class TestSessionRepository:
    def test_save_and_reload(self, tmp_path):
        path = tmp_path / "session.json"
        SessionRepository(path).save("alice", "ciphertext")

        repo = SessionRepository(path)
        assert repo.get_account() == "alice"
        assert repo.get_ciphertext() == "ciphertext"

    def test_save_overwrites(self):
        repo = SessionRepository()
        repo.save("alice", "one")
        repo.save("bob", "two")

        assert repo.get_account() == "bob"
        assert repo.get_ciphertext() == "two"

    def test_clear_removes_file(self, tmp_path):
        path = tmp_path / "session.json"
        repo = SessionRepository(path)
        repo.save("alice", "ciphertext")

        repo.clear()

        assert not path.exists()
        assert repo.get_account() is None
        assert repo.get_ciphertext() is None

    def test_unreadable_file_is_ignored(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text("garbage")

        assert SessionRepository(path).get_account() is None
