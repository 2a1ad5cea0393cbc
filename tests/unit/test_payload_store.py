"""
Unit Tests for Payload Store
============================

Tests for request snapshot persistence, lookup and retention.
"""

import json

import pytest

from docrender.core.storage.payloads import PayloadStore, StorageError


@pytest.fixture
def store(tmp_path) -> PayloadStore:
    return PayloadStore(tmp_path / "payloads", retention=3)


class TestPayloadStore:
    """Test snapshot storage."""

    def test_creates_root(self, tmp_path):
        PayloadStore(tmp_path / "a" / "b")
        assert (tmp_path / "a" / "b").is_dir()

    def test_save_and_get(self, store):
        body = {"layout": "PHAvPg==", "data": {"name": "Ada"}, "fileFormat": "html"}

        payload_id = store.save(body)

        assert store.is_valid_id(payload_id)
        assert store.get(payload_id) == body
        assert json.loads((store.root / f"{payload_id}.json").read_text()) == body

    def test_ids_are_unique_and_increasing(self, store):
        ids = [store.save({"n": i}) for i in range(20)]

        assert len(set(ids)) == 20
        assert ids == sorted(ids)

    def test_list_newest_first(self, store):
        first = store.save({"n": 1})
        second = store.save({"n": 2})

        records = store.list()

        assert [record.id for record in records] == [second, first]
        assert records[0].size > 0
        assert records[0].created_at.tzinfo is not None

    def test_list_ignores_foreign_files(self, store):
        (store.root / "notes.json").write_text("{}")
        (store.root / "readme.txt").write_text("x")

        assert store.list() == []

    def test_get_unknown_id(self, store):
        assert store.get("20240101T000000000000Z-" + "0" * 32) is None

    @pytest.mark.parametrize("payload_id", ["../../etc/passwd", "", "abc", "notes"])
    def test_get_rejects_malformed_ids(self, store, payload_id):
        assert store.get(payload_id) is None

    @pytest.mark.parametrize("content", [b'{"layout": "PHA+', b"", b"\xff\xfe{}"])
    def test_get_corrupt_snapshot(self, store, content):
        payload_id = store.save({"n": 1})
        (store.root / f"{payload_id}.json").write_bytes(content)

        assert store.get(payload_id) is None
        assert [record.id for record in store.list()] == [payload_id]

    def test_unserializable_body(self, store):
        circular = {}
        circular["self"] = circular

        with pytest.raises(StorageError):
            store.save(circular)

    def test_prune_keeps_newest(self, store):
        ids = [store.save({"n": i}) for i in range(5)]

        deleted = store.prune()

        assert deleted == 2
        assert [record.id for record in store.list()] == list(reversed(ids[2:]))
        assert store.get(ids[0]) is None

    def test_prune_under_retention(self, store):
        store.save({"n": 1})
        assert store.prune() == 0
        assert len(store.list()) == 1
