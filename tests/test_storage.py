"""Tests for the snapshot codec and storage backends."""

import asyncio
import json
from decimal import Decimal

import pytest

from contribution_ledger.audit import AuditLogger
from contribution_ledger.models.audit import AuditEventType
from contribution_ledger.models.contribution import Contribution
from contribution_ledger.services.storage import (
    InMemoryStorage,
    JsonFileStorage,
    PersistenceError,
    deserialize_snapshot,
    serialize_snapshot,
)


def make(name, amount, date, contribution_id=None):
    fields = {"name": name, "amount": Decimal(amount), "date": date}
    if contribution_id:
        fields["id"] = contribution_id
    return Contribution(**fields)


@pytest.fixture
def contributions():
    return [
        make("Alice", "50.00", "2024-03-01", "a"),
        make("Bob", "25.5", "2024-02-15", "b"),
        make("Carol", "0.333", "2024-03-01", "c"),
    ]


class TestSnapshotCodec:

    def test_round_trip_preserves_order_and_fields(self, contributions):
        restored = deserialize_snapshot(serialize_snapshot(contributions))
        assert restored == contributions
        assert [c.id for c in restored] == ["a", "b", "c"]

    def test_snapshot_is_a_list_of_field_mappings(self, contributions):
        raw = json.loads(serialize_snapshot(contributions[:1]))
        assert raw == [
            {"id": "a", "name": "Alice", "amount": "50.00", "date": "2024-03-01"},
        ]

    @pytest.mark.parametrize("blob", [None, "", "   "])
    def test_empty_blob_means_no_data(self, blob):
        assert deserialize_snapshot(blob) == []

    @pytest.mark.parametrize("blob", [
        "{not json",
        '{"id": "a"}',
        '[{"id": "a", "name": "", "amount": "1", "date": "2024-01-01"}]',
        '[{"id": "a", "name": "A", "amount": "-1", "date": "2024-01-01"}]',
        '[{"id": "a", "name": "A", "amount": "1", "date": "yesterday"}]',
    ])
    def test_malformed_snapshot_is_rejected(self, blob):
        with pytest.raises(PersistenceError):
            deserialize_snapshot(blob)

    def test_duplicate_ids_keep_first(self):
        blob = json.dumps([
            {"id": "x", "name": "First", "amount": "1", "date": "2024-01-01"},
            {"id": "x", "name": "Second", "amount": "2", "date": "2024-01-02"},
        ])
        restored = deserialize_snapshot(blob)
        assert [c.name for c in restored] == ["First"]

    def test_legacy_snapshot(self):
        blob = json.dumps([
            {"id": "1709251200000", "name": "Alice", "payment": "50", "date": "2024-03-01"},
        ])
        assert deserialize_snapshot(blob)[0].amount == Decimal("50")


class TestInMemoryStorage:

    def test_load_without_snapshot(self):
        assert asyncio.run(InMemoryStorage().load()) == []

    def test_save_then_load(self, contributions):
        storage = InMemoryStorage()
        assert asyncio.run(storage.save(contributions)) is True
        assert asyncio.run(storage.load()) == contributions
        assert storage.write_count == 1

    def test_shared_slots_survive_a_new_instance(self, contributions):
        slots = {}
        asyncio.run(InMemoryStorage(slots).save(contributions))
        assert asyncio.run(InMemoryStorage(slots).load()) == contributions

    def test_corrupt_slot_loads_empty_and_is_audited(self):
        audit = AuditLogger()
        storage = InMemoryStorage({"@contributions": "[oops"}, audit_logger=audit)

        assert asyncio.run(storage.load()) == []
        assert audit.history[-1].event_type == AuditEventType.SNAPSHOT_LOAD_FAILED


class TestJsonFileStorage:

    def test_missing_file_loads_empty(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "ledger.json")
        assert asyncio.run(storage.load()) == []

    def test_round_trip(self, tmp_path, contributions):
        path = tmp_path / "nested" / "ledger.json"
        storage = JsonFileStorage(path)

        assert asyncio.run(storage.save(contributions)) is True
        assert asyncio.run(JsonFileStorage(path).load()) == contributions

    def test_file_maps_slot_key_to_blob(self, tmp_path, contributions):
        path = tmp_path / "ledger.json"
        asyncio.run(JsonFileStorage(path, key="@mine").save(contributions))

        slots = json.loads(path.read_text(encoding="utf-8"))
        assert list(slots) == ["@mine"]
        assert deserialize_snapshot(slots["@mine"]) == contributions

    def test_other_slots_are_preserved(self, tmp_path, contributions):
        path = tmp_path / "ledger.json"
        path.write_text(json.dumps({"@settings": "keep me"}), encoding="utf-8")

        asyncio.run(JsonFileStorage(path).save(contributions))

        slots = json.loads(path.read_text(encoding="utf-8"))
        assert slots["@settings"] == "keep me"
        assert "@contributions" in slots

    def test_save_replaces_previous_snapshot(self, tmp_path, contributions):
        path = tmp_path / "ledger.json"
        storage = JsonFileStorage(path)
        asyncio.run(storage.save(contributions))
        asyncio.run(storage.save(contributions[:1]))

        assert asyncio.run(storage.load()) == contributions[:1]
        assert not list(tmp_path.glob("*.tmp"))

    def test_unreadable_file_loads_empty(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text("this is not json", encoding="utf-8")
        audit = AuditLogger()

        assert asyncio.run(JsonFileStorage(path, audit_logger=audit).load()) == []
        assert audit.history[-1].event_type == AuditEventType.SNAPSHOT_LOAD_FAILED

    def test_save_over_unreadable_file_keeps_a_backup(self, tmp_path, contributions):
        path = tmp_path / "ledger.json"
        path.write_text("this is not json", encoding="utf-8")

        assert asyncio.run(JsonFileStorage(path).save(contributions)) is True

        backup = tmp_path / "ledger.json.corrupt"
        assert backup.read_text(encoding="utf-8") == "this is not json"
        assert asyncio.run(JsonFileStorage(path).load()) == contributions

    def test_repeated_corruption_keeps_every_backup(self, tmp_path, contributions):
        path = tmp_path / "ledger.json"
        storage = JsonFileStorage(path)

        path.write_text("first broken copy", encoding="utf-8")
        assert asyncio.run(storage.save(contributions)) is True
        path.write_text("second broken copy", encoding="utf-8")
        assert asyncio.run(storage.save(contributions)) is True

        assert (tmp_path / "ledger.json.corrupt").read_text(encoding="utf-8") == "first broken copy"
        assert (tmp_path / "ledger.json.corrupt.1").read_text(encoding="utf-8") == "second broken copy"
        assert asyncio.run(storage.load()) == contributions

    def test_save_failure_returns_false(self, tmp_path, contributions):
        # A directory where the file should be can be neither read nor replaced
        path = tmp_path / "ledger.json"
        path.mkdir()
        audit = AuditLogger()

        saved = asyncio.run(JsonFileStorage(path, audit_logger=audit).save(contributions))

        assert saved is False
        assert audit.history[-1].event_type == AuditEventType.SNAPSHOT_SAVE_FAILED

    def test_transient_write_error_is_retried(self, tmp_path, contributions, monkeypatch):
        path = tmp_path / "ledger.json"
        storage = JsonFileStorage(path, write_attempts=3)
        real_write = storage._atomic_write
        calls = []

        def flaky_write(text):
            calls.append(text)
            if len(calls) == 1:
                raise OSError("disk hiccup")
            real_write(text)

        monkeypatch.setattr(storage, "_atomic_write", flaky_write)

        assert asyncio.run(storage.save(contributions)) is True
        assert len(calls) == 2
        assert asyncio.run(storage.load()) == contributions

    def test_persistent_write_error_gives_up(self, tmp_path, contributions, monkeypatch):
        storage = JsonFileStorage(tmp_path / "ledger.json", write_attempts=2)
        calls = []

        def broken_write(text):
            calls.append(text)
            raise OSError("read-only filesystem")

        monkeypatch.setattr(storage, "_atomic_write", broken_write)

        assert asyncio.run(storage.save(contributions)) is False
        assert len(calls) == 2
