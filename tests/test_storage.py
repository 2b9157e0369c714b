"""Tests for snapshot persistence and backups."""

import json

import pytest
from datetime import date, datetime
from decimal import Decimal

from walletbook.models import (
    Budget,
    Frequency,
    LedgerSnapshot,
    RecurringRule,
    Transaction,
    TransactionType,
    UserIdentity,
)
from walletbook.services.storage import (
    InMemorySnapshotStorage,
    JsonFileSnapshotStorage,
    SnapshotCorruptError,
    StorageError,
    dump_backup,
    load_backup,
)


def sample_snapshot():
    tx = Transaction(
        amount=Decimal("19.99"),
        description="Netflix (Auto)",
        date=datetime(2024, 4, 1),
        category_id="exp5",
        wallet_id="w2",
        type=TransactionType.EXPENSE,
        is_recurring=True,
    )
    rule = RecurringRule(
        amount=Decimal("19.99"),
        description="Netflix",
        category_id="exp5",
        wallet_id="w2",
        type=TransactionType.EXPENSE,
        frequency=Frequency.MONTHLY,
        next_due_date=date(2024, 5, 1),
        original_day=1,
    )
    base = LedgerSnapshot()
    wallets = (base.wallets[0], base.wallets[1].model_copy(update={"balance": Decimal("-19.99")}))
    return LedgerSnapshot(
        wallets=wallets,
        transactions=(tx,),
        recurring_rules=(rule,),
        budgets=(Budget(category_id="exp5", amount=Decimal("50")),),
        has_onboarded=True,
        security_pin="1234",
        user=UserIdentity(id="u1", email="ana@example.com"),
    )


class TestBackupFormat:
    """Tests for the backup envelope."""

    def test_round_trip_is_lossless(self):
        snapshot = sample_snapshot()
        assert load_backup(dump_backup(snapshot)) == snapshot

    def test_envelope_shape(self):
        payload = json.loads(dump_backup(sample_snapshot()))
        assert set(payload) == {"version", "timestamp", "data"}
        assert payload["version"] == 2
        assert payload["data"]["security_pin"] == "1234"

    def test_garbage_is_corrupt(self):
        with pytest.raises(SnapshotCorruptError):
            load_backup("{not json")

    def test_wrong_shape_is_corrupt(self):
        with pytest.raises(SnapshotCorruptError):
            load_backup(json.dumps({"version": 2, "data": {"wallets": "nope"}}))

    def test_newer_version_is_rejected(self):
        payload = json.loads(dump_backup(LedgerSnapshot()))
        payload["version"] = 99
        with pytest.raises(SnapshotCorruptError, match="newer"):
            load_backup(json.dumps(payload))

    def test_corrupt_error_is_storage_error(self):
        assert issubclass(SnapshotCorruptError, StorageError)


class TestJsonFileStorage:
    """Tests for the JSON file backend."""

    def test_missing_file_loads_none(self, tmp_path):
        storage = JsonFileSnapshotStorage(tmp_path / "ledger.json")
        assert storage.load_snapshot() is None

    def test_save_then_load(self, tmp_path):
        storage = JsonFileSnapshotStorage(tmp_path / "nested" / "ledger.json")
        snapshot = sample_snapshot()

        storage.save_snapshot(snapshot)

        assert storage.path.exists()
        assert storage.load_snapshot() == snapshot

    def test_save_leaves_no_temp_files(self, tmp_path):
        storage = JsonFileSnapshotStorage(tmp_path / "ledger.json")
        storage.save_snapshot(LedgerSnapshot())
        storage.save_snapshot(sample_snapshot())
        assert [p.name for p in tmp_path.iterdir()] == ["ledger.json"]

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text("][", encoding="utf-8")
        with pytest.raises(SnapshotCorruptError):
            JsonFileSnapshotStorage(path).load_snapshot()

    def test_clear(self, tmp_path):
        storage = JsonFileSnapshotStorage(tmp_path / "ledger.json")
        storage.save_snapshot(LedgerSnapshot())
        storage.clear()
        assert storage.load_snapshot() is None
        storage.clear()

    def test_unwritable_location(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        storage = JsonFileSnapshotStorage(blocker / "ledger.json")
        with pytest.raises(StorageError):
            storage.save_snapshot(LedgerSnapshot())


class TestInMemoryStorage:
    def test_round_trip_and_count(self):
        storage = InMemorySnapshotStorage()
        assert storage.load_snapshot() is None

        snapshot = sample_snapshot()
        storage.save_snapshot(snapshot)
        assert storage.save_count == 1
        assert storage.load_snapshot() == snapshot

        storage.clear()
        assert storage.load_snapshot() is None

    def test_initial_snapshot(self):
        snapshot = sample_snapshot()
        assert InMemorySnapshotStorage(snapshot).load_snapshot() == snapshot


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
