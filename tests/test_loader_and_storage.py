"""
Tests for startup loading, JSON file storage and schema migrations.
"""
import json
from dataclasses import replace
from datetime import date

import pytest

import ledger.infrastructure.json_storage as json_storage
from ledger.infrastructure import (
    CURRENT_VERSION,
    JsonFileStorage,
    MigrationResult,
    StorageError,
)
from ledger.store import (
    Collection,
    UpdateRecord,
    bootstrap_store,
    default_snapshot,
    merge_with_defaults,
)

from conftest import make_allocation


def write_json(directory, filename, value):
    (directory / filename).write_text(json.dumps(value), encoding="utf-8")


def read_json(directory, filename):
    return json.loads((directory / filename).read_text(encoding="utf-8"))


class FakeLoader:
    def __init__(self, data):
        self.data = data

    def load(self):
        return self.data


class FakeMigrator:
    def __init__(self):
        self.calls = 0

    def migrate(self):
        self.calls += 1
        return MigrationResult(migrated=True, from_version="1.0.0", version=CURRENT_VERSION)


# =============================================================================
# Merge and Bootstrap
# =============================================================================

class TestMergeWithDefaults:
    """Tests for filling absent keys from seed data."""

    def test_complexity_merged_over_defaults(self):
        """Test stored levels override defaults and missing levels are filled."""
        merged = merge_with_defaults({'complexity': {'medium': {'days': 5, 'hours': 40}}})
        assert set(merged['complexity']) == {"low", "medium", "high", "sophisticated"}
        assert merged['complexity']['medium'] == {'days': 5, 'hours': 40}

    def test_absent_vs_empty(self):
        """Test None takes the default while an empty list is kept."""
        merged = merge_with_defaults({'holidays': None, 'cost_centers': []})
        assert len(merged['holidays']) > 0
        assert merged['cost_centers'] == []

    def test_settings_merged(self):
        """Test stored settings keys override defaults."""
        merged = merge_with_defaults({'settings': {'currency': "USD"}})
        assert merged['settings']['currency'] == "USD"
        assert merged['settings']['theme'] == "dark"

    def test_nothing_loaded(self):
        """Test every persisted key is present for an empty load."""
        merged = merge_with_defaults(None)
        assert merged['allocations'] == []
        assert len(merged['members']) == 7


class TestBootstrap:
    """Tests for building a store from persisted state."""

    def test_no_members_uses_defaults(self):
        """Test an empty store starts from seed data."""
        store = bootstrap_store(FakeLoader({}))
        assert len(store.snapshot.members) == 7
        assert len(store.snapshot.cost_centers) == 4

    def test_load_recalculates_allocations(self, calc_snapshot):
        """Test loaded allocations get their derived fields computed."""
        stored = calc_snapshot.with_collection(
            Collection.ALLOCATIONS, [make_allocation()]
        ).to_collections()
        store = bootstrap_store(FakeLoader(stored))

        allocation = store.snapshot.allocations[0]
        assert allocation.plan.task_end == date(2026, 1, 19)
        assert allocation.plan.cost_project == 500_000
        assert "high" in store.snapshot.complexity

    def test_migrator_runs_first(self):
        """Test the migrator is called once before loading."""
        migrator = FakeMigrator()
        bootstrap_store(FakeLoader({}), migrator=migrator)
        assert migrator.calls == 1


# =============================================================================
# JSON File Storage
# =============================================================================

class TestJsonFileStorage:
    """Tests for the file-per-key storage."""

    def test_save_and_load(self, tmp_path):
        """Test saved collections are read back and a version file is written."""
        storage = JsonFileStorage(tmp_path)
        snapshot = default_snapshot()
        storage.save(snapshot.to_collections())

        loaded = storage.load()
        assert [c['code'] for c in loaded['cost_centers']] == ["ENG", "PROD", "QA", "OPS"]
        assert loaded['allocations'] == []
        assert read_json(tmp_path, "version.json") == {'version': CURRENT_VERSION}
        assert not list(tmp_path.glob("*.tmp"))

    def test_missing_keys_are_none(self, tmp_path):
        """Test absent files load as None."""
        loaded = JsonFileStorage(tmp_path).load()
        assert set(loaded.values()) == {None}

    def test_corrupt_file_ignored(self, tmp_path, caplog):
        """Test an unreadable file is logged and treated as absent."""
        (tmp_path / "members.json").write_text("{not json", encoding="utf-8")
        assert JsonFileStorage(tmp_path).load()['members'] is None
        assert "Ignoring unreadable" in caplog.text

    def test_store_listener_persists(self, tmp_path):
        """Test a subscribed storage writes every commit."""
        storage = JsonFileStorage(tmp_path)
        store = bootstrap_store(storage, migrator=storage)
        store.subscribe(storage.save)
        center = replace(store.snapshot.cost_centers[0], name="Engineering Org")
        store.dispatch_or_raise(UpdateRecord(Collection.COST_CENTERS, center))
        assert read_json(tmp_path, "cost_centers.json")[0]['name'] == "Engineering Org"

    def test_write_failure_raises(self, tmp_path):
        """Test a write into a path blocked by a file raises StorageError."""
        blocker = tmp_path / "blocked"
        blocker.write_text("x", encoding="utf-8")
        with pytest.raises(StorageError):
            JsonFileStorage(blocker / "data").save({'members': []})


# =============================================================================
# Migrations
# =============================================================================

class TestMigrations:
    """Tests for stepwise schema migration."""

    def test_fresh_directory_not_migrated(self, tmp_path):
        """Test an empty directory is already current."""
        result = JsonFileStorage(tmp_path).migrate()
        assert result.migrated is False
        assert result.version == CURRENT_VERSION

    def test_migration_path(self):
        """Test steps between versions, skipping pairs without a step."""
        keys = [key for key, _ in json_storage.get_migration_path("1.3.0", "2.2.0")]
        assert keys == ["1.3.0_1.4.0", "2.0.0_2.1.0"]
        assert json_storage.get_migration_path("9.9.9", "2.2.0") == []
        assert json_storage.get_migration_path("2.2.0", "1.0.0") == []

    def test_unversioned_data_migrates_from_initial(self, tmp_path):
        """Test data without version.json is migrated from 1.0.0."""
        write_json(tmp_path, "members.json", [{'id': "R1", 'name': "Alice"}])
        write_json(tmp_path, "complexity.json", {'low': {'days': 3, 'hours': 16, 'cycle_activity': 2}})
        storage = JsonFileStorage(tmp_path)
        assert storage.stored_version() == "1.0.0"

        result = storage.migrate()
        assert result.migrated is True
        assert result.from_version == "1.0.0"
        assert result.steps == (
            "1.0.0_1.1.0", "1.1.0_1.2.0", "1.2.0_1.3.0", "1.3.0_1.4.0", "2.0.0_2.1.0",
        )
        assert storage.stored_version() == CURRENT_VERSION
        assert len(read_json(tmp_path, "cost_centers.json")) == 4
        assert not (tmp_path / "migration_backup.json").exists()

    def test_legacy_category_becomes_complexity(self, tmp_path):
        """Test 1.1.0 allocations holding a complexity in 'category' are split."""
        write_json(tmp_path, "version.json", {'version': "1.1.0"})
        write_json(tmp_path, "members.json", [{'id': "R1", 'name': "Alice", 'cost_center_id': "CC-001"}])
        write_json(tmp_path, "allocations.json", [
            {'id': "A1", 'resource': "Alice", 'category': "High"},
            {'id': "A2", 'resource': "Alice", 'category': "Support"},
        ])
        JsonFileStorage(tmp_path).migrate()

        first, second = read_json(tmp_path, "allocations.json")
        assert (first['complexity'], first['category']) == ("high", "Project")
        assert (second['complexity'], second['category']) == ("medium", "Support")
        assert first['cost_center_snapshot'] == {'id': "CC-001", 'code': "ENG", 'name': "Engineering"}

    def test_migrated_data_bootstraps(self, tmp_path):
        """Test a migrated directory loads into a store."""
        write_json(tmp_path, "version.json", {'version': "1.1.0"})
        write_json(tmp_path, "members.json", [{'id': "R1", 'name': "Alice"}])
        write_json(tmp_path, "allocations.json", [{'id': "A1", 'resource': "Alice", 'category': "low"}])
        storage = JsonFileStorage(tmp_path)
        store = bootstrap_store(storage, migrator=storage)
        assert store.snapshot.allocations[0].complexity == "low"
        assert len(store.snapshot.coa) == 17

    def test_failure_restores_backup(self, tmp_path, monkeypatch):
        """Test a failing step restores the stored files and version."""
        write_json(tmp_path, "version.json", {'version': "1.1.0"})
        write_json(tmp_path, "allocations.json", [{'id': "A1", 'resource': "Alice", 'category': "High"}])

        def broken(data):
            raise ValueError("bad data")

        monkeypatch.setitem(json_storage.MIGRATIONS, "1.2.0_1.3.0", broken)
        storage = JsonFileStorage(tmp_path)
        with pytest.raises(StorageError, match="Migration from 1.1.0 failed"):
            storage.migrate()

        assert read_json(tmp_path, "allocations.json") == [
            {'id': "A1", 'resource': "Alice", 'category': "High"},
        ]
        assert storage.stored_version() == "1.1.0"
        assert not (tmp_path / "cost_centers.json").exists()
