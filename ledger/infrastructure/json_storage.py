"""
JSON File Storage - Persists ledger collections as one JSON file per key.

Layout of the data directory:
    members.json, phases.json, ..., settings.json   one file per persisted key
    version.json                                    {"version": "2.2.0"}
    migration_backup.json                           present only during a migration

Migrations run stepwise from the stored version to CURRENT_VERSION. The
stored data is backed up first and restored if any step fails.
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from ledger.config import get_config
from ledger.store.defaults import load_seed_data
from ledger.store.snapshot import PERSISTED_KEYS
from .ports import MigrationResult

logger = logging.getLogger(__name__)


CURRENT_VERSION = get_config().schema_version
INITIAL_VERSION = "1.0.0"
VERSION_FILE = "version.json"
BACKUP_FILE = "migration_backup.json"

LEGACY_COMPLEXITY_LEVELS = ("low", "medium", "high", "sophisticated")


class StorageError(Exception):
    """Raised when the data directory cannot be read or written."""
    pass


# =============================================================================
# Migration steps
# =============================================================================

def _rename_cycle_activity(data: Dict[str, Any]) -> Dict[str, Any]:
    """1.0.0 -> 1.1.0: complexity 'cycle_activity' became 'workload'."""
    complexity = data.get("complexity") or {}
    for level in complexity.values():
        if "cycle_activity" in level:
            level.setdefault("workload", level.pop("cycle_activity"))
    return data


def _split_complexity_from_category(data: Dict[str, Any]) -> Dict[str, Any]:
    """1.1.0 -> 1.2.0: allocation 'category' held the complexity level."""
    for allocation in data.get("allocations") or []:
        category = str(allocation.get("category") or "")
        if category.lower() in LEGACY_COMPLEXITY_LEVELS:
            allocation["complexity"] = category.lower()
            allocation["category"] = "Project"
        else:
            allocation.setdefault("complexity", "medium")
            allocation["category"] = category or "Project"
    return data


def _add_cost_centers(data: Dict[str, Any]) -> Dict[str, Any]:
    """1.2.0 -> 1.3.0: cost centers, chart of accounts and allocation tracking."""
    seed = load_seed_data()

    if not data.get("cost_centers"):
        data["cost_centers"] = seed["cost_centers"]
        logger.info("Added default cost centers")
    else:
        for center in data["cost_centers"]:
            if "is_active" not in center:
                center["is_active"] = str(center.get("status", "Active")).lower() == "active"
            center.setdefault("parent_cost_center_id", None)

    if not data.get("coa"):
        data["coa"] = seed["coa"]
        logger.info("Added default chart of accounts")
    else:
        for account in data["coa"]:
            account.setdefault("is_active", True)

    members_by_name = {m.get("name"): m for m in data.get("members") or []}
    centers_by_id = {c["id"]: c for c in data["cost_centers"]}
    for allocation in data.get("allocations") or []:
        member = members_by_name.get(allocation.get("resource")) or {}
        center_id = allocation.get("cost_center_id") or member.get("cost_center_id")
        allocation["cost_center_id"] = center_id or None
        center = centers_by_id.get(center_id)
        if not allocation.get("cost_center_snapshot") and center:
            allocation["cost_center_snapshot"] = {
                "id": center["id"], "code": center["code"], "name": center["name"],
            }

    settings = data.get("settings") or {}
    settings.setdefault("cost_center_settings", seed["settings"]["cost_center_settings"])
    data["settings"] = settings
    return data


def _expand_coa_and_complexity(data: Dict[str, Any]) -> Dict[str, Any]:
    """1.3.0 -> 1.4.0: new default accounts and subcategories; complexity merged with defaults."""
    seed = load_seed_data()

    data["complexity"] = {**seed["complexity"], **(data.get("complexity") or {})}

    accounts = data.get("coa") or []
    existing_codes = {a.get("code") for a in accounts}
    added = [a for a in seed["coa"] if a["code"] not in existing_codes]
    if added:
        logger.info(f"Added {len(added)} new chart of accounts entries")
    seed_by_code = {a["code"]: a for a in seed["coa"]}
    for account in accounts + added:
        if not account.get("subcategory"):
            account["subcategory"] = seed_by_code.get(account.get("code"), {}).get("subcategory", "General")
    data["coa"] = accounts + added
    return data


def _realign_complexity(data: Dict[str, Any]) -> Dict[str, Any]:
    """2.0.0 -> 2.1.0: complexity baselines and default task estimates reset."""
    seed = load_seed_data()
    data["complexity"] = seed["complexity"]

    seed_tasks = {t["name"]: t for t in seed["tasks"]}
    for task in data.get("tasks") or []:
        default = seed_tasks.get(task.get("name"))
        if default:
            task["estimates"] = default["estimates"]
    return data


VERSIONS = ("1.0.0", "1.1.0", "1.2.0", "1.3.0", "1.4.0", "2.0.0", "2.1.0", "2.2.0")

MIGRATIONS: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
    "1.0.0_1.1.0": _rename_cycle_activity,
    "1.1.0_1.2.0": _split_complexity_from_category,
    "1.2.0_1.3.0": _add_cost_centers,
    "1.3.0_1.4.0": _expand_coa_and_complexity,
    "2.0.0_2.1.0": _realign_complexity,
}


def get_migration_path(from_version: str, to_version: str) -> List[Tuple[str, Callable]]:
    """
    Migration steps between two versions, in order.

    Unknown versions or a non-forward range give an empty path. Version
    pairs without a registered step are skipped.
    """
    if from_version not in VERSIONS or to_version not in VERSIONS:
        return []
    start, end = VERSIONS.index(from_version), VERSIONS.index(to_version)
    path = []
    for i in range(start, end):
        key = f"{VERSIONS[i]}_{VERSIONS[i + 1]}"
        if key in MIGRATIONS:
            path.append((key, MIGRATIONS[key]))
    return path


# =============================================================================
# Storage
# =============================================================================

class JsonFileStorage:
    """
    StateLoader, StateWriter and Migrator over a directory of JSON files.

    Example:
        storage = JsonFileStorage(Path("./data"))
        store = bootstrap_store(storage, migrator=storage)
        store.subscribe(storage.save)
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)

    def path_for(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    # -------------------------------------------------------------------------
    # Low-level file access
    # -------------------------------------------------------------------------

    def _read(self, filename: str) -> Optional[Any]:
        path = self.data_dir / filename
        if not path.exists():
            return None
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable {path}: {e}")
            return None

    def _write(self, filename: str, value: Any) -> None:
        """Write atomically: a temp file is replaced into position."""
        path = self.data_dir / filename
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(value, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}")

    # -------------------------------------------------------------------------
    # Ports
    # -------------------------------------------------------------------------

    def load(self) -> Dict[str, Optional[Any]]:
        """Every persisted key mapped to its stored value, or None when absent."""
        return {key: self._read(f"{key}.json") for key in PERSISTED_KEYS}

    def save(self, collections: Mapping[str, Any]) -> None:
        """
        Write each persisted key present in collections.

        Raises:
            StorageError: A file could not be written
        """
        for key in PERSISTED_KEYS:
            if key in collections:
                self._write(f"{key}.json", collections[key])
        if self._read(VERSION_FILE) is None:
            self.write_version(CURRENT_VERSION)

    def stored_version(self) -> str:
        """
        Version recorded in version.json.

        Data without a version file is treated as INITIAL_VERSION; an empty
        directory is a fresh install at CURRENT_VERSION.
        """
        stored = self._read(VERSION_FILE)
        if isinstance(stored, dict) and stored.get("version"):
            return str(stored["version"])
        if any(self.path_for(key).exists() for key in PERSISTED_KEYS):
            return INITIAL_VERSION
        return CURRENT_VERSION

    def write_version(self, version: str) -> None:
        self._write(VERSION_FILE, {"version": version})

    def migrate(self) -> MigrationResult:
        """
        Run pending migrations.

        Returns:
            MigrationResult describing what ran

        Raises:
            StorageError: A step failed; stored data has been restored from backup
        """
        from_version = self.stored_version()
        if from_version == CURRENT_VERSION:
            return MigrationResult(migrated=False, from_version=from_version, version=CURRENT_VERSION)

        path = get_migration_path(from_version, CURRENT_VERSION)
        if not path:
            logger.info(f"No migrations from {from_version}, marking data as {CURRENT_VERSION}")
            self.write_version(CURRENT_VERSION)
            return MigrationResult(migrated=False, from_version=from_version, version=CURRENT_VERSION)

        logger.info(f"Migrating stored data from {from_version} to {CURRENT_VERSION}")
        original = self.load()
        self._write(BACKUP_FILE, {"version": from_version, "data": original})

        data = {key: value for key, value in original.items() if value is not None}
        applied = []
        try:
            for key, step in path:
                data = step(data)
                applied.append(key)
                logger.info(f"Applied migration {key}")
            self.save(data)
            self.write_version(CURRENT_VERSION)
        except Exception as e:
            logger.error(f"Migration failed after {applied}: {e}", exc_info=True)
            self._restore_backup()
            raise StorageError(f"Migration from {from_version} failed: {e}")

        (self.data_dir / BACKUP_FILE).unlink(missing_ok=True)
        return MigrationResult(
            migrated=True,
            from_version=from_version,
            version=CURRENT_VERSION,
            steps=tuple(applied),
        )

    def _restore_backup(self) -> None:
        backup = self._read(BACKUP_FILE)
        if not backup:
            logger.error("No migration backup found to restore")
            return
        for key, value in backup["data"].items():
            if value is None:
                self.path_for(key).unlink(missing_ok=True)
            else:
                self._write(f"{key}.json", value)
        self.write_version(backup["version"])
        logger.info(f"Restored stored data to version {backup['version']}")
