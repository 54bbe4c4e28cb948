"""
Built-in seed data.

Read from seed_data.yaml once and served as fresh copies so callers can
never mutate the cached source.
"""
import copy
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ledger.config import ConfigurationError
from .snapshot import LedgerSnapshot


SEED_DATA_PATH = Path(__file__).parent.parent / "seed_data.yaml"


@lru_cache(maxsize=4)
def _read_seed_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigurationError(f"Seed data file not found: {path}")
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in seed data file: {e}")
    if not isinstance(data, dict):
        raise ConfigurationError("Seed data file must contain a YAML mapping")
    return data


def load_seed_data(path: Optional[Path] = None) -> Dict[str, Any]:
    """Seed collections in serialized form (a deep copy)."""
    return copy.deepcopy(_read_seed_file(path or SEED_DATA_PATH))


def default_snapshot(path: Optional[Path] = None) -> LedgerSnapshot:
    """Snapshot built from seed data; leaves and allocations are empty."""
    data = load_seed_data(path)
    data["leaves"] = []
    data["allocations"] = []
    return LedgerSnapshot.from_collections(data)
