"""
Ports - Interfaces between the ledger core and its persistence/feeds.

Any object with the right methods satisfies a port; JsonFileStorage is the
bundled implementation of StateLoader, StateWriter and Migrator.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol


@dataclass(frozen=True)
class MigrationResult:
    """
    Outcome of a schema migration run.

    Attributes:
        migrated: True if at least one migration step ran
        from_version: Version found in storage
        version: Version after the run
        steps: Migration step keys applied, e.g. ['1.0.0_1.1.0']
    """

    migrated: bool
    from_version: str
    version: str
    steps: tuple = ()


class StateLoader(Protocol):
    """Reads persisted collections."""

    def load(self) -> Dict[str, Optional[Any]]:
        """
        Returns:
            Mapping of persisted key -> stored value, or None when absent
        """
        ...


class StateWriter(Protocol):
    """Persists collections after each committed snapshot."""

    def save(self, collections: Mapping[str, Any]) -> None:
        ...


class HolidayFeed(Protocol):
    """Asynchronous source of public holidays."""

    async def fetch(self) -> List[dict]:
        """
        Returns:
            Holiday dicts with id, date, name and category
        """
        ...


class Migrator(Protocol):
    """Brings stored data up to the current schema version."""

    def migrate(self) -> MigrationResult:
        ...
