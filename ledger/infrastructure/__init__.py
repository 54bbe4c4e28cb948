"""
Infrastructure Layer - Persistence and external feed adapters.

This module provides:
- Port protocols the ledger core depends on
- JSON file storage with schema migrations
"""

from .ports import HolidayFeed, MigrationResult, Migrator, StateLoader, StateWriter
from .json_storage import CURRENT_VERSION, JsonFileStorage, StorageError

__all__ = [
    'HolidayFeed',
    'MigrationResult',
    'Migrator',
    'StateLoader',
    'StateWriter',
    'CURRENT_VERSION',
    'JsonFileStorage',
    'StorageError',
]
