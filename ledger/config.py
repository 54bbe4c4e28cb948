"""
Configuration loader for the staffing ledger.

Loads business-rule limits from ledger_config.yaml and provides typed access
to each configuration section.
"""
from pathlib import Path
from typing import Any, List, Optional
from functools import lru_cache

import yaml


# Default config ships inside the package
DEFAULT_CONFIG_PATH = Path(__file__).parent / "ledger_config.yaml"


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""
    pass


class LedgerConfig:
    """
    Configuration manager for the staffing ledger.

    Loads YAML configuration and provides typed access to all sections.
    Use get_config() to obtain the singleton instance.
    """

    def __init__(self, config_path: Optional[Path] = None):
        self._config_path = config_path or DEFAULT_CONFIG_PATH
        self._config: dict = {}
        self._load()

    def _load(self) -> None:
        """Load configuration from YAML file."""
        if not self._config_path.exists():
            raise ConfigurationError(f"Config file not found: {self._config_path}")

        try:
            with open(self._config_path, 'r') as f:
                self._config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in config file: {e}")

        if not isinstance(self._config, dict):
            raise ConfigurationError("Config file must contain a YAML mapping")

    def reload(self) -> None:
        """Reload configuration from disk."""
        self._load()
        get_config.cache_clear()

    @property
    def version(self) -> str:
        """Configuration file version."""
        return self._config.get("version", "unknown")

    # =========================================================================
    # Hierarchy
    # =========================================================================

    @property
    def hierarchy(self) -> dict:
        """Cost-center hierarchy limits."""
        return self._config.get("hierarchy", {})

    @property
    def max_hierarchy_depth(self) -> int:
        """Deepest allowed cost-center level (root is level 1)."""
        return int(self.hierarchy.get("max_depth", 5))

    @property
    def max_walk_hops(self) -> int:
        """Hard cap on parent-chain walks over possibly corrupt data."""
        return int(self.hierarchy.get("max_walk_hops", 10))

    # =========================================================================
    # Cost Centers
    # =========================================================================

    @property
    def cost_center(self) -> dict:
        """Cost center field rules."""
        return self._config.get("cost_center", {})

    def get_field_rules(self, entity: str, field_name: str) -> dict:
        """
        Get length/pattern rules for an entity field.

        Args:
            entity: 'cost_center' or 'coa'
            field_name: e.g. 'code', 'name', 'description', 'manager'

        Returns:
            Dict with any of min_length, max_length, pattern
        """
        section = self._config.get(entity, {})
        return section.get(field_name, {})

    def get_reserved_codes(self, entity: str) -> List[str]:
        """Codes that may never be assigned for an entity type."""
        return [str(c) for c in self._config.get(entity, {}).get("reserved_codes", [])]

    def get_reserved_name_words(self, entity: str) -> List[str]:
        """Words that may not appear anywhere in an entity name."""
        return [str(w) for w in self._config.get(entity, {}).get("reserved_name_words", [])]

    @property
    def budget_limits(self) -> dict:
        """Monthly/yearly budget ceilings and cross-check tolerance."""
        return self.cost_center.get("budget", {
            "max_monthly": 999_999_999_999,
            "max_yearly": 9_999_999_999_999,
            "yearly_tolerance": 0.2,
        })

    @property
    def budget_period(self) -> dict:
        """Accepted budget period year range."""
        return self.cost_center.get("budget_period", {"min_year": 2020, "years_ahead": 10})

    # =========================================================================
    # Chart of Accounts
    # =========================================================================

    @property
    def coa_categories(self) -> List[str]:
        """Valid COA categories."""
        return self._config.get("coa", {}).get(
            "categories", ["Expense", "Revenue", "Asset", "Liability"]
        )

    # =========================================================================
    # Calculation
    # =========================================================================

    @property
    def calculation(self) -> dict:
        """Recalculation constants."""
        return self._config.get("calculation", {})

    @property
    def hours_per_day(self) -> float:
        """Working hours in one man-day."""
        return float(self.calculation.get("hours_per_day", 8))

    @property
    def min_months(self) -> int:
        """Floor applied to the month count when spreading project cost."""
        return int(self.calculation.get("min_months", 1))

    # =========================================================================
    # Budget
    # =========================================================================

    @property
    def budget(self) -> dict:
        """Budget capacity settings."""
        return self._config.get("budget", {})

    @property
    def default_budget_enforcement(self) -> str:
        return self.budget.get("default_enforcement", "warning")

    @property
    def warning_utilization(self) -> float:
        return float(self.budget.get("warning_utilization", 80))

    @property
    def critical_utilization(self) -> float:
        return float(self.budget.get("critical_utilization", 95))

    # =========================================================================
    # Storage
    # =========================================================================

    @property
    def schema_version(self) -> str:
        """Schema version written by the storage adapter."""
        return str(self._config.get("storage", {}).get("schema_version", "2.2.0"))

    def get(self, key: str, default: Any = None) -> Any:
        """Get a top-level config value by key."""
        return self._config.get(key, default)


@lru_cache(maxsize=1)
def get_config(config_path: Optional[str] = None) -> LedgerConfig:
    """
    Get the singleton configuration instance.

    Args:
        config_path: Optional path to config file. Only used on first call.

    Returns:
        LedgerConfig singleton instance
    """
    path = Path(config_path) if config_path else None
    return LedgerConfig(path)


def reload_config() -> LedgerConfig:
    """Reload configuration from disk and return new instance."""
    get_config.cache_clear()
    return get_config()
