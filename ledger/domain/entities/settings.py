"""
Settings - Application-wide preferences held alongside the collections.
"""
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class CostCenterSettings(BaseModel):
    """Cost-center policy toggles."""
    model_config = ConfigDict(frozen=True)

    require_manager_approval: bool = False
    allow_bulk_assignment: bool = True
    track_assignment_history: bool = True


class Settings(BaseModel):
    """Currency, theme, per-role cost tracking and cost-center policy."""
    model_config = ConfigDict(frozen=True)

    currency: str = "IDR"
    theme: str = "dark"
    cost_tracking: Dict[str, bool] = Field(default_factory=dict)
    cost_center_settings: CostCenterSettings = Field(default_factory=CostCenterSettings)

    def merged(self, changes: Dict[str, Any]) -> "Settings":
        """
        Shallow-merge top-level keys into a new validated Settings.

        Args:
            changes: Top-level keys to replace

        Returns:
            New Settings instance
        """
        return Settings.model_validate({**self.model_dump(), **changes})
