"""
Chart of Accounts Entity - Accounting code allocations are tagged with.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from .base import parse_datetime, text


class COACategory(str, Enum):
    """Top-level account category."""
    EXPENSE = "Expense"
    REVENUE = "Revenue"
    ASSET = "Asset"
    LIABILITY = "Liability"


@dataclass(frozen=True)
class CoaSnapshot:
    """Copy of an account's identity captured onto an allocation."""

    id: str
    code: str
    name: str
    category: str = ""

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["CoaSnapshot"]:
        if not data:
            return None
        return cls(
            id=str(data["id"]),
            code=data.get("code", ""),
            name=data.get("name", ""),
            category=data.get("category", ""),
        )

    def to_dict(self) -> dict:
        return {'id': self.id, 'code': self.code, 'name': self.name, 'category': self.category}


@dataclass(frozen=True)
class ChartOfAccount:
    """
    Chart of Accounts entry.

    Category is held as the raw string so an invalid value can reach
    validation and be reported rather than failing on construction.
    """

    id: str
    code: str
    name: str
    category: str = COACategory.EXPENSE.value
    subcategory: str = ""
    description: str = ""
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def snapshot(self) -> CoaSnapshot:
        return CoaSnapshot(id=self.id, code=self.code, name=self.name, category=self.category)

    @classmethod
    def from_dict(cls, data: dict) -> "ChartOfAccount":
        return cls(
            id=str(data["id"]),
            code=text(data.get("code")),
            name=text(data.get("name")),
            category=text(data.get("category")),
            subcategory=text(data.get("subcategory")),
            description=text(data.get("description")),
            is_active=data.get("is_active", True),
            created_at=parse_datetime(data.get("created_at")),
            updated_at=parse_datetime(data.get("updated_at")),
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'code': self.code,
            'name': self.name,
            'category': self.category,
            'subcategory': self.subcategory,
            'description': self.description,
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
