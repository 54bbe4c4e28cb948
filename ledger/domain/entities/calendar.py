"""
Calendar Entities - Holidays and member leaves.

Both feed the working-day calendar used to compute task end dates.
"""
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import List

from .base import parse_date


class HolidayCategory(str, Enum):
    """Kind of non-working day."""
    NATIONAL = "national"
    MASS_LEAVE = "mass-leave"


@dataclass(frozen=True)
class Holiday:
    """Company-wide non-working day."""

    id: str
    date: date
    name: str
    category: HolidayCategory = HolidayCategory.NATIONAL

    @property
    def year(self) -> int:
        return self.date.year

    @classmethod
    def from_dict(cls, data: dict) -> "Holiday":
        raw_category = data.get("category") or data.get("type") or HolidayCategory.NATIONAL.value
        if raw_category in ("collective", "mass_leave"):
            raw_category = HolidayCategory.MASS_LEAVE.value
        return cls(
            id=str(data["id"]),
            date=parse_date(data["date"]),
            name=data.get("name", ""),
            category=HolidayCategory(raw_category),
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'date': self.date.isoformat(),
            'name': self.name,
            'category': self.category.value,
            'year': self.year,
        }


@dataclass(frozen=True)
class Leave:
    """
    Leave taken by a single member over an inclusive date range.

    Attributes:
        id: Unique identifier
        member_id: Reference to the team member
        member_name: Name snapshot used to match allocations by resource
        start_date: First day of leave
        end_date: Last day of leave (inclusive)
    """

    id: str
    member_id: str
    member_name: str
    start_date: date
    end_date: date

    def dates(self) -> List[date]:
        """Every calendar day covered by the leave."""
        span = (self.end_date - self.start_date).days
        return [self.start_date + timedelta(days=offset) for offset in range(span + 1)]

    @classmethod
    def from_dict(cls, data: dict) -> "Leave":
        start = parse_date(data.get("start_date") or data.get("date"))
        end = parse_date(data.get("end_date")) or start
        return cls(
            id=str(data["id"]),
            member_id=str(data.get("member_id", "")),
            member_name=data.get("member_name", ""),
            start_date=start,
            end_date=end,
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'member_id': self.member_id,
            'member_name': self.member_name,
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
        }
