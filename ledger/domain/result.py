"""
Result type for state transitions.

Transitions return Ok(value) on commit or Err(error) on rejection, so callers
can branch on the outcome instead of intercepting exceptions.
"""
from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from .exceptions import DomainError


T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful transition carrying the new value."""

    value: T

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    """Rejected transition carrying the domain error."""

    error: DomainError

    @property
    def is_ok(self) -> bool:
        return False

    def unwrap(self):
        raise self.error


Result = Union[Ok[T], Err]
