"""
Domain Exceptions for the Staffing Ledger.

Custom exceptions enforcing business rules:
- Field validation (format, length, reserved words, uniqueness)
- Cost-center hierarchy integrity
- Referential integrity on delete
"""
from typing import List, Sequence


VIOLATION_SEPARATOR = "; "


class DomainError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


# =============================================================================
# Validation Exceptions
# =============================================================================

class ValidationFailure(DomainError):
    """
    Raised when one or more field rules are violated on create/update.

    The message carries every violation found, joined with '; ', so callers
    can show all problems at once.
    """

    def __init__(self, violations: Sequence[str], entity_type: str = "record"):
        self.violations: List[str] = list(violations)
        self.entity_type = entity_type
        message = VIOLATION_SEPARATOR.join(self.violations)
        super().__init__(message, code="VALIDATION_FAILED")


# =============================================================================
# Hierarchy Exceptions
# =============================================================================

class HierarchyViolation(DomainError):
    """Raised on an invalid/inactive parent, a cycle, or excessive depth."""

    def __init__(self, reason: str, cost_center_id: str = ""):
        super().__init__(reason, code="HIERARCHY_VIOLATION")
        self.cost_center_id = cost_center_id


# =============================================================================
# Referential Integrity Exceptions
# =============================================================================

class ReferentialIntegrityViolation(DomainError):
    """Raised when a delete is blocked by dependent records."""

    def __init__(self, reason: str, record_id: str = ""):
        super().__init__(reason, code="REFERENTIAL_INTEGRITY")
        self.record_id = record_id


class RecordNotFoundError(DomainError):
    """Raised when a record lookup by ID fails."""

    def __init__(self, collection: str, record_id: str):
        message = f"{collection} record with id '{record_id}' not found"
        super().__init__(message, code="RECORD_NOT_FOUND")
        self.collection = collection
        self.record_id = record_id
