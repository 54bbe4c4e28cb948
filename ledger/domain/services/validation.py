"""
Validation Library - Field rules for cost centers and chart of accounts.

Every validator is a pure function returning an ordered list of
human-readable violations (empty list = valid). Entity-level validators run
each field group independently and concatenate the results so a caller can
report every problem at once.

Limits, patterns and reserved words come from ledger_config.yaml.
"""
import math
import re
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Any, Iterable, List, Optional

from ledger.config import get_config
from ledger.domain.entities import ChartOfAccount, CostCenter
from ledger.domain.exceptions import ValidationFailure


# =============================================================================
# Shared Helpers
# =============================================================================

def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def _check_length(value: str, label: str, rules: dict) -> List[str]:
    errors = []
    min_length = rules.get("min_length")
    max_length = rules.get("max_length")
    if min_length is not None and len(value) < min_length:
        errors.append(f"{label} must be at least {min_length} characters long")
    if max_length is not None and len(value) > max_length:
        errors.append(f"{label} must not exceed {max_length} characters")
    return errors


def _matches(value: str, rules: dict) -> bool:
    pattern = rules.get("pattern")
    return pattern is None or re.fullmatch(pattern, value) is not None


def _contains_reserved_word(value: str, words: Iterable[str]) -> bool:
    upper = value.upper()
    return any(word in upper for word in words)


def _to_number(value: Any) -> Optional[float]:
    """Coerce a budget input; None for absent, NaN for unparseable."""
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def raise_if_invalid(errors: List[str], entity_type: str) -> None:
    """
    Raise a single ValidationFailure carrying every violation.

    Raises:
        ValidationFailure: If errors is non-empty
    """
    if errors:
        raise ValidationFailure(errors, entity_type=entity_type)


# =============================================================================
# Cost Center Fields
# =============================================================================

def validate_cost_center_code(
    code: Optional[str],
    existing: Iterable[CostCenter] = (),
    exclude_id: Optional[str] = None,
) -> List[str]:
    """
    Validate a cost center code.

    Args:
        code: Raw code as entered
        existing: Committed cost centers for the uniqueness check
        exclude_id: ID of the record being updated (excluded from uniqueness)

    Returns:
        List of violations
    """
    if _is_blank(code):
        return ["Code is required"]

    config = get_config()
    rules = config.get_field_rules("cost_center", "code")
    trimmed = str(code).strip().upper()

    errors = _check_length(trimmed, "Code", rules)
    if not _matches(trimmed, rules):
        errors.append("Code must contain only uppercase letters, numbers, underscores, and hyphens")

    if trimmed in config.get_reserved_codes("cost_center"):
        errors.append(f'"{trimmed}" is a reserved word and cannot be used as a code')

    duplicate = any(
        str(cc.code).strip().upper() == trimmed and cc.id != exclude_id
        for cc in existing
    )
    if duplicate:
        errors.append("Code must be unique")

    return errors


def validate_cost_center_name(name: Optional[str]) -> List[str]:
    """Validate a cost center name."""
    if _is_blank(name):
        return ["Name is required"]

    config = get_config()
    rules = config.get_field_rules("cost_center", "name")
    trimmed = str(name).strip()

    errors = _check_length(trimmed, "Name", rules)
    if not _matches(trimmed, rules):
        errors.append(
            "Name contains invalid characters. Only letters, numbers, spaces, "
            "and common punctuation are allowed"
        )

    reserved = config.get_reserved_name_words("cost_center")
    if _contains_reserved_word(trimmed, reserved):
        errors.append(f"Name cannot contain reserved words ({', '.join(reserved)})")

    return errors


def validate_description(description: Optional[str], entity: str = "cost_center") -> List[str]:
    """Validate an optional description for a cost center or COA entry."""
    if not description:
        return []

    rules = get_config().get_field_rules(entity, "description")
    trimmed = str(description).strip()

    errors = []
    max_length = rules.get("max_length")
    if max_length is not None and len(trimmed) > max_length:
        errors.append(f"Description must not exceed {max_length} characters")
    if trimmed and not _matches(trimmed, rules):
        errors.append("Description contains invalid characters")
    return errors


def validate_cost_center_description(description: Optional[str]) -> List[str]:
    return validate_description(description, "cost_center")


def validate_manager_name(manager: Optional[str]) -> List[str]:
    """
    Validate a cost center manager name.

    Managers may be external to the team, so no membership check is made.
    """
    if _is_blank(manager):
        return ["Manager is required"]

    rules = get_config().get_field_rules("cost_center", "manager")
    trimmed = str(manager).strip()

    errors = _check_length(trimmed, "Manager name", rules)
    if not _matches(trimmed, rules):
        errors.append(
            "Manager name contains invalid characters. Only letters, spaces, "
            "hyphens, and apostrophes are allowed"
        )
    return errors


def validate_budgets(monthly_budget: Any, yearly_budget: Any) -> List[str]:
    """
    Validate optional monthly/yearly budgets and their consistency.

    Yearly must fall within the configured tolerance of monthly x 12 when
    both are given.
    """
    limits = get_config().budget_limits
    errors = []

    monthly = _to_number(monthly_budget)
    if monthly is not None:
        if math.isnan(monthly) or monthly < 0:
            errors.append("Monthly budget must be a positive number")
        elif monthly > limits["max_monthly"]:
            errors.append("Monthly budget exceeds maximum limit (999 billion IDR)")

    yearly = _to_number(yearly_budget)
    if yearly is not None:
        if math.isnan(yearly) or yearly < 0:
            errors.append("Yearly budget must be a positive number")
        elif yearly > limits["max_yearly"]:
            errors.append("Yearly budget exceeds maximum limit (9.9 trillion IDR)")

    # Zero budgets mean "not set" for the cross-check
    if monthly and yearly and not math.isnan(monthly) and not math.isnan(yearly):
        expected = monthly * 12
        tolerance = limits["yearly_tolerance"]
        if yearly < expected * (1 - tolerance) or yearly > expected * (1 + tolerance):
            errors.append("Yearly budget should be approximately 12 times the monthly budget")

    return errors


def validate_budget_period(budget_period: Optional[str], today: Optional[date] = None) -> List[str]:
    """Validate an optional 4-digit budget year."""
    if _is_blank(budget_period):
        return []

    period_rules = get_config().budget_period
    trimmed = str(budget_period).strip()
    if not re.fullmatch(r"\d{4}", trimmed):
        return ["Budget period must be a 4-digit year (e.g., 2024)"]

    current_year = (today or date.today()).year
    min_year = period_rules["min_year"]
    max_year = current_year + period_rules["years_ahead"]
    year = int(trimmed)
    if year < min_year or year > max_year:
        return [f"Budget period must be between {min_year} and {max_year}"]
    return []


def validate_cost_center(
    center: CostCenter,
    existing: Iterable[CostCenter] = (),
    exclude_id: Optional[str] = None,
    today: Optional[date] = None,
) -> List[str]:
    """
    Run every cost center field rule.

    Args:
        center: Candidate record (raw, not yet normalized)
        existing: Committed cost centers
        exclude_id: Own ID when updating
        today: Reference date for the budget period range

    Returns:
        All violations in field order
    """
    return (
        validate_cost_center_code(center.code, existing, exclude_id)
        + validate_cost_center_name(center.name)
        + validate_cost_center_description(center.description)
        + validate_manager_name(center.manager)
        + validate_budgets(center.monthly_budget, center.yearly_budget)
        + validate_budget_period(center.budget_period, today)
    )


def normalize_cost_center(center: CostCenter) -> CostCenter:
    """Trim text fields and uppercase the code of a validated record."""
    return replace(
        center,
        code=str(center.code).strip().upper(),
        name=str(center.name).strip(),
        manager=str(center.manager).strip(),
        description=str(center.description or "").strip(),
        budget_period=str(center.budget_period).strip() if center.budget_period else None,
    )


# =============================================================================
# Chart of Accounts Fields
# =============================================================================

def validate_coa_code(
    code: Optional[str],
    existing: Iterable[ChartOfAccount] = (),
    exclude_id: Optional[str] = None,
) -> List[str]:
    """Validate a numeric account code."""
    if _is_blank(code):
        return ["Code is required"]

    config = get_config()
    rules = config.get_field_rules("coa", "code")
    trimmed = str(code).strip()

    errors = _check_length(trimmed, "Code", rules)
    if not _matches(trimmed, rules):
        errors.append("Code must contain only numbers")

    if trimmed in config.get_reserved_codes("coa"):
        errors.append(f'"{trimmed}" is a reserved code and cannot be used')

    duplicate = any(
        str(coa.code).strip() == trimmed and coa.id != exclude_id
        for coa in existing
    )
    if duplicate:
        errors.append("Code must be unique")

    return errors


def validate_coa_name(name: Optional[str]) -> List[str]:
    """Validate an account name."""
    if _is_blank(name):
        return ["Name is required"]

    config = get_config()
    rules = config.get_field_rules("coa", "name")
    trimmed = str(name).strip()

    errors = _check_length(trimmed, "Name", rules)
    if not _matches(trimmed, rules):
        errors.append(
            "Name contains invalid characters. Only letters, numbers, spaces, "
            "and common punctuation are allowed"
        )

    reserved = config.get_reserved_name_words("coa")
    if _contains_reserved_word(trimmed, reserved):
        errors.append(f"Name cannot contain reserved words ({', '.join(reserved)})")

    return errors


def validate_coa_description(description: Optional[str]) -> List[str]:
    return validate_description(description, "coa")


def validate_coa_category(category: Optional[str]) -> List[str]:
    if _is_blank(category):
        return ["Category is required"]

    categories = get_config().coa_categories
    if category not in categories:
        return [f"Category must be one of: {', '.join(categories)}"]
    return []


def validate_coa(
    account: ChartOfAccount,
    existing: Iterable[ChartOfAccount] = (),
    exclude_id: Optional[str] = None,
) -> List[str]:
    """Run every COA field rule and return all violations."""
    return (
        validate_coa_code(account.code, existing, exclude_id)
        + validate_coa_name(account.name)
        + validate_coa_description(account.description)
        + validate_coa_category(account.category)
    )


def normalize_coa(account: ChartOfAccount) -> ChartOfAccount:
    return replace(
        account,
        code=str(account.code).strip(),
        name=str(account.name).strip(),
        description=str(account.description or "").strip(),
    )


def stamp_timestamps(record, previous=None, now: Optional[datetime] = None):
    """
    Set created_at/updated_at on a record about to be committed.

    created_at is kept from the previous version on update, or from the
    record itself when supplied on create.
    """
    now = now or datetime.now(timezone.utc)
    if previous is not None:
        created_at = previous.created_at or now
    else:
        created_at = record.created_at or now
    return replace(record, created_at=created_at, updated_at=now)
