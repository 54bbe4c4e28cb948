"""
Domain Services - Validation, hierarchy, recalculation, budget and reporting.
"""

from .budget import BudgetService, BudgetPeriod, BudgetValidation, BudgetValidationResult, BudgetHealth
from .change_detector import (
    AllocationChange,
    AllocationChangeReport,
    detect_allocation_changes,
    has_allocation_changes,
)
from .hierarchy import (
    build_tree,
    check_hierarchy,
    get_hierarchy_depth,
    has_circular_reference,
    validate_parent_cost_center,
)
from .recalculation import compute_plan, recalculate_allocations

__all__ = [
    'BudgetService',
    'BudgetPeriod',
    'BudgetValidation',
    'BudgetValidationResult',
    'BudgetHealth',
    'AllocationChange',
    'AllocationChangeReport',
    'detect_allocation_changes',
    'has_allocation_changes',
    'build_tree',
    'check_hierarchy',
    'get_hierarchy_depth',
    'has_circular_reference',
    'validate_parent_cost_center',
    'compute_plan',
    'recalculate_allocations',
]
