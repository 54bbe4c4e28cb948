"""
Domain Entities - Immutable ledger records.
"""

from .team_member import TeamMember, RoleType
from .work import Phase, Task, TaskEstimate, ComplexityLevel
from .cost import Cost
from .calendar import Holiday, HolidayCategory, Leave
from .cost_center import CostCenter, CostCenterSnapshot, BudgetEnforcement
from .coa import ChartOfAccount, CoaSnapshot, COACategory
from .allocation import Allocation, Plan, WorkCategory
from .settings import Settings, CostCenterSettings

__all__ = [
    'TeamMember', 'RoleType',
    'Phase', 'Task', 'TaskEstimate', 'ComplexityLevel',
    'Cost',
    'Holiday', 'HolidayCategory', 'Leave',
    'CostCenter', 'CostCenterSnapshot', 'BudgetEnforcement',
    'ChartOfAccount', 'CoaSnapshot', 'COACategory',
    'Allocation', 'Plan', 'WorkCategory',
    'Settings', 'CostCenterSettings',
]
