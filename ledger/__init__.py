"""
Staffing ledger core.

Validated state transitions and dependency-driven recalculation for team
members, cost tiers, cost centers, chart of accounts and cost allocations.
"""

__version__ = "1.0.0"
