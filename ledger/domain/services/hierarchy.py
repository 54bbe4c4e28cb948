"""
Hierarchy Analyzer - Graph functions over the cost-center parent relation.

All walks are bounded (visited set or hop cap) so they terminate even on
corrupt data containing cycles.
"""
from typing import Dict, Iterable, List, Optional, Sequence

from ledger.config import get_config
from ledger.domain.entities import CostCenter
from ledger.domain.exceptions import HierarchyViolation


def _index(centers: Iterable[CostCenter]) -> Dict[str, CostCenter]:
    return {cc.id: cc for cc in centers}


def has_circular_reference(
    centers: Iterable[CostCenter],
    center_id: str,
    parent_id: Optional[str],
) -> bool:
    """
    Check whether assigning parent_id to center_id would create a cycle.

    A missing parent or a self-reference counts as circular; callers only
    invoke this when a parent is being set.

    Args:
        centers: Cost centers to walk
        center_id: Center receiving the parent
        parent_id: Proposed parent

    Returns:
        True if the parent chain from parent_id reaches center_id
    """
    if not parent_id or parent_id == center_id:
        return True

    by_id = _index(centers)
    visited = set()
    current_id = parent_id

    while current_id and current_id not in visited:
        visited.add(current_id)
        current = by_id.get(current_id)
        if current is None:
            break
        if current.parent_cost_center_id == center_id:
            return True
        current_id = current.parent_cost_center_id

    return False


def get_hierarchy_depth(centers: Iterable[CostCenter], center_id: str) -> int:
    """
    Count the levels from a center up to its root (a root has depth 1).

    The walk stops at a missing parent or after max_walk_hops hops.
    """
    by_id = _index(centers)
    max_hops = get_config().max_walk_hops

    depth = 1
    current = by_id.get(center_id)
    while current is not None and current.parent_cost_center_id and depth <= max_hops:
        depth += 1
        current = by_id.get(current.parent_cost_center_id)

    return depth


def validate_parent_cost_center(centers: Iterable[CostCenter], parent_id: Optional[str]) -> bool:
    """A null parent is valid; otherwise it must exist and be active."""
    if not parent_id:
        return True
    parent = _index(centers).get(parent_id)
    return parent is not None and parent.is_active


def get_children(centers: Iterable[CostCenter], center_id: str) -> List[CostCenter]:
    return [cc for cc in centers if cc.parent_cost_center_id == center_id]


def get_descendants(centers: Sequence[CostCenter], center_id: str) -> List[CostCenter]:
    """All centers below center_id, breadth-first."""
    result: List[CostCenter] = []
    seen = {center_id}
    frontier = [center_id]
    while frontier:
        next_frontier = []
        for parent_id in frontier:
            for child in get_children(centers, parent_id):
                if child.id in seen:
                    continue
                seen.add(child.id)
                result.append(child)
                next_frontier.append(child.id)
        frontier = next_frontier
    return result


def get_ancestors(centers: Iterable[CostCenter], center_id: str) -> List[CostCenter]:
    """Parent chain from the immediate parent up to the root."""
    by_id = _index(centers)
    ancestors: List[CostCenter] = []
    visited = {center_id}
    current = by_id.get(center_id)
    while current is not None and current.parent_cost_center_id:
        parent_id = current.parent_cost_center_id
        if parent_id in visited:
            break
        visited.add(parent_id)
        current = by_id.get(parent_id)
        if current is not None:
            ancestors.append(current)
    return ancestors


def build_tree(centers: Sequence[CostCenter]) -> List[dict]:
    """
    Build a nested roots -> children structure for display.

    Centers whose parent is missing are treated as roots.

    Returns:
        List of {'cost_center': CostCenter, 'children': [...]} nodes
    """
    ids = {cc.id for cc in centers}

    def node(center: CostCenter, path: frozenset) -> dict:
        children = [
            node(child, path | {child.id})
            for child in get_children(centers, center.id)
            if child.id not in path
        ]
        return {'cost_center': center, 'children': children}

    roots = [
        cc for cc in centers
        if not cc.parent_cost_center_id or cc.parent_cost_center_id not in ids
    ]
    return [node(root, frozenset({root.id})) for root in roots]


def check_hierarchy(centers_after: Sequence[CostCenter], center: CostCenter) -> None:
    """
    Confirm a cost center create/update keeps the forest valid.

    The tree is inspected as it would be after the change: the edited
    center and every descendant must stay within max_depth.

    Args:
        centers_after: Cost center collection with the change applied
        center: The created/updated center

    Raises:
        HierarchyViolation: Invalid or inactive parent, cycle, or excessive depth
    """
    parent_id = center.parent_cost_center_id
    if not parent_id:
        return

    if not validate_parent_cost_center(centers_after, parent_id):
        raise HierarchyViolation(
            f"Parent cost center '{parent_id}' must exist and be active",
            cost_center_id=center.id,
        )

    if has_circular_reference(centers_after, center.id, parent_id):
        raise HierarchyViolation(
            "Circular reference detected in cost center hierarchy",
            cost_center_id=center.id,
        )

    max_depth = get_config().max_hierarchy_depth
    subtree = [center] + get_descendants(centers_after, center.id)
    deepest = max(get_hierarchy_depth(centers_after, cc.id) for cc in subtree)
    if deepest > max_depth:
        raise HierarchyViolation(
            f"Maximum hierarchy depth of {max_depth} levels exceeded (would be {deepest})",
            cost_center_id=center.id,
        )
