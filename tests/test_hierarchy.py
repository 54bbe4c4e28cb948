"""
Tests for the hierarchy analyzer.

Business rules:
- A parent must exist and be active
- No cycles
- At most 5 levels (a root is level 1)
- Walks terminate on corrupt cyclic data
"""
import pytest

from ledger.domain.entities import CostCenter
from ledger.domain.exceptions import HierarchyViolation
from ledger.domain.services.hierarchy import (
    build_tree,
    check_hierarchy,
    get_ancestors,
    get_children,
    get_descendants,
    get_hierarchy_depth,
    has_circular_reference,
    validate_parent_cost_center,
)


def center(center_id, parent_id=None, is_active=True):
    return CostCenter(
        id=center_id, code=center_id, name=f"Center {center_id}",
        manager="Jane Doe", parent_cost_center_id=parent_id, is_active=is_active,
    )


def chain(*ids):
    """Linear chain where each ID is the child of the previous one."""
    result = []
    parent = None
    for center_id in ids:
        result.append(center(center_id, parent))
        parent = center_id
    return result


class TestCircularReference:
    """Tests for has_circular_reference."""

    def test_no_cycle(self):
        """Test attaching a new leaf below a chain."""
        centers = chain("A", "B", "C")
        assert has_circular_reference(centers, "D", "C") is False

    def test_self_reference(self):
        """Test a center cannot be its own parent."""
        assert has_circular_reference(chain("A"), "A", "A") is True

    def test_missing_parent_is_circular(self):
        """Test a null parent counts as circular."""
        assert has_circular_reference(chain("A"), "A", None) is True

    def test_reparent_root_under_descendant(self):
        """Test making a root the child of its own grandchild."""
        centers = chain("A", "B", "C")
        assert has_circular_reference(centers, "A", "C") is True

    def test_terminates_on_corrupt_cycle(self):
        """Test the walk stops on pre-existing cycles not involving the center."""
        centers = [center("X", "Y"), center("Y", "X")]
        assert has_circular_reference(centers, "A", "X") is False


class TestDepth:
    """Tests for get_hierarchy_depth."""

    def test_root_is_level_one(self):
        """Test a root center has depth 1."""
        assert get_hierarchy_depth(chain("A"), "A") == 1

    def test_chain_depth(self):
        """Test depth counts every level up to the root."""
        centers = chain("A", "B", "C", "D", "E")
        assert get_hierarchy_depth(centers, "E") == 5
        assert get_hierarchy_depth(centers, "C") == 3

    def test_missing_parent_stops_walk(self):
        """Test a dangling parent stops the count."""
        centers = [center("B", "GONE")]
        assert get_hierarchy_depth(centers, "B") == 2

    def test_cycle_is_capped(self):
        """Test a cyclic chain stops after max_walk_hops."""
        centers = [center("X", "Y"), center("Y", "X")]
        assert get_hierarchy_depth(centers, "X") == 11


class TestParentValidation:
    """Tests for validate_parent_cost_center."""

    def test_null_parent_valid(self):
        """Test no parent is always valid."""
        assert validate_parent_cost_center([], None) is True

    def test_active_parent_valid(self):
        """Test an existing active parent."""
        assert validate_parent_cost_center(chain("A"), "A") is True

    def test_inactive_or_missing_parent_invalid(self):
        """Test inactive and unknown parents."""
        centers = [center("A", is_active=False)]
        assert validate_parent_cost_center(centers, "A") is False
        assert validate_parent_cost_center(centers, "Z") is False


class TestNavigation:
    """Tests for children, descendants, ancestors and tree building."""

    @pytest.fixture
    def forest(self):
        return [
            center("A"),
            center("B", "A"),
            center("C", "A"),
            center("D", "B"),
            center("R"),
        ]

    def test_children(self, forest):
        """Test direct children only."""
        assert [c.id for c in get_children(forest, "A")] == ["B", "C"]

    def test_descendants_breadth_first(self, forest):
        """Test descendants are listed level by level."""
        assert [c.id for c in get_descendants(forest, "A")] == ["B", "C", "D"]

    def test_ancestors(self, forest):
        """Test parent chain from nearest to root."""
        assert [c.id for c in get_ancestors(forest, "D")] == ["B", "A"]

    def test_build_tree(self, forest):
        """Test nested roots and children."""
        tree = build_tree(forest)
        assert [node['cost_center'].id for node in tree] == ["A", "R"]
        a_children = tree[0]['children']
        assert [node['cost_center'].id for node in a_children] == ["B", "C"]
        assert [node['cost_center'].id for node in a_children[0]['children']] == ["D"]

    def test_build_tree_dangling_parent_is_root(self):
        """Test centers with a missing parent are shown as roots."""
        tree = build_tree([center("B", "GONE")])
        assert tree[0]['cost_center'].id == "B"


class TestCheckHierarchy:
    """Tests for the create/update hierarchy gate."""

    def test_root_always_passes(self):
        """Test a center without a parent."""
        check_hierarchy(chain("A"), center("A"))

    def test_fifth_level_allowed(self):
        """Test a chain of five levels is accepted."""
        centers = chain("A", "B", "C", "D", "E")
        check_hierarchy(centers, centers[-1])

    def test_sixth_level_rejected(self):
        """Test A->B->C->D->E->F is rejected at F."""
        centers = chain("A", "B", "C", "D", "E", "F")
        with pytest.raises(HierarchyViolation) as exc_info:
            check_hierarchy(centers, centers[-1])
        assert "Maximum hierarchy depth of 5 levels exceeded" in exc_info.value.message
        assert exc_info.value.code == "HIERARCHY_VIOLATION"

    def test_moving_subtree_checks_descendants(self):
        """Test re-parenting a subtree counts the depth of its deepest descendant."""
        centers = chain("A", "B", "C") + chain("X", "Y", "Z")
        moved = center("X", "C")
        after = [moved if c.id == "X" else c for c in centers]
        with pytest.raises(HierarchyViolation) as exc_info:
            check_hierarchy(after, moved)
        assert "(would be 6)" in exc_info.value.message

    def test_inactive_parent_rejected(self):
        """Test an inactive parent."""
        centers = [center("A", is_active=False), center("B", "A")]
        with pytest.raises(HierarchyViolation, match="must exist and be active"):
            check_hierarchy(centers, centers[1])

    def test_cycle_rejected(self):
        """Test re-parenting a root under its descendant."""
        centers = chain("A", "B", "C")
        moved = center("A", "C")
        after = [moved] + centers[1:]
        with pytest.raises(HierarchyViolation, match="Circular reference"):
            check_hierarchy(after, moved)
