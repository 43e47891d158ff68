"""Test module for the bounding volume hierarchy in avc.bvh

The tests are run using pytest.
These tests ensure that building, visiting and pairwise traversal of AvBVH
remain working correctly after changes and refactoring.
"""

import itertools

import pytest

from avc.bvh import AvBVH
from avc.geom import AvBox


def _grid_boxes():
    """Unit boxes on a 4x3 grid with gaps, plus one box spanning the first row."""
    boxes = [AvBox(2 * i, 2 * j, 2 * i + 1, 2 * j + 1) for j in range(3) for i in range(4)]
    boxes.append(AvBox(0.5, 0.5, 6.5, 0.6))
    return boxes


def _collect_nodes(bvh):
    nodes = []

    def callback(node, depth):
        nodes.append((node, depth))
        return True

    bvh.visit(callback)
    return nodes


###############################################################################
# Construction Tests
###############################################################################


class TestBVHConstruction:
    """Test building the hierarchy."""

    def test_empty_input_rejected(self):
        """A hierarchy needs at least one box."""
        with pytest.raises(ValueError):
            AvBVH([])

    def test_single_box(self):
        """A single box gives a single leaf root."""
        bvh = AvBVH([AvBox(0, 0, 1, 1)])

        assert bvh.root.is_leaf
        assert bvh.root.index == 0
        assert bvh.leaf_count == 1

    def test_every_index_is_one_leaf(self):
        """Each element index appears in exactly one leaf."""
        boxes = _grid_boxes()
        bvh = AvBVH(boxes)

        leaves = [node.index for node, _ in _collect_nodes(bvh) if node.is_leaf]

        assert sorted(leaves) == list(range(len(boxes)))
        assert bvh.leaf_count == len(boxes)

    def test_nodes_contain_children(self):
        """Internal node boxes contain their children's boxes, leaves carry the element box."""
        boxes = _grid_boxes()
        bvh = AvBVH(boxes)

        for node, _ in _collect_nodes(bvh):
            if node.is_leaf:
                assert node.bounding_box == boxes[node.index]
                continue
            for child in (node.left, node.right):
                assert node.bounding_box.union(child.bounding_box) == node.bounding_box

        assert bvh.bounding_box == AvBox(0, 0, 7, 5)


###############################################################################
# Visit Tests
###############################################################################


class TestBVHVisit:
    """Test depth-first traversal with pruning."""

    def test_depths_are_consistent(self):
        """The root has depth 0 and children are one level deeper."""
        nodes = _collect_nodes(AvBVH(_grid_boxes()))

        assert nodes[0][1] == 0
        assert max(depth for _, depth in nodes) >= 3

    def test_pruning(self):
        """Returning False skips the subtree."""
        bvh = AvBVH(_grid_boxes())
        visited = []

        def callback(node, depth):
            visited.append(node)
            return depth < 1

        bvh.visit(callback)

        assert len(visited) == 3

    def test_query_by_box(self):
        """Pruning by box overlap finds exactly the overlapping leaves."""
        boxes = _grid_boxes()
        bvh = AvBVH(boxes)
        query = AvBox(1.5, 1.5, 2.5, 2.5)
        found = []

        def callback(node, _depth):
            if not node.bounding_box.overlaps(query):
                return False
            if node.is_leaf:
                found.append(node.index)
            return True

        bvh.visit(callback)

        expected = [i for i, box in enumerate(boxes) if box.overlaps(query)]
        assert sorted(found) == expected


###############################################################################
# Pairwise Traversal Tests
###############################################################################


class TestBVHIntersects:
    """Test pairwise traversal of two hierarchies and of one hierarchy with itself."""

    def test_two_hierarchies(self):
        """All overlapping pairs are reported exactly once."""
        boxes1 = _grid_boxes()
        boxes2 = [AvBox(0.5 + 1.7 * i, 0.5, 1.2 + 1.7 * i, 4.5) for i in range(4)]
        pairs = []

        AvBVH(boxes1).intersects(AvBVH(boxes2), lambda i, j: pairs.append((i, j)))

        expected = [
            (i, j) for i, box1 in enumerate(boxes1) for j, box2 in enumerate(boxes2) if box1.overlaps(box2)
        ]
        assert len(pairs) == len(set(pairs))
        assert sorted(pairs) == sorted(expected)

    def test_self_pairs(self):
        """Self traversal reports each unordered pair of distinct leaves once."""
        boxes = _grid_boxes()
        bvh = AvBVH(boxes)
        pairs = []

        bvh.intersects(None, lambda i, j: pairs.append((i, j)))

        normalized = [tuple(sorted(pair)) for pair in pairs]
        expected = [(i, j) for i, j in itertools.combinations(range(len(boxes)), 2) if boxes[i].overlaps(boxes[j])]
        assert all(i != j for i, j in pairs)
        assert len(normalized) == len(set(normalized))
        assert sorted(normalized) == expected

    def test_self_is_same_as_none(self):
        """Passing the hierarchy itself behaves like passing None."""
        bvh = AvBVH(_grid_boxes())
        pairs_none = []
        pairs_self = []

        bvh.intersects(None, lambda i, j: pairs_none.append((i, j)))
        bvh.intersects(bvh, lambda i, j: pairs_self.append((i, j)))

        assert pairs_none == pairs_self

    def test_disjoint_hierarchies(self):
        """Hierarchies with disjoint roots produce no pairs."""
        pairs = []

        AvBVH(_grid_boxes()).intersects(AvBVH([AvBox(50, 50, 51, 51)]), lambda i, j: pairs.append((i, j)))

        assert pairs == []
