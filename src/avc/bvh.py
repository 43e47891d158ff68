"""Bounding volume hierarchy over the segment boxes of a path component."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from avc.geom import AvBox

logger = logging.getLogger(__name__)


###############################################################################
# AvBVHNode
###############################################################################


@dataclass(frozen=True, eq=False)
class AvBVHNode:
    """
    Node of an AvBVH: either a leaf referencing one element index, or an internal
    node with two children whose boxes are contained in its own box.

    Attributes:
        bounding_box: box around everything below this node
        index: element index for leaves, None for internal nodes
        left: first child of internal nodes
        right: second child of internal nodes
    """

    bounding_box: AvBox
    index: Optional[int] = None
    left: Optional[AvBVHNode] = None
    right: Optional[AvBVHNode] = None

    @property
    def is_leaf(self) -> bool:
        """bool: True if this node references a single element."""
        return self.index is not None


VisitCallback = Callable[[AvBVHNode, int], bool]
PairCallback = Callable[[int, int], None]


###############################################################################
# AvBVH
###############################################################################


class AvBVH:
    """
    Binary tree built once over an ordered sequence of boxes.

    Every leaf holds exactly one index into the box sequence, so the hierarchy relates
    to the owner's elements by index only. The tree is never modified after construction.
    """

    def __init__(self, boxes: Sequence[AvBox]):
        """
        Build the hierarchy by recursively splitting at the median along the longest axis.

        Args:
            boxes: one box per element (must not be empty)
        """
        if not boxes:
            raise ValueError("a bounding volume hierarchy needs at least one box")
        self._leaf_count = len(boxes)
        self._root = self._build(list(boxes), list(range(len(boxes))))
        logger.debug("built BVH over %d boxes", self._leaf_count)

    @classmethod
    def _build(cls, boxes: List[AvBox], indices: List[int]) -> AvBVHNode:
        if len(indices) == 1:
            return AvBVHNode(bounding_box=boxes[indices[0]], index=indices[0])

        node_box = AvBox.empty()
        for index in indices:
            node_box = node_box.union(boxes[index])

        # sort by box center along the longest axis, ties keep element order
        axis = 0 if node_box.width >= node_box.height else 1
        ordered = sorted(indices, key=lambda i: (boxes[i].centroid[axis], i))
        half = len(ordered) // 2
        left = cls._build(boxes, ordered[:half])
        right = cls._build(boxes, ordered[half:])
        return AvBVHNode(bounding_box=left.bounding_box.union(right.bounding_box), left=left, right=right)

    @property
    def root(self) -> AvBVHNode:
        """AvBVHNode: the root node."""
        return self._root

    @property
    def bounding_box(self) -> AvBox:
        """AvBox: box around all elements."""
        return self._root.bounding_box

    @property
    def leaf_count(self) -> int:
        """int: number of elements (leaves)."""
        return self._leaf_count

    def visit(self, callback: VisitCallback) -> None:
        """
        Depth-first traversal.

        _callback(node, depth)_ is called for every reached node; returning False prunes the
        node's subtree (children are not visited).
        """
        stack = [(self._root, 0)]
        while stack:
            node, depth = stack.pop()
            if not callback(node, depth) or node.is_leaf:
                continue
            # right is pushed first so that left subtrees are visited first
            stack.append((node.right, depth + 1))
            stack.append((node.left, depth + 1))

    def intersects(self, other: Optional[AvBVH], callback: PairCallback) -> None:
        """
        Report all leaf pairs with overlapping boxes.

        _callback(index_self, index_other)_ is called once per pair. If _other_ is None or this
        same hierarchy, every unordered pair of distinct leaves is reported exactly once and no
        leaf is paired with itself.
        """
        if other is None or other is self:
            self._intersects_self(self._root, callback)
        else:
            self._intersects_nodes(self._root, other.root, callback)

    @classmethod
    def _intersects_nodes(cls, node1: AvBVHNode, node2: AvBVHNode, callback: PairCallback) -> None:
        if not node1.bounding_box.overlaps(node2.bounding_box):
            return
        if node1.is_leaf and node2.is_leaf:
            callback(node1.index, node2.index)
        elif node2.is_leaf or (not node1.is_leaf and node1.bounding_box.area >= node2.bounding_box.area):
            cls._intersects_nodes(node1.left, node2, callback)
            cls._intersects_nodes(node1.right, node2, callback)
        else:
            cls._intersects_nodes(node1, node2.left, callback)
            cls._intersects_nodes(node1, node2.right, callback)

    @classmethod
    def _intersects_self(cls, node: AvBVHNode, callback: PairCallback) -> None:
        if node.is_leaf:
            return
        cls._intersects_self(node.left, callback)
        cls._intersects_self(node.right, callback)
        cls._intersects_nodes(node.left, node.right, callback)
