"""Path components: connected chains of curves with BVH accelerated geometric queries."""

from __future__ import annotations

import logging
import threading
from typing import List, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from avc.bvh import AvBVH, AvBVHNode
from avc.common import AvPathCmds, FillRule, InvalidCurveDataError, Point
from avc.consts import DEFAULT_INTERSECTION_THRESHOLD, ENDPOINT_SNAP_EPSILON
from avc.curve import AvCurve, AvLine, create_curve
from avc.geom import AvBox, GeomMath
from avc.svgpath import AvSvgPath

logger = logging.getLogger(__name__)


class AvIndexedLocation(NamedTuple):
    """Location on a path component: element (curve) index and parameter t in [0, 1]."""

    element_index: int
    t: float


class AvPathComponentIntersection(NamedTuple):
    """Intersection given as one location per intersected component."""

    location1: AvIndexedLocation
    location2: AvIndexedLocation


###############################################################################
# AvPathComponent
###############################################################################


class AvPathComponent:
    """
    Ordered, non-empty chain of curves where each curve ends where the next one starts.

    The component owns a bounding volume hierarchy over its curves' boxes. It is built
    lazily on first use (thread-safe, exactly once) and never changes afterwards, like all
    other state of a component.

    Joint convention: a point where curve k ends and curve k+1 starts is reported as t=1 on
    curve k. Intersections at t=0 are dropped since they are found at t=1 of the neighbor.
    """

    def __init__(self, curves: Sequence[AvCurve]):
        """
        Args:
            curves: the curves of the component, at least one

        Raises:
            ValueError: if _curves_ is empty
        """
        if len(curves) == 0:
            raise ValueError("Path components are by definition non-empty")
        self._curves: Tuple[AvCurve, ...] = tuple(curves)
        self._bvh: Optional[AvBVH] = None  # caching variable
        self._svg_path: Optional[str] = None  # caching variable
        self._lock = threading.Lock()

    @property
    def curves(self) -> Tuple[AvCurve, ...]:
        """The curves of this component."""
        return self._curves

    @property
    def bvh(self) -> AvBVH:
        """AvBVH: hierarchy over the curves' bounding boxes, built on first access."""
        if self._bvh is None:
            with self._lock:
                if self._bvh is None:
                    self._bvh = AvBVH([curve.bounding_box for curve in self._curves])
        return self._bvh

    @property
    def start_point(self) -> Point:
        """Point: start of the first curve."""
        return self._curves[0].start_point

    @property
    def end_point(self) -> Point:
        """Point: end of the last curve."""
        return self._curves[-1].end_point

    @property
    def is_closed(self) -> bool:
        """bool: True if the last curve ends exactly where the first one starts."""
        return self.start_point == self.end_point

    @property
    def bounding_box(self) -> AvBox:
        """AvBox: box around all curves."""
        return self.bvh.bounding_box

    @property
    def length(self) -> float:
        """float: sum of the curves' arc lengths."""
        return sum(curve.length() for curve in self._curves)

    def __len__(self) -> int:
        return len(self._curves)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AvPathComponent):
            return NotImplemented
        return self._curves == other._curves

    def __hash__(self) -> int:
        return hash(self._curves)

    def __repr__(self) -> str:
        return f"AvPathComponent({', '.join(str(curve) for curve in self._curves)})"

    def point(self, location: AvIndexedLocation) -> Point:
        """The point at the given indexed location."""
        return self._curves[location.element_index].compute(location.t)

    ###########################################################################
    # Intersections
    ###########################################################################

    def intersects(
        self, other: AvPathComponent, threshold: float = DEFAULT_INTERSECTION_THRESHOLD
    ) -> List[AvPathComponentIntersection]:
        """
        Intersections between this component and a different component _other_.

        Candidate curve pairs come from the pairwise BVH traversal; hits at t=0 on either
        curve are dropped (they are reported at t=1 of the preceding curve).

        Raises:
            ValueError: if _other_ is this component (use `self_intersects`)
        """
        if other is self:
            raise ValueError("use self_intersects() for self intersection testing")
        intersections: List[AvPathComponentIntersection] = []
        candidates = 0

        def on_pair(index1: int, index2: int) -> None:
            nonlocal candidates
            candidates += 1
            for hit in self._curves[index1].intersects(other.curves[index2], threshold):
                if hit.t1 == 0.0 or hit.t2 == 0.0:
                    continue
                intersections.append(
                    AvPathComponentIntersection(AvIndexedLocation(index1, hit.t1), AvIndexedLocation(index2, hit.t2))
                )

        self.bvh.intersects(other.bvh, on_pair)
        logger.debug("%d candidate pairs, %d intersections", candidates, len(intersections))
        return sorted(intersections)

    def self_intersects(self, threshold: float = DEFAULT_INTERSECTION_THRESHOLD) -> List[AvPathComponentIntersection]:
        """
        Intersections of this component with itself.

        Every pair of distinct curves (i, j) is tested once and reported with i < j. Neighbors
        (j == i+1) whose boxes only touch in their joint are skipped; for other neighbors the
        joint itself (t=1 on i) is dropped. Loops inside a single curve are not reported.
        """
        intersections: List[AvPathComponentIntersection] = []
        count = len(self._curves)

        def on_pair(index_a: int, index_b: int) -> None:
            index1, index2 = min(index_a, index_b), max(index_a, index_b)
            curve1 = self._curves[index1]
            curve2 = self._curves[index2]
            are_neighbors = index1 == (index2 - 1) % count
            if are_neighbors and self._neighbors_intersect_only_trivially(curve1, curve2):
                return
            for hit in curve1.intersects(curve2, threshold):
                if are_neighbors and hit.t1 == 1.0:
                    continue
                if hit.t1 == 0.0 or hit.t2 == 0.0:
                    continue
                intersections.append(
                    AvPathComponentIntersection(AvIndexedLocation(index1, hit.t1), AvIndexedLocation(index2, hit.t2))
                )

        self.bvh.intersects(None, on_pair)
        return sorted(intersections)

    @staticmethod
    def _neighbors_intersect_only_trivially(curve1: AvCurve, curve2: AvCurve) -> bool:
        """
        True if _curve2_ can only meet _curve1_ in their joint: the boxes touch in a zero-area
        region and no further control point of _curve2_ lies in _curve1_'s box.
        """
        box = curve1.bounding_box
        if box.intersection(curve2.bounding_box).area != 0.0:
            return False
        return not any(box.contains(point) for point in curve2.points[1:])

    def intersects_line(self, line: AvLine) -> List[AvIndexedLocation]:
        """
        Locations where _line_ meets this component's curves.

        Hits within ENDPOINT_SNAP_EPSILON of a curve end are reported at exactly t=0 or t=1.
        The pruning box is grown by the same relative tolerance, so a hit snapped away from
        one curve's end is still found as the snapped start of the next curve.
        """
        component_box = self.bounding_box
        line_box = line.bounding_box
        scale = max(1.0, component_box.width + component_box.height, line_box.width + line_box.height)
        line_box = line_box.expanded(4.0 * ENDPOINT_SNAP_EPSILON * scale)
        results: List[AvIndexedLocation] = []

        def predicate(node: AvBVHNode, _depth: int) -> bool:
            if not node.bounding_box.overlaps(line_box):
                return False
            if node.is_leaf:
                curve = self._curves[node.index]
                results.extend(AvIndexedLocation(node.index, hit.t1) for hit in curve.intersects_line(line))
            return True

        self.bvh.visit(predicate)
        return results

    ###########################################################################
    # Distance, containment
    ###########################################################################

    def point_is_within_distance_of_boundary(self, point: Sequence[float], distance: float) -> bool:
        """True if some point of the component is closer than _distance_ to _point_."""
        found = False

        def predicate(node: AvBVHNode, _depth: int) -> bool:
            nonlocal found
            if node.bounding_box.upper_bound_of_distance(point) <= distance:
                found = True
            elif node.is_leaf:
                curve = self._curves[node.index]
                if GeomMath.distance(point, curve.project(point)) < distance:
                    found = True
            return not found and node.bounding_box.lower_bound_of_distance(point) <= distance

        self.bvh.visit(predicate)
        return found

    def winding_count(self, point: Sequence[float]) -> int:
        """
        Signed number of times the component winds around _point_ (+1 for counter-clockwise
        in a y-up coordinate system).

        A horizontal ray from _point_ towards decreasing x is intersected with all curves.
        A crossing with positive orientation counts at its curve's t=0 but not at t=1, a
        negative crossing at t=1 but not at t=0, so crossings through joints count once and
        touching a joint counts zero times.
        """
        box = self.bounding_box
        ray_end_x = min(float(point[0]), box.xmin) - max(box.width, 1.0)
        ray = AvLine((point[0], point[1]), (ray_end_x, point[1]))
        delta_x = float(point[0]) - ray_end_x

        winding = 0
        for location in self.intersects_line(ray):
            t = location.t
            dot_product = delta_x * self._curves[location.element_index].normal(t)[0]
            if dot_product < 0.0:
                if t != 0.0:
                    winding -= 1
            elif dot_product > 0.0:
                if t != 1.0:
                    winding += 1
        return winding

    def contains(self, point: Sequence[float], rule: FillRule = FillRule.NONZERO) -> bool:
        """True if _point_ is inside the component under the fill _rule_."""
        return rule.implies_containment(self.winding_count(point))

    ###########################################################################
    # Derived components
    ###########################################################################

    def offset(self, distance: float) -> AvPathComponent:
        """
        Parallel component at _distance_ (positive along the curves' normals).

        The offset pieces of all curves are concatenated and adjacent pieces are stitched at
        the midpoint of their end points. Closed components stay closed.
        """
        offset_curves: List[AvCurve] = [piece for curve in self._curves for piece in curve.offset(distance)]
        for i in range(len(offset_curves) - 1):
            average = GeomMath.lerp(0.5, offset_curves[i].end_point, offset_curves[i + 1].start_point)
            offset_curves[i] = offset_curves[i].with_end_points(offset_curves[i].start_point, average)
            offset_curves[i + 1] = offset_curves[i + 1].with_end_points(average, offset_curves[i + 1].end_point)
        if self.is_closed:
            average = GeomMath.lerp(0.5, offset_curves[0].start_point, offset_curves[-1].end_point)
            offset_curves[0] = offset_curves[0].with_end_points(average, offset_curves[0].end_point)
            offset_curves[-1] = offset_curves[-1].with_end_points(offset_curves[-1].start_point, average)
        logger.debug("offset %d curves into %d pieces", len(self._curves), len(offset_curves))
        return AvPathComponent(offset_curves)

    def reversed(self) -> AvPathComponent:
        """The component traversed in opposite direction."""
        return AvPathComponent([curve.reversed() for curve in reversed(self._curves)])

    def transformed(self, affine_trafo: Sequence[Union[int, float]]) -> AvPathComponent:
        """The component with all curves transformed by [a00, a01, a10, a11, b0, b1]."""
        return AvPathComponent([curve.transformed(affine_trafo) for curve in self._curves])

    ###########################################################################
    # Adapters
    ###########################################################################

    def to_commands(self) -> Tuple[NDArray[np.float64], List[AvPathCmds]]:
        """
        Command stream for rendering adapters: M, then one L/Q/C per curve, then Z.

        Returns:
            Tuple of points (shape: n_points, 2) and commands; each command consumes
            1 (M, L), 2 (Q), 3 (C) or 0 (Z) points.
        """
        points: List[Point] = [self.start_point]
        commands: List[AvPathCmds] = ["M"]
        for curve in self._curves:
            points.extend(curve.points[1:])
            commands.append(curve.COMMAND)
        commands.append("Z")
        return np.asarray(points, dtype=np.float64), commands

    @property
    def svg_path(self) -> str:
        """SVG path string of the command stream, built on first access."""
        if self._svg_path is None:
            with self._lock:
                if self._svg_path is None:
                    points, commands = self.to_commands()
                    self._svg_path = AvSvgPath.format_commands(points, commands)
        return self._svg_path

    def to_dict(self) -> dict:
        """Convert the component to a dictionary: control point lists per curve."""
        return {"curves": [curve.to_list() for curve in self._curves]}

    @classmethod
    def from_dict(cls, data: dict) -> AvPathComponent:
        """
        Create an AvPathComponent from a dictionary created by `to_dict`.

        Raises:
            InvalidCurveDataError: if a curve has an unsupported number of control points
        """
        curves: List[AvCurve] = []
        for i, curve_points in enumerate(data.get("curves", [])):
            curve = create_curve(curve_points)
            if curve is None:
                raise InvalidCurveDataError(
                    f"curve {i} has {len(curve_points)} control points, expected 2, 3 or 4 (x, y) points"
                )
            curves.append(curve)
        return cls(curves)
