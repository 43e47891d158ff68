"""Paths made of several components, with fill-rule aware containment."""

from __future__ import annotations

import logging
from typing import List, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from avc.common import AvPathCmds, FillRule, Point
from avc.consts import DEFAULT_INTERSECTION_THRESHOLD
from avc.curve import AvCubicBezier, AvCurve, AvLine, AvQuadraticBezier
from avc.geom import AvBox
from avc.path_component import AvIndexedLocation, AvPathComponent
from avc.svgpath import AvSvgPath

logger = logging.getLogger(__name__)


class AvPathIntersection(NamedTuple):
    """Intersection of two paths, addressed by component index and location in that component."""

    component_index1: int
    location1: AvIndexedLocation
    component_index2: int
    location2: AvIndexedLocation


###############################################################################
# AvPath
###############################################################################


class AvPath:
    """
    Ordered collection of path components; may be empty.

    Winding counts of all components are summed, which makes the even-odd fill rule
    meaningful for paths with holes.
    """

    def __init__(self, components: Optional[Sequence[AvPathComponent]] = None):
        self._components: Tuple[AvPathComponent, ...] = tuple(components) if components is not None else ()

    @property
    def components(self) -> Tuple[AvPathComponent, ...]:
        """The components of this path."""
        return self._components

    @property
    def is_empty(self) -> bool:
        """bool: True if the path has no components."""
        return not self._components

    @property
    def bounding_box(self) -> AvBox:
        """AvBox: union of the components' boxes, the empty box for an empty path."""
        box = AvBox.empty()
        for component in self._components:
            box = box.union(component.bounding_box)
        return box

    @property
    def length(self) -> float:
        """float: total arc length of all components."""
        return sum(component.length for component in self._components)

    def __len__(self) -> int:
        return len(self._components)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AvPath):
            return NotImplemented
        return self._components == other._components

    def __hash__(self) -> int:
        return hash(self._components)

    def __repr__(self) -> str:
        return f"AvPath({self.svg_path!r})"

    ###########################################################################
    # Intersections
    ###########################################################################

    def intersects(self, other: AvPath, threshold: float = DEFAULT_INTERSECTION_THRESHOLD) -> List[AvPathIntersection]:
        """
        Intersections between this path and _other_.

        If _other_ is this path, `self_intersects` is used instead.
        """
        if other is self:
            return self.self_intersects(threshold)
        intersections: List[AvPathIntersection] = []
        for index1, component1 in enumerate(self._components):
            for index2, component2 in enumerate(other.components):
                if component1 is component2:
                    hits = component1.self_intersects(threshold)
                elif not component1.bounding_box.overlaps(component2.bounding_box):
                    continue
                else:
                    hits = component1.intersects(component2, threshold)
                intersections.extend(AvPathIntersection(index1, hit.location1, index2, hit.location2) for hit in hits)
        return intersections

    def self_intersects(self, threshold: float = DEFAULT_INTERSECTION_THRESHOLD) -> List[AvPathIntersection]:
        """Self intersections of every component plus intersections between distinct components."""
        intersections: List[AvPathIntersection] = []
        for index1, component1 in enumerate(self._components):
            for hit in component1.self_intersects(threshold):
                intersections.append(AvPathIntersection(index1, hit.location1, index1, hit.location2))
            for index2 in range(index1 + 1, len(self._components)):
                component2 = self._components[index2]
                if not component1.bounding_box.overlaps(component2.bounding_box):
                    continue
                for hit in component1.intersects(component2, threshold):
                    intersections.append(AvPathIntersection(index1, hit.location1, index2, hit.location2))
        logger.debug("%d self intersections over %d components", len(intersections), len(self._components))
        return intersections

    ###########################################################################
    # Distance, containment
    ###########################################################################

    def point_is_within_distance_of_boundary(self, point: Sequence[float], distance: float) -> bool:
        """True if any component passes closer than _distance_ to _point_."""
        return any(
            component.bounding_box.lower_bound_of_distance(point) <= distance
            and component.point_is_within_distance_of_boundary(point, distance)
            for component in self._components
        )

    def winding_count(self, point: Sequence[float]) -> int:
        """Sum of the winding counts of all components around _point_."""
        return sum(component.winding_count(point) for component in self._components)

    def contains(self, point: Sequence[float], rule: FillRule = FillRule.NONZERO) -> bool:
        """True if _point_ is inside the path under the fill _rule_."""
        return rule.implies_containment(self.winding_count(point))

    ###########################################################################
    # Derived paths
    ###########################################################################

    def offset(self, distance: float) -> AvPath:
        """Path made of the offset of every component."""
        return AvPath([component.offset(distance) for component in self._components])

    def reversed(self) -> AvPath:
        """Path with every component reversed (component order unchanged)."""
        return AvPath([component.reversed() for component in self._components])

    def transformed(self, affine_trafo: Sequence[Union[int, float]]) -> AvPath:
        """Path with every component transformed by [a00, a01, a10, a11, b0, b1]."""
        return AvPath([component.transformed(affine_trafo) for component in self._components])

    ###########################################################################
    # Adapters
    ###########################################################################

    def to_commands(self) -> Tuple[NDArray[np.float64], List[AvPathCmds]]:
        """Concatenated command streams of all components (each closed with Z)."""
        all_points: List[NDArray[np.float64]] = [np.empty((0, 2), dtype=np.float64)]
        all_commands: List[AvPathCmds] = []
        for component in self._components:
            points, commands = component.to_commands()
            all_points.append(points)
            all_commands.extend(commands)
        return np.concatenate(all_points, axis=0), all_commands

    @classmethod
    def from_commands(
        cls, points: Union[Sequence[Point], NDArray[np.float64]], commands: Sequence[AvPathCmds]
    ) -> AvPath:
        """
        Create a path from absolute points and M/L/Q/C/Z commands.

        Every M starts a new component; Z adds a closing line if the current point differs
        from the component's start and ends the component. A MoveTo without any following
        curve does not create a component.

        Raises:
            ValueError: if commands lack points or the stream does not start with M
        """
        points_array = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        components: List[AvPathComponent] = []
        curves: List[AvCurve] = []
        start: Optional[Point] = None
        current: Optional[Point] = None
        point_index = 0

        def take(cmd: str, count: int) -> List[Point]:
            nonlocal point_index
            available = points_array.shape[0] - point_index
            if available < count:
                raise ValueError(f"{cmd} command needs {count} point(s), got {available}")
            taken = [(float(x), float(y)) for x, y in points_array[point_index : point_index + count]]
            point_index += count
            return taken

        for cmd in commands:
            if cmd == "M":
                if curves:
                    components.append(AvPathComponent(curves))
                curves = []
                start = current = take(cmd, 1)[0]
                continue
            if current is None:
                raise ValueError(f"{cmd} command has no starting point (path must start with 'M')")
            if cmd == "L":
                (end,) = take(cmd, 1)
                curves.append(AvLine(current, end))
            elif cmd == "Q":
                control, end = take(cmd, 2)
                curves.append(AvQuadraticBezier(current, control, end))
            elif cmd == "C":
                control1, control2, end = take(cmd, 3)
                curves.append(AvCubicBezier(current, control1, control2, end))
            elif cmd == "Z":
                if curves and current != start:
                    curves.append(AvLine(current, start))
                if curves:
                    components.append(AvPathComponent(curves))
                curves = []
                end = start
            else:
                raise ValueError(f"Unsupported path command '{cmd}'")
            current = end

        if curves:
            components.append(AvPathComponent(curves))
        if point_index != points_array.shape[0]:
            raise ValueError(
                f"Number of points ({points_array.shape[0]}) does not match commands (requires {point_index} points)"
            )
        return cls(components)

    @property
    def svg_path(self) -> str:
        """SVG path string of all components."""
        return " ".join(component.svg_path for component in self._components)

    @classmethod
    def from_svg_path(cls, path_string: str) -> AvPath:
        """Create a path from a SVG path string (M/L/H/V/Q/C/Z, absolute or relative)."""
        points, commands = AvSvgPath.parse_commands(path_string)
        return cls.from_commands(points, commands)

    def to_dict(self) -> dict:
        """Convert the path to a dictionary."""
        return {"components": [component.to_dict() for component in self._components]}

    @classmethod
    def from_dict(cls, data: dict) -> AvPath:
        """Create an AvPath from a dictionary created by `to_dict`."""
        return cls([AvPathComponent.from_dict(item) for item in data.get("components", [])])
