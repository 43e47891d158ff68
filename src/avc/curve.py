"""Line, quadratic and cubic Bezier segments used as elements of path components."""

from __future__ import annotations

import logging
import math
import warnings
from dataclasses import dataclass
from functools import cached_property
from typing import ClassVar, List, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from avc.bezier import BezierMath
from avc.common import DegenerateGeometryWarning, Point
from avc.consts import (
    DEFAULT_INTERSECTION_THRESHOLD,
    DEGENERATE_DERIVATIVE_LENGTH,
    LENGTH_QUADRATURE_ORDER,
    LOOKUP_TABLE_STEPS,
)
from avc.curve_support import AvIntersection, CurveIntersector, CurveOffsetter
from avc.geom import AvBox, GeomMath

logger = logging.getLogger(__name__)

# Rounds of local refinement after the lookup table search in project()
_PROJECT_REFINE_ROUNDS: int = 4
_PROJECT_REFINE_SAMPLES: int = 21


###############################################################################
# AvCurve
###############################################################################


@dataclass(frozen=True, init=False)
class AvCurve:
    """
    Base of the three segment kinds AvLine, AvQuadraticBezier and AvCubicBezier.

    A curve is an immutable value defined by its control points; equality is structural.
    The set of kinds is closed: `create_curve` only ever builds these three.

    Attributes:
        points: the control points (start, [control points], end)
    """

    points: Tuple[Point, ...]

    DEGREE: ClassVar[int] = 0
    COMMAND: ClassVar[str] = ""

    def __init__(self, *points: Sequence[float]):
        if len(points) != self.DEGREE + 1:
            raise ValueError(f"{type(self).__name__} needs {self.DEGREE + 1} points, got {len(points)}")
        object.__setattr__(self, "points", tuple((float(p[0]), float(p[1])) for p in points))

    @property
    def degree(self) -> int:
        """int: 1 for lines, 2 for quadratic and 3 for cubic curves."""
        return self.DEGREE

    @property
    def start_point(self) -> Point:
        """Point: the curve at t=0."""
        return self.points[0]

    @property
    def end_point(self) -> Point:
        """Point: the curve at t=1."""
        return self.points[-1]

    @cached_property
    def points_array(self) -> NDArray[np.float64]:
        """Control points as read-only array of shape (degree+1, 2)."""
        array = np.asarray(self.points, dtype=np.float64)
        array.flags.writeable = False
        return array

    @cached_property
    def bounding_box(self) -> AvBox:
        """AvBox: tightest axis-aligned box around the curve."""
        return BezierMath.bounding_box(self.points_array)

    def compute(self, t: float) -> Point:
        """Point on the curve at parameter _t_."""
        if t == 0.0:
            return self.start_point
        if t == 1.0:
            return self.end_point
        x, y = BezierMath.evaluate(self.points_array, t)
        return (float(x), float(y))

    def derivative(self, t: float) -> Point:
        """First derivative at parameter _t_."""
        x, y = BezierMath.derivative(self.points_array, t)
        return (float(x), float(y))

    def normal(self, t: float) -> Point:
        """
        Unit normal at parameter _t_, the derivative rotated by +90 degrees: (-dy, dx).

        A (nearly) vanishing derivative issues a DegenerateGeometryWarning; a zero
        derivative yields the zero vector.
        """
        dx, dy = self.derivative(t)
        length = math.hypot(dx, dy)
        if length < DEGENERATE_DERIVATIVE_LENGTH:
            message = f"ill-defined normal of {self} at t={t} (derivative length {length:g})"
            logger.warning(message)
            warnings.warn(message, DegenerateGeometryWarning, stacklevel=2)
            if length == 0.0:
                return (0.0, 0.0)
        return (-dy / length, dx / length)

    def length(self) -> float:
        """Arc length, integrated with Gauss-Legendre quadrature."""
        nodes, weights = np.polynomial.legendre.leggauss(LENGTH_QUADRATURE_ORDER)
        t = 0.5 * (nodes + 1.0)
        derivatives = BezierMath.evaluate(BezierMath.derivative_points(self.points_array), t)
        speeds = np.hypot(derivatives[:, 0], derivatives[:, 1])
        return float(0.5 * np.dot(weights, speeds))

    def closest_parameter(self, point: Sequence[float]) -> float:
        """Parameter of the point on the curve closest to _point_."""
        target = np.asarray(point[:2], dtype=np.float64)
        lookup = BezierMath.polygonize(self.points_array, LOOKUP_TABLE_STEPS)
        distances = np.hypot(lookup[:, 0] - target[0], lookup[:, 1] - target[1])
        best_t = int(np.argmin(distances)) / LOOKUP_TABLE_STEPS
        step = 1.0 / LOOKUP_TABLE_STEPS
        for _ in range(_PROJECT_REFINE_ROUNDS):
            t = np.linspace(max(best_t - step, 0.0), min(best_t + step, 1.0), _PROJECT_REFINE_SAMPLES)
            samples = BezierMath.evaluate(self.points_array, t)
            distances = np.hypot(samples[:, 0] - target[0], samples[:, 1] - target[1])
            best_t = float(t[int(np.argmin(distances))])
            step = step * 2.0 / (_PROJECT_REFINE_SAMPLES - 1)
        return best_t

    def project(self, point: Sequence[float]) -> Point:
        """Point on the curve closest to _point_."""
        return self.compute(self.closest_parameter(point))

    def split(self, t0: float, t1: float) -> AvCurve:
        """The part of this curve between _t0_ and _t1_ as curve of the same kind."""
        return type(self)(*BezierMath.segment(self.points_array, t0, t1))

    def intersects(self, other: AvCurve, threshold: float = DEFAULT_INTERSECTION_THRESHOLD) -> List[AvIntersection]:
        """
        Intersections with _other_ as (t on self, t on other), ordered by t on self.

        Lines are intersected exactly; curve/curve pairs report points closer than _threshold_.
        """
        return CurveIntersector.intersect(self, other, threshold)

    def intersects_line(self, line: AvLine) -> List[AvIntersection]:
        """Intersections with the line segment _line_ as (t on self, t on line)."""
        if self.degree == 1:
            return CurveIntersector.line_line(self, line)
        return CurveIntersector.curve_line(self, line)

    def scale(self, distance: float) -> AvCurve:
        """This curve moved by _distance_ along its normals (one curve, no reduction)."""
        return CurveOffsetter.scale(self, distance)

    def offset(self, distance: float) -> List[AvCurve]:
        """Parallel curve(s) at _distance_; curves may be split into several pieces."""
        return CurveOffsetter.offset(self, distance)

    def reversed(self) -> AvCurve:
        """The same curve running from end to start."""
        return type(self)(*reversed(self.points))

    def transformed(self, affine_trafo: Sequence[Union[int, float]]) -> AvCurve:
        """The curve with all control points transformed by [a00, a01, a10, a11, b0, b1]."""
        return type(self)(*[GeomMath.transform_point(affine_trafo, p) for p in self.points])

    def with_end_points(self, start: Sequence[float], end: Sequence[float]) -> AvCurve:
        """Copy with start and end point replaced, inner control points unchanged."""
        return type(self)(start, *self.points[1:-1], end)

    def to_list(self) -> List[List[float]]:
        """Control points as list of [x, y] lists (serialization format)."""
        return [[x, y] for x, y in self.points]

    def __str__(self):
        coordinates = ", ".join(f"({x:g}, {y:g})" for x, y in self.points)
        return f"{type(self).__name__}({coordinates})"


###############################################################################
# Curve kinds
###############################################################################


@dataclass(frozen=True, init=False)
class AvLine(AvCurve):
    """Straight line segment (p0, p1)."""

    DEGREE: ClassVar[int] = 1
    COMMAND: ClassVar[str] = "L"

    def length(self) -> float:
        return GeomMath.distance(self.points[0], self.points[1])

    def closest_parameter(self, point: Sequence[float]) -> float:
        (x0, y0), (x1, y1) = self.points
        dx, dy = x1 - x0, y1 - y0
        length_squared = dx * dx + dy * dy
        if length_squared == 0.0:
            return 0.0
        t = ((point[0] - x0) * dx + (point[1] - y0) * dy) / length_squared
        return min(max(t, 0.0), 1.0)


@dataclass(frozen=True, init=False)
class AvQuadraticBezier(AvCurve):
    """Quadratic Bezier curve (p0, control, p2)."""

    DEGREE: ClassVar[int] = 2
    COMMAND: ClassVar[str] = "Q"


@dataclass(frozen=True, init=False)
class AvCubicBezier(AvCurve):
    """Cubic Bezier curve (p0, control1, control2, p3)."""

    DEGREE: ClassVar[int] = 3
    COMMAND: ClassVar[str] = "C"


_CURVE_KINDS = {2: AvLine, 3: AvQuadraticBezier, 4: AvCubicBezier}


def create_curve(points: Sequence[Sequence[float]]) -> Optional[AvCurve]:
    """
    Build the curve matching the number of control points.

    Args:
        points: 2 (line), 3 (quadratic) or 4 (cubic) points (x, y)

    Returns:
        Optional[AvCurve]: the curve, None for an unsupported number of points
            or points that are not (x, y) pairs.
    """
    kind = _CURVE_KINDS.get(len(points))
    if kind is None:
        return None
    if any(len(point) != 2 for point in points):
        return None
    return kind(*points)
