"""Intersection and offset algorithms working on curve objects of degree 1 to 3."""

from __future__ import annotations

import logging
import math
import warnings
from typing import TYPE_CHECKING, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

from avc.bezier import BezierMath
from avc.common import DegenerateGeometryWarning, Point
from avc.consts import (
    ENDPOINT_SNAP_EPSILON,
    MAX_SUBDIVISION_DEPTH,
    NEWTON_MAX_ITERATIONS,
    NEWTON_TOLERANCE,
)

if TYPE_CHECKING:
    from avc.curve import AvCurve

logger = logging.getLogger(__name__)

# Parameter pairs closer than this (in both parameters) describe the same intersection
_PARAMETER_MERGE_TOLERANCE: float = 1.0e-6
# Curves whose control points agree this closely (relative to the coordinate scale) coincide
_COINCIDENCE_TOLERANCE: float = 1.0e-9
# Pieces are reduced by bisection at most this often
_MAX_REDUCE_DEPTH: int = 8
# Largest angle between the end normals of a "simple" curve
_SIMPLE_NORMAL_ANGLE: float = math.pi / 3.0


class AvIntersection(NamedTuple):
    """Intersection of two curves: parameter _t1_ on the receiver, _t2_ on the other curve."""

    t1: float
    t2: float


def _cross(a: Sequence[float], b: Sequence[float]) -> float:
    return float(a[0] * b[1] - a[1] * b[0])


def _snap(t: float) -> float:
    """Snap parameters within ENDPOINT_SNAP_EPSILON onto exactly 0.0 or 1.0."""
    if abs(t) <= ENDPOINT_SNAP_EPSILON:
        return 0.0
    if abs(t - 1.0) <= ENDPOINT_SNAP_EPSILON:
        return 1.0
    return t


def _line_line_point(
    p0: Sequence[float], p1: Sequence[float], q0: Sequence[float], q1: Sequence[float]
) -> Optional[Point]:
    """Intersection point of the infinite lines through (p0, p1) and (q0, q1), None if parallel."""
    d1 = (p1[0] - p0[0], p1[1] - p0[1])
    d2 = (q1[0] - q0[0], q1[1] - q0[1])
    denominator = _cross(d1, d2)
    if denominator == 0.0:
        return None
    s = _cross((q0[0] - p0[0], q0[1] - p0[1]), d2) / denominator
    return (float(p0[0] + s * d1[0]), float(p0[1] + s * d1[1]))


###############################################################################
# CurveIntersector
###############################################################################


class CurveIntersector:
    """Collection of static curve/curve intersection routines.

    All routines return `AvIntersection` lists ordered by the receiver's parameter.
    Intersections located at curve endpoints are reported with parameters exactly 0.0 or 1.0.
    """

    @classmethod
    def intersect(cls, curve1: AvCurve, curve2: AvCurve, threshold: float) -> List[AvIntersection]:
        """Dispatch to the routine matching the degrees of both curves."""
        if curve1.degree == 1 and curve2.degree == 1:
            return cls.line_line(curve1, curve2)
        if curve2.degree == 1:
            return cls.curve_line(curve1, curve2)
        if curve1.degree == 1:
            swapped = cls.curve_line(curve2, curve1)
            return sorted(AvIntersection(i.t2, i.t1) for i in swapped)
        return cls.curve_curve(curve1, curve2, threshold)

    @staticmethod
    def line_line(line1: AvCurve, line2: AvCurve) -> List[AvIntersection]:
        """Exact intersection of two line segments; parallel (and collinear) lines yield nothing."""
        p0, p1 = line1.points
        q0, q1 = line2.points
        d1 = (p1[0] - p0[0], p1[1] - p0[1])
        d2 = (q1[0] - q0[0], q1[1] - q0[1])
        denominator = _cross(d1, d2)
        if denominator == 0.0:
            return []
        offset = (q0[0] - p0[0], q0[1] - p0[1])
        t1 = _snap(_cross(offset, d2) / denominator)
        t2 = _snap(_cross(offset, d1) / denominator)
        if 0.0 <= t1 <= 1.0 and 0.0 <= t2 <= 1.0:
            return [AvIntersection(t1, t2)]
        return []

    @staticmethod
    def curve_line(curve: AvCurve, line: AvCurve) -> List[AvIntersection]:
        """
        Intersect a curve with a line segment.

        The curve is expressed as signed (unnormalized) distance to the line, whose roots are
        the curve parameters of the intersections. Endpoints lying exactly on the line are
        reported at exactly t=0 / t=1.

        Returns:
            List[AvIntersection]: (t on curve, t on line), ordered by the curve parameter.
        """
        l0, l1 = line.points
        direction = (l1[0] - l0[0], l1[1] - l0[1])
        length_squared = direction[0] * direction[0] + direction[1] * direction[1]
        if length_squared == 0.0:
            return []

        values = [_cross(direction, (p[0] - l0[0], p[1] - l0[1])) for p in curve.points]
        coefficients = BezierMath.power_coefficients(values)
        roots = BezierMath.real_roots_in_unit_interval(coefficients)
        start_on_line = values[0] == 0.0
        end_on_line = values[-1] == 0.0
        candidates = [
            root
            for root in roots
            if not (start_on_line and root < _PARAMETER_MERGE_TOLERANCE)
            and not (end_on_line and root > 1.0 - _PARAMETER_MERGE_TOLERANCE)
        ]
        if start_on_line:
            candidates.append(0.0)
        if end_on_line:
            candidates.append(1.0)

        result: List[AvIntersection] = []
        for t in sorted(candidates):
            point = curve.compute(t)
            s = ((point[0] - l0[0]) * direction[0] + (point[1] - l0[1]) * direction[1]) / length_squared
            s = _snap(s)
            if 0.0 <= s <= 1.0:
                result.append(AvIntersection(t, s))
        return result

    @classmethod
    def curve_curve(cls, curve1: AvCurve, curve2: AvCurve, threshold: float) -> List[AvIntersection]:
        """
        Intersect two (non-line) curves.

        Both curves are subdivided while the boxes around their control points overlap, until
        both pieces are smaller than _threshold_. Each surviving piece pair is refined with
        Newton iterations; pairs that do not converge (tangential touches) keep the piece
        midpoints. Coinciding endpoints are detected exactly.

        Curves of equal degree that coincide along a piece (e.g. an edge shared by two
        outlines) report the two ends of the common piece.
        """
        points1 = BezierMath.as_array(curve1.points)
        points2 = BezierMath.as_array(curve2.points)

        overlap = cls._coincident_piece(curve1, curve2)
        if overlap is not None:
            logger.debug("curves coincide between t1=%g and t1=%g", overlap[0].t1, overlap[1].t1)
            return overlap

        estimates: List[Tuple[float, float]] = []
        cls._subdivide(points1, (0.0, 1.0), points2, (0.0, 1.0), threshold, 0, estimates)

        exact = cls._shared_endpoints(curve1, curve2)
        refined: List[AvIntersection] = list(exact)
        fallback: List[AvIntersection] = []
        for t1, t2 in estimates:
            solution = cls._newton(points1, points2, t1, t2)
            if solution is None:
                fallback.append(AvIntersection(t1, t2))
                continue
            if any(cls._same_parameters(solution, known) for known in refined):
                continue
            refined.append(solution)

        if fallback:
            known_points = [curve1.compute(known.t1) for known in refined]
            fallback_points = BezierMath.evaluate(points1, [candidate.t1 for candidate in fallback])
            for candidate, point in zip(fallback, fallback_points):
                if known_points:
                    offsets = np.asarray(known_points) - point
                    if np.hypot(offsets[:, 0], offsets[:, 1]).min() < threshold:
                        continue
                refined.append(candidate)
                known_points.append((float(point[0]), float(point[1])))

        return sorted(refined)

    @classmethod
    def _coincident_piece(cls, curve1: AvCurve, curve2: AvCurve) -> Optional[List[AvIntersection]]:
        """
        Ends of the piece both curves have in common, None if they do not coincide along a piece.

        A polynomial curve piece equals a piece of another curve of the same degree only as a
        linear reparametrization, so the control points of both pieces must agree.
        """
        if curve1.degree != curve2.degree:
            return None
        points1 = BezierMath.as_array(curve1.points)
        points2 = BezierMath.as_array(curve2.points)
        tolerance = _COINCIDENCE_TOLERANCE * max(1.0, float(np.abs(points1).max()), float(np.abs(points2).max()))

        ends: List[AvIntersection] = []
        for t1, point in ((0.0, curve1.start_point), (1.0, curve1.end_point)):
            t2 = cls._parameter_of_point(curve2, point, tolerance)
            if t2 is not None:
                ends.append(AvIntersection(t1, t2))
        for t2, point in ((0.0, curve2.start_point), (1.0, curve2.end_point)):
            t1 = cls._parameter_of_point(curve1, point, tolerance)
            if t1 is not None and not any(cls._same_parameters(AvIntersection(t1, t2), end) for end in ends):
                ends.append(AvIntersection(t1, t2))
        if len(ends) != 2:
            return None

        first, last = sorted(ends)
        if last.t1 - first.t1 < _PARAMETER_MERGE_TOLERANCE or abs(last.t2 - first.t2) < _PARAMETER_MERGE_TOLERANCE:
            return None
        piece1 = BezierMath.segment(points1, first.t1, last.t1)
        if first.t2 < last.t2:
            piece2 = BezierMath.segment(points2, first.t2, last.t2)
        else:
            piece2 = BezierMath.segment(points2, last.t2, first.t2)[::-1]
        if np.abs(piece1 - piece2).max() > tolerance:
            return None
        return [first, last]

    @staticmethod
    def _parameter_of_point(curve: AvCurve, point: Point, tolerance: float) -> Optional[float]:
        """Parameter of _point_ on _curve_ (Newton refined projection), None if farther than _tolerance_."""
        if not curve.bounding_box.expanded(tolerance).contains(point):
            return None
        points = BezierMath.as_array(curve.points)
        second_points = BezierMath.derivative_points(points)
        target = np.asarray(point, dtype=np.float64)
        t = curve.closest_parameter(point)
        for _ in range(NEWTON_MAX_ITERATIONS):
            difference = BezierMath.evaluate(points, t) - target
            first = BezierMath.derivative(points, t)
            second = BezierMath.derivative(second_points, t)
            denominator = float(first @ first + difference @ second)
            if denominator == 0.0:
                break
            step = float(difference @ first) / denominator
            t = min(max(t - step, 0.0), 1.0)
            if abs(step) <= NEWTON_TOLERANCE:
                break
        t = _snap(t)
        if math.dist(curve.compute(t), point) > tolerance:
            return None
        return t

    @classmethod
    def _subdivide(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        cls,
        points1: NDArray[np.float64],
        range1: Tuple[float, float],
        points2: NDArray[np.float64],
        range2: Tuple[float, float],
        threshold: float,
        depth: int,
        estimates: List[Tuple[float, float]],
    ) -> None:
        box1 = BezierMath.hull_box(points1)
        box2 = BezierMath.hull_box(points2)
        if not box1.overlaps(box2):
            return
        small1 = box1.width + box1.height < threshold
        small2 = box2.width + box2.height < threshold
        if (small1 and small2) or depth >= MAX_SUBDIVISION_DEPTH:
            estimates.append(((range1[0] + range1[1]) / 2.0, (range2[0] + range2[1]) / 2.0))
            return
        halves1 = [(points1, range1)] if small1 else cls._halves(points1, range1)
        halves2 = [(points2, range2)] if small2 else cls._halves(points2, range2)
        for piece1, sub_range1 in halves1:
            for piece2, sub_range2 in halves2:
                cls._subdivide(piece1, sub_range1, piece2, sub_range2, threshold, depth + 1, estimates)

    @staticmethod
    def _halves(
        points: NDArray[np.float64], t_range: Tuple[float, float]
    ) -> List[Tuple[NDArray[np.float64], Tuple[float, float]]]:
        left, right = BezierMath.split(points, 0.5)
        mid = (t_range[0] + t_range[1]) / 2.0
        return [(left, (t_range[0], mid)), (right, (mid, t_range[1]))]

    @staticmethod
    def _newton(
        points1: NDArray[np.float64], points2: NDArray[np.float64], t1: float, t2: float
    ) -> Optional[AvIntersection]:
        """Solve curve1(t1) == curve2(t2) starting at (t1, t2); None if not converging inside [0, 1]."""
        scale = max(1.0, float(np.abs(points1).max()), float(np.abs(points2).max()))
        for _ in range(NEWTON_MAX_ITERATIONS):
            residual = BezierMath.evaluate(points1, t1) - BezierMath.evaluate(points2, t2)
            if math.hypot(residual[0], residual[1]) <= NEWTON_TOLERANCE * scale:
                t1, t2 = _snap(t1), _snap(t2)
                if not (0.0 <= t1 <= 1.0 and 0.0 <= t2 <= 1.0):
                    return None
                return AvIntersection(t1, t2)
            jacobian = np.column_stack((BezierMath.derivative(points1, t1), -BezierMath.derivative(points2, t2)))
            if abs(np.linalg.det(jacobian)) < 1.0e-14 * scale * scale:
                return None
            step = np.linalg.solve(jacobian, -residual)
            t1 += float(step[0])
            t2 += float(step[1])
            if not (-0.01 <= t1 <= 1.01 and -0.01 <= t2 <= 1.01):
                return None
        return None

    @staticmethod
    def _shared_endpoints(curve1: AvCurve, curve2: AvCurve) -> List[AvIntersection]:
        result = []
        for t1, point1 in ((0.0, curve1.start_point), (1.0, curve1.end_point)):
            for t2, point2 in ((0.0, curve2.start_point), (1.0, curve2.end_point)):
                if point1 == point2:
                    result.append(AvIntersection(t1, t2))
        return result

    @staticmethod
    def _same_parameters(a: AvIntersection, b: AvIntersection) -> bool:
        return abs(a.t1 - b.t1) < _PARAMETER_MERGE_TOLERANCE and abs(a.t2 - b.t2) < _PARAMETER_MERGE_TOLERANCE


###############################################################################
# CurveOffsetter
###############################################################################


class CurveOffsetter:
    """Collection of static routines building parallel curves."""

    @classmethod
    def offset(cls, curve: AvCurve, distance: float) -> List[AvCurve]:
        """
        Offset _curve_ by _distance_ along its normal.

        Lines are translated exactly. Quadratic and cubic curves are first reduced into
        "simple" pieces, each of which is scaled individually.
        """
        if curve.degree == 1:
            return [cls.scale(curve, distance)]
        return [cls.scale(piece, distance) for piece in cls.reduce(curve)]

    @classmethod
    def reduce(cls, curve: AvCurve) -> List[AvCurve]:
        """Split _curve_ at its extrema, then bisect every piece until it is simple."""
        if curve.degree == 1:
            return [curve]
        cuts = [0.0] + BezierMath.extrema(curve.points) + [1.0]
        pieces: List[AvCurve] = []
        for t0, t1 in zip(cuts[:-1], cuts[1:]):
            if t1 - t0 <= ENDPOINT_SNAP_EPSILON:
                continue
            pieces.extend(cls._reduce_piece(curve.split(t0, t1), 0))
        return pieces

    @classmethod
    def _reduce_piece(cls, piece: AvCurve, depth: int) -> List[AvCurve]:
        if depth >= _MAX_REDUCE_DEPTH or cls.is_simple(piece):
            return [piece]
        left = cls._reduce_piece(piece.split(0.0, 0.5), depth + 1)
        return left + cls._reduce_piece(piece.split(0.5, 1.0), depth + 1)

    @staticmethod
    def is_simple(curve: AvCurve) -> bool:
        """
        True if the end normals differ by less than 60 degrees.

        Cubic curves additionally need both control points on the same side of the chord.
        """
        points = curve.points
        if curve.degree == 1:
            return True
        if curve.degree == 3:
            chord = (points[3][0] - points[0][0], points[3][1] - points[0][1])
            side1 = _cross(chord, (points[1][0] - points[0][0], points[1][1] - points[0][1]))
            side2 = _cross(chord, (points[2][0] - points[0][0], points[2][1] - points[0][1]))
            if (side1 > 0.0 > side2) or (side1 < 0.0 < side2):
                return False
        d0 = curve.derivative(0.0)
        d1 = curve.derivative(1.0)
        length0 = math.hypot(*d0)
        length1 = math.hypot(*d1)
        if length0 == 0.0 or length1 == 0.0:
            return True
        cosine = (d0[0] * d1[0] + d0[1] * d1[1]) / (length0 * length1)
        return math.acos(min(max(cosine, -1.0), 1.0)) < _SIMPLE_NORMAL_ANGLE

    @staticmethod
    def scale(curve: AvCurve, distance: float) -> AvCurve:
        """
        Move _curve_ by _distance_ along its normals.

        End points move along their normals. Control points move to the intersection of
        the offset end tangent with the line through the original control point and the
        intersection ("origin") of both end normals.
        """
        points = curve.points
        n0 = curve.normal(0.0)
        if curve.degree == 1:
            return type(curve)(*[(p[0] + distance * n0[0], p[1] + distance * n0[1]) for p in points])

        n1 = curve.normal(1.0)
        start = (points[0][0] + distance * n0[0], points[0][1] + distance * n0[1])
        end = (points[-1][0] + distance * n1[0], points[-1][1] + distance * n1[1])
        origin = _line_line_point(
            points[0],
            (points[0][0] + n0[0], points[0][1] + n0[1]),
            points[-1],
            (points[-1][0] + n1[0], points[-1][1] + n1[1]),
        )
        if origin is None:
            message = f"end normals of {curve} are parallel, translating control points instead"
            logger.warning(message)
            warnings.warn(message, DegenerateGeometryWarning, stacklevel=2)
            inner = [(p[0] + distance * n0[0], p[1] + distance * n0[1]) for p in points[1:-1]]
            return type(curve)(start, *inner, end)

        new_points = [start]
        anchors = [(start, curve.derivative(0.0)), (end, curve.derivative(1.0))]
        for i, control in enumerate(points[1:-1]):
            anchor, tangent = anchors[0] if i == 0 else anchors[1]
            moved = _line_line_point(anchor, (anchor[0] + tangent[0], anchor[1] + tangent[1]), origin, control)
            if moved is None:
                moved = (control[0] + distance * n0[0], control[1] + distance * n0[1])
            new_points.append(moved)
        new_points.append(end)
        return type(curve)(*new_points)
