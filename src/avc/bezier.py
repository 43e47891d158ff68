"""Bezier curve math on control point arrays for line, quadratic and cubic segments."""

from __future__ import annotations

import math
from typing import List, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from avc.consts import ENDPOINT_SNAP_EPSILON
from avc.geom import AvBox

# Binomial rows for the supported degrees (line, quadratic, cubic)
_BINOMIALS = {
    1: np.array([1.0, 1.0], dtype=np.float64),
    2: np.array([1.0, 2.0, 1.0], dtype=np.float64),
    3: np.array([1.0, 3.0, 3.0, 1.0], dtype=np.float64),
}

# Roots with a larger imaginary part (relative to their magnitude) are considered complex
_ROOT_IMAG_TOLERANCE: float = 1.0e-7
# Roots closer than this are reported once (double roots of tangential touches)
_ROOT_MERGE_TOLERANCE: float = 1.0e-7

ControlPoints = Union[Sequence[Tuple[float, float]], NDArray[np.float64]]


class BezierMath:
    """Class to handle Bezier curve math on control points of degree 1 to 3.

    All methods take the control points as Sequence[Tuple[float, float]] or
    NDArray[np.float64] of shape (degree+1, 2) and work vectorized with NumPy.
    """

    @staticmethod
    def as_array(points: ControlPoints) -> NDArray[np.float64]:
        """Return the control points as float64 array of shape (n, 2)."""
        if isinstance(points, np.ndarray) and points.dtype == np.float64:
            points_array = points
        else:
            points_array = np.asarray(points, dtype=np.float64)
        if points_array.ndim != 2 or points_array.shape[1] != 2:
            raise ValueError(f"control points must have shape (n, 2), got {points_array.shape}")
        if not 2 <= points_array.shape[0] <= 4:
            raise ValueError(f"only degrees 1 to 3 are supported, got {points_array.shape[0]} control points")
        return points_array

    @classmethod
    def basis(cls, degree: int, t: NDArray[np.float64]) -> NDArray[np.float64]:
        """Bernstein basis values of shape (len(t), degree+1)."""
        t = t[:, np.newaxis]
        omt = 1.0 - t
        exponents = np.arange(degree + 1, dtype=np.float64)
        return _BINOMIALS[degree] * omt ** (degree - exponents) * t**exponents

    @classmethod
    def evaluate(
        cls, points: ControlPoints, t: Union[float, Sequence[float], NDArray[np.float64]]
    ) -> NDArray[np.float64]:
        """
        Evaluate the curve at parameter(s) _t_.

        Returns:
            NDArray[np.float64] of shape (2,) for a scalar t, (len(t), 2) otherwise.
        """
        points_array = cls.as_array(points)
        degree = points_array.shape[0] - 1
        t_array = np.atleast_1d(np.asarray(t, dtype=np.float64))
        result = cls.basis(degree, t_array) @ points_array
        if np.ndim(t) == 0:
            return result[0]
        return result

    @classmethod
    def derivative_points(cls, points: ControlPoints) -> NDArray[np.float64]:
        """Control points of the hodograph (the derivative curve), one degree lower."""
        points_array = cls.as_array(points)
        degree = points_array.shape[0] - 1
        return degree * np.diff(points_array, axis=0)

    @classmethod
    def derivative(cls, points: ControlPoints, t: float) -> NDArray[np.float64]:
        """First derivative at parameter _t_."""
        derivative_points = cls.derivative_points(points)
        if derivative_points.shape[0] == 1:
            return derivative_points[0].copy()
        return cls.evaluate(derivative_points, t)

    @classmethod
    def split(cls, points: ControlPoints, t: float) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Split the curve at _t_ using de Casteljau; returns (left, right) control points."""
        points_array = cls.as_array(points)
        count = points_array.shape[0]
        left = np.empty_like(points_array)
        right = np.empty_like(points_array)
        level = points_array.copy()
        for i in range(count):
            left[i] = level[0]
            right[count - 1 - i] = level[-1]
            level = level[:-1] + t * (level[1:] - level[:-1])
        return left, right

    @classmethod
    def segment(cls, points: ControlPoints, t0: float, t1: float) -> NDArray[np.float64]:
        """Control points of the part of the curve between _t0_ and _t1_."""
        points_array = cls.as_array(points)
        if t0 == 0.0 and t1 == 1.0:
            return points_array.copy()
        if t1 >= 1.0:
            return cls.split(points_array, t0)[1]
        if t0 <= 0.0:
            return cls.split(points_array, t1)[0]
        right = cls.split(points_array, t0)[1]
        return cls.split(right, (t1 - t0) / (1.0 - t0))[0]

    @classmethod
    def polygonize(cls, points: ControlPoints, steps: int) -> NDArray[np.float64]:
        """
        Polygonize the curve into _steps_ line segments.

        Returns:
            NDArray[np.float64] of shape (steps+1, 2); the first and last rows are the
            exact start and end points.
        """
        t = np.linspace(0.0, 1.0, steps + 1, dtype=np.float64)
        return cls.evaluate(points, t)

    @staticmethod
    def hull_box(points: ControlPoints) -> AvBox:
        """Box around the control points; always contains the curve."""
        points_array = np.asarray(points, dtype=np.float64)
        mins = points_array.min(axis=0)
        maxs = points_array.max(axis=0)
        return AvBox(mins[0], mins[1], maxs[0], maxs[1])

    @staticmethod
    def power_coefficients(values: Sequence[float]) -> NDArray[np.float64]:
        """
        Convert 1D Bernstein coefficients into power basis coefficients.

        Returns:
            NDArray[np.float64]: coefficients c_k of sum(c_k * t**k), lowest order first.
        """
        values_array = np.asarray(values, dtype=np.float64)
        degree = values_array.shape[0] - 1
        coefficients = np.zeros(degree + 1, dtype=np.float64)
        for k in range(degree + 1):
            acc = 0.0
            for i in range(k + 1):
                acc += (-1.0) ** (k - i) * math.comb(k, i) * values_array[i]
            coefficients[k] = math.comb(degree, k) * acc
        return coefficients

    @staticmethod
    def real_roots_in_unit_interval(coefficients: Sequence[float]) -> List[float]:
        """
        Real roots of a power basis polynomial (lowest order first) inside [0, 1].

        Roots within ENDPOINT_SNAP_EPSILON outside the interval are clamped onto it.
        """
        coefficients_array = np.asarray(coefficients, dtype=np.float64)
        highest_first = coefficients_array[::-1]
        raw_roots = np.roots(highest_first)
        roots: List[float] = []
        for root in raw_roots:
            if abs(root.imag) > _ROOT_IMAG_TOLERANCE * max(1.0, abs(root.real)):
                continue
            value = float(root.real)
            # one Newton step sharpens roots of the companion matrix solver
            slope = float(np.polyval(np.polyder(highest_first), value)) if highest_first.shape[0] > 1 else 0.0
            if slope != 0.0:
                refined = value - float(np.polyval(highest_first, value)) / slope
                if abs(refined - value) < 1.0e-6:
                    value = refined
            if -ENDPOINT_SNAP_EPSILON <= value <= 1.0 + ENDPOINT_SNAP_EPSILON:
                roots.append(min(max(value, 0.0), 1.0))
        roots.sort()
        merged: List[float] = []
        for value in roots:
            if merged and value - merged[-1] < _ROOT_MERGE_TOLERANCE:
                continue
            merged.append(value)
        return merged

    @classmethod
    def extrema(cls, points: ControlPoints) -> List[float]:
        """
        Parameters in the open interval (0, 1) where x or y reach a local extremum.

        For cubic curves the roots of the second derivative (inflections of x(t), y(t))
        are included as well.
        """
        points_array = cls.as_array(points)
        degree = points_array.shape[0] - 1
        if degree < 2:
            return []
        derivatives = [cls.derivative_points(points_array)]
        if degree == 3:
            derivatives.append(cls.derivative_points(derivatives[0]))
        result: List[float] = []
        for derivative_points in derivatives:
            for axis in range(2):
                coefficients = cls.power_coefficients(derivative_points[:, axis])
                for root in cls.real_roots_in_unit_interval(coefficients):
                    if 0.0 < root < 1.0:
                        result.append(root)
        result.sort()
        unique: List[float] = []
        for value in result:
            if unique and value - unique[-1] < _ROOT_MERGE_TOLERANCE:
                continue
            unique.append(value)
        return unique

    @classmethod
    def bounding_box(cls, points: ControlPoints) -> AvBox:
        """Tight bounding box of the curve (endpoints plus coordinate extrema)."""
        points_array = cls.as_array(points)
        degree = points_array.shape[0] - 1
        if degree == 1:
            return cls.hull_box(points_array)
        derivative_points = cls.derivative_points(points_array)
        parameters = [0.0, 1.0]
        for axis in range(2):
            coefficients = cls.power_coefficients(derivative_points[:, axis])
            parameters.extend(cls.real_roots_in_unit_interval(coefficients))
        samples = cls.evaluate(points_array, np.asarray(parameters, dtype=np.float64))
        # endpoints are kept exact, they are the control points themselves
        samples[0] = points_array[0]
        samples[1] = points_array[-1]
        return cls.hull_box(samples)
