"""Handling geometries: affine point math and axis-aligned boxes"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple, Union

from avc.common import Point


###############################################################################
# GeomMath
###############################################################################
class GeomMath:
    """Class to provide various static methods related to geometry handling."""

    @staticmethod
    def transform_point(
        affine_trafo: Sequence[Union[int, float]], point: Sequence[Union[int, float]]
    ) -> Tuple[float, float]:
        """
        Perform an affine transformation on the given 2D point.

        The given _affine_trafo_ is a list of 6 floats, performing an affine transformation.
        The transformation is defined as:
            | x' | = | a00 a01 b0 |   | x |
            | y' | = | a10 a11 b1 | * | y |
            | 1  | = |  0   0  1  |   | 1 |
        with
            affine_trafo = [a00, a01, a10, a11, b0, b1]

        Args:
            affine_trafo (Tuple/List[float]): Affine transformation - [a00, a01, a10, a11, b0, b1]
            point (Tuple/List[float]): 2D point - (x, y)

        Returns:
            Tuple[float, float]: the transformed point
        """
        if len(affine_trafo) != 6:
            raise ValueError(f"affine_trafo must have 6 values, got {len(affine_trafo)}")
        x_new = float(affine_trafo[0] * point[0] + affine_trafo[1] * point[1] + affine_trafo[4])
        y_new = float(affine_trafo[2] * point[0] + affine_trafo[3] * point[1] + affine_trafo[5])
        return (x_new, y_new)

    @staticmethod
    def distance(point_a: Sequence[float], point_b: Sequence[float]) -> float:
        """Euclidean distance between two 2D points."""
        return math.hypot(point_a[0] - point_b[0], point_a[1] - point_b[1])

    @staticmethod
    def lerp(t: float, point_a: Sequence[float], point_b: Sequence[float]) -> Point:
        """Linear interpolation between _point_a_ (t=0) and _point_b_ (t=1)."""
        return (
            float(point_a[0] + t * (point_b[0] - point_a[0])),
            float(point_a[1] + t * (point_b[1] - point_a[1])),
        )


###############################################################################
# AvBox
###############################################################################
@dataclass(frozen=True)
class AvBox:
    """
    Represents an immutable axis-aligned box over 2D points.

    A box may be empty (see `AvBox.empty()`); the empty box has inverted infinite
    extents so that it is the neutral element of `union`.

    Attributes:
        xmin (float): The minimum x-coordinate.
        ymin (float): The minimum y-coordinate.
        xmax (float): The maximum x-coordinate.
        ymax (float): The maximum y-coordinate.
    """

    _xmin: float
    _ymin: float
    _xmax: float
    _ymax: float

    def __init__(self, xmin: float, ymin: float, xmax: float, ymax: float):
        """Initialize AvBox with coordinates.

        Args:
            xmin: The minimum x-coordinate
            ymin: The minimum y-coordinate
            xmax: The maximum x-coordinate
            ymax: The maximum y-coordinate
        """
        xmin, xmax = float(xmin), float(xmax)
        ymin, ymax = float(ymin), float(ymax)

        # Normalize coordinates to ensure xmin ≤ xmax and ymin ≤ ymax
        if xmin > xmax:
            xmin, xmax = xmax, xmin
        if ymin > ymax:
            ymin, ymax = ymax, ymin

        object.__setattr__(self, "_xmin", xmin)
        object.__setattr__(self, "_ymin", ymin)
        object.__setattr__(self, "_xmax", xmax)
        object.__setattr__(self, "_ymax", ymax)

    @classmethod
    def empty(cls) -> AvBox:
        """Return the empty box (contains nothing, neutral element of union)."""
        box = cls.__new__(cls)
        object.__setattr__(box, "_xmin", math.inf)
        object.__setattr__(box, "_ymin", math.inf)
        object.__setattr__(box, "_xmax", -math.inf)
        object.__setattr__(box, "_ymax", -math.inf)
        return box

    @classmethod
    def from_points(cls, points: Iterable[Sequence[float]]) -> AvBox:
        """Return the tightest box around the given points (empty box for no points)."""
        box = cls.empty()
        for point in points:
            box = box.union_point(point)
        return box

    @property
    def xmin(self) -> float:
        """float: The minimum x-coordinate."""
        return self._xmin

    @property
    def ymin(self) -> float:
        """float: The minimum y-coordinate."""
        return self._ymin

    @property
    def xmax(self) -> float:
        """float: The maximum x-coordinate."""
        return self._xmax

    @property
    def ymax(self) -> float:
        """float: The maximum y-coordinate."""
        return self._ymax

    @property
    def is_empty(self) -> bool:
        """bool: True if this is the empty box."""
        return self._xmin > self._xmax or self._ymin > self._ymax

    @property
    def extent(self) -> Tuple[float, float, float, float]:
        """The extent of the box as Tuple (xmin, ymin, xmax, ymax)."""
        return self._xmin, self._ymin, self._xmax, self._ymax

    @property
    def width(self) -> float:
        """float: The width of the box (0 for the empty box)."""
        if self.is_empty:
            return 0.0
        return self._xmax - self._xmin

    @property
    def height(self) -> float:
        """float: The height of the box (0 for the empty box)."""
        if self.is_empty:
            return 0.0
        return self._ymax - self._ymin

    @property
    def area(self) -> float:
        """float: The area of the box, 0 for degenerate and empty boxes."""
        return self.width * self.height

    @property
    def centroid(self) -> Tuple[float, float]:
        """
        The centroid of the box.

        Returns:
            Tuple[float, float]: The coordinates of the centroid as (x, y)
        """
        return (self._xmin + self._xmax) / 2, (self._ymin + self._ymax) / 2

    def union(self, other: AvBox) -> AvBox:
        """Return the smallest box containing this box and _other_."""
        if other.is_empty:
            return self
        if self.is_empty:
            return other
        return AvBox(
            min(self._xmin, other._xmin),
            min(self._ymin, other._ymin),
            max(self._xmax, other._xmax),
            max(self._ymax, other._ymax),
        )

    def union_point(self, point: Sequence[float]) -> AvBox:
        """Return the smallest box containing this box and _point_."""
        x, y = float(point[0]), float(point[1])
        if self.is_empty:
            return AvBox(x, y, x, y)
        return AvBox(min(self._xmin, x), min(self._ymin, y), max(self._xmax, x), max(self._ymax, y))

    def expanded(self, margin: float) -> AvBox:
        """Return the box grown by _margin_ on all four sides (the empty box stays empty)."""
        if self.is_empty:
            return self
        return AvBox(self._xmin - margin, self._ymin - margin, self._xmax + margin, self._ymax + margin)

    def intersection(self, other: AvBox) -> AvBox:
        """Return the common part of both boxes, the empty box if they are disjoint."""
        if not self.overlaps(other):
            return AvBox.empty()
        return AvBox(
            max(self._xmin, other._xmin),
            max(self._ymin, other._ymin),
            min(self._xmax, other._xmax),
            min(self._ymax, other._ymax),
        )

    def contains(self, point: Sequence[float]) -> bool:
        """Return True if _point_ lies inside or on the border of the box."""
        return self._xmin <= point[0] <= self._xmax and self._ymin <= point[1] <= self._ymax

    def overlaps(self, other: AvBox) -> bool:
        """Return True if both boxes share at least one point (touching counts)."""
        if self.is_empty or other.is_empty:
            return False
        return (
            self._xmin <= other._xmax
            and other._xmin <= self._xmax
            and self._ymin <= other._ymax
            and other._ymin <= self._ymax
        )

    def lower_bound_of_distance(self, point: Sequence[float]) -> float:
        """Distance from _point_ to the nearest point of the box (0 if inside)."""
        if self.is_empty:
            return math.inf
        dx = max(self._xmin - point[0], 0.0, point[0] - self._xmax)
        dy = max(self._ymin - point[1], 0.0, point[1] - self._ymax)
        return math.hypot(dx, dy)

    def upper_bound_of_distance(self, point: Sequence[float]) -> float:
        """Distance from _point_ to the farthest corner of the box."""
        if self.is_empty:
            return math.inf
        dx = max(abs(point[0] - self._xmin), abs(point[0] - self._xmax))
        dy = max(abs(point[1] - self._ymin), abs(point[1] - self._ymax))
        return math.hypot(dx, dy)

    def transform_affine(self, affine_trafo: Sequence[Union[int, float]]) -> AvBox:
        """
        Transform the AvBox using the given affine transformation [a00, a01, a10, a11, b0, b1].

        All four corners are transformed, so the result stays a bounding box under rotation.

        Args:
            affine_trafo (List[float]): Affine transformation [a00, a01, a10, a11, b0, b1]

        Returns:
            AvBox: The transformed box
        """
        if self.is_empty:
            return self
        corners = (
            (self._xmin, self._ymin),
            (self._xmax, self._ymin),
            (self._xmax, self._ymax),
            (self._xmin, self._ymax),
        )
        return AvBox.from_points(GeomMath.transform_point(affine_trafo, corner) for corner in corners)

    @classmethod
    def from_dict(cls, data: dict) -> AvBox:
        """Create an AvBox instance from a dictionary."""
        if data.get("empty", False):
            return cls.empty()
        return cls(
            xmin=data.get("xmin", 0.0),
            ymin=data.get("ymin", 0.0),
            xmax=data.get("xmax", 0.0),
            ymax=data.get("ymax", 0.0),
        )

    def __str__(self):
        """Returns a string representation of the AvBox instance."""
        if self.is_empty:
            return "AvBox(empty)"
        return (
            f"AvBox(xmin={self.xmin}, ymin={self.ymin}, "
            f"xmax={self.xmax}, ymax={self.ymax}, "
            f"width={self.width}, height={self.height})"
        )

    def to_dict(self) -> dict:
        """Convert the AvBox instance to a dictionary."""
        if self.is_empty:
            return {"empty": True}
        return {
            "xmin": self.xmin,
            "ymin": self.ymin,
            "xmax": self.xmax,
            "ymax": self.ymax,
        }
