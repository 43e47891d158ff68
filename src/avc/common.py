"""Central module containing types, enums and diagnostics for curve and path processing."""

from __future__ import annotations

from enum import Enum, auto
from typing import Literal, Tuple

###############################################################################
# Types
###############################################################################

Point = Tuple[float, float]

AvPathCmds = Literal[  # Type-Definition for path commands produced for rendering adapters
    # MoveTo (2) - start a new subpath and move the current point to (x,y)
    "M",
    # LineTo (2) - draw a straight line from the current point to (x,y)
    "L",
    # Cubic Bezier To (6) - draw a cubic Bezier curve with two control points and an endpoint (x,y)
    "C",
    # Quadratic Bezier To (4) - draw a quadratic Bezier curve with one control point and an endpoint (x,y)
    "Q",
    # ClosePath (0) - close subpath by drawing a line from the current point to start point
    "Z",
]


###############################################################################
# Enums
###############################################################################


class FillRule(Enum):
    """Enum to define how winding counts map to containment."""

    NONZERO = auto()
    EVEN_ODD = auto()

    def implies_containment(self, winding_count: int) -> bool:
        """Return True if the given winding count means "inside" under this rule."""
        if self is FillRule.NONZERO:
            return winding_count != 0
        return winding_count % 2 != 0


###############################################################################
# Errors and diagnostics
###############################################################################


class InvalidCurveDataError(ValueError):
    """Raised when serialized curve data cannot be turned into a curve."""


class DegenerateGeometryWarning(UserWarning):
    """Issued when a computation hits ill-defined geometry (cusps, zero-length derivatives, parallel normals).

    The computation still returns its regular (possibly degenerate) result.
    """
