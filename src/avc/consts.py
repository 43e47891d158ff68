"""Central module containing numeric constants and defaults of the curve kernel"""

from __future__ import annotations

# Default threshold of all intersection entry points (curve/curve subdivision stops below this size)
DEFAULT_INTERSECTION_THRESHOLD: float = 0.5

# Parameter values closer than this to 0.0 or 1.0 are snapped onto the endpoint
ENDPOINT_SNAP_EPSILON: float = 1.0e-9

# Derivatives shorter than this yield an ill-defined normal vector
DEGENERATE_DERIVATIVE_LENGTH: float = 1.0e-3

# Number of steps of the lookup table used for closest point projection
LOOKUP_TABLE_STEPS: int = 100

# Number of Gauss-Legendre nodes used for arc length integration
LENGTH_QUADRATURE_ORDER: int = 24

# Recursion guard of the curve/curve subdivision
MAX_SUBDIVISION_DEPTH: int = 48

# Newton refinement of curve/curve intersections
NEWTON_MAX_ITERATIONS: int = 12
NEWTON_TOLERANCE: float = 1.0e-12
