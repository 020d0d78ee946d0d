"""
Closed-form 2-D trilateration from three anchors and range estimates
"""

import numpy as np
from typing import Tuple
from dvhop_simulator.protocols.errors import DegenerateGeometry

Point = Tuple[float, float]

# Offset of p3 from the p1->p2 line, relative to the anchor spread,
# below which the anchors count as collinear
DEGENERACY_TOLERANCE = 1e-6

# Minimum p1->p2 distance
COINCIDENCE_TOLERANCE = 1e-9


def trilaterate(p1: Point, p2: Point, p3: Point, r1: float, r2: float, r3: float) -> Point:
    """
    Intersect three circles centred on p1, p2, p3 with radii r1, r2, r3.

    A local frame is built with ex along p1->p2 and ey orthogonal to it
    through p3; the circle equations are solved there and the result is
    mapped back to global coordinates.

    Args:
        p1, p2, p3: Anchor positions
        r1, r2, r3: Estimated distances to each anchor

    Returns:
        The estimated (x, y) position

    Raises:
        DegenerateGeometry: p1 and p2 coincide, or the anchors are collinear
    """
    a1 = np.asarray(p1, dtype=float)
    a2 = np.asarray(p2, dtype=float)
    a3 = np.asarray(p3, dtype=float)

    d = np.linalg.norm(a2 - a1)
    if d <= COINCIDENCE_TOLERANCE:
        raise DegenerateGeometry(f"First two anchors coincide: {p1}, {p2}")
    ex = (a2 - a1) / d

    aux = a3 - a1
    i = float(np.dot(ex, aux))
    orthogonal = aux - i * ex
    norm = np.linalg.norm(orthogonal)
    if norm <= DEGENERACY_TOLERANCE * max(d, float(np.linalg.norm(aux))):
        raise DegenerateGeometry(f"Anchors are collinear: {p1}, {p2}, {p3}")
    ey = orthogonal / norm
    j = float(np.dot(ey, aux))

    x = (r1 ** 2 - r2 ** 2 + d ** 2) / (2 * d)
    y = (r1 ** 2 - r3 ** 2 + i ** 2 + j ** 2) / (2 * j) - i * x / j

    result = a1 + x * ex + y * ey
    return (float(result[0]), float(result[1]))
