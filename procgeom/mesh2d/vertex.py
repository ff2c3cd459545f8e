import math
from typing import Iterable, NamedTuple, Tuple

import numpy as np

from procgeom.errors import InvalidGeometryError


class Vertex(NamedTuple):
    """
    Immutable 2D point, equal and hashable by value.

    The triangulation never mutates a vertex; sites and triangle corners
    share the same value.
    """
    x: float
    y: float

    def key(self, precision: int) -> Tuple[float, float]:
        """Canonical lookup key: both coordinates rounded to `precision` decimals."""
        # +0.0 folds -0.0 into 0.0 so both land on the same key
        return round(self.x, precision) + 0.0, round(self.y, precision) + 0.0

    def distance_to(self, other) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def __repr__(self):
        return f"Vertex({self.x!r}, {self.y!r})"


def as_vertex(p) -> Vertex:
    """
    Copy any 2D point into a Vertex.

    Accepts a Vertex, anything exposing ``.x`` and ``.y``, a 2-sequence or a
    numpy array of shape (2,). The result is always a fresh value of floats,
    the caller's object is never kept.
    """
    if hasattr(p, "x") and hasattr(p, "y"):
        coords = (p.x, p.y)
    else:
        coords = p
    try:
        arr = np.asarray(coords, dtype=float).reshape(-1)
    except (TypeError, ValueError) as e:
        raise InvalidGeometryError(f"cannot read a 2D point from {p!r}", point=p) from e
    if arr.shape != (2,):
        raise InvalidGeometryError(f"expected a 2D point, got shape {arr.shape}", point=p)

    x, y = float(arr[0]), float(arr[1])
    if not (math.isfinite(x) and math.isfinite(y)):
        raise InvalidGeometryError(f"non-finite coordinates ({x}, {y})", point=p)
    return Vertex(x, y)


def midpoint(p: Iterable[Vertex]) -> Vertex:
    """Centroid of a sequence of vertices."""
    pts = list(p)
    if not pts:
        raise ValueError("midpoint of an empty sequence")
    sum_x = sum(v.x for v in pts)
    sum_y = sum(v.y for v in pts)
    return Vertex(sum_x / len(pts), sum_y / len(pts))
