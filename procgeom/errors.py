class GeometryError(Exception):
    """Base class of every error raised by procgeom."""

    kind = "geometry"

    def __init__(self, message, **context):
        super().__init__(message)
        self.context = context


class InvalidGeometryError(GeometryError, ValueError):
    """
    Caller supplied a point or triangle the triangulation cannot accept:
    outside the super-triangle, on its hull, collinear corners or
    non-finite coordinates.
    """

    kind = "invalid-input"


class DegenerateTriangleError(GeometryError, ValueError):
    """Three points are collinear, the circumcircle is undefined."""

    kind = "degenerate"


class TriangulationInvariantError(GeometryError, AssertionError):
    """
    The cavity opened by an insertion does not have a simple closed
    boundary. Only reachable through a bug in bad-triangle detection.
    """

    kind = "invariant"
