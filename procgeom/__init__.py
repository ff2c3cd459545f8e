"""2D computational-geometry primitives for procedural content generation."""

from procgeom.config import DEFAULT_SIZE, TriangulationConfig
from procgeom.errors import (
    DegenerateTriangleError,
    GeometryError,
    InvalidGeometryError,
    TriangulationInvariantError,
)
from procgeom.mesh2d import (
    Region,
    Triangle,
    Triangle2D,
    Triangulation,
    Vertex,
    Voronoi,
    as_vertex,
    triangulate,
)

__version__ = "0.1.0"
