from procgeom.mesh2d.vertex import Vertex, as_vertex
from procgeom.mesh2d.triangle import Triangle, Triangle2D
from procgeom.mesh2d.triangulation import Triangulation
from procgeom.mesh2d.voronoi import Region, Voronoi, triangulate

__all__ = [
    "Vertex", "as_vertex",
    "Triangle", "Triangle2D",
    "Triangulation",
    "Region", "Voronoi", "triangulate",
]
