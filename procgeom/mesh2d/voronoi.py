from dataclasses import dataclass, field
from typing import Iterable, List, Optional

import numpy as np
import structlog

from procgeom.config import DEFAULT_SIZE, TriangulationConfig
from procgeom.mesh2d.geometry import circumcenters_batch, orientation
from procgeom.mesh2d.triangle import Triangle2D
from procgeom.mesh2d.triangulation import Triangulation
from procgeom.mesh2d.vertex import Vertex, as_vertex, midpoint

log = structlog.get_logger(__name__)


@dataclass
class Region:
    """
    Voronoi cell of one site.

    ``vertices`` are the circumcenters of the triangles around the site in
    counter-clockwise order; the polygon closes from the last vertex back
    to the first.
    """
    site: Vertex
    vertices: List[Vertex] = field(default_factory=list)

    def as_array(self) -> np.ndarray:
        return np.array(self.vertices, dtype=float).reshape(-1, 2)

    def area(self) -> float:
        """Signed shoelace area, positive for counter-clockwise order."""
        pts = self.as_array()
        if len(pts) < 3:
            return 0.0
        x, y = pts[:, 0], pts[:, 1]
        return 0.5 * float(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1)))

    def centroid(self) -> Vertex:
        return midpoint(self.vertices)

    def is_convex(self, tolerance: float = 1e-9) -> bool:
        n = len(self.vertices)
        if n < 3:
            return False
        scale = max(1.0, float(np.abs(self.as_array()).max()))
        for i in range(n):
            turn = orientation(self.vertices[i], self.vertices[(i + 1) % n], self.vertices[(i + 2) % n])
            if turn < -tolerance * scale * scale:
                return False
        return True

    def contains(self, p) -> bool:
        q = as_vertex(p)
        n = len(self.vertices)
        return n >= 3 and all(
            orientation(self.vertices[i], self.vertices[(i + 1) % n], q) >= 0 for i in range(n))

    def __len__(self):
        return len(self.vertices)


class Voronoi:
    """
    Voronoi diagram built as the dual of an incremental Delaunay triangulation.

    The triangulation is seeded with the super-triangle
    (-size, -size), (size, -size), (0, size); every site must lie strictly
    inside it.
    """

    def __init__(self, size: float = DEFAULT_SIZE, config: Optional[TriangulationConfig] = None,
                 logger=None):
        if not size > 0:
            raise ValueError(f"size must be positive, got {size}")
        self.size = float(size)
        self.log = logger if logger is not None else log
        initial = (Vertex(-self.size, -self.size), Vertex(self.size, -self.size), Vertex(0.0, self.size))
        self.triangulation = Triangulation(initial, config=config, logger=self.log)
        self._sites: List[Vertex] = []

    def add_point(self, p) -> bool:
        """
        Insert one site. Returns False for a duplicate, which is not registered.

        Errors raised by the triangulation propagate; the site list only
        grows after a successful insertion.
        """
        site = as_vertex(p)
        if not self.triangulation.insert(site):
            return False
        self._sites.append(site)
        return True

    def add_points(self, points: Iterable) -> int:
        added = 0
        for p in points:
            if self.add_point(p):
                added += 1
        return added

    def get_sites(self) -> List[Vertex]:
        return list(self._sites)

    def get_triangles(self, real_only: bool = False) -> List[Triangle2D]:
        """
        Snapshot of the live triangles.

        By default the triangles touching the super-triangle corners are
        included; ``real_only=True`` leaves them out.
        """
        tris = []
        for t in self.triangulation:
            if real_only and not self.triangulation.is_real(t):
                continue
            tris.append(t.to_value())
        return tris

    def get_regions(self) -> List[Region]:
        """
        One region per site, in the order the sites were added.

        Degenerate triangles in a fan have no circumcenter and are left out
        of the region instead of failing the whole extraction.
        """
        live = list(self.triangulation)
        centers = circumcenters_batch([t.vertices for t in live])
        center_of = {}
        for t, (x, y) in zip(live, centers):
            if np.isnan(x):
                self.log.debug("degenerate_triangle_skipped", triangle=repr(t))
                continue
            center_of[t.index] = Vertex(float(x), float(y))

        done = set(self.triangulation.super_vertices)
        cells = {}
        for triangle in live:
            for v in triangle.vertices:
                if v in done:
                    continue
                done.add(v)
                fan = self.triangulation.surrounding_triangles(v, triangle)
                cells[v] = [center_of[t.index] for t in fan if t.index in center_of]

        regions = []
        for site in self._sites:
            v = self.triangulation.vertex_for(site)
            regions.append(Region(site, cells[v]))
        return regions

    def __len__(self):
        return len(self._sites)

    def __repr__(self):
        return f"Voronoi(size={self.size}, sites={len(self._sites)})"


def triangulate(points: Iterable, size: float = DEFAULT_SIZE,
                config: Optional[TriangulationConfig] = None) -> Voronoi:
    """Build a Voronoi diagram (and its triangulation) from a batch of points."""
    voronoi = Voronoi(size, config=config)
    added = voronoi.add_points(points)
    log.debug("triangulated", sites=added, triangles=len(voronoi.triangulation))
    return voronoi
