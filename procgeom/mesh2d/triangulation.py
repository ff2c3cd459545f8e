from typing import Dict, Iterator, List, Optional, Set, Tuple

import numpy as np
import structlog

from procgeom.config import TriangulationConfig
from procgeom.errors import InvalidGeometryError, TriangulationInvariantError
from procgeom.mesh2d.geometry import in_circle_batch, is_collinear, orientation
from procgeom.mesh2d.triangle import Triangle
from procgeom.mesh2d.vertex import Vertex, as_vertex

log = structlog.get_logger(__name__)

# (edge start, edge end, outside neighbor, cavity triangle the edge belongs to)
BoundaryEdge = Tuple[Vertex, Vertex, Optional[int], int]


class Triangulation:
    """
    Incremental Delaunay triangulation over a bounding super-triangle.

    Triangles live in an arena (``self.triangles``) addressed by stable
    integer indices. Removing a triangle leaves a ``None`` tombstone in its
    slot; new triangles are appended. Neighbor links are arena indices.

    Every insertion scans all live triangles for the ones whose circumcircle
    holds the new point, removes them and fans the resulting hole out from
    the point. All checks run before the arena is touched, so a failing
    insertion leaves the graph exactly as it was.
    """

    def __init__(self, super_triangle, config: Optional[TriangulationConfig] = None, logger=None):
        self.config = config or TriangulationConfig()
        self.log = logger if logger is not None else log

        a, b, c = (as_vertex(v) for v in super_triangle)
        if is_collinear(a, b, c):
            raise InvalidGeometryError("super-triangle corners are collinear", corners=(a, b, c))
        if orientation(a, b, c) < 0:
            # keep every triangle counter-clockwise
            b, c = c, b

        self.triangles: List[Optional[Triangle]] = []
        self.vertices: List[Vertex] = []
        self._vertex_ids: Dict[Tuple[float, float], int] = {}
        self._incident: Dict[Vertex, int] = {}
        self._live = 0
        self._last: Optional[int] = None

        for v in (a, b, c):
            self._register_vertex(v)
        self.super_vertices: Tuple[Vertex, Vertex, Vertex] = (a, b, c)
        self._append(Triangle(a, b, c))

        self.log.debug("triangulation_created", corners=[tuple(v) for v in self.super_vertices])

    # ------------------------------------------------------------------
    # queries

    @property
    def sites(self) -> List[Vertex]:
        """Real vertices in insertion order (super-triangle corners excluded)."""
        return self.vertices[3:]

    def is_super_vertex(self, v) -> bool:
        return as_vertex(v) in self.super_vertices

    def is_real(self, triangle: Triangle) -> bool:
        """True if no corner belongs to the super-triangle."""
        return not triangle.touches(self.super_vertices)

    def vertex_for(self, point) -> Optional[Vertex]:
        """The stored vertex sharing `point`'s canonical key, if any."""
        vid = self._vertex_ids.get(as_vertex(point).key(self.config.precision))
        return None if vid is None else self.vertices[vid]

    def incident_triangle(self, vertex) -> Triangle:
        """Some live triangle having `vertex` as a corner."""
        v = self._canonical(vertex)
        return self.triangles[self._incident[v]]

    def neighbors(self, triangle) -> List[Triangle]:
        tri = self._resolve(triangle)
        return [self.triangles[n] for n in tri.neighbors if n is not None]

    def neighbor_opposite(self, vertex, triangle) -> Optional[Triangle]:
        """The triangle across the edge of `triangle` that does not touch `vertex`."""
        tri = self._resolve(triangle)
        n = tri.neighbors[tri.index_of(self._canonical(vertex))]
        return None if n is None else self.triangles[n]

    def locate(self, point) -> Optional[Triangle]:
        """
        Find a live triangle containing `point` (edges inclusive).

        Walks from the most recently created triangle across any edge that
        has the point on its outer side. Returns None when the point is
        outside the super-triangle.
        """
        p = as_vertex(point)
        tid = self._last
        visited = set()
        while tid is not None and tid not in visited:
            visited.add(tid)
            tri = self.triangles[tid]
            for i in range(3):
                a, b = tri.vertices[(i + 1) % 3], tri.vertices[(i + 2) % 3]
                if orientation(a, b, p) < 0:
                    tid = tri.neighbors[i]
                    if tid is None:
                        # the hull is the super-triangle, which is convex
                        return None
                    break
            else:
                return tri

        # walk cycled on a near-degenerate configuration
        for tri in self:
            if tri.contains_point(p):
                return tri
        return None

    def surrounding_triangles(self, vertex, start) -> List[Triangle]:
        """
        Fan of triangles around `vertex`, counter-clockwise, beginning at `start`.

        Interior vertices yield a closed fan that stops before coming back
        to `start`. Vertices on the outer hull yield an open fan running
        from one hull edge to the other.
        """
        v = self._canonical(vertex)
        first = self._resolve(start)
        if not first.contains_vertex(v):
            raise ValueError(f"{first} does not have {v} as a corner")

        fan = [first]
        tri = first
        nxt = tri.neighbors[(tri.index_of(v) + 1) % 3]
        while nxt is not None and nxt != first.index:
            tri = self.triangles[nxt]
            fan.append(tri)
            if len(fan) > self._live:
                raise TriangulationInvariantError("fan walk does not close", vertex=v)
            nxt = tri.neighbors[(tri.index_of(v) + 1) % 3]

        if nxt is None:
            # open fan, pick up the triangles clockwise of start
            back = []
            tri = first
            prv = tri.neighbors[(tri.index_of(v) + 2) % 3]
            while prv is not None:
                tri = self.triangles[prv]
                back.append(tri)
                if len(fan) + len(back) > self._live:
                    raise TriangulationInvariantError("fan walk does not terminate", vertex=v)
                prv = tri.neighbors[(tri.index_of(v) + 2) % 3]
            fan = back[::-1] + fan
        return fan

    def __iter__(self) -> Iterator[Triangle]:
        return (t for t in self.triangles if t is not None)

    def __len__(self):
        return self._live

    def __contains__(self, triangle):
        return any(t == triangle for t in self)

    def __repr__(self):
        return f"Triangulation(sites={len(self.sites)}, triangles={self._live})"

    # ------------------------------------------------------------------
    # insertion

    def insert(self, point) -> bool:
        """
        Add one site and restore the Delaunay property.

        Returns False, leaving the graph untouched, when the point shares
        its canonical key with an existing vertex.

        Raises
        ------
        InvalidGeometryError
            The point is outside the super-triangle or on its hull.
        TriangulationInvariantError
            The cavity boundary is not a simple loop.
        """
        p = as_vertex(point)
        key = p.key(self.config.precision)
        if key in self._vertex_ids:
            self.log.debug("duplicate_point_ignored", x=p.x, y=p.y,
                           existing=self._vertex_ids[key])
            return False

        cavity, boundary = self._cavity(p)
        self._check_boundary(p, cavity, boundary)
        created = self._retriangulate(p, cavity, boundary)

        self.log.debug("point_inserted", x=p.x, y=p.y, removed=len(cavity),
                       created=created, triangles=self._live)
        return True

    def _cavity(self, p: Vertex) -> Tuple[Set[int], List[BoundaryEdge]]:
        start = self.locate(p)
        if start is None:
            self.log.warning("point_outside_coverage", x=p.x, y=p.y)
            raise InvalidGeometryError(f"{p} lies outside the super-triangle", point=p)

        # naive scan over every live triangle
        live = list(self)
        corners = np.array([t.vertices for t in live], dtype=float)
        values = in_circle_batch(corners, p)
        bad = {t.index for t, value in zip(live, values) if value > self.config.in_circle_tolerance}
        bad.add(start.index)
        cavity = self._connected(start.index, bad)

        # shrink or grow the cavity until every boundary edge faces p
        for _ in range(len(self.triangles) + 1):
            boundary = self._boundary(cavity)
            offending = [(tid, nb) for a, b, nb, tid in boundary if orientation(a, b, p) <= 0]
            if not offending:
                return cavity, boundary
            for tid, nb in offending:
                if self.triangles[tid].contains_point(p):
                    # p sits on this edge, the far side must go too
                    if nb is None:
                        self.log.warning("point_on_hull", x=p.x, y=p.y)
                        raise InvalidGeometryError(f"{p} lies on the super-triangle hull", point=p)
                    cavity.add(nb)
                else:
                    cavity.discard(tid)
            cavity = self._connected(start.index, cavity)
            self.log.debug("cavity_repaired", x=p.x, y=p.y, size=len(cavity))
        raise TriangulationInvariantError("cavity repair did not converge", point=p)

    def _connected(self, start: int, allowed: Set[int]) -> Set[int]:
        seen = {start}
        stack = [start]
        while stack:
            for n in self.triangles[stack.pop()].neighbors:
                if n is not None and n in allowed and n not in seen:
                    seen.add(n)
                    stack.append(n)
        return seen

    def _boundary(self, cavity: Set[int]) -> List[BoundaryEdge]:
        edges = []
        for tid in sorted(cavity):
            tri = self.triangles[tid]
            for i, n in enumerate(tri.neighbors):
                if n is None or n not in cavity:
                    edges.append((tri.vertices[(i + 1) % 3], tri.vertices[(i + 2) % 3], n, tid))
        return edges

    def _check_boundary(self, p: Vertex, cavity: Set[int], boundary: List[BoundaryEdge]):
        """The hole must be bounded by one simple loop through every cavity corner."""
        following = {}
        for a, b, _, _ in boundary:
            if a in following:
                raise TriangulationInvariantError("cavity boundary revisits a vertex", point=p, vertex=a)
            following[a] = b

        first = boundary[0][0]
        v, steps = first, 0
        while True:
            v = following.get(v)
            steps += 1
            if v is None or steps > len(boundary):
                raise TriangulationInvariantError("cavity boundary is not closed", point=p)
            if v == first:
                break
        if steps != len(boundary):
            raise TriangulationInvariantError("cavity boundary has several loops", point=p)

        corners = {v for tid in cavity for v in self.triangles[tid].vertices}
        if corners != set(following):
            raise TriangulationInvariantError("cavity swallows a vertex", point=p)

    def _retriangulate(self, p: Vertex, cavity: Set[int], boundary: List[BoundaryEdge]) -> int:
        self._register_vertex(p)

        base = len(self.triangles)
        starting_at = {}
        ending_at = {}
        for k, (a, b, _, _) in enumerate(boundary):
            starting_at[a] = base + k
            ending_at[b] = base + k

        for tid in cavity:
            self.triangles[tid] = None
            self._live -= 1

        for a, b, nb, _ in boundary:
            tri = Triangle(a, b, p)
            # across (b, p) is the new triangle leaving b, across (p, a) the one arriving at a
            tri.neighbors = [starting_at[b], ending_at[a], nb]
            self._append(tri)
            if nb is not None:
                outer = self.triangles[nb]
                outer.neighbors[outer.index_of(outer.opposite_vertex(a, b))] = tri.index
        return len(boundary)

    # ------------------------------------------------------------------
    # bookkeeping

    def _register_vertex(self, v: Vertex) -> int:
        vid = len(self.vertices)
        self.vertices.append(v)
        self._vertex_ids[v.key(self.config.precision)] = vid
        return vid

    def _append(self, tri: Triangle) -> int:
        tri.index = len(self.triangles)
        self.triangles.append(tri)
        self._live += 1
        self._last = tri.index
        for v in tri.vertices:
            self._incident[v] = tri.index
        return tri.index

    def _canonical(self, vertex) -> Vertex:
        v = self.vertex_for(vertex)
        if v is None:
            raise KeyError(f"{vertex} is not a vertex of this triangulation")
        return v

    def _resolve(self, triangle) -> Triangle:
        if isinstance(triangle, Triangle):
            idx = triangle.index
            if idx is not None and idx < len(self.triangles) and self.triangles[idx] is triangle:
                return triangle
            for t in self:
                if t == triangle:
                    return t
            raise ValueError(f"{triangle} is not a live triangle")
        tri = self.triangles[triangle]
        if tri is None:
            raise ValueError(f"triangle {triangle} has been removed")
        return tri
