from typing import Iterable, List, NamedTuple, Optional, Tuple

from procgeom.errors import DegenerateTriangleError
from procgeom.mesh2d.geometry import circumcenter, orientation, point_in_triangle
from procgeom.mesh2d.vertex import Vertex


class Triangle2D(NamedTuple):
    """Plain triangle value handed to callers: three corner coordinates."""
    a: Vertex
    b: Vertex
    c: Vertex


class Triangle:
    """
    One face of the triangulation graph.

    Corners are kept counter-clockwise. ``neighbors[i]`` is the arena index
    of the triangle across the edge opposite corner ``i`` (the edge from
    corner i+1 to corner i+2), or None on the outer boundary. ``index`` is
    this triangle's own arena slot, set when the triangulation registers it.
    """

    def __init__(self, a: Vertex, b: Vertex, c: Vertex):
        if a == b or b == c or c == a:
            raise ValueError(f"triangle corners must be distinct: {a}, {b}, {c}")
        self.vertices: Tuple[Vertex, Vertex, Vertex] = (a, b, c)
        self.neighbors: List[Optional[int]] = [None, None, None]
        self.index: Optional[int] = None
        try:
            self.circumcenter: Optional[Vertex] = circumcenter(a, b, c)
        except DegenerateTriangleError:
            # collinear corners: leave the sentinel, region extraction skips it
            self.circumcenter = None

    @property
    def is_degenerate(self) -> bool:
        return self.circumcenter is None

    @property
    def area(self) -> float:
        a, b, c = self.vertices
        return orientation(a, b, c) / 2.0

    def index_of(self, v: Vertex) -> int:
        """Corner slot of `v`; ValueError if `v` is not a corner."""
        return self.vertices.index(v)

    def contains_vertex(self, v: Vertex) -> bool:
        return v in self.vertices

    def touches(self, vertices: Iterable[Vertex]) -> bool:
        """True if any corner is one of `vertices` (e.g. the super-triangle corners)."""
        return any(v in self.vertices for v in vertices)

    def edges(self):
        """The three directed edges in winding order, edge i is opposite corner i."""
        a, b, c = self.vertices
        return [(b, c), (c, a), (a, b)]

    def _edge_slot(self, u: Vertex, v: Vertex) -> int:
        if u == v or u not in self.vertices or v not in self.vertices:
            raise ValueError(f"{u}-{v} is not an edge of {self}")
        for i, w in enumerate(self.vertices):
            if w != u and w != v:
                return i

    def neighbor_across(self, u: Vertex, v: Vertex) -> Optional[int]:
        """Arena index of the triangle sharing edge {u, v}, None at the hull."""
        return self.neighbors[self._edge_slot(u, v)]

    def opposite_vertex(self, u: Vertex, v: Vertex) -> Vertex:
        """The corner that is neither u nor v."""
        return self.vertices[self._edge_slot(u, v)]

    def contains_point(self, p) -> bool:
        return point_in_triangle(p, *self.vertices)

    def to_value(self) -> Triangle2D:
        return Triangle2D(*self.vertices)

    def __iter__(self):
        return iter(self.vertices)

    def __hash__(self):
        return hash(frozenset(self.vertices))

    def __eq__(self, other):
        if not isinstance(other, Triangle):
            return NotImplemented
        return frozenset(self.vertices) == frozenset(other.vertices)

    def __repr__(self):
        a, b, c = self.vertices
        return f"Triangle({a}, {b}, {c})"
