from typing import List, Tuple

import numpy as np
import structlog

from procgeom.mesh2d.triangle import Triangle
from procgeom.mesh2d.triangulation import Triangulation

log = structlog.get_logger(__name__)


def _strictly_inside(triangle: Triangle, point, rel_tol: float) -> bool:
    center = triangle.circumcenter
    radius = center.distance_to(triangle.vertices[0])
    return center.distance_to(point) < radius * (1.0 - rel_tol)


def global_delaunay_check(triangulation: Triangulation, rel_tol: float = 1e-9) -> bool:
    """
    Brute force empty-circle test: no vertex of the triangulation may lie
    strictly inside the circumcircle of a triangle it is not a corner of.
    """
    points = np.array(triangulation.vertices, dtype=float)
    for triangle in triangulation:
        if triangle.is_degenerate:
            log.warning("degenerate_triangle", triangle=repr(triangle))
            return False
        center = np.array(triangle.circumcenter, dtype=float)
        radius = triangle.circumcenter.distance_to(triangle.vertices[0])
        dist = np.hypot(points[:, 0] - center[0], points[:, 1] - center[1])
        for idx in np.nonzero(dist < radius * (1.0 - rel_tol))[0]:
            if triangulation.vertices[idx] in triangle.vertices:
                continue
            log.warning("delaunay_violation", triangle=repr(triangle),
                        vertex=repr(triangulation.vertices[idx]))
            return False
    return True


def local_delaunay_violations(triangulation: Triangulation,
                              rel_tol: float = 1e-9) -> List[Tuple[Triangle, Triangle]]:
    """Neighbor pairs where the far corner of the neighbor sits inside the circumcircle."""
    violations = []
    for triangle in triangulation:
        for i, n in enumerate(triangle.neighbors):
            if n is None:
                continue
            other = triangulation.triangles[n]
            a, b = triangle.vertices[(i + 1) % 3], triangle.vertices[(i + 2) % 3]
            far = other.opposite_vertex(a, b)
            if triangle.is_degenerate or _strictly_inside(triangle, far, rel_tol):
                violations.append((triangle, other))
    return violations


def is_connected(triangulation: Triangulation) -> bool:
    """Every live triangle is reachable from any other through neighbor links."""
    live = {t.index for t in triangulation}
    if not live:
        return True
    start = next(iter(live))
    seen = {start}
    stack = [start]
    while stack:
        for n in triangulation.triangles[stack.pop()].neighbors:
            if n is None:
                continue
            if n not in live:
                # link into a tombstone
                return False
            if n not in seen:
                seen.add(n)
                stack.append(n)
    return seen == live


def check_neighbor_symmetry(triangulation: Triangulation) -> bool:
    """Each link A -> B across edge {u, v} is matched by B -> A across the same edge."""
    for triangle in triangulation:
        for i, n in enumerate(triangle.neighbors):
            if n is None:
                continue
            other = triangulation.triangles[n]
            if other is None:
                return False
            a, b = triangle.vertices[(i + 1) % 3], triangle.vertices[(i + 2) % 3]
            if not (other.contains_vertex(a) and other.contains_vertex(b)):
                return False
            if other.neighbor_across(a, b) != triangle.index:
                return False
    return True
