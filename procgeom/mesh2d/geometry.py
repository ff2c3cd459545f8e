import math

import numpy as np

from procgeom.errors import DegenerateTriangleError
from procgeom.mesh2d.vertex import Vertex

# |2 * signed area| at or below EPSILON * (longest edge)^2 counts as collinear
EPSILON = 1e-12


def orientation(p, q, r):
    """
    Cross product of (q - p) and (r - p):

          ToLeft(p, q, r) = | p.x p.y 1 |
                            | q.x q.y 1 | = (q.x - p.x)*(r.y - p.y) - (q.y - p.y)*(r.x - p.x)
                            | r.x r.y 1 |

    > 0  r lies left of the directed line p->q (p, q, r counter-clockwise),
    = 0  collinear,
    < 0  r lies to the right.
    """
    return (q.x - p.x) * (r.y - p.y) - (q.y - p.y) * (r.x - p.x)


def is_collinear(a, b, c) -> bool:
    """
    True when a, b and c are collinear up to EPSILON relative to the
    triangle's own size, so the test reads the same at any coordinate scale.
    """
    longest = max((b.x - a.x) ** 2 + (b.y - a.y) ** 2,
                  (c.x - a.x) ** 2 + (c.y - a.y) ** 2,
                  (c.x - b.x) ** 2 + (c.y - b.y) ** 2)
    return abs(orientation(a, b, c)) <= EPSILON * longest


def in_circle_batch(triangles, d):
    """
    InCircle test of one point against many triangles.

    Parameters
    ----------
    triangles : ndarray, shape (N, 3, 2)
        Counter-clockwise corner coordinates.
    d : point with x, y

    Returns
    -------
    ndarray, shape (N,)
        > 0 where d lies strictly inside the circumcircle, 0 on it and < 0
        outside. The determinant is expanded on coordinates translated to
        d, which keeps co-circular integer inputs exactly at 0.
    """
    tris = np.asarray(triangles, dtype=float)
    if tris.size == 0:
        return np.zeros(0)
    rel = tris - np.array([d.x, d.y], dtype=float)

    ax, ay = rel[:, 0, 0], rel[:, 0, 1]
    bx, by = rel[:, 1, 0], rel[:, 1, 1]
    cx, cy = rel[:, 2, 0], rel[:, 2, 1]

    alift = ax * ax + ay * ay
    blift = bx * bx + by * by
    clift = cx * cx + cy * cy

    return (alift * (bx * cy - cx * by)
            + blift * (cx * ay - ax * cy)
            + clift * (ax * by - bx * ay))


def circumcenter(a, b, c):
    """
    Circumcenter of triangle ABC.

    Parameters
    ----------
    a, b, c : Vertex
        Triangle corners.

    Returns
    -------
    Vertex
        Point equidistant from a, b and c.

    Raises
    ------
    DegenerateTriangleError
        When the three points are collinear and the circle is undefined.
    """
    # work relative to a so the result does not depend on where the triangle sits
    bx, by = b.x - a.x, b.y - a.y
    cx, cy = c.x - a.x, c.y - a.y
    b2 = bx * bx + by * by
    c2 = cx * cx + cy * cy

    d = 2 * (bx * cy - by * cx)
    if is_collinear(a, b, c):
        raise DegenerateTriangleError("Points are colinear; circumcenter is undefined.",
                                      corners=(a, b, c))

    ux = a.x + (cy * b2 - by * c2) / d
    uy = a.y + (bx * c2 - cx * b2) / d

    if not (math.isfinite(ux) and math.isfinite(uy)):
        raise DegenerateTriangleError("Circumcenter overflowed.", corners=(a, b, c))
    return Vertex(ux, uy)


def circumcenters_batch(pts):
    """
    Circumcenters of many triangles at once, same arithmetic as `circumcenter`.

    Parameters
    ----------
    pts : ndarray, shape (N, 3, 2)

    Returns
    -------
    centers : ndarray, shape (N, 2)
        NaN rows where `circumcenter` would raise.
    """
    pts = np.asarray(pts, dtype=float)
    if pts.ndim != 3 or pts.shape[-2:] != (3, 2):
        raise ValueError(f"expected shape (N, 3, 2), got {pts.shape}")

    ax, ay = pts[:, 0, 0], pts[:, 0, 1]
    bx, by = pts[:, 1, 0] - ax, pts[:, 1, 1] - ay
    cx, cy = pts[:, 2, 0] - ax, pts[:, 2, 1] - ay
    b2 = bx * bx + by * by
    c2 = cx * cx + cy * cy

    d = 2 * (bx * cy - by * cx)
    longest = np.maximum(np.maximum(b2, c2), (cx - bx) ** 2 + (cy - by) ** 2)
    d = np.where(np.abs(d) <= 2 * EPSILON * longest, np.nan, d)

    centers = np.stack([ax + (cy * b2 - by * c2) / d,
                        ay + (bx * c2 - cx * b2) / d], axis=-1)
    centers[~np.isfinite(centers).all(axis=1)] = np.nan
    return centers


def point_in_triangle(p, a, b, c):
    """Inclusive containment test for a counter-clockwise triangle."""
    return (orientation(a, b, p) >= 0
            and orientation(b, c, p) >= 0
            and orientation(c, a, p) >= 0)
