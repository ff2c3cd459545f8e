import numpy as np


def random_points_in_triangle(n, A, B, C, seed=None):
    """
    Draw n points uniformly inside triangle ABC.

    A, B, C are anything numpy can read as a length-2 array. Returns an
    (n, 2) array.
    """
    rng = np.random.default_rng(seed)
    A, B, C = (np.asarray(v, dtype=float) for v in (A, B, C))
    u = rng.random(n)
    v = rng.random(n)
    # reflect (u, v) back into u + v <= 1
    mask = u + v > 1
    u[mask] = 1 - u[mask]
    v[mask] = 1 - v[mask]
    return A + u[:, None] * (B - A) + v[:, None] * (C - A)
