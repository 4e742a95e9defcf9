from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

import numpy as np

if TYPE_CHECKING:
    from numpy import typing as npt

from beamsketch.model.geometry_primitives import Point


def as_array(points: Sequence[Point]) -> npt.NDArray[np.float64]:
    """Stack points into an (N, 2) array."""
    if not points:
        return np.empty((0, 2))
    return np.array([p.to_tuple() for p in points], dtype=float)


def polygon_signed_area(vertices: npt.NDArray[np.float64]) -> float:
    """
    Signed area of a closed polygon given as an (N, 2) array (shoelace formula).

    The first vertex must not be repeated at the end. The sign follows the
    usual mathematical convention (counter-clockwise positive with y up);
    with the y-down drawing frame the sign flips visually.
    """
    if len(vertices) < 3:
        return 0.0
    x = vertices[:, 0]
    y = vertices[:, 1]
    return float(0.5 * (np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))))


def _orientation(a, b, c, eps: float) -> int:
    val = (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])
    if abs(val) <= eps:
        return 0
    return 1 if val > 0 else -1


def _on_segment(a, b, p, eps: float) -> bool:
    return (
        min(a[0], b[0]) - eps <= p[0] <= max(a[0], b[0]) + eps
        and min(a[1], b[1]) - eps <= p[1] <= max(a[1], b[1]) + eps
    )


def segments_intersect(p1, p2, p3, p4, eps: float = 1e-9) -> bool:
    """
    True if the closed segments p1-p2 and p3-p4 share at least one point.

    Points are (x, y) pairs or arrays.
    """
    o1 = _orientation(p1, p2, p3, eps)
    o2 = _orientation(p1, p2, p4, eps)
    o3 = _orientation(p3, p4, p1, eps)
    o4 = _orientation(p3, p4, p2, eps)

    if o1 != o2 and o3 != o4 and 0 not in (o1, o2, o3, o4):
        return True

    # Collinear / touching cases
    if o1 == 0 and _on_segment(p1, p2, p3, eps): return True
    if o2 == 0 and _on_segment(p1, p2, p4, eps): return True
    if o3 == 0 and _on_segment(p3, p4, p1, eps): return True
    if o4 == 0 and _on_segment(p3, p4, p2, eps): return True
    return False


def is_simple_polygon(vertices: npt.NDArray[np.float64], eps: float = 1e-9) -> bool:
    """
    Check that a closed polygon does not cross or touch itself.

    Every pair of non-adjacent edges is tested, so this is O(n^2); outlines
    handled by the kernel have a few hundred vertices at most.

    Args:
        vertices: (N, 2) array, first vertex not repeated at the end.
        eps: Tolerance for the collinearity tests.

    Returns:
        False for fewer than three vertices, repeated vertices, or any
        intersection between non-adjacent edges.
    """
    n = len(vertices)
    if n < 3:
        return False

    for i in range(n):
        if np.allclose(vertices[i], vertices[(i + 1) % n], atol=eps):
            return False

    for i in range(n):
        a1, a2 = vertices[i], vertices[(i + 1) % n]
        for j in range(i + 1, n):
            # Adjacent edges share a vertex by construction
            if j == i + 1 or (i == 0 and j == n - 1):
                continue
            b1, b2 = vertices[j], vertices[(j + 1) % n]
            if segments_intersect(a1, a2, b1, b2, eps):
                return False
    return True


def drop_collinear(vertices: list[tuple[int, int]]) -> list[tuple[int, int]]:
    """
    Remove vertices of a closed integer polyline where the direction does not change.
    """
    n = len(vertices)
    if n < 3:
        return list(vertices)

    kept = []
    for i in range(n):
        prev_pt = vertices[i - 1]
        cur = vertices[i]
        nxt = vertices[(i + 1) % n]
        d_in = (cur[0] - prev_pt[0], cur[1] - prev_pt[1])
        d_out = (nxt[0] - cur[0], nxt[1] - cur[1])
        if d_in[0] * d_out[1] - d_in[1] * d_out[0] != 0:
            kept.append(cur)
        elif d_in[0] * d_out[0] + d_in[1] * d_out[1] < 0:
            # Reversal (spike), keep it so the loop stays closed
            kept.append(cur)
    return kept
