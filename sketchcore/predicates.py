"""Tolerant geometric predicates.

All predicates are pure functions of their arguments and a
:class:`~sketchcore.tolerance.NumericContext`.
"""

from __future__ import annotations

from enum import Enum
from typing import Sequence

from .math_utils import Vec2, Vec3, cross2, cross3, dot2, dot3, length2, length3, sub2, sub3
from .tolerance import DEFAULT_TOLERANCES, NumericContext, is_zero


class PlaneClassification(str, Enum):
    ABOVE = "above"
    ON = "on"
    BELOW = "below"


def _sign(value: float, ctx: NumericContext) -> int:
    if is_zero(value, ctx):
        return 0
    return 1 if value > 0 else -1


def orient2d(a: Vec2, b: Vec2, c: Vec2, ctx: NumericContext = DEFAULT_TOLERANCES) -> int:
    """Return ``1`` if ``a, b, c`` turn counter-clockwise, ``-1`` if clockwise, ``0`` if collinear.

    The determinant is always evaluated with ``a`` and ``b`` in lexicographic
    order so that swapping them flips the sign exactly, even for results that
    sit right on the tolerance boundary.
    """

    if (b[0], b[1]) < (a[0], a[1]):
        return -orient2d(b, a, c, ctx)
    return _sign(cross2(sub2(b, a), sub2(c, a)), ctx)


def orient3d(a: Vec3, b: Vec3, c: Vec3, d: Vec3, ctx: NumericContext = DEFAULT_TOLERANCES) -> int:
    """Sign of the signed volume of tetrahedron ``abcd``; ``0`` means coplanar."""

    volume = dot3(cross3(sub3(b, a), sub3(c, a)), sub3(d, a))
    return _sign(volume, ctx)


def distance_to_plane(p: Vec3, origin: Vec3, normal: Vec3) -> float:
    """Exact signed distance from ``p`` to the plane through ``origin``."""

    n = length3(normal)
    if n == 0.0:
        raise ValueError("plane normal must be non-zero")
    return dot3(sub3(p, origin), normal) / n


def classify_point_plane(
    p: Vec3, origin: Vec3, normal: Vec3, ctx: NumericContext = DEFAULT_TOLERANCES
) -> PlaneClassification:
    dist = distance_to_plane(p, origin, normal)
    if is_zero(dist, ctx):
        return PlaneClassification.ON
    return PlaneClassification.ABOVE if dist > 0 else PlaneClassification.BELOW


def is_point_on_segment_2d(
    p: Vec2, a: Vec2, b: Vec2, ctx: NumericContext = DEFAULT_TOLERANCES
) -> bool:
    """True when ``p`` lies on the closed segment ``ab`` within tolerance."""

    ab = sub2(b, a)
    ap = sub2(p, a)
    seg_len = length2(ab)
    if is_zero(seg_len, ctx):
        return is_zero(length2(ap), ctx)
    if not is_zero(cross2(ab, ap) / seg_len, ctx):
        return False
    t = dot2(ap, ab) / (seg_len * seg_len)
    slack = ctx.length / seg_len
    return -slack <= t <= 1.0 + slack


def is_point_on_segment_3d(
    p: Vec3, a: Vec3, b: Vec3, ctx: NumericContext = DEFAULT_TOLERANCES
) -> bool:
    ab = sub3(b, a)
    ap = sub3(p, a)
    seg_len = length3(ab)
    if is_zero(seg_len, ctx):
        return is_zero(length3(ap), ctx)
    if not is_zero(length3(cross3(ab, ap)) / seg_len, ctx):
        return False
    t = dot3(ap, ab) / (seg_len * seg_len)
    slack = ctx.length / seg_len
    return -slack <= t <= 1.0 + slack


def point_in_polygon_2d(p: Vec2, polygon: Sequence[Vec2]) -> bool:
    """Even-odd ray casting test; points on the boundary may land either side."""

    inside = False
    count = len(polygon)
    if count < 3:
        return False
    px, py = p
    j = count - 1
    for i in range(count):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        if (yi > py) != (yj > py):
            x_cross = xi + (py - yi) * (xj - xi) / (yj - yi)
            if px < x_cross:
                inside = not inside
        j = i
    return inside


__all__ = [
    "PlaneClassification",
    "classify_point_plane",
    "distance_to_plane",
    "is_point_on_segment_2d",
    "is_point_on_segment_3d",
    "orient2d",
    "orient3d",
    "point_in_polygon_2d",
]
