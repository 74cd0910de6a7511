"""Datum planes that sketches are drawn on."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .math_utils import Vec2, Vec3, add3, cross3, dot3, length3, normalize3, scale3, sub3

_PLANE_EPS = 1e-9


@dataclass(frozen=True)
class DatumPlane:
    """An oriented plane with an in-plane x axis.

    ``normal`` and ``x_dir`` are stored unit length and orthogonal; the
    in-plane y axis is ``normal x x_dir``.
    """

    name: str
    origin: Vec3
    normal: Vec3
    x_dir: Vec3

    @property
    def y_dir(self) -> Vec3:
        return cross3(self.normal, self.x_dir)

    def to_world(self, point: Vec2) -> Vec3:
        """Map sketch coordinates ``(u, v)`` to world coordinates."""

        u, v = point
        return add3(self.origin, add3(scale3(self.x_dir, u), scale3(self.y_dir, v)))

    def to_sketch(self, point: Vec3) -> Vec2:
        """Project a world point onto the plane and return its ``(u, v)``."""

        rel = sub3(point, self.origin)
        return dot3(rel, self.x_dir), dot3(rel, self.y_dir)


def _default_x_dir(normal: Vec3) -> Vec3:
    # Pick the world axis least aligned with the normal.
    axes = ((1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0))
    return min(axes, key=lambda axis: abs(dot3(axis, normal)))


def create_datum_plane(
    name: str, origin: Vec3, normal: Vec3, x_dir: Optional[Vec3] = None
) -> DatumPlane:
    """Build a plane, orthogonalising ``x_dir`` against ``normal``."""

    if length3(normal) < _PLANE_EPS:
        raise ValueError("plane normal must be non-zero")
    n = normalize3(normal)
    candidate = x_dir if x_dir is not None else _default_x_dir(n)
    projected = sub3(candidate, scale3(n, dot3(candidate, n)))
    if length3(projected) < _PLANE_EPS:
        projected = sub3(_default_x_dir(n), scale3(n, dot3(_default_x_dir(n), n)))
    return DatumPlane(
        name=name,
        origin=tuple(float(c) for c in origin),  # type: ignore[arg-type]
        normal=n,
        x_dir=normalize3(projected),
    )


def create_offset_plane(base: DatumPlane, distance: float, name: Optional[str] = None) -> DatumPlane:
    origin = add3(base.origin, scale3(base.normal, distance))
    return DatumPlane(
        name=name or f"{base.name}_offset_{distance:g}",
        origin=origin,
        normal=base.normal,
        x_dir=base.x_dir,
    )


def create_three_point_plane(p1: Vec3, p2: Vec3, p3: Vec3, name: str = "3-Point Plane") -> DatumPlane:
    v1 = sub3(p2, p1)
    normal = cross3(v1, sub3(p3, p1))
    if length3(normal) < _PLANE_EPS:
        raise ValueError("points are collinear; cannot define a plane")
    return create_datum_plane(name, p1, normal, v1)


XY_PLANE = DatumPlane("XY", (0.0, 0.0, 0.0), (0.0, 0.0, 1.0), (1.0, 0.0, 0.0))
YZ_PLANE = DatumPlane("YZ", (0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0))
ZX_PLANE = DatumPlane("ZX", (0.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0))


__all__ = [
    "DatumPlane",
    "XY_PLANE",
    "YZ_PLANE",
    "ZX_PLANE",
    "create_datum_plane",
    "create_offset_plane",
    "create_three_point_plane",
]
