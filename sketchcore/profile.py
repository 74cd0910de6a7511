"""Closed-loop profiles extracted from sketches.

A profile is what downstream solid modelling consumes: a list of closed loops
of 2D curves expressed in the coordinates of the sketch plane.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union

from .math_utils import TWO_PI, Vec2, dist2, normalize2, normalize_angle_positive, sub2
from .planes import XY_PLANE, DatumPlane
from .tolerance import DEFAULT_TOLERANCES, NumericContext

_FULL_TURN_EPS = 1e-12


@dataclass(frozen=True)
class LineCurve:
    p0: Vec2
    p1: Vec2

    kind = "line"


@dataclass(frozen=True)
class ArcCurve:
    """Arc of a circle swept from ``start_angle`` to ``end_angle``.

    A full circle has ``end_angle == start_angle + 2*pi`` (or ``- 2*pi`` when
    clockwise).
    """

    center: Vec2
    radius: float
    start_angle: float
    end_angle: float
    ccw: bool = True

    kind = "arc"


Curve = Union[LineCurve, ArcCurve]


@dataclass
class ProfileLoop:
    curves: List[Curve]
    is_outer: bool = True


@dataclass
class Profile:
    plane: DatumPlane = XY_PLANE
    loops: List[ProfileLoop] = field(default_factory=list)


@dataclass
class ProfileValidation:
    valid: bool
    errors: List[str]


def arc_sweep(curve: ArcCurve) -> float:
    """Unsigned swept angle of ``curve`` in ``(0, 2*pi]``."""

    raw = curve.end_angle - curve.start_angle
    if not curve.ccw:
        raw = -raw
    if abs(abs(raw) - TWO_PI) <= _FULL_TURN_EPS:
        return TWO_PI
    return normalize_angle_positive(raw)


def eval_curve(curve: Curve, t: float) -> Vec2:
    """Point at parameter ``t`` in ``[0, 1]``."""

    if isinstance(curve, LineCurve):
        return (
            curve.p0[0] + (curve.p1[0] - curve.p0[0]) * t,
            curve.p0[1] + (curve.p1[1] - curve.p0[1]) * t,
        )
    if isinstance(curve, ArcCurve):
        sweep = arc_sweep(curve)
        theta = curve.start_angle + (sweep if curve.ccw else -sweep) * t
        return (
            curve.center[0] + curve.radius * math.cos(theta),
            curve.center[1] + curve.radius * math.sin(theta),
        )
    raise TypeError(f"unsupported curve: {type(curve).__name__}")


def curve_tangent(curve: Curve, t: float) -> Vec2:
    """Unit tangent in the direction of travel at parameter ``t``."""

    if isinstance(curve, LineCurve):
        return normalize2(sub2(curve.p1, curve.p0))
    if isinstance(curve, ArcCurve):
        sweep = arc_sweep(curve)
        theta = curve.start_angle + (sweep if curve.ccw else -sweep) * t
        if curve.ccw:
            return -math.sin(theta), math.cos(theta)
        return math.sin(theta), -math.cos(theta)
    raise TypeError(f"unsupported curve: {type(curve).__name__}")


def curve_length(curve: Curve) -> float:
    if isinstance(curve, LineCurve):
        return dist2(curve.p0, curve.p1)
    if isinstance(curve, ArcCurve):
        return abs(curve.radius) * arc_sweep(curve)
    raise TypeError(f"unsupported curve: {type(curve).__name__}")


def curve_endpoints(curve: Curve) -> Tuple[Vec2, Vec2]:
    return eval_curve(curve, 0.0), eval_curve(curve, 1.0)


def reverse_curve(curve: Curve) -> Curve:
    if isinstance(curve, LineCurve):
        return LineCurve(curve.p1, curve.p0)
    if isinstance(curve, ArcCurve):
        return ArcCurve(
            center=curve.center,
            radius=curve.radius,
            start_angle=curve.end_angle,
            end_angle=curve.start_angle,
            ccw=not curve.ccw,
        )
    raise TypeError(f"unsupported curve: {type(curve).__name__}")


def loop_vertices(loop: ProfileLoop) -> List[Vec2]:
    """Start point of every curve in the loop."""

    return [eval_curve(curve, 0.0) for curve in loop.curves]


def loop_polyline(loop: ProfileLoop, arc_segments: int = 32) -> List[Vec2]:
    """Polyline approximation of the loop (arcs sampled, closing point omitted)."""

    points: List[Vec2] = []
    for curve in loop.curves:
        if isinstance(curve, ArcCurve):
            steps = max(2, int(math.ceil(arc_segments * arc_sweep(curve) / TWO_PI)))
            points.extend(eval_curve(curve, i / steps) for i in range(steps))
        else:
            points.append(curve.p0)
    return points


def _curve_area_term(curve: Curve) -> float:
    if isinstance(curve, LineCurve):
        (x0, y0), (x1, y1) = curve.p0, curve.p1
        return 0.5 * (x0 * y1 - x1 * y0)
    sweep = arc_sweep(curve)
    a = curve.start_angle
    b = a + (sweep if curve.ccw else -sweep)
    r = curve.radius
    cx, cy = curve.center
    return 0.5 * (r * r * (b - a) + r * cx * (math.sin(b) - math.sin(a)) - r * cy * (math.cos(b) - math.cos(a)))


def loop_signed_area(loop: ProfileLoop) -> float:
    """Exact signed area enclosed by the loop; positive when counter-clockwise."""

    return sum(_curve_area_term(curve) for curve in loop.curves)


def compute_profile_area(profile: Profile) -> float:
    total = 0.0
    for loop in profile.loops:
        area = abs(loop_signed_area(loop))
        total += area if loop.is_outer else -area
    return total


def add_loop_to_profile(profile: Profile, curves: Sequence[Curve], is_outer: bool) -> ProfileLoop:
    loop = ProfileLoop(curves=list(curves), is_outer=is_outer)
    profile.loops.append(loop)
    return loop


def validate_profile(profile: Profile, ctx: NumericContext = DEFAULT_TOLERANCES) -> ProfileValidation:
    errors: List[str] = []
    if not profile.loops:
        return ProfileValidation(valid=False, errors=["profile has no loops"])

    for loop_idx, loop in enumerate(profile.loops):
        if not loop.curves:
            errors.append(f"loop {loop_idx} has no curves")
            continue
        count = len(loop.curves)
        for i, curve in enumerate(loop.curves):
            nxt = loop.curves[(i + 1) % count]
            gap = dist2(eval_curve(curve, 1.0), eval_curve(nxt, 0.0))
            if gap > ctx.length:
                errors.append(
                    f"loop {loop_idx}: gap of {gap:.6g} between curve {i} and {(i + 1) % count}"
                )

    if not any(loop.is_outer for loop in profile.loops):
        errors.append("profile has no outer loop")

    return ProfileValidation(valid=not errors, errors=errors)


def _polygon_curves(vertices: Sequence[Vec2]) -> List[Curve]:
    count = len(vertices)
    return [LineCurve(tuple(vertices[i]), tuple(vertices[(i + 1) % count])) for i in range(count)]  # type: ignore[arg-type]


def create_rectangle_profile(
    width: float,
    height: float,
    center_x: float = 0.0,
    center_y: float = 0.0,
    plane: DatumPlane = XY_PLANE,
) -> Profile:
    hw = width / 2.0
    hh = height / 2.0
    corners = [
        (center_x - hw, center_y - hh),
        (center_x + hw, center_y - hh),
        (center_x + hw, center_y + hh),
        (center_x - hw, center_y + hh),
    ]
    profile = Profile(plane=plane)
    add_loop_to_profile(profile, _polygon_curves(corners), True)
    return profile


def create_circle_profile(
    radius: float,
    center_x: float = 0.0,
    center_y: float = 0.0,
    plane: DatumPlane = XY_PLANE,
) -> Profile:
    arc = ArcCurve(center=(center_x, center_y), radius=radius, start_angle=0.0, end_angle=TWO_PI, ccw=True)
    profile = Profile(plane=plane)
    add_loop_to_profile(profile, [arc], True)
    return profile


def create_polygon_profile(vertices: Sequence[Vec2], plane: DatumPlane = XY_PLANE) -> Profile:
    if len(vertices) < 3:
        raise ValueError("polygon must have at least 3 vertices")
    profile = Profile(plane=plane)
    add_loop_to_profile(profile, _polygon_curves(vertices), True)
    return profile


def create_rectangle_with_hole_profile(
    outer_width: float,
    outer_height: float,
    inner_width: float,
    inner_height: float,
    plane: DatumPlane = XY_PLANE,
) -> Profile:
    profile = create_rectangle_profile(outer_width, outer_height, plane=plane)
    ihw = inner_width / 2.0
    ihh = inner_height / 2.0
    # holes wind clockwise
    hole = [(-ihw, -ihh), (-ihw, ihh), (ihw, ihh), (ihw, -ihh)]
    add_loop_to_profile(profile, _polygon_curves(hole), False)
    return profile


def profile_summary(profile: Optional[Profile]) -> Optional[List[dict]]:
    """JSON-friendly description of the loops of ``profile``."""

    if profile is None:
        return None
    return [
        {
            "is_outer": loop.is_outer,
            "curves": [curve.kind for curve in loop.curves],
            "area": loop_signed_area(loop),
        }
        for loop in profile.loops
    ]


__all__ = [
    "ArcCurve",
    "Curve",
    "LineCurve",
    "Profile",
    "ProfileLoop",
    "ProfileValidation",
    "add_loop_to_profile",
    "arc_sweep",
    "compute_profile_area",
    "create_circle_profile",
    "create_polygon_profile",
    "create_rectangle_profile",
    "create_rectangle_with_hole_profile",
    "curve_endpoints",
    "curve_length",
    "curve_tangent",
    "eval_curve",
    "loop_polyline",
    "loop_signed_area",
    "loop_vertices",
    "profile_summary",
    "reverse_curve",
    "validate_profile",
]
