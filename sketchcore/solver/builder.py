"""Translate a sketch and its constraints into residual blocks.

Each active constraint becomes one :class:`~sketchcore.solver.model.ResidualSpec`
whose residuals vanish exactly when the constraint holds.  Residuals are
functions of the free-variable vector, i.e. ``SketchModel.get_state()``;
fixed points enter as constants.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..constraints import (
    Angle,
    ArcArcTangent,
    BaseConstraint,
    Coincident,
    Concentric,
    Distance,
    EqualLength,
    EqualRadius,
    Fixed,
    HorizontalLine,
    HorizontalPoints,
    Midpoint,
    Parallel,
    Perpendicular,
    PointOnArc,
    PointOnLine,
    PointToLineDistance,
    RadiusDimension,
    Symmetric,
    Tangent,
    VerticalLine,
    VerticalPoints,
)
from ..logging_utils import apply_debug_logging
from ..math_utils import Vec2, cross2, dot2, length2, midpoint2, normalize2, sub2, wrap_angle
from ..sketch import SketchModel
from ..types import ArcEntity, CircleEntity, EntityId, LineEntity, PointId
from .model import ResidualBuilderConfig, ResidualSpec, SolveOptions

logger = logging.getLogger(__name__)


class ResidualBuilderError(ValueError):
    """Raised when a constraint references geometry that cannot be resolved."""


@dataclass(frozen=True)
class _PointRef:
    pid: PointId
    col: Optional[int]
    const: Vec2

    def at(self, x: np.ndarray) -> Vec2:
        if self.col is None:
            return self.const
        return float(x[self.col]), float(x[self.col + 1])


@dataclass(frozen=True)
class _CircleRef:
    """Center plus either a rim point (arcs) or a constant radius (circles)."""

    center: _PointRef
    rim: Optional[_PointRef] = None
    fixed_radius: float = 0.0

    def radius(self, x: np.ndarray) -> float:
        if self.rim is None:
            return self.fixed_radius
        return length2(sub2(self.rim.at(x), self.center.at(x)))

    def refs(self) -> Tuple[_PointRef, ...]:
        if self.rim is None:
            return (self.center,)
        return (self.center, self.rim)


DegeneracyCheck = Callable[[np.ndarray], bool]


@dataclass
class ResidualSystem:
    """Residual blocks for one solve, split into hard constraints and driven targets."""

    n: int
    hard: List[ResidualSpec] = field(default_factory=list)
    driven: List[ResidualSpec] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    checks: List[Tuple[str, DegeneracyCheck]] = field(default_factory=list)

    def degenerate(self, x: np.ndarray) -> List[str]:
        return [key for key, check in self.checks if check(x)]


class _Resolver:
    def __init__(self, sketch: SketchModel, config: ResidualBuilderConfig) -> None:
        self.sketch = sketch
        self.config = config
        self.index: Dict[PointId, int] = sketch.get_point_state_indices()
        self.n = 2 * len(self.index)

    def point(self, pid: PointId) -> _PointRef:
        p = self.sketch.points.get(pid)
        if p is None:
            raise ResidualBuilderError(f"unknown point {pid}")
        return _PointRef(pid, self.index.get(pid), (p.x, p.y))

    def line(self, eid: EntityId) -> Tuple[_PointRef, _PointRef]:
        entity = self.sketch.entities.get(eid)
        if entity is None:
            raise ResidualBuilderError(f"unknown entity {eid}")
        if not isinstance(entity, LineEntity):
            raise ResidualBuilderError(f"entity {eid} is a {entity.kind}, expected a line")
        return self.point(entity.start), self.point(entity.end)

    def circle(self, eid: EntityId) -> _CircleRef:
        entity = self.sketch.entities.get(eid)
        if entity is None:
            raise ResidualBuilderError(f"unknown entity {eid}")
        if isinstance(entity, ArcEntity):
            return _CircleRef(self.point(entity.center), self.point(entity.start))
        if isinstance(entity, CircleEntity):
            return _CircleRef(self.point(entity.center), None, entity.radius)
        raise ResidualBuilderError(f"entity {eid} is a {entity.kind}, expected an arc or circle")

    def arc_endpoint(self, eid: EntityId, which: str) -> Optional[_PointRef]:
        entity = self.sketch.entities.get(eid)
        if not isinstance(entity, ArcEntity):
            return None
        return self.point(entity.start if which == "start" else entity.end)

    def short(self, a: _PointRef, b: _PointRef) -> DegeneracyCheck:
        limit = self.config.degenerate_length

        def check(x: np.ndarray) -> bool:
            return length2(sub2(b.at(x), a.at(x))) <= limit

        return check


def _columns(*refs: _PointRef) -> np.ndarray:
    cols = set()
    for ref in refs:
        if ref.col is not None:
            cols.update((ref.col, ref.col + 1))
    return np.asarray(sorted(cols), dtype=int)


def _linear_jac(n: int, size: int, entries: Sequence[Tuple[int, _PointRef, int, float]]) -> np.ndarray:
    """Dense Jacobian block from ``(row, point, axis, coefficient)`` entries."""

    jac = np.zeros((size, n), dtype=float)
    for row, ref, axis, coeff in entries:
        if ref.col is not None:
            jac[row, ref.col + axis] += coeff
    return jac


def _distance_entries(row: int, a: _PointRef, b: _PointRef, x: np.ndarray) -> List[Tuple[int, _PointRef, int, float]]:
    d = sub2(b.at(x), a.at(x))
    dist = length2(d)
    # any unit vector is a valid subgradient at zero separation
    ux, uy = (d[0] / dist, d[1] / dist) if dist > 0.0 else (1.0, 0.0)
    return [(row, b, 0, ux), (row, b, 1, uy), (row, a, 0, -ux), (row, a, 1, -uy)]


def _scaled(
    entries: Sequence[Tuple[int, _PointRef, int, float]], factor: float
) -> List[Tuple[int, _PointRef, int, float]]:
    return [(row, ref, axis, coeff * factor) for row, ref, axis, coeff in entries]


def _radius_entries(row: int, circle: _CircleRef, x: np.ndarray) -> List[Tuple[int, _PointRef, int, float]]:
    if circle.rim is None:
        return []
    return _distance_entries(row, circle.center, circle.rim, x)


def _kink_sign(value: float) -> float:
    """Sign used to differentiate ``abs``; +1 is the chosen subgradient at zero."""

    return -1.0 if value < 0.0 else 1.0


def _offset_entries(
    row: int, p: _PointRef, a: _PointRef, b: _PointRef, x: np.ndarray
) -> List[Tuple[int, _PointRef, int, float]]:
    """Gradient of the signed offset ``cross(unit(b - a), p - a)``."""

    ex, ey = sub2(b.at(x), a.at(x))
    vx, vy = sub2(p.at(x), a.at(x))
    length = math.hypot(ex, ey)
    if length == 0.0:
        return []
    offset = (ex * vy - ey * vx) / length
    dpx, dpy = -ey / length, ex / length
    dbx = vy / length - offset * ex / (length * length)
    dby = -vx / length - offset * ey / (length * length)
    return [
        (row, p, 0, dpx),
        (row, p, 1, dpy),
        (row, b, 0, dbx),
        (row, b, 1, dby),
        (row, a, 0, -dpx - dbx),
        (row, a, 1, -dpy - dby),
    ]


def _build_point_pair_equal(
    key: str, kind: str, a: _PointRef, b: _PointRef, n: int
) -> ResidualSpec:
    def func(x: np.ndarray) -> np.ndarray:
        ax, ay = a.at(x)
        bx, by = b.at(x)
        return np.array([ax - bx, ay - by], dtype=float)

    def jac(x: np.ndarray) -> np.ndarray:
        return _linear_jac(n, 2, [(0, a, 0, 1.0), (0, b, 0, -1.0), (1, a, 1, 1.0), (1, b, 1, -1.0)])

    return ResidualSpec(key=key, kind=kind, size=2, func=func, columns=_columns(a, b), jac=jac)


def _build_axis_equal(key: str, kind: str, a: _PointRef, b: _PointRef, axis: int, n: int) -> ResidualSpec:
    def func(x: np.ndarray) -> np.ndarray:
        return np.array([a.at(x)[axis] - b.at(x)[axis]], dtype=float)

    def jac(x: np.ndarray) -> np.ndarray:
        return _linear_jac(n, 1, [(0, a, axis, 1.0), (0, b, axis, -1.0)])

    return ResidualSpec(key=key, kind=kind, size=1, func=func, columns=_columns(a, b), jac=jac)


def _build_coincident(c: Coincident, res: _Resolver, system: ResidualSystem, key: str) -> ResidualSpec:
    return _build_point_pair_equal(key, c.kind, res.point(c.p1), res.point(c.p2), res.n)


def _build_horizontal_points(c: HorizontalPoints, res: _Resolver, system: ResidualSystem, key: str) -> ResidualSpec:
    return _build_axis_equal(key, c.kind, res.point(c.p1), res.point(c.p2), 1, res.n)


def _build_horizontal_line(c: HorizontalLine, res: _Resolver, system: ResidualSystem, key: str) -> ResidualSpec:
    a, b = res.line(c.line)
    return _build_axis_equal(key, c.kind, a, b, 1, res.n)


def _build_vertical_points(c: VerticalPoints, res: _Resolver, system: ResidualSystem, key: str) -> ResidualSpec:
    return _build_axis_equal(key, c.kind, res.point(c.p1), res.point(c.p2), 0, res.n)


def _build_vertical_line(c: VerticalLine, res: _Resolver, system: ResidualSystem, key: str) -> ResidualSpec:
    a, b = res.line(c.line)
    return _build_axis_equal(key, c.kind, a, b, 0, res.n)


def _build_fixed(c: Fixed, res: _Resolver, system: ResidualSystem, key: str) -> ResidualSpec:
    p = res.point(c.point)
    tx, ty = float(c.position[0]), float(c.position[1])
    n = res.n

    def func(x: np.ndarray) -> np.ndarray:
        px, py = p.at(x)
        return np.array([px - tx, py - ty], dtype=float)

    def jac(x: np.ndarray) -> np.ndarray:
        return _linear_jac(n, 2, [(0, p, 0, 1.0), (1, p, 1, 1.0)])

    return ResidualSpec(key=key, kind=c.kind, size=2, func=func, columns=_columns(p), jac=jac)


def _build_distance(c: Distance, res: _Resolver, system: ResidualSystem, key: str) -> ResidualSpec:
    a, b = res.point(c.p1), res.point(c.p2)
    target = float(c.distance)
    n = res.n

    def func(x: np.ndarray) -> np.ndarray:
        return np.array([length2(sub2(b.at(x), a.at(x))) - target], dtype=float)

    def jac(x: np.ndarray) -> np.ndarray:
        return _linear_jac(n, 1, _distance_entries(0, a, b, x))

    return ResidualSpec(key=key, kind=c.kind, size=1, func=func, columns=_columns(a, b), jac=jac)


def _build_two_lines(
    c: BaseConstraint,
    res: _Resolver,
    system: ResidualSystem,
    key: str,
    line1: EntityId,
    line2: EntityId,
    value: Callable[[Vec2, Vec2], float],
    normalized: bool = True,
) -> ResidualSpec:
    a1, b1 = res.line(line1)
    a2, b2 = res.line(line2)
    if normalized:
        system.checks.append((key, res.short(a1, b1)))
        system.checks.append((key, res.short(a2, b2)))

    def func(x: np.ndarray) -> np.ndarray:
        d1 = sub2(b1.at(x), a1.at(x))
        d2 = sub2(b2.at(x), a2.at(x))
        if normalized:
            d1, d2 = normalize2(d1), normalize2(d2)
        return np.array([value(d1, d2)], dtype=float)

    return ResidualSpec(key=key, kind=c.kind, size=1, func=func, columns=_columns(a1, b1, a2, b2))


def _build_parallel(c: Parallel, res: _Resolver, system: ResidualSystem, key: str) -> ResidualSpec:
    return _build_two_lines(c, res, system, key, c.line1, c.line2, cross2)


def _build_perpendicular(c: Perpendicular, res: _Resolver, system: ResidualSystem, key: str) -> ResidualSpec:
    return _build_two_lines(c, res, system, key, c.line1, c.line2, dot2)


def _build_equal_length(c: EqualLength, res: _Resolver, system: ResidualSystem, key: str) -> ResidualSpec:
    return _build_two_lines(
        c, res, system, key, c.line1, c.line2, lambda d1, d2: length2(d1) - length2(d2), normalized=False
    )


def _build_angle(c: Angle, res: _Resolver, system: ResidualSystem, key: str) -> ResidualSpec:
    target = float(c.angle)
    return _build_two_lines(
        c,
        res,
        system,
        key,
        c.line1,
        c.line2,
        lambda d1, d2: wrap_angle(math.atan2(cross2(d1, d2), dot2(d1, d2)) - target),
    )


def _build_tangent(c: Tangent, res: _Resolver, system: ResidualSystem, key: str) -> ResidualSpec:
    a, b = res.line(c.line)
    circle = res.circle(c.arc)
    contact = res.arc_endpoint(c.arc, c.arc_endpoint)
    if contact is None:
        # circles have no endpoints; the line endpoint is the contact point
        contact = a if c.line_endpoint == "start" else b
    system.checks.append((key, res.short(a, b)))
    system.checks.append((key, res.short(circle.center, contact)))

    def func(x: np.ndarray) -> np.ndarray:
        radial = normalize2(sub2(contact.at(x), circle.center.at(x)))
        direction = normalize2(sub2(b.at(x), a.at(x)))
        return np.array([dot2(radial, direction)], dtype=float)

    return ResidualSpec(
        key=key, kind=c.kind, size=1, func=func, columns=_columns(a, b, contact, *circle.refs())
    )


def _build_point_on_line(c: PointOnLine, res: _Resolver, system: ResidualSystem, key: str) -> ResidualSpec:
    p = res.point(c.point)
    a, b = res.line(c.line)
    system.checks.append((key, res.short(a, b)))

    def func(x: np.ndarray) -> np.ndarray:
        direction = normalize2(sub2(b.at(x), a.at(x)))
        return np.array([cross2(direction, sub2(p.at(x), a.at(x)))], dtype=float)

    return ResidualSpec(key=key, kind=c.kind, size=1, func=func, columns=_columns(p, a, b))


def _build_point_on_arc(c: PointOnArc, res: _Resolver, system: ResidualSystem, key: str) -> ResidualSpec:
    p = res.point(c.point)
    circle = res.circle(c.arc)

    def func(x: np.ndarray) -> np.ndarray:
        return np.array([length2(sub2(p.at(x), circle.center.at(x))) - circle.radius(x)], dtype=float)

    return ResidualSpec(key=key, kind=c.kind, size=1, func=func, columns=_columns(p, *circle.refs()))


def _build_equal_radius(c: EqualRadius, res: _Resolver, system: ResidualSystem, key: str) -> ResidualSpec:
    c1, c2 = res.circle(c.arc1), res.circle(c.arc2)

    def func(x: np.ndarray) -> np.ndarray:
        return np.array([c1.radius(x) - c2.radius(x)], dtype=float)

    return ResidualSpec(key=key, kind=c.kind, size=1, func=func, columns=_columns(*c1.refs(), *c2.refs()))


def _build_concentric(c: Concentric, res: _Resolver, system: ResidualSystem, key: str) -> ResidualSpec:
    c1, c2 = res.circle(c.arc1), res.circle(c.arc2)
    return _build_point_pair_equal(key, c.kind, c1.center, c2.center, res.n)


def _build_symmetric(c: Symmetric, res: _Resolver, system: ResidualSystem, key: str) -> ResidualSpec:
    p1, p2 = res.point(c.p1), res.point(c.p2)
    a, b = res.line(c.line)
    system.checks.append((key, res.short(a, b)))

    def func(x: np.ndarray) -> np.ndarray:
        q1, q2 = p1.at(x), p2.at(x)
        origin = a.at(x)
        direction = normalize2(sub2(b.at(x), origin))
        mid = midpoint2(q1, q2)
        return np.array(
            [cross2(direction, sub2(mid, origin)), dot2(sub2(q2, q1), direction)], dtype=float
        )

    return ResidualSpec(key=key, kind=c.kind, size=2, func=func, columns=_columns(p1, p2, a, b))


def _build_midpoint(c: Midpoint, res: _Resolver, system: ResidualSystem, key: str) -> ResidualSpec:
    p = res.point(c.point)
    a, b = res.line(c.line)
    n = res.n

    def func(x: np.ndarray) -> np.ndarray:
        px, py = p.at(x)
        mx, my = midpoint2(a.at(x), b.at(x))
        return np.array([px - mx, py - my], dtype=float)

    def jac(x: np.ndarray) -> np.ndarray:
        return _linear_jac(
            n,
            2,
            [
                (0, p, 0, 1.0), (0, a, 0, -0.5), (0, b, 0, -0.5),
                (1, p, 1, 1.0), (1, a, 1, -0.5), (1, b, 1, -0.5),
            ],
        )

    return ResidualSpec(key=key, kind=c.kind, size=2, func=func, columns=_columns(p, a, b), jac=jac)


def _build_arc_arc_tangent(c: ArcArcTangent, res: _Resolver, system: ResidualSystem, key: str) -> ResidualSpec:
    c1, c2 = res.circle(c.arc1), res.circle(c.arc2)
    internal = bool(c.internal)
    n = res.n

    def func(x: np.ndarray) -> np.ndarray:
        centers = length2(sub2(c1.center.at(x), c2.center.at(x)))
        r1, r2 = c1.radius(x), c2.radius(x)
        target = abs(r1 - r2) if internal else r1 + r2
        return np.array([centers - target], dtype=float)

    def jac(x: np.ndarray) -> np.ndarray:
        if internal:
            sign = _kink_sign(c1.radius(x) - c2.radius(x))
            f1, f2 = -sign, sign
        else:
            f1, f2 = -1.0, -1.0
        entries = _distance_entries(0, c2.center, c1.center, x)
        entries += _scaled(_radius_entries(0, c1, x), f1)
        entries += _scaled(_radius_entries(0, c2, x), f2)
        return _linear_jac(n, 1, entries)

    return ResidualSpec(
        key=key, kind=c.kind, size=1, func=func, columns=_columns(*c1.refs(), *c2.refs()), jac=jac
    )


def _build_radius_dimension(c: RadiusDimension, res: _Resolver, system: ResidualSystem, key: str) -> ResidualSpec:
    circle = res.circle(c.arc)
    target = float(c.radius)
    n = res.n

    def func(x: np.ndarray) -> np.ndarray:
        return np.array([circle.radius(x) - target], dtype=float)

    def jac(x: np.ndarray) -> np.ndarray:
        if circle.rim is None:
            return np.zeros((1, n), dtype=float)
        return _linear_jac(n, 1, _distance_entries(0, circle.center, circle.rim, x))

    return ResidualSpec(key=key, kind=c.kind, size=1, func=func, columns=_columns(*circle.refs()), jac=jac)


def _build_point_to_line_distance(
    c: PointToLineDistance, res: _Resolver, system: ResidualSystem, key: str
) -> ResidualSpec:
    p = res.point(c.point)
    a, b = res.line(c.line)
    target = float(c.distance)
    n = res.n
    system.checks.append((key, res.short(a, b)))

    def offset(x: np.ndarray) -> float:
        direction = normalize2(sub2(b.at(x), a.at(x)))
        return cross2(direction, sub2(p.at(x), a.at(x)))

    def func(x: np.ndarray) -> np.ndarray:
        return np.array([abs(offset(x)) - target], dtype=float)

    def jac(x: np.ndarray) -> np.ndarray:
        # a point lying on the line is pushed to the left side
        return _linear_jac(n, 1, _scaled(_offset_entries(0, p, a, b, x), _kink_sign(offset(x))))

    return ResidualSpec(key=key, kind=c.kind, size=1, func=func, columns=_columns(p, a, b), jac=jac)


_BUILDERS: Dict[type, Callable[..., ResidualSpec]] = {
    Coincident: _build_coincident,
    HorizontalPoints: _build_horizontal_points,
    HorizontalLine: _build_horizontal_line,
    VerticalPoints: _build_vertical_points,
    VerticalLine: _build_vertical_line,
    Parallel: _build_parallel,
    Perpendicular: _build_perpendicular,
    EqualLength: _build_equal_length,
    Fixed: _build_fixed,
    Distance: _build_distance,
    Angle: _build_angle,
    Tangent: _build_tangent,
    PointOnLine: _build_point_on_line,
    PointOnArc: _build_point_on_arc,
    EqualRadius: _build_equal_radius,
    Concentric: _build_concentric,
    Symmetric: _build_symmetric,
    Midpoint: _build_midpoint,
    ArcArcTangent: _build_arc_arc_tangent,
    RadiusDimension: _build_radius_dimension,
    PointToLineDistance: _build_point_to_line_distance,
}


def constraint_key(constraint: BaseConstraint, position: int) -> str:
    label = constraint.id if constraint.id is not None else f"#{position}"
    return f"{label}:{constraint.describe()}"


def _build_driven(pid: PointId, target: Tuple[float, float], res: _Resolver, weight: float) -> Optional[ResidualSpec]:
    try:
        p = res.point(pid)
    except ResidualBuilderError:
        logger.warning("Ignoring driven target for unknown point %s", pid)
        return None
    if p.col is None:
        logger.warning("Ignoring driven target for fixed point %s", pid)
        return None
    tx, ty = float(target[0]), float(target[1])
    n = res.n

    def func(x: np.ndarray) -> np.ndarray:
        px, py = p.at(x)
        return np.array([px - tx, py - ty], dtype=float)

    def jac(x: np.ndarray) -> np.ndarray:
        return _linear_jac(n, 2, [(0, p, 0, 1.0), (1, p, 1, 1.0)])

    return ResidualSpec(
        key=f"driven({pid})",
        kind="driven",
        size=2,
        func=func,
        columns=_columns(p),
        jac=jac,
        weight=weight * weight,
        driven=True,
    )


def build_residual_system(
    sketch: SketchModel, constraints: Sequence[BaseConstraint], options: SolveOptions
) -> ResidualSystem:
    """Build residual blocks for every active constraint and driven point.

    Constraints whose references cannot be resolved are recorded in
    ``skipped`` instead of raising.  Objects that are not constraints raise
    :class:`TypeError`.
    """

    res = _Resolver(sketch, options.builder)
    system = ResidualSystem(n=res.n)

    for position, constraint in enumerate(constraints):
        builder = _BUILDERS.get(type(constraint))
        if builder is None:
            raise TypeError(f"unsupported constraint: {type(constraint).__name__}")
        if not constraint.active:
            continue
        key = constraint_key(constraint, position)
        weight = float(constraint.weight)
        try:
            if not (math.isfinite(weight) and weight > 0.0):
                raise ResidualBuilderError(f"weight must be positive, got {constraint.weight!r}")
            spec = builder(constraint, res, system, key)
        except ResidualBuilderError as exc:
            message = f"{key}: {exc}"
            logger.warning("Skipping constraint %s", message)
            system.skipped.append(message)
            continue
        spec.weight = weight
        if spec.size != constraint.equations:
            raise ValueError(f"residual {key} has size {spec.size}, expected {constraint.equations}")
        system.hard.append(spec)

    for pid in sorted(options.driven_points):
        spec = _build_driven(pid, options.driven_points[pid], res, float(options.driven_weight))
        if spec is not None:
            system.driven.append(spec)

    logger.debug(
        "Built residual system: n=%d hard=%d driven=%d skipped=%d",
        system.n,
        len(system.hard),
        len(system.driven),
        len(system.skipped),
    )
    return system


def evaluate(specs: Sequence[ResidualSpec], x: np.ndarray, *, weighted: bool = False) -> np.ndarray:
    blocks: List[np.ndarray] = []
    for spec in specs:
        vals = np.atleast_1d(np.asarray(spec.func(x), dtype=float))
        if vals.shape[0] != spec.size:
            raise ValueError(f"Residual {spec.key} expected size {spec.size}, got {vals.shape[0]}")
        if weighted and spec.weight != 1.0:
            vals = vals * math.sqrt(spec.weight)
        blocks.append(vals)
    if blocks:
        return np.concatenate(blocks)
    return np.zeros(0, dtype=float)


def _numeric_block(spec: ResidualSpec, x: np.ndarray, n: int, step: float) -> np.ndarray:
    block = np.zeros((spec.size, n), dtype=float)
    shifted = np.array(x, dtype=float, copy=True)
    for col in spec.columns:
        h = step * max(1.0, abs(float(x[col])))
        shifted[col] = x[col] + h
        plus = np.asarray(spec.func(shifted), dtype=float)
        shifted[col] = x[col] - h
        minus = np.asarray(spec.func(shifted), dtype=float)
        shifted[col] = x[col]
        block[:, col] = (plus - minus) / (2.0 * h)
    return block


def jacobian(
    specs: Sequence[ResidualSpec],
    x: np.ndarray,
    n: int,
    config: ResidualBuilderConfig,
    *,
    weighted: bool = False,
) -> np.ndarray:
    rows: List[np.ndarray] = []
    for spec in specs:
        if spec.jac is not None:
            block = np.asarray(spec.jac(x), dtype=float)
        else:
            block = _numeric_block(spec, x, n, config.fd_step)
        if weighted and spec.weight != 1.0:
            block = block * math.sqrt(spec.weight)
        rows.append(block)
    if rows:
        return np.vstack(rows)
    return np.zeros((0, n), dtype=float)


def residual_breakdown(specs: Sequence[ResidualSpec], x: np.ndarray) -> List[Dict[str, object]]:
    breakdown: List[Dict[str, object]] = []
    for spec in specs:
        vals = np.atleast_1d(np.asarray(spec.func(x), dtype=float))
        breakdown.append(
            {
                "key": spec.key,
                "kind": spec.kind,
                "values": vals.tolist(),
                "max_abs": float(np.max(np.abs(vals))) if vals.size else 0.0,
            }
        )
    return breakdown


apply_debug_logging(
    globals(),
    logger=logger,
    skip={
        "_columns",
        "_distance_entries",
        "_kink_sign",
        "_linear_jac",
        "_numeric_block",
        "_offset_entries",
        "_radius_entries",
        "_scaled",
        "evaluate",
        "jacobian",
    },
)


__all__ = [
    "ResidualBuilderError",
    "ResidualSystem",
    "build_residual_system",
    "constraint_key",
    "evaluate",
    "jacobian",
    "residual_breakdown",
]
