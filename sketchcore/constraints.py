"""Constraint definitions.

Every constraint is a small dataclass whose class carries a ``kind`` tag and
the number of scalar equations it contributes.  Constraints reference sketch
points and entities by ID only.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import ClassVar, List, Optional, Tuple

from .ids import IdAllocator
from .math_utils import Vec2
from .types import ArcEntity, CircleEntity, ConstraintId, EntityId, LineEntity, PointId

EndpointName = str  # "start" or "end"


@dataclass(kw_only=True)
class BaseConstraint:
    """Fields shared by every constraint.

    ``weight`` scales the squared residual of the constraint.  Inactive
    constraints are ignored by the solver and by DOF counting.
    """

    id: Optional[ConstraintId] = None
    weight: float = 1.0
    active: bool = True
    name: Optional[str] = None

    kind: ClassVar[str] = ""
    equations: ClassVar[int] = 0

    def point_refs(self) -> Tuple[PointId, ...]:
        """Point IDs named directly by the constraint."""

        return ()

    def entity_refs(self) -> Tuple[EntityId, ...]:
        """Entity IDs named by the constraint."""

        return ()

    def describe(self) -> str:
        return type(self).__name__


@dataclass(kw_only=True)
class DimensionalConstraint(BaseConstraint):
    """A constraint with a numeric target that a UI displays as a dimension."""

    offset: Optional[Vec2] = None


@dataclass
class Coincident(BaseConstraint):
    p1: PointId
    p2: PointId

    kind: ClassVar[str] = "coincident"
    equations: ClassVar[int] = 2

    def point_refs(self) -> Tuple[PointId, ...]:
        return (self.p1, self.p2)

    def describe(self) -> str:
        return f"Coincident({self.p1}, {self.p2})"


@dataclass
class HorizontalPoints(BaseConstraint):
    p1: PointId
    p2: PointId

    kind: ClassVar[str] = "horizontal"
    equations: ClassVar[int] = 1

    def point_refs(self) -> Tuple[PointId, ...]:
        return (self.p1, self.p2)

    def describe(self) -> str:
        return f"Horizontal({self.p1}, {self.p2})"


@dataclass
class HorizontalLine(BaseConstraint):
    line: EntityId

    kind: ClassVar[str] = "horizontal"
    equations: ClassVar[int] = 1

    def entity_refs(self) -> Tuple[EntityId, ...]:
        return (self.line,)

    def describe(self) -> str:
        return f"Horizontal(line {self.line})"


@dataclass
class VerticalPoints(BaseConstraint):
    p1: PointId
    p2: PointId

    kind: ClassVar[str] = "vertical"
    equations: ClassVar[int] = 1

    def point_refs(self) -> Tuple[PointId, ...]:
        return (self.p1, self.p2)

    def describe(self) -> str:
        return f"Vertical({self.p1}, {self.p2})"


@dataclass
class VerticalLine(BaseConstraint):
    line: EntityId

    kind: ClassVar[str] = "vertical"
    equations: ClassVar[int] = 1

    def entity_refs(self) -> Tuple[EntityId, ...]:
        return (self.line,)

    def describe(self) -> str:
        return f"Vertical(line {self.line})"


@dataclass
class Parallel(BaseConstraint):
    line1: EntityId
    line2: EntityId

    kind: ClassVar[str] = "parallel"
    equations: ClassVar[int] = 1

    def entity_refs(self) -> Tuple[EntityId, ...]:
        return (self.line1, self.line2)

    def describe(self) -> str:
        return f"Parallel({self.line1}, {self.line2})"


@dataclass
class Perpendicular(BaseConstraint):
    line1: EntityId
    line2: EntityId

    kind: ClassVar[str] = "perpendicular"
    equations: ClassVar[int] = 1

    def entity_refs(self) -> Tuple[EntityId, ...]:
        return (self.line1, self.line2)

    def describe(self) -> str:
        return f"Perpendicular({self.line1}, {self.line2})"


@dataclass
class EqualLength(BaseConstraint):
    line1: EntityId
    line2: EntityId

    kind: ClassVar[str] = "equalLength"
    equations: ClassVar[int] = 1

    def entity_refs(self) -> Tuple[EntityId, ...]:
        return (self.line1, self.line2)

    def describe(self) -> str:
        return f"EqualLength({self.line1}, {self.line2})"


@dataclass
class Fixed(BaseConstraint):
    """Pin ``point`` to an absolute ``position``."""

    point: PointId
    position: Vec2

    kind: ClassVar[str] = "fixed"
    equations: ClassVar[int] = 2

    def point_refs(self) -> Tuple[PointId, ...]:
        return (self.point,)

    def describe(self) -> str:
        return f"Fixed({self.point} at [{self.position[0]:.2f}, {self.position[1]:.2f}])"


@dataclass
class Distance(DimensionalConstraint):
    p1: PointId
    p2: PointId
    distance: float

    kind: ClassVar[str] = "distance"
    equations: ClassVar[int] = 1

    def point_refs(self) -> Tuple[PointId, ...]:
        return (self.p1, self.p2)

    def describe(self) -> str:
        return f"Distance({self.p1}, {self.p2}, {self.distance:.2f})"


@dataclass
class Angle(DimensionalConstraint):
    """Signed angle in radians from ``line1`` to ``line2``."""

    line1: EntityId
    line2: EntityId
    angle: float

    kind: ClassVar[str] = "angle"
    equations: ClassVar[int] = 1

    def entity_refs(self) -> Tuple[EntityId, ...]:
        return (self.line1, self.line2)

    def describe(self) -> str:
        return f"Angle({self.line1}, {self.line2}, {math.degrees(self.angle):.1f}°)"


@dataclass
class Tangent(BaseConstraint):
    """Line tangent to an arc where the chosen endpoints meet."""

    line: EntityId
    arc: EntityId
    line_endpoint: EndpointName = "end"
    arc_endpoint: EndpointName = "start"

    kind: ClassVar[str] = "tangent"
    equations: ClassVar[int] = 1

    def entity_refs(self) -> Tuple[EntityId, ...]:
        return (self.line, self.arc)

    def describe(self) -> str:
        return f"Tangent(line {self.line}, arc {self.arc})"


@dataclass
class PointOnLine(BaseConstraint):
    point: PointId
    line: EntityId

    kind: ClassVar[str] = "pointOnLine"
    equations: ClassVar[int] = 1

    def point_refs(self) -> Tuple[PointId, ...]:
        return (self.point,)

    def entity_refs(self) -> Tuple[EntityId, ...]:
        return (self.line,)

    def describe(self) -> str:
        return f"PointOnLine({self.point}, line {self.line})"


@dataclass
class PointOnArc(BaseConstraint):
    point: PointId
    arc: EntityId

    kind: ClassVar[str] = "pointOnArc"
    equations: ClassVar[int] = 1

    def point_refs(self) -> Tuple[PointId, ...]:
        return (self.point,)

    def entity_refs(self) -> Tuple[EntityId, ...]:
        return (self.arc,)

    def describe(self) -> str:
        return f"PointOnArc({self.point}, arc {self.arc})"


@dataclass
class EqualRadius(BaseConstraint):
    arc1: EntityId
    arc2: EntityId

    kind: ClassVar[str] = "equalRadius"
    equations: ClassVar[int] = 1

    def entity_refs(self) -> Tuple[EntityId, ...]:
        return (self.arc1, self.arc2)

    def describe(self) -> str:
        return f"EqualRadius({self.arc1}, {self.arc2})"


@dataclass
class Concentric(BaseConstraint):
    arc1: EntityId
    arc2: EntityId

    kind: ClassVar[str] = "concentric"
    equations: ClassVar[int] = 2

    def entity_refs(self) -> Tuple[EntityId, ...]:
        return (self.arc1, self.arc2)

    def describe(self) -> str:
        return f"Concentric({self.arc1}, {self.arc2})"


@dataclass
class Symmetric(BaseConstraint):
    """``p1`` and ``p2`` are mirror images about ``line``."""

    p1: PointId
    p2: PointId
    line: EntityId

    kind: ClassVar[str] = "symmetric"
    equations: ClassVar[int] = 2

    def point_refs(self) -> Tuple[PointId, ...]:
        return (self.p1, self.p2)

    def entity_refs(self) -> Tuple[EntityId, ...]:
        return (self.line,)

    def describe(self) -> str:
        return f"Symmetric({self.p1}, {self.p2}, line {self.line})"


@dataclass
class Midpoint(BaseConstraint):
    point: PointId
    line: EntityId

    kind: ClassVar[str] = "midpoint"
    equations: ClassVar[int] = 2

    def point_refs(self) -> Tuple[PointId, ...]:
        return (self.point,)

    def entity_refs(self) -> Tuple[EntityId, ...]:
        return (self.line,)

    def describe(self) -> str:
        return f"Midpoint({self.point}, line {self.line})"


@dataclass
class ArcArcTangent(BaseConstraint):
    arc1: EntityId
    arc2: EntityId
    internal: bool = False

    kind: ClassVar[str] = "arcArcTangent"
    equations: ClassVar[int] = 1

    def entity_refs(self) -> Tuple[EntityId, ...]:
        return (self.arc1, self.arc2)

    def describe(self) -> str:
        mode = "internal" if self.internal else "external"
        return f"ArcArcTangent({self.arc1}, {self.arc2}, {mode})"


@dataclass
class RadiusDimension(DimensionalConstraint):
    arc: EntityId
    radius: float

    kind: ClassVar[str] = "radiusDimension"
    equations: ClassVar[int] = 1

    def entity_refs(self) -> Tuple[EntityId, ...]:
        return (self.arc,)

    def describe(self) -> str:
        return f"RadiusDimension(arc {self.arc}, {self.radius:.2f})"


@dataclass
class PointToLineDistance(DimensionalConstraint):
    point: PointId
    line: EntityId
    distance: float

    kind: ClassVar[str] = "pointToLineDistance"
    equations: ClassVar[int] = 1

    def point_refs(self) -> Tuple[PointId, ...]:
        return (self.point,)

    def entity_refs(self) -> Tuple[EntityId, ...]:
        return (self.line,)

    def describe(self) -> str:
        return f"PointToLineDistance({self.point}, line {self.line}, {self.distance:.2f})"


CONSTRAINT_TYPES: Tuple[type, ...] = (
    Coincident,
    HorizontalPoints,
    HorizontalLine,
    VerticalPoints,
    VerticalLine,
    Parallel,
    Perpendicular,
    EqualLength,
    Fixed,
    Distance,
    Angle,
    Tangent,
    PointOnLine,
    PointOnArc,
    EqualRadius,
    Concentric,
    Symmetric,
    Midpoint,
    ArcArcTangent,
    RadiusDimension,
    PointToLineDistance,
)

Constraint = BaseConstraint


def _require_constraint(constraint: object) -> BaseConstraint:
    if not isinstance(constraint, CONSTRAINT_TYPES):
        raise TypeError(f"unsupported constraint: {type(constraint).__name__}")
    return constraint  # type: ignore[return-value]


def constraint_equation_count(constraint: BaseConstraint) -> int:
    """Number of scalar equations (residuals) ``constraint`` contributes."""

    return _require_constraint(constraint).equations


def get_constraint_entities(constraint: BaseConstraint) -> Tuple[EntityId, ...]:
    return _require_constraint(constraint).entity_refs()


def get_constraint_points(constraint: BaseConstraint, sketch) -> List[PointId]:
    """Every point whose position the constraint depends on.

    Entity references that do not resolve in ``sketch`` contribute nothing.
    """

    points: List[PointId] = list(_require_constraint(constraint).point_refs())
    for entity_id in constraint.entity_refs():
        entity = sketch.get_entity(entity_id)
        if isinstance(entity, LineEntity):
            points.extend((entity.start, entity.end))
        elif isinstance(entity, ArcEntity):
            points.extend((entity.start, entity.center))
            if entity.end != entity.start:
                points.append(entity.end)
        elif isinstance(entity, CircleEntity):
            points.append(entity.center)
    seen = set()
    unique: List[PointId] = []
    for pid in points:
        if pid not in seen:
            seen.add(pid)
            unique.append(pid)
    return unique


def describe_constraint(constraint: BaseConstraint) -> str:
    return _require_constraint(constraint).describe()


def _stamp(constraint: BaseConstraint, allocator: Optional[IdAllocator]) -> BaseConstraint:
    if allocator is not None and constraint.id is None:
        constraint.id = allocator.allocate_constraint_id()
    return constraint


def coincident(p1: PointId, p2: PointId, *, allocator: Optional[IdAllocator] = None, **kwargs) -> Coincident:
    return _stamp(Coincident(p1, p2, **kwargs), allocator)  # type: ignore[return-value]


def horizontal_points(p1: PointId, p2: PointId, *, allocator: Optional[IdAllocator] = None, **kwargs) -> HorizontalPoints:
    return _stamp(HorizontalPoints(p1, p2, **kwargs), allocator)  # type: ignore[return-value]


def horizontal_line(line: EntityId, *, allocator: Optional[IdAllocator] = None, **kwargs) -> HorizontalLine:
    return _stamp(HorizontalLine(line, **kwargs), allocator)  # type: ignore[return-value]


def vertical_points(p1: PointId, p2: PointId, *, allocator: Optional[IdAllocator] = None, **kwargs) -> VerticalPoints:
    return _stamp(VerticalPoints(p1, p2, **kwargs), allocator)  # type: ignore[return-value]


def vertical_line(line: EntityId, *, allocator: Optional[IdAllocator] = None, **kwargs) -> VerticalLine:
    return _stamp(VerticalLine(line, **kwargs), allocator)  # type: ignore[return-value]


def parallel(line1: EntityId, line2: EntityId, *, allocator: Optional[IdAllocator] = None, **kwargs) -> Parallel:
    return _stamp(Parallel(line1, line2, **kwargs), allocator)  # type: ignore[return-value]


def perpendicular(line1: EntityId, line2: EntityId, *, allocator: Optional[IdAllocator] = None, **kwargs) -> Perpendicular:
    return _stamp(Perpendicular(line1, line2, **kwargs), allocator)  # type: ignore[return-value]


def equal_length(line1: EntityId, line2: EntityId, *, allocator: Optional[IdAllocator] = None, **kwargs) -> EqualLength:
    return _stamp(EqualLength(line1, line2, **kwargs), allocator)  # type: ignore[return-value]


def fixed(point: PointId, position: Vec2, *, allocator: Optional[IdAllocator] = None, **kwargs) -> Fixed:
    return _stamp(Fixed(point, (float(position[0]), float(position[1])), **kwargs), allocator)  # type: ignore[return-value]


def distance(p1: PointId, p2: PointId, value: float, *, allocator: Optional[IdAllocator] = None, **kwargs) -> Distance:
    return _stamp(Distance(p1, p2, float(value), **kwargs), allocator)  # type: ignore[return-value]


def angle(line1: EntityId, line2: EntityId, radians: float, *, allocator: Optional[IdAllocator] = None, **kwargs) -> Angle:
    return _stamp(Angle(line1, line2, float(radians), **kwargs), allocator)  # type: ignore[return-value]


def tangent(
    line: EntityId,
    arc: EntityId,
    line_endpoint: EndpointName = "end",
    arc_endpoint: EndpointName = "start",
    *,
    allocator: Optional[IdAllocator] = None,
    **kwargs,
) -> Tangent:
    if line_endpoint not in ("start", "end") or arc_endpoint not in ("start", "end"):
        raise ValueError("tangent endpoints must be 'start' or 'end'")
    return _stamp(Tangent(line, arc, line_endpoint, arc_endpoint, **kwargs), allocator)  # type: ignore[return-value]


def point_on_line(point: PointId, line: EntityId, *, allocator: Optional[IdAllocator] = None, **kwargs) -> PointOnLine:
    return _stamp(PointOnLine(point, line, **kwargs), allocator)  # type: ignore[return-value]


def point_on_arc(point: PointId, arc: EntityId, *, allocator: Optional[IdAllocator] = None, **kwargs) -> PointOnArc:
    return _stamp(PointOnArc(point, arc, **kwargs), allocator)  # type: ignore[return-value]


def equal_radius(arc1: EntityId, arc2: EntityId, *, allocator: Optional[IdAllocator] = None, **kwargs) -> EqualRadius:
    return _stamp(EqualRadius(arc1, arc2, **kwargs), allocator)  # type: ignore[return-value]


def concentric(arc1: EntityId, arc2: EntityId, *, allocator: Optional[IdAllocator] = None, **kwargs) -> Concentric:
    return _stamp(Concentric(arc1, arc2, **kwargs), allocator)  # type: ignore[return-value]


def symmetric(p1: PointId, p2: PointId, line: EntityId, *, allocator: Optional[IdAllocator] = None, **kwargs) -> Symmetric:
    return _stamp(Symmetric(p1, p2, line, **kwargs), allocator)  # type: ignore[return-value]


def midpoint(point: PointId, line: EntityId, *, allocator: Optional[IdAllocator] = None, **kwargs) -> Midpoint:
    return _stamp(Midpoint(point, line, **kwargs), allocator)  # type: ignore[return-value]


def arc_arc_tangent(
    arc1: EntityId, arc2: EntityId, internal: bool = False, *, allocator: Optional[IdAllocator] = None, **kwargs
) -> ArcArcTangent:
    return _stamp(ArcArcTangent(arc1, arc2, internal, **kwargs), allocator)  # type: ignore[return-value]


def radius_dimension(arc: EntityId, radius: float, *, allocator: Optional[IdAllocator] = None, **kwargs) -> RadiusDimension:
    return _stamp(RadiusDimension(arc, float(radius), **kwargs), allocator)  # type: ignore[return-value]


def point_to_line_distance(
    point: PointId, line: EntityId, value: float, *, allocator: Optional[IdAllocator] = None, **kwargs
) -> PointToLineDistance:
    return _stamp(PointToLineDistance(point, line, float(value), **kwargs), allocator)  # type: ignore[return-value]


__all__ = [
    "Angle",
    "ArcArcTangent",
    "BaseConstraint",
    "CONSTRAINT_TYPES",
    "Coincident",
    "Concentric",
    "Constraint",
    "DimensionalConstraint",
    "Distance",
    "EqualLength",
    "EqualRadius",
    "Fixed",
    "HorizontalLine",
    "HorizontalPoints",
    "Midpoint",
    "Parallel",
    "Perpendicular",
    "PointOnArc",
    "PointOnLine",
    "PointToLineDistance",
    "RadiusDimension",
    "Symmetric",
    "Tangent",
    "VerticalLine",
    "VerticalPoints",
    "angle",
    "arc_arc_tangent",
    "coincident",
    "concentric",
    "constraint_equation_count",
    "describe_constraint",
    "distance",
    "equal_length",
    "equal_radius",
    "fixed",
    "get_constraint_entities",
    "get_constraint_points",
    "horizontal_line",
    "horizontal_points",
    "midpoint",
    "parallel",
    "perpendicular",
    "point_on_arc",
    "point_on_line",
    "point_to_line_distance",
    "radius_dimension",
    "symmetric",
    "tangent",
    "vertical_line",
    "vertical_points",
]
