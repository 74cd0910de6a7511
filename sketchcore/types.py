"""Core value types of the sketch data model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union

PointId = int
EntityId = int
ConstraintId = int


@dataclass
class SketchPoint:
    id: PointId
    x: float
    y: float
    fixed: bool = False
    name: Optional[str] = None

    @property
    def position(self) -> Tuple[float, float]:
        return self.x, self.y


@dataclass
class LineEntity:
    id: EntityId
    start: PointId
    end: PointId
    construction: bool = False

    kind = "line"


@dataclass
class ArcEntity:
    """Circular arc from ``start`` to ``end`` around ``center``.

    ``start == end`` denotes a full circle whose radius is the distance from
    the center to that shared point.
    """

    id: EntityId
    start: PointId
    end: PointId
    center: PointId
    ccw: bool = True
    construction: bool = False

    kind = "arc"

    @property
    def is_full_circle(self) -> bool:
        return self.start == self.end


@dataclass
class CircleEntity:
    """Circle with a fixed numeric radius; the radius is not a solver variable."""

    id: EntityId
    center: PointId
    radius: float
    construction: bool = False

    kind = "circle"


SketchEntity = Union[LineEntity, ArcEntity, CircleEntity]


def entity_point_ids(entity: SketchEntity) -> Tuple[PointId, ...]:
    """Point IDs referenced by ``entity`` in declaration order."""

    if isinstance(entity, LineEntity):
        return (entity.start, entity.end)
    if isinstance(entity, ArcEntity):
        return (entity.start, entity.end, entity.center)
    if isinstance(entity, CircleEntity):
        return (entity.center,)
    raise TypeError(f"unsupported sketch entity: {type(entity).__name__}")


__all__ = [
    "ArcEntity",
    "CircleEntity",
    "ConstraintId",
    "EntityId",
    "LineEntity",
    "PointId",
    "SketchEntity",
    "SketchPoint",
    "entity_point_ids",
]
