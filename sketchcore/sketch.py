"""The sketch data model: points, curve entities and profile extraction."""

from __future__ import annotations

import copy
import logging
import math
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from .ids import IdAllocator
from .math_utils import TWO_PI, Vec2
from .planes import XY_PLANE, DatumPlane
from .predicates import point_in_polygon_2d
from .profile import ArcCurve, Curve, LineCurve, Profile, ProfileLoop, eval_curve, loop_polyline, reverse_curve
from .types import (
    ArcEntity,
    CircleEntity,
    EntityId,
    LineEntity,
    PointId,
    SketchEntity,
    SketchPoint,
    entity_point_ids,
)

logger = logging.getLogger(__name__)

# Points closer than this are treated as the same loop vertex.
_MERGE_EPS = 1e-9


class SketchError(ValueError):
    """Raised when a sketch operation references missing or invalid data."""


class LineHandles(NamedTuple):
    start: PointId
    end: PointId
    line: EntityId


class ArcHandles(NamedTuple):
    start: PointId
    end: PointId
    center: PointId
    arc: EntityId


class CircleHandles(NamedTuple):
    center: PointId
    circle: EntityId


class FullCircleHandles(NamedTuple):
    center: PointId
    rim: PointId
    arc: EntityId


class PolygonHandles(NamedTuple):
    """Vertices in counter-clockwise order and the sides joining them."""

    points: Tuple[PointId, ...]
    lines: Tuple[EntityId, ...]


def _check_finite(*values: float) -> None:
    for value in values:
        if not math.isfinite(value):
            raise SketchError(f"coordinates must be finite, got {value!r}")


class SketchModel:
    """Owns the points and entities of one 2D sketch on a datum plane.

    Points and entities reference each other only by ID.  IDs come from the
    sketch's own :class:`~sketchcore.ids.IdAllocator` and are never reused.
    """

    def __init__(
        self,
        plane: DatumPlane = XY_PLANE,
        name: Optional[str] = None,
        allocator: Optional[IdAllocator] = None,
    ) -> None:
        self.allocator = allocator if allocator is not None else IdAllocator()
        self.id = self.allocator.allocate_sketch_id()
        self.plane = plane
        self.name = name if name is not None else f"Sketch{self.id}"
        self.points: Dict[PointId, SketchPoint] = {}
        self.entities: Dict[EntityId, SketchEntity] = {}

    def __repr__(self) -> str:
        return (
            f"SketchModel(name={self.name!r}, plane={self.plane.name!r}, "
            f"points={len(self.points)}, entities={len(self.entities)})"
        )

    # -- points -----------------------------------------------------------

    def add_point(self, x: float, y: float, *, fixed: bool = False, name: Optional[str] = None) -> PointId:
        _check_finite(x, y)
        point_id = self.allocator.allocate_point_id()
        self.points[point_id] = SketchPoint(id=point_id, x=float(x), y=float(y), fixed=fixed, name=name)
        return point_id

    def add_fixed_point(self, x: float, y: float, name: Optional[str] = None) -> PointId:
        return self.add_point(x, y, fixed=True, name=name)

    def get_point(self, point_id: PointId) -> Optional[SketchPoint]:
        return self.points.get(point_id)

    def _require_point(self, point_id: PointId) -> SketchPoint:
        point = self.points.get(point_id)
        if point is None:
            raise SketchError(f"unknown point id {point_id}")
        return point

    def set_point_position(self, point_id: PointId, x: float, y: float) -> None:
        point = self._require_point(point_id)
        _check_finite(x, y)
        point.x = float(x)
        point.y = float(y)

    def set_point_fixed(self, point_id: PointId, fixed: bool) -> None:
        self._require_point(point_id).fixed = bool(fixed)

    def remove_point(self, point_id: PointId) -> bool:
        """Delete a point and every entity that references it.

        Constraints are owned by the caller and are left untouched.
        """

        if point_id not in self.points:
            return False
        del self.points[point_id]
        doomed = [eid for eid, entity in self.entities.items() if point_id in entity_point_ids(entity)]
        for eid in doomed:
            del self.entities[eid]
        if doomed:
            logger.debug("Removing point %s cascaded to entities %s", point_id, doomed)
        return True

    def get_all_points(self) -> List[SketchPoint]:
        return list(self.points.values())

    def get_free_points(self) -> List[SketchPoint]:
        return [p for p in self.points.values() if not p.fixed]

    # -- entities ---------------------------------------------------------

    def _require_points(self, ids: Iterable[PointId]) -> None:
        for pid in ids:
            self._require_point(pid)

    def add_line(self, start: PointId, end: PointId, *, construction: bool = False) -> EntityId:
        self._require_points((start, end))
        entity_id = self.allocator.allocate_entity_id()
        self.entities[entity_id] = LineEntity(id=entity_id, start=start, end=end, construction=construction)
        return entity_id

    def add_line_by_coords(
        self, x1: float, y1: float, x2: float, y2: float, *, construction: bool = False
    ) -> LineHandles:
        start = self.add_point(x1, y1)
        end = self.add_point(x2, y2)
        return LineHandles(start, end, self.add_line(start, end, construction=construction))

    def add_arc(
        self,
        start: PointId,
        end: PointId,
        center: PointId,
        ccw: bool = True,
        *,
        construction: bool = False,
    ) -> EntityId:
        self._require_points((start, end, center))
        entity_id = self.allocator.allocate_entity_id()
        self.entities[entity_id] = ArcEntity(
            id=entity_id, start=start, end=end, center=center, ccw=ccw, construction=construction
        )
        return entity_id

    def add_arc_by_coords(
        self,
        start_x: float,
        start_y: float,
        end_x: float,
        end_y: float,
        center_x: float,
        center_y: float,
        ccw: bool = True,
        *,
        construction: bool = False,
    ) -> ArcHandles:
        start = self.add_point(start_x, start_y)
        end = self.add_point(end_x, end_y)
        center = self.add_point(center_x, center_y)
        arc = self.add_arc(start, end, center, ccw, construction=construction)
        return ArcHandles(start, end, center, arc)

    def add_circle(self, center: PointId, radius: float, *, construction: bool = False) -> EntityId:
        self._require_point(center)
        if not (math.isfinite(radius) and radius > 0):
            raise SketchError(f"circle radius must be positive, got {radius!r}")
        entity_id = self.allocator.allocate_entity_id()
        self.entities[entity_id] = CircleEntity(
            id=entity_id, center=center, radius=float(radius), construction=construction
        )
        return entity_id

    def add_circle_by_coords(
        self, center_x: float, center_y: float, radius: float, *, construction: bool = False
    ) -> CircleHandles:
        center = self.add_point(center_x, center_y)
        return CircleHandles(center, self.add_circle(center, radius, construction=construction))

    def add_full_circle_by_coords(
        self, center_x: float, center_y: float, radius: float, *, construction: bool = False
    ) -> FullCircleHandles:
        """Add a full circle as an arc whose start and end share one rim point.

        Unlike :meth:`add_circle`, the radius of this circle is a solver
        variable (the distance from the center to the rim point).
        """

        if not (math.isfinite(radius) and radius > 0):
            raise SketchError(f"circle radius must be positive, got {radius!r}")
        center = self.add_point(center_x, center_y)
        rim = self.add_point(center_x + radius, center_y)
        arc = self.add_arc(rim, rim, center, True, construction=construction)
        return FullCircleHandles(center, rim, arc)

    def get_entity(self, entity_id: EntityId) -> Optional[SketchEntity]:
        return self.entities.get(entity_id)

    def remove_entity(self, entity_id: EntityId) -> bool:
        return self.entities.pop(entity_id, None) is not None

    def set_entity_construction(self, entity_id: EntityId, construction: bool) -> None:
        entity = self.entities.get(entity_id)
        if entity is None:
            raise SketchError(f"unknown entity id {entity_id}")
        entity.construction = bool(construction)

    def get_all_entities(self) -> List[SketchEntity]:
        return list(self.entities.values())

    def get_line_direction(self, entity_id: EntityId) -> Optional[Vec2]:
        """Unnormalised ``end - start`` of a line, or ``None``."""

        entity = self.entities.get(entity_id)
        if not isinstance(entity, LineEntity):
            return None
        start = self.points.get(entity.start)
        end = self.points.get(entity.end)
        if start is None or end is None:
            return None
        return end.x - start.x, end.y - start.y

    def get_arc_radius(self, entity_id: EntityId) -> Optional[float]:
        entity = self.entities.get(entity_id)
        if isinstance(entity, CircleEntity):
            return entity.radius
        if not isinstance(entity, ArcEntity):
            return None
        start = self.points.get(entity.start)
        center = self.points.get(entity.center)
        if start is None or center is None:
            return None
        return math.hypot(start.x - center.x, start.y - center.y)

    def get_circle_center(self, entity_id: EntityId) -> Optional[Vec2]:
        entity = self.entities.get(entity_id)
        if not isinstance(entity, (ArcEntity, CircleEntity)):
            return None
        center = self.points.get(entity.center)
        if center is None:
            return None
        return center.x, center.y

    # -- shape helpers ----------------------------------------------------

    def _closed_polyline(self, vertices: Sequence[Vec2]) -> PolygonHandles:
        ids = tuple(self.add_point(x, y) for x, y in vertices)
        count = len(ids)
        lines = tuple(self.add_line(ids[i], ids[(i + 1) % count]) for i in range(count))
        return PolygonHandles(ids, lines)

    def add_rectangle(self, cx: float, cy: float, width: float, height: float) -> PolygonHandles:
        """Axis-aligned rectangle centred on ``(cx, cy)``.

        Corners run counter-clockwise from bottom-left; lines are bottom,
        right, top, left.
        """

        hw = width / 2.0
        hh = height / 2.0
        return self._closed_polyline(
            [
                (cx - hw, cy - hh),
                (cx + hw, cy - hh),
                (cx + hw, cy + hh),
                (cx - hw, cy + hh),
            ]
        )

    def add_triangle(self, cx: float, cy: float, size: float) -> PolygonHandles:
        """Equilateral triangle with side ``size`` and centroid ``(cx, cy)``, apex first."""

        h = size * math.sqrt(3.0) / 2.0
        r = h / 3.0
        return self._closed_polyline(
            [
                (cx, cy + 2.0 * r),
                (cx - size / 2.0, cy - r),
                (cx + size / 2.0, cy - r),
            ]
        )

    def add_polygon(self, cx: float, cy: float, radius: float, sides: int) -> PolygonHandles:
        if sides < 3:
            raise SketchError(f"polygon needs at least 3 sides, got {sides}")
        vertices = []
        for i in range(sides):
            theta = TWO_PI * i / sides - math.pi / 2.0
            vertices.append((cx + radius * math.cos(theta), cy + radius * math.sin(theta)))
        return self._closed_polyline(vertices)

    # -- solver state -----------------------------------------------------

    def _free_ids(self) -> List[PointId]:
        return sorted(pid for pid, p in self.points.items() if not p.fixed)

    def get_state(self) -> List[float]:
        """Flat ``[x0, y0, x1, y1, ...]`` of the free points in point-ID order."""

        state: List[float] = []
        for pid in self._free_ids():
            point = self.points[pid]
            state.extend((point.x, point.y))
        return state

    def set_state(self, state: Sequence[float]) -> None:
        free = self._free_ids()
        if len(state) != 2 * len(free):
            raise SketchError(f"state vector has {len(state)} values, expected {2 * len(free)}")
        values = [float(v) for v in state]
        _check_finite(*values)
        for i, pid in enumerate(free):
            point = self.points[pid]
            point.x = values[2 * i]
            point.y = values[2 * i + 1]

    def get_point_state_indices(self) -> Dict[PointId, int]:
        return {pid: 2 * i for i, pid in enumerate(self._free_ids())}

    def count_base_dof(self) -> int:
        return 2 * sum(1 for p in self.points.values() if not p.fixed)

    def clone(self) -> "SketchModel":
        """Independent deep copy; the allocator is copied too."""

        other = SketchModel.__new__(SketchModel)
        other.allocator = self.allocator.copy()
        other.id = self.id
        other.plane = self.plane
        other.name = self.name
        other.points = copy.deepcopy(self.points)
        other.entities = copy.deepcopy(self.entities)
        return other

    # -- profiles ---------------------------------------------------------

    def _xy(self, point_id: PointId) -> Vec2:
        point = self.points[point_id]
        return point.x, point.y

    def entity_to_curve(self, entity: SketchEntity) -> Curve:
        if isinstance(entity, LineEntity):
            return LineCurve(self._xy(entity.start), self._xy(entity.end))
        if isinstance(entity, CircleEntity):
            return ArcCurve(self._xy(entity.center), entity.radius, 0.0, TWO_PI, True)
        if isinstance(entity, ArcEntity):
            sx, sy = self._xy(entity.start)
            ex, ey = self._xy(entity.end)
            cx, cy = self._xy(entity.center)
            radius = math.hypot(sx - cx, sy - cy)
            start_angle = math.atan2(sy - cy, sx - cx)
            if entity.start == entity.end or math.hypot(sx - ex, sy - ey) < _MERGE_EPS:
                end_angle = start_angle + (TWO_PI if entity.ccw else -TWO_PI)
            else:
                end_angle = math.atan2(ey - cy, ex - cx)
            return ArcCurve((cx, cy), radius, start_angle, end_angle, entity.ccw)
        raise TypeError(f"unsupported sketch entity: {type(entity).__name__}")

    def _vertex_keys(self, entities: Sequence[SketchEntity]) -> Dict[PointId, PointId]:
        """Map each endpoint ID to a representative; coincident points share one."""

        keys: Dict[PointId, PointId] = {}
        reps: List[Tuple[PointId, Vec2]] = []
        endpoint_ids = sorted({pid for e in entities if not isinstance(e, CircleEntity) for pid in (e.start, e.end)})
        for pid in endpoint_ids:
            x, y = self._xy(pid)
            for rep, (rx, ry) in reps:
                if math.hypot(x - rx, y - ry) < _MERGE_EPS:
                    keys[pid] = rep
                    break
            else:
                keys[pid] = pid
                reps.append((pid, (x, y)))
        return keys

    def _walk_loops(self, entities: Sequence[SketchEntity]) -> Optional[List[List[Curve]]]:
        """Greedy walk over shared endpoints.

        At a vertex joining more than two entities the walk continues with the
        first unused entity in ``entities`` order, so two loops touching at one
        vertex (a bow-tie) may come back as a single figure-eight loop.
        """

        keys = self._vertex_keys(entities)
        loops: List[List[Curve]] = []
        open_chain: List[SketchEntity] = []

        for entity in entities:
            if isinstance(entity, CircleEntity):
                loops.append([self.entity_to_curve(entity)])
            elif keys[entity.start] == keys[entity.end]:
                loops.append([self.entity_to_curve(entity)])
            else:
                open_chain.append(entity)

        incident: Dict[PointId, List[SketchEntity]] = {}
        for entity in open_chain:
            incident.setdefault(keys[entity.start], []).append(entity)
            incident.setdefault(keys[entity.end], []).append(entity)

        used: set = set()
        for first in open_chain:
            if first.id in used:
                continue
            used.add(first.id)
            curves = [self.entity_to_curve(first)]
            loop_start = keys[first.start]
            current = keys[first.end]
            # a loop can hold at most every remaining entity
            for _ in range(len(open_chain)):
                if current == loop_start:
                    break
                nxt = next((e for e in incident.get(current, []) if e.id not in used), None)
                if nxt is None:
                    break
                used.add(nxt.id)
                curve = self.entity_to_curve(nxt)
                if keys[nxt.start] == current:
                    current = keys[nxt.end]
                else:
                    curve = reverse_curve(curve)
                    current = keys[nxt.start]
                curves.append(curve)
            if current != loop_start:
                logger.debug("Entity %s is part of an open chain; no profile", first.id)
                return None
            loops.append(curves)
        return loops

    def to_profile(self, entity_ids: Optional[Iterable[EntityId]] = None) -> Optional[Profile]:
        """Extract closed loops from the non-construction geometry.

        Returns ``None`` when there is no geometry, when any considered entity
        cannot be placed in a closed loop, or when an entity references a
        missing point.  Loops sharing a vertex are split greedily in entity
        order and may merge into one figure-eight loop.
        """

        if entity_ids is None:
            candidates = [self.entities[eid] for eid in sorted(self.entities)]
        else:
            candidates = [self.entities[eid] for eid in entity_ids if eid in self.entities]
        entities = [e for e in candidates if not e.construction]
        if not entities:
            return None
        for entity in entities:
            if any(pid not in self.points for pid in entity_point_ids(entity)):
                logger.warning("Entity %s references a missing point; no profile", entity.id)
                return None

        curve_loops = self._walk_loops(entities)
        if not curve_loops:
            return None

        polylines = [loop_polyline(ProfileLoop(curves)) for curves in curve_loops]
        depths = []
        for idx, curves in enumerate(curve_loops):
            sample = eval_curve(curves[0], 0.5)
            depth = sum(
                1
                for other_idx, poly in enumerate(polylines)
                if other_idx != idx and point_in_polygon_2d(sample, poly)
            )
            depths.append(depth)

        order = sorted(range(len(curve_loops)), key=lambda i: depths[i])
        profile = Profile(plane=self.plane)
        for i in order:
            profile.loops.append(ProfileLoop(curves=curve_loops[i], is_outer=depths[i] % 2 == 0))
        logger.debug(
            "Extracted profile with %d loop(s) from sketch %s", len(profile.loops), self.name
        )
        return profile


__all__ = [
    "ArcHandles",
    "CircleHandles",
    "FullCircleHandles",
    "LineHandles",
    "PolygonHandles",
    "SketchError",
    "SketchModel",
]
