"""Plain-dict (JSON compatible) encoding of sketches and constraints."""

from __future__ import annotations

from dataclasses import fields
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .constraints import CONSTRAINT_TYPES, BaseConstraint, HorizontalLine, HorizontalPoints, VerticalLine, VerticalPoints
from .ids import IdAllocator
from .planes import XY_PLANE, YZ_PLANE, ZX_PLANE, DatumPlane, create_datum_plane
from .sketch import SketchError, SketchModel
from .types import ArcEntity, CircleEntity, LineEntity, SketchEntity, SketchPoint, entity_point_ids

_STANDARD_PLANES = {plane.name: plane for plane in (XY_PLANE, YZ_PLANE, ZX_PLANE)}

_FORMS = {
    HorizontalPoints: "points",
    HorizontalLine: "line",
    VerticalPoints: "points",
    VerticalLine: "line",
}

_CONSTRAINT_CLASSES: Dict[Tuple[str, Optional[str]], type] = {
    (cls.kind, _FORMS.get(cls)): cls for cls in CONSTRAINT_TYPES
}

# constraint fields holding 2D vectors
_VECTOR_FIELDS = {"position", "offset"}


def _plain(value: Any) -> Any:
    if isinstance(value, tuple):
        return [_plain(v) for v in value]
    return value


def constraint_to_dict(constraint: BaseConstraint) -> Dict[str, Any]:
    cls = type(constraint)
    if cls not in CONSTRAINT_TYPES:
        raise TypeError(f"unsupported constraint: {cls.__name__}")
    data: Dict[str, Any] = {"kind": constraint.kind}
    form = _FORMS.get(cls)
    if form is not None:
        data["form"] = form
    for f in fields(constraint):
        data[f.name] = _plain(getattr(constraint, f.name))
    return data


def constraint_from_dict(data: Mapping[str, Any]) -> BaseConstraint:
    kind = data.get("kind")
    form = data.get("form")
    if form is None and kind in ("horizontal", "vertical"):
        form = "line" if "line" in data else "points"
    cls = _CONSTRAINT_CLASSES.get((kind, form))  # type: ignore[arg-type]
    if cls is None:
        raise ValueError(f"unknown constraint kind {kind!r}")
    kwargs: Dict[str, Any] = {}
    for f in fields(cls):
        if f.name not in data:
            continue
        value = data[f.name]
        if f.name in _VECTOR_FIELDS and value is not None:
            value = (float(value[0]), float(value[1]))
        kwargs[f.name] = value
    try:
        return cls(**kwargs)
    except TypeError as exc:
        raise ValueError(f"invalid {kind} constraint: {exc}") from exc


def _entity_to_dict(entity: SketchEntity) -> Dict[str, Any]:
    if isinstance(entity, LineEntity):
        extra: Dict[str, Any] = {"start": entity.start, "end": entity.end}
    elif isinstance(entity, ArcEntity):
        extra = {"start": entity.start, "end": entity.end, "center": entity.center, "ccw": entity.ccw}
    elif isinstance(entity, CircleEntity):
        extra = {"center": entity.center, "radius": entity.radius}
    else:
        raise TypeError(f"unsupported sketch entity: {type(entity).__name__}")
    return {"kind": entity.kind, "id": entity.id, "construction": entity.construction, **extra}


def _entity_from_dict(data: Mapping[str, Any]) -> SketchEntity:
    kind = data.get("kind")
    eid = int(data["id"])
    construction = bool(data.get("construction", False))
    if kind == "line":
        return LineEntity(id=eid, start=int(data["start"]), end=int(data["end"]), construction=construction)
    if kind == "arc":
        return ArcEntity(
            id=eid,
            start=int(data["start"]),
            end=int(data["end"]),
            center=int(data["center"]),
            ccw=bool(data.get("ccw", True)),
            construction=construction,
        )
    if kind == "circle":
        return CircleEntity(id=eid, center=int(data["center"]), radius=float(data["radius"]), construction=construction)
    raise ValueError(f"unknown entity kind {kind!r}")


def _plane_to_dict(plane: DatumPlane) -> Dict[str, Any]:
    return {
        "name": plane.name,
        "origin": list(plane.origin),
        "normal": list(plane.normal),
        "x_dir": list(plane.x_dir),
    }


def _plane_from_dict(data: Any) -> DatumPlane:
    if data is None:
        return XY_PLANE
    if isinstance(data, str):
        if data not in _STANDARD_PLANES:
            raise ValueError(f"unknown plane {data!r}")
        return _STANDARD_PLANES[data]
    name = str(data.get("name", "Plane"))
    if "normal" not in data:
        if name not in _STANDARD_PLANES:
            raise ValueError(f"unknown plane {name!r}")
        return _STANDARD_PLANES[name]
    x_dir = data.get("x_dir")
    return create_datum_plane(
        name,
        tuple(data.get("origin", (0.0, 0.0, 0.0))),  # type: ignore[arg-type]
        tuple(data["normal"]),  # type: ignore[arg-type]
        tuple(x_dir) if x_dir is not None else None,  # type: ignore[arg-type]
    )


def sketch_to_dict(sketch: SketchModel) -> Dict[str, Any]:
    return {
        "id": sketch.id,
        "name": sketch.name,
        "plane": _plane_to_dict(sketch.plane),
        "points": [
            {"id": p.id, "x": p.x, "y": p.y, "fixed": p.fixed, "name": p.name}
            for _, p in sorted(sketch.points.items())
        ],
        "entities": [_entity_to_dict(e) for _, e in sorted(sketch.entities.items())],
        "allocator": sketch.allocator.state(),
    }


def sketch_from_dict(data: Mapping[str, Any]) -> SketchModel:
    """Rebuild a sketch keeping the IDs recorded in ``data``."""

    points = [
        SketchPoint(
            id=int(p["id"]),
            x=float(p["x"]),
            y=float(p["y"]),
            fixed=bool(p.get("fixed", False)),
            name=p.get("name"),
        )
        for p in data.get("points", [])
    ]
    entities = [_entity_from_dict(e) for e in data.get("entities", [])]

    state = data.get("allocator") or {}
    saved_id = data.get("id")
    allocator = IdAllocator(
        next_sketch=int(saved_id) if saved_id is not None else int(state.get("sketch", 0)),
        next_point=max([int(state.get("point", 0))] + [p.id + 1 for p in points]),
        next_entity=max([int(state.get("entity", 0))] + [e.id + 1 for e in entities]),
        next_constraint=int(state.get("constraint", 0)),
    )
    sketch = SketchModel(plane=_plane_from_dict(data.get("plane")), name=data.get("name"), allocator=allocator)
    allocator.next_sketch = max(allocator.next_sketch, int(state.get("sketch", 0)))

    for point in points:
        if point.id in sketch.points:
            raise SketchError(f"duplicate point id {point.id}")
        sketch.points[point.id] = point
    for entity in entities:
        if entity.id in sketch.entities:
            raise SketchError(f"duplicate entity id {entity.id}")
        missing = [pid for pid in entity_point_ids(entity) if pid not in sketch.points]
        if missing:
            raise SketchError(f"entity {entity.id} references unknown point(s) {missing}")
        sketch.entities[entity.id] = entity
    return sketch


def document_to_dict(sketch: SketchModel, constraints: Sequence[BaseConstraint]) -> Dict[str, Any]:
    return {
        "sketch": sketch_to_dict(sketch),
        "constraints": [constraint_to_dict(c) for c in constraints],
    }


def document_from_dict(data: Mapping[str, Any]) -> Tuple[SketchModel, List[BaseConstraint]]:
    sketch = sketch_from_dict(data.get("sketch", {}))
    constraints = [constraint_from_dict(c) for c in data.get("constraints", [])]
    return sketch, constraints


__all__ = [
    "constraint_from_dict",
    "constraint_to_dict",
    "document_from_dict",
    "document_to_dict",
    "sketch_from_dict",
    "sketch_to_dict",
]
