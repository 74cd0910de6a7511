import json

import pytest

from sketchcore import constraints as C
from sketchcore.planes import YZ_PLANE
from sketchcore.serialize import (
    constraint_from_dict,
    constraint_to_dict,
    document_from_dict,
    document_to_dict,
    sketch_from_dict,
    sketch_to_dict,
)
from sketchcore.sketch import SketchError, SketchModel


def _document():
    sketch = SketchModel(plane=YZ_PLANE, name="Bracket")
    rect = sketch.add_rectangle(0.0, 0.0, 4.0, 2.0)
    arc = sketch.add_arc_by_coords(1.0, 0.0, 0.0, 1.0, 0.0, 0.0, ccw=False)
    circle = sketch.add_circle_by_coords(5.0, 5.0, 1.5, construction=True)
    sketch.set_point_fixed(rect.points[0], True)
    alloc = sketch.allocator
    cons = [
        C.horizontal_line(rect.lines[0], allocator=alloc),
        C.vertical_points(rect.points[1], rect.points[2], allocator=alloc),
        C.fixed(rect.points[0], (0.0, 0.0), allocator=alloc),
        C.distance(rect.points[0], rect.points[1], 4.0, offset=(0.0, -1.0), name="width", allocator=alloc),
        C.tangent(rect.lines[1], arc.arc, "start", "end", allocator=alloc),
        C.arc_arc_tangent(arc.arc, circle.circle, internal=True, weight=2.0, allocator=alloc),
        C.radius_dimension(circle.circle, 1.5, active=False, allocator=alloc),
    ]
    return sketch, cons


def test_document_round_trip_through_json():
    sketch, cons = _document()
    text = json.dumps(document_to_dict(sketch, cons))
    loaded, loaded_cons = document_from_dict(json.loads(text))

    assert loaded.id == sketch.id
    assert loaded.name == "Bracket"
    assert loaded.plane == YZ_PLANE
    assert loaded.points == sketch.points
    assert loaded.entities == sketch.entities
    assert loaded_cons == cons
    assert loaded.allocator.state() == sketch.allocator.state()


def test_loaded_sketch_keeps_allocating_fresh_ids():
    sketch, _ = _document()
    loaded = sketch_from_dict(sketch_to_dict(sketch))
    assert loaded.add_point(0.0, 0.0) == sketch.add_point(0.0, 0.0)


def test_horizontal_and_vertical_forms():
    assert constraint_to_dict(C.HorizontalLine(3))["form"] == "line"
    assert constraint_to_dict(C.HorizontalPoints(1, 2))["form"] == "points"
    assert isinstance(constraint_from_dict({"kind": "vertical", "line": 4}), C.VerticalLine)
    assert isinstance(constraint_from_dict({"kind": "vertical", "p1": 0, "p2": 1}), C.VerticalPoints)


def test_unknown_constraint_kind_raises():
    with pytest.raises(ValueError):
        constraint_from_dict({"kind": "bogus"})
    with pytest.raises(ValueError):
        constraint_from_dict({"kind": "distance", "p1": 0})


def test_unknown_plane_name_raises():
    with pytest.raises(ValueError):
        sketch_from_dict({"plane": "XZ"})


def test_plane_given_by_name():
    assert sketch_from_dict({"plane": "YZ"}).plane is YZ_PLANE


def test_entity_with_missing_point_is_rejected():
    data = {
        "points": [{"id": 0, "x": 0.0, "y": 0.0}],
        "entities": [{"kind": "line", "id": 0, "start": 0, "end": 5}],
    }
    with pytest.raises(SketchError):
        sketch_from_dict(data)


def test_duplicate_point_ids_are_rejected():
    data = {"points": [{"id": 0, "x": 0.0, "y": 0.0}, {"id": 0, "x": 1.0, "y": 0.0}]}
    with pytest.raises(SketchError):
        sketch_from_dict(data)


def test_unknown_entity_kind_raises():
    with pytest.raises(ValueError):
        sketch_from_dict({"points": [], "entities": [{"kind": "spline", "id": 0}]})
