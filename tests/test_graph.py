from sketchcore import constraints as C
from sketchcore.graph import (
    analyze_constraint_graph,
    build_constraint_graph,
    can_solve,
    detect_conflicts,
    find_connected_components,
    partition_for_solving,
)
from sketchcore.sketch import SketchModel


def _two_islands():
    sketch = SketchModel()
    left = sketch.add_line_by_coords(0.0, 0.0, 1.0, 0.0)
    right = sketch.add_line_by_coords(5.0, 0.0, 6.0, 1.0)
    cons = [
        C.fixed(left.start, (0.0, 0.0)),
        C.horizontal_line(left.line),
        C.distance(left.start, left.end, 1.0),
        C.vertical_line(right.line),
    ]
    return sketch, left, right, cons


def test_graph_links_points_sharing_constraints():
    sketch, left, right, cons = _two_islands()
    nodes = build_constraint_graph(sketch, cons)
    assert nodes[left.start].neighbors == {left.end}
    assert nodes[right.start].neighbors == {right.end}
    assert len(nodes[left.start].constraints) == 3


def test_components_in_point_id_order():
    sketch, left, right, cons = _two_islands()
    isolated = sketch.add_point(9.0, 9.0)
    components = find_connected_components(build_constraint_graph(sketch, cons))
    assert components == [[left.start, left.end], [right.start, right.end], [isolated]]


def test_component_dof():
    sketch, left, right, cons = _two_islands()
    analysis = analyze_constraint_graph(sketch, cons)
    first, second = analysis.components
    assert first.base_dof == 4
    assert first.constraint_dof == 4
    assert first.is_fully_constrained
    assert second.remaining_dof == 3
    assert second.is_under_constrained
    assert analysis.remaining_dof == 3
    assert analysis.conflicts == []


def test_inactive_constraints_do_not_link_points():
    sketch, left, right, cons = _two_islands()
    cons.append(C.coincident(left.end, right.start, active=False))
    assert len(analyze_constraint_graph(sketch, cons).components) == 2


def test_detect_conflicts():
    sketch = SketchModel()
    a = sketch.add_point(0.0, 0.0)
    b = sketch.add_point(1.0, 0.0)
    l1 = sketch.add_line_by_coords(0.0, 0.0, 1.0, 0.0).line
    l2 = sketch.add_line_by_coords(0.0, 0.0, 0.0, 1.0).line
    cons = [
        C.fixed(a, (0.0, 0.0)),
        C.fixed(a, (1.0, 0.0)),
        C.distance(a, b, 1.0),
        C.distance(b, a, 2.0),
        C.distance(a, b, 1.0 + 1e-9),
        C.angle(l1, l2, 1.0),
        C.angle(l1, l2, 1.5),
    ]
    conflicts = detect_conflicts(sketch, cons)
    messages = [conflict.message for conflict in conflicts]
    assert len(conflicts) == 3
    assert any("fixed" in message for message in messages)
    assert any("distance" in message for message in messages)
    assert any("angle" in message for message in messages)


def test_partition_for_solving_copies_geometry():
    sketch, left, right, cons = _two_islands()
    parts = partition_for_solving(sketch, cons)
    assert len(parts) == 2
    (sub_left, left_cons), (sub_right, right_cons) = parts
    assert set(sub_left.points) == {left.start, left.end}
    assert set(sub_left.entities) == {left.line}
    assert len(left_cons) == 3
    assert len(right_cons) == 1
    sub_left.set_point_position(left.end, 9.0, 9.0)
    assert sketch.get_point(left.end).position == (1.0, 0.0)


def test_can_solve():
    sketch, left, right, cons = _two_islands()
    ok, message, _ = can_solve(sketch, cons)
    assert ok
    assert "under-constrained" in message

    cons.append(C.fixed(left.end, (1.0, 0.0)))
    ok, message, analysis = can_solve(sketch, cons)
    assert not ok
    assert "over-constrained" in message
    assert analysis.components[0].is_over_constrained

    sketch2 = SketchModel()
    p = sketch2.add_point(0.0, 0.0)
    ok, message, _ = can_solve(sketch2, [C.fixed(p, (0.0, 0.0)), C.fixed(p, (2.0, 0.0))])
    assert not ok
    assert "conflict" in message
