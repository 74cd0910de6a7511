import math

import numpy as np
import pytest

from sketchcore import constraints as C
from sketchcore.sketch import SketchModel
from sketchcore.solver import ResidualBuilderConfig, SolveOptions, build_residual_system
from sketchcore.solver.builder import evaluate, jacobian, residual_breakdown


def _sketch():
    sketch = SketchModel()
    a = sketch.add_point(0.0, 0.0)
    b = sketch.add_point(3.0, 4.0)
    anchor = sketch.add_fixed_point(1.0, 1.0)
    line = sketch.add_line(a, b)
    return sketch, a, b, anchor, line


def test_residual_sizes_match_equation_counts():
    sketch, a, b, anchor, line = _sketch()
    cons = [C.distance(a, b, 5.0), C.coincident(a, anchor), C.horizontal_line(line), C.fixed(b, (3.0, 4.0))]
    system = build_residual_system(sketch, cons, SolveOptions())
    assert system.n == 4
    assert [spec.size for spec in system.hard] == [1, 2, 1, 2]
    assert [spec.kind for spec in system.hard] == ["distance", "coincident", "horizontal", "fixed"]
    assert system.skipped == []


def test_residuals_vanish_when_constraints_hold():
    sketch, a, b, anchor, line = _sketch()
    cons = [C.distance(a, b, 5.0), C.fixed(b, (3.0, 4.0)), C.point_on_line(anchor, line, active=False)]
    system = build_residual_system(sketch, cons, SolveOptions())
    x = np.asarray(sketch.get_state())
    assert len(system.hard) == 2
    assert np.allclose(evaluate(system.hard, x), 0.0)
    breakdown = residual_breakdown(system.hard, x)
    assert [entry["max_abs"] for entry in breakdown] == pytest.approx([0.0, 0.0])


@pytest.mark.parametrize(
    "make",
    [
        lambda a, b, anchor, line: C.distance(a, anchor, 2.0),
        lambda a, b, anchor, line: C.midpoint(anchor, line),
        lambda a, b, anchor, line: C.vertical_points(a, b),
    ],
)
def test_analytic_jacobian_matches_finite_differences(make):
    sketch, a, b, anchor, line = _sketch()
    system = build_residual_system(sketch, [make(a, b, anchor, line)], SolveOptions())
    spec = system.hard[0]
    assert spec.jac is not None
    x = np.array([0.3, -0.2, 2.5, 4.5])
    analytic = spec.jac(x)
    spec.jac = None
    numeric = jacobian([spec], x, system.n, ResidualBuilderConfig())
    assert np.allclose(analytic, numeric, atol=1e-6)


def test_finite_difference_block_for_parallel():
    sketch = SketchModel()
    first = sketch.add_line_by_coords(0.0, 0.0, 1.0, 0.0).line
    second = sketch.add_line_by_coords(0.0, 1.0, 1.0, 2.0).line
    system = build_residual_system(sketch, [C.parallel(first, second)], SolveOptions())
    spec = system.hard[0]
    assert spec.jac is None
    x = np.asarray(sketch.get_state())
    jac = jacobian(system.hard, x, system.n, ResidualBuilderConfig())
    assert jac.shape == (1, 8)
    assert np.all(np.isfinite(jac))
    assert np.any(jac != 0.0)


def test_stale_and_mistyped_references_are_skipped():
    sketch, a, b, anchor, line = _sketch()
    cons = [C.coincident(a, 42), C.point_on_arc(a, line), C.distance(a, b, 5.0)]
    system = build_residual_system(sketch, cons, SolveOptions())
    assert len(system.hard) == 1
    assert len(system.skipped) == 2
    assert "unknown point 42" in system.skipped[0]
    assert "expected an arc or circle" in system.skipped[1]


def test_driven_residuals_are_weighted():
    sketch, a, b, anchor, line = _sketch()
    options = SolveOptions(driven_points={b: (4.0, 4.0), anchor: (0.0, 0.0)}, driven_weight=1e-2)
    system = build_residual_system(sketch, [], options)
    assert len(system.driven) == 1
    spec = system.driven[0]
    assert spec.driven
    assert spec.weight == pytest.approx(1e-4)
    x = np.asarray(sketch.get_state())
    assert evaluate([spec], x).tolist() == pytest.approx([-1.0, 0.0])
    assert evaluate([spec], x, weighted=True).tolist() == pytest.approx([-1e-2, 0.0])


def test_constraint_weight_scales_weighted_residual():
    sketch, a, b, anchor, line = _sketch()
    system = build_residual_system(sketch, [C.distance(a, b, 4.0, weight=4.0)], SolveOptions())
    x = np.asarray(sketch.get_state())
    assert evaluate(system.hard, x).tolist() == pytest.approx([1.0])
    assert evaluate(system.hard, x, weighted=True).tolist() == pytest.approx([2.0])


def test_degenerate_line_is_reported():
    sketch = SketchModel()
    line = sketch.add_line_by_coords(1.0, 1.0, 1.0, 1.0).line
    base = sketch.add_line_by_coords(0.0, 0.0, 1.0, 0.0).line
    system = build_residual_system(sketch, [C.perpendicular(line, base)], SolveOptions())
    x = np.asarray(sketch.get_state())
    assert system.degenerate(x) == [system.hard[0].key]
    assert math.isfinite(float(evaluate(system.hard, x)[0]))


def _two_full_circles():
    sketch = SketchModel()
    big = sketch.add_full_circle_by_coords(0.0, 0.0, 3.0)
    small = sketch.add_full_circle_by_coords(0.5, 0.2, 1.0)
    return sketch, big.arc, small.arc


@pytest.mark.parametrize("internal", [False, True])
def test_arc_arc_tangent_jacobian_matches_finite_differences(internal):
    sketch, big, small = _two_full_circles()
    system = build_residual_system(sketch, [C.arc_arc_tangent(big, small, internal)], SolveOptions())
    spec = system.hard[0]
    assert spec.jac is not None
    x = np.asarray(sketch.get_state())
    analytic = spec.jac(x)
    spec.jac = None
    numeric = jacobian([spec], x, system.n, ResidualBuilderConfig())
    assert np.allclose(analytic, numeric, atol=1e-6)


def test_arc_arc_tangent_internal_jacobian_at_equal_radii():
    sketch = SketchModel()
    first = sketch.add_full_circle_by_coords(0.0, 0.0, 2.0)
    second = sketch.add_full_circle_by_coords(1.0, 0.0, 2.0)
    system = build_residual_system(
        sketch, [C.arc_arc_tangent(first.arc, second.arc, internal=True)], SolveOptions()
    )
    x = np.asarray(sketch.get_state())
    jac = jacobian(system.hard, x, system.n, ResidualBuilderConfig())
    # radius columns are the rim x coordinates: d|r1 - r2| taken with sign +1
    assert jac[0, 2] == pytest.approx(-1.0)
    assert jac[0, 6] == pytest.approx(1.0)


@pytest.mark.parametrize("y", [1.0, -2.0])
def test_point_to_line_distance_jacobian_matches_finite_differences(y):
    sketch = SketchModel()
    line = sketch.add_line_by_coords(0.0, 0.0, 4.0, 1.0).line
    p = sketch.add_point(1.5, y)
    system = build_residual_system(sketch, [C.point_to_line_distance(p, line, 0.5)], SolveOptions())
    spec = system.hard[0]
    assert spec.jac is not None
    x = np.asarray(sketch.get_state())
    analytic = spec.jac(x)
    spec.jac = None
    numeric = jacobian([spec], x, system.n, ResidualBuilderConfig())
    assert np.allclose(analytic, numeric, atol=1e-6)


def test_point_to_line_distance_jacobian_nonzero_on_the_line():
    sketch = SketchModel()
    a = sketch.add_fixed_point(0.0, 0.0)
    b = sketch.add_fixed_point(10.0, 0.0)
    line = sketch.add_line(a, b)
    p = sketch.add_point(5.0, 0.0)
    system = build_residual_system(sketch, [C.point_to_line_distance(p, line, 3.0)], SolveOptions())
    x = np.asarray(sketch.get_state())
    jac = jacobian(system.hard, x, system.n, ResidualBuilderConfig())
    assert jac.tolist() == pytest.approx([[0.0, 1.0]])
