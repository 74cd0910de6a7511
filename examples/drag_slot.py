"""Example: drag a point of a tangent line-arc sketch and watch the constraints hold."""

from sketchcore import SketchModel, SolveOptions, solve_sketch
from sketchcore import constraints as C


def main() -> None:
    sketch = SketchModel(name="Slot")
    center = sketch.add_fixed_point(0.0, 0.0)
    arc_start = sketch.add_point(1.0, 0.0)
    arc_end = sketch.add_point(-1.0, 0.0)
    arc = sketch.add_arc(arc_start, arc_end, center)
    line = sketch.add_line_by_coords(1.1, -3.0, 1.0, 0.1)

    cons = [
        C.coincident(line.end, arc_start),
        C.tangent(line.line, arc),
        C.horizontal_points(arc_start, arc_end),
        C.radius_dimension(arc, 1.0),
    ]
    print("Initial:", solve_sketch(sketch, cons).status.value)

    for target in [(1.0, -4.0), (1.0, -6.0), (1.0, -8.0)]:
        options = SolveOptions(driven_points={line.start: target})
        result = solve_sketch(sketch, cons, options)
        x, y = sketch.get_point(line.start).position
        print(f"drag to {target}: status={result.status.value} start=({x:.4f}, {y:.4f})")


if __name__ == "__main__":
    main()
