"""Example: dimension a rectangle, solve it, and extract its profile."""

from sketchcore import SketchModel, solve_sketch
from sketchcore import constraints as C
from sketchcore.profile import compute_profile_area


def main() -> None:
    sketch = SketchModel(name="Plate")
    rect = sketch.add_rectangle(2.0, 1.5, 3.5, 2.5)
    bottom, right, top, left = rect.lines
    p0, p1, p2, _ = rect.points

    cons = [
        C.fixed(p0, (0.0, 0.0)),
        C.horizontal_line(bottom),
        C.horizontal_line(top),
        C.vertical_line(left),
        C.vertical_line(right),
        C.distance(p0, p1, 6.0, name="width"),
        C.distance(p1, p2, 3.0, name="height"),
    ]
    result = solve_sketch(sketch, cons)
    print("Status:", result.status.value)
    print("Residual:", result.residual)
    for point in sketch.get_all_points():
        print(f"{point.id}: ({point.x:.6f}, {point.y:.6f})")

    profile = sketch.to_profile()
    if profile is not None:
        print("Profile area:", compute_profile_area(profile))


if __name__ == "__main__":
    main()
