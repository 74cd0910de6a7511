import pytest

from sketchcore.planes import (
    XY_PLANE,
    YZ_PLANE,
    ZX_PLANE,
    create_datum_plane,
    create_offset_plane,
    create_three_point_plane,
)


@pytest.mark.parametrize("plane", [XY_PLANE, YZ_PLANE, ZX_PLANE])
def test_standard_planes_are_right_handed(plane):
    x, y, n = plane.x_dir, plane.y_dir, plane.normal
    cross = (x[1] * y[2] - x[2] * y[1], x[2] * y[0] - x[0] * y[2], x[0] * y[1] - x[1] * y[0])
    assert cross == pytest.approx(n)


def test_world_round_trip():
    plane = create_datum_plane("Tilted", (1.0, 2.0, 3.0), (0.0, 1.0, 1.0), (1.0, 0.0, 0.0))
    world = plane.to_world((2.5, -1.5))
    assert plane.to_sketch(world) == pytest.approx((2.5, -1.5))


def test_create_datum_plane_orthogonalizes_x_dir():
    plane = create_datum_plane("P", (0.0, 0.0, 0.0), (0.0, 0.0, 2.0), (1.0, 0.0, 1.0))
    assert plane.normal == pytest.approx((0.0, 0.0, 1.0))
    assert plane.x_dir == pytest.approx((1.0, 0.0, 0.0))


def test_create_datum_plane_rejects_zero_normal():
    with pytest.raises(ValueError):
        create_datum_plane("Bad", (0.0, 0.0, 0.0), (0.0, 0.0, 0.0))


def test_offset_plane():
    plane = create_offset_plane(XY_PLANE, 5.0)
    assert plane.origin == pytest.approx((0.0, 0.0, 5.0))
    assert plane.normal == XY_PLANE.normal


def test_three_point_plane():
    plane = create_three_point_plane((0.0, 0.0, 1.0), (1.0, 0.0, 1.0), (0.0, 1.0, 1.0))
    assert plane.normal == pytest.approx((0.0, 0.0, 1.0))
    with pytest.raises(ValueError):
        create_three_point_plane((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (2.0, 0.0, 0.0))
