import pytest

from sketchcore.predicates import (
    PlaneClassification,
    classify_point_plane,
    distance_to_plane,
    is_point_on_segment_2d,
    is_point_on_segment_3d,
    orient2d,
    orient3d,
    point_in_polygon_2d,
)
from sketchcore.tolerance import NumericContext


def test_orient2d_signs():
    assert orient2d((0.0, 0.0), (1.0, 0.0), (0.0, 1.0)) == 1
    assert orient2d((0.0, 0.0), (1.0, 0.0), (0.0, -1.0)) == -1
    assert orient2d((0.0, 0.0), (1.0, 0.0), (2.0, 0.0)) == 0


def test_orient2d_near_collinear_is_zero():
    assert orient2d((0.0, 0.0), (1.0, 0.0), (0.5, 1e-9)) == 0


@pytest.mark.parametrize(
    "a,b,c",
    [
        ((0.0, 0.0), (1.0, 0.0), (0.3, 0.7)),
        ((0.1, 0.2), (0.3, 0.4), (0.5, 0.6000001)),
        ((3.0, -2.0), (-1.0, 5.0), (0.0, 0.0)),
        ((0.0, 0.0), (1.0, 1e-7), (2.0, 0.0)),
    ],
)
def test_orient2d_is_antisymmetric(a, b, c):
    assert orient2d(a, b, c) == -orient2d(b, a, c)


def test_orient3d():
    a, b, c = (0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0)
    assert orient3d(a, b, c, (0.0, 0.0, 1.0)) == 1
    assert orient3d(a, b, c, (0.0, 0.0, -1.0)) == -1
    assert orient3d(a, b, c, (0.3, 0.3, 0.0)) == 0


def test_classify_point_plane():
    origin, normal = (0.0, 0.0, 0.0), (0.0, 0.0, 2.0)
    assert classify_point_plane((0.0, 0.0, 1.0), origin, normal) is PlaneClassification.ABOVE
    assert classify_point_plane((5.0, 5.0, -1.0), origin, normal) is PlaneClassification.BELOW
    assert classify_point_plane((5.0, 5.0, 1e-8), origin, normal) is PlaneClassification.ON


def test_distance_to_plane_normalizes_normal():
    assert distance_to_plane((0.0, 0.0, 3.0), (0.0, 0.0, 1.0), (0.0, 0.0, 10.0)) == pytest.approx(2.0)


def test_zero_normal_raises():
    with pytest.raises(ValueError):
        distance_to_plane((0.0, 0.0, 0.0), (0.0, 0.0, 0.0), (0.0, 0.0, 0.0))
    with pytest.raises(ValueError):
        classify_point_plane((0.0, 0.0, 0.0), (0.0, 0.0, 0.0), (0.0, 0.0, 0.0))


def test_point_on_segment_2d():
    a, b = (0.0, 0.0), (10.0, 0.0)
    assert is_point_on_segment_2d((5.0, 0.0), a, b)
    assert is_point_on_segment_2d((0.0, 0.0), a, b)
    assert is_point_on_segment_2d((10.0 + 5e-7, 0.0), a, b)
    assert is_point_on_segment_2d((5.0, 5e-7), a, b)
    assert not is_point_on_segment_2d((5.0, 1e-3), a, b)
    assert not is_point_on_segment_2d((10.1, 0.0), a, b)
    assert not is_point_on_segment_2d((-0.1, 0.0), a, b)


def test_point_on_degenerate_segment():
    a = (1.0, 1.0)
    assert is_point_on_segment_2d((1.0, 1.0 + 1e-7), a, a)
    assert not is_point_on_segment_2d((1.0, 1.1), a, a)


def test_point_on_segment_3d():
    a, b = (0.0, 0.0, 0.0), (0.0, 0.0, 4.0)
    assert is_point_on_segment_3d((0.0, 0.0, 2.0), a, b)
    assert not is_point_on_segment_3d((0.0, 0.1, 2.0), a, b)
    assert not is_point_on_segment_3d((0.0, 0.0, 4.5), a, b)


def test_predicates_honor_custom_context():
    loose = NumericContext(length=0.2)
    assert is_point_on_segment_2d((5.0, 0.1), (0.0, 0.0), (10.0, 0.0), loose)
    assert orient2d((0.0, 0.0), (1.0, 0.0), (0.5, 0.1), loose) == 0


def test_point_in_polygon():
    square = [(0.0, 0.0), (4.0, 0.0), (4.0, 4.0), (0.0, 4.0)]
    assert point_in_polygon_2d((2.0, 2.0), square)
    assert not point_in_polygon_2d((5.0, 2.0), square)
    assert not point_in_polygon_2d((2.0, 2.0), square[:2])


@pytest.mark.parametrize(
    "a,b,c",
    [
        ((0.0, 0.0), (4.0, 0.0), (1.0, 3.0)),
        ((0.0, 0.0), (1.0, 3.0), (4.0, 0.0)),
        ((-2.5, 1.0), (3.0, -4.0), (7.0, 6.5)),
        ((100.0, 100.0), (101.0, 100.0), (100.0, 102.0)),
    ],
)
def test_centroid_lies_on_the_same_side_as_each_opposite_vertex(a, b, c):
    centroid = ((a[0] + b[0] + c[0]) / 3.0, (a[1] + b[1] + c[1]) / 3.0)
    for p, q, opposite in ((a, b, c), (b, c, a), (c, a, b)):
        side = orient2d(p, q, opposite)
        assert side != 0
        assert orient2d(p, q, centroid) == side
