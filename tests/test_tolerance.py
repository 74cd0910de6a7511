import math
from dataclasses import FrozenInstanceError

import pytest

from sketchcore.tolerance import (
    DEFAULT_TOLERANCES,
    NumericContext,
    clamp_to_zero,
    create_numeric_context,
    eq,
    eq_angle,
    eq_length,
    gt,
    gte,
    is_zero,
    lt,
    lte,
)


def test_default_tolerances():
    assert DEFAULT_TOLERANCES.length == 1e-6
    assert DEFAULT_TOLERANCES.angle == 1e-8


def test_create_numeric_context_overrides_single_value():
    ctx = create_numeric_context(length=1e-3)
    assert ctx.length == 1e-3
    assert ctx.angle == DEFAULT_TOLERANCES.angle
    assert create_numeric_context() == DEFAULT_TOLERANCES


@pytest.mark.parametrize("kwargs", [{"length": -1.0}, {"angle": float("nan")}, {"length": float("inf")}])
def test_create_numeric_context_rejects_bad_values(kwargs):
    with pytest.raises(ValueError):
        create_numeric_context(**kwargs)


def test_numeric_context_is_immutable():
    with pytest.raises(FrozenInstanceError):
        DEFAULT_TOLERANCES.length = 1.0  # type: ignore[misc]


def test_is_zero_respects_context():
    assert is_zero(5e-7)
    assert not is_zero(5e-6)
    assert is_zero(5e-6, NumericContext(length=1e-5))


def test_eq_length_boundary():
    assert eq_length(1.0, 1.0 + 5e-7)
    assert not eq_length(1.0, 1.0 + 5e-6)


def test_eq_angle_wraps_full_turns():
    assert eq_angle(0.0, 2.0 * math.pi)
    assert eq_angle(-math.pi, math.pi)
    assert eq_angle(0.1, 0.1 + 4.0 * math.pi)
    assert not eq_angle(0.0, 1e-6)


def test_clamp_to_zero():
    assert clamp_to_zero(1e-9) == 0.0
    assert clamp_to_zero(-1e-9) == 0.0
    assert clamp_to_zero(0.5) == 0.5


@pytest.mark.parametrize(
    "a,b,expected",
    [
        (1.0, 1.0 + 5e-7, {"eq": True, "lt": False, "lte": True, "gt": False, "gte": True}),
        (1.0, 2.0, {"eq": False, "lt": True, "lte": True, "gt": False, "gte": False}),
        (2.0, 1.0, {"eq": False, "lt": False, "lte": False, "gt": True, "gte": True}),
    ],
)
def test_ordered_comparisons(a, b, expected):
    assert eq(a, b) is expected["eq"]
    assert lt(a, b) is expected["lt"]
    assert lte(a, b) is expected["lte"]
    assert gt(a, b) is expected["gt"]
    assert gte(a, b) is expected["gte"]


def test_comparisons_are_consistent_under_swap():
    values = [0.0, 1e-7, 1e-6, 2e-6, 1.0]
    for a in values:
        for b in values:
            assert lt(a, b) == gt(b, a)
            assert lte(a, b) == gte(b, a)
            assert eq(a, b) == eq(b, a)
            assert lte(a, b) == (lt(a, b) or eq(a, b))


@pytest.mark.parametrize("tol", [1e-9, 1e-6, 1e-3])
def test_eq_length_tolerance_edges(tol):
    ctx = NumericContext(length=tol)
    assert eq_length(1.0, 1.0 + tol * 0.9, ctx)
    assert not eq_length(1.0, 1.0 + tol * 1.1, ctx)
