"""Tolerance-relative numeric comparisons.

Every comparison takes a :class:`NumericContext` so callers decide how close is
"equal".  Nothing here keeps module-level state.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Optional

from .math_utils import TWO_PI


@dataclass(frozen=True)
class NumericContext:
    """Length and angle tolerances used by comparisons and predicates."""

    length: float = 1e-6
    angle: float = 1e-8


Tolerances = NumericContext

DEFAULT_TOLERANCES = NumericContext()


def create_numeric_context(
    length: Optional[float] = None, angle: Optional[float] = None
) -> NumericContext:
    """Return a context based on :data:`DEFAULT_TOLERANCES` with overrides."""

    ctx = DEFAULT_TOLERANCES
    if length is not None:
        if length < 0 or not math.isfinite(length):
            raise ValueError(f"length tolerance must be a finite non-negative number, got {length!r}")
        ctx = replace(ctx, length=float(length))
    if angle is not None:
        if angle < 0 or not math.isfinite(angle):
            raise ValueError(f"angle tolerance must be a finite non-negative number, got {angle!r}")
        ctx = replace(ctx, angle=float(angle))
    return ctx


def is_zero(value: float, ctx: NumericContext = DEFAULT_TOLERANCES) -> bool:
    return abs(value) <= ctx.length


def eq_length(a: float, b: float, ctx: NumericContext = DEFAULT_TOLERANCES) -> bool:
    return abs(a - b) <= ctx.length


def eq_angle(a: float, b: float, ctx: NumericContext = DEFAULT_TOLERANCES) -> bool:
    """Compare angles in radians modulo ``2*pi``."""

    return abs(math.remainder(a - b, TWO_PI)) <= ctx.angle


def clamp_to_zero(value: float, ctx: NumericContext = DEFAULT_TOLERANCES) -> float:
    if abs(value) <= ctx.length:
        return 0.0
    return value


def eq(a: float, b: float, ctx: NumericContext = DEFAULT_TOLERANCES) -> bool:
    return abs(a - b) <= ctx.length


def lt(a: float, b: float, ctx: NumericContext = DEFAULT_TOLERANCES) -> bool:
    """``a`` is strictly less than ``b`` by more than the tolerance."""

    return a < b - ctx.length


def lte(a: float, b: float, ctx: NumericContext = DEFAULT_TOLERANCES) -> bool:
    return a <= b + ctx.length


def gt(a: float, b: float, ctx: NumericContext = DEFAULT_TOLERANCES) -> bool:
    return a > b + ctx.length


def gte(a: float, b: float, ctx: NumericContext = DEFAULT_TOLERANCES) -> bool:
    return a >= b - ctx.length


__all__ = [
    "DEFAULT_TOLERANCES",
    "NumericContext",
    "Tolerances",
    "clamp_to_zero",
    "create_numeric_context",
    "eq",
    "eq_angle",
    "eq_length",
    "gt",
    "gte",
    "is_zero",
    "lt",
    "lte",
]
