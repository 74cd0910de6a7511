"""Small tuple-based vector helpers shared by predicates, profiles and the solver."""

from __future__ import annotations

import math
from typing import Tuple

Vec2 = Tuple[float, float]
Vec3 = Tuple[float, float, float]

TWO_PI = 2.0 * math.pi


def sub2(a: Vec2, b: Vec2) -> Vec2:
    return a[0] - b[0], a[1] - b[1]


def add2(a: Vec2, b: Vec2) -> Vec2:
    return a[0] + b[0], a[1] + b[1]


def scale2(v: Vec2, k: float) -> Vec2:
    return v[0] * k, v[1] * k


def dot2(a: Vec2, b: Vec2) -> float:
    return a[0] * b[0] + a[1] * b[1]


def cross2(a: Vec2, b: Vec2) -> float:
    return a[0] * b[1] - a[1] * b[0]


def length2(v: Vec2) -> float:
    return math.hypot(v[0], v[1])


def dist2(a: Vec2, b: Vec2) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def midpoint2(a: Vec2, b: Vec2) -> Vec2:
    return (a[0] + b[0]) * 0.5, (a[1] + b[1]) * 0.5


def normalize2(v: Vec2) -> Vec2:
    """Return ``v`` scaled to unit length; the zero vector maps to ``(0, 0)``."""

    n = length2(v)
    if n == 0.0:
        return 0.0, 0.0
    return v[0] / n, v[1] / n


def rotate90(v: Vec2) -> Vec2:
    return -v[1], v[0]


def sub3(a: Vec3, b: Vec3) -> Vec3:
    return a[0] - b[0], a[1] - b[1], a[2] - b[2]


def add3(a: Vec3, b: Vec3) -> Vec3:
    return a[0] + b[0], a[1] + b[1], a[2] + b[2]


def scale3(v: Vec3, k: float) -> Vec3:
    return v[0] * k, v[1] * k, v[2] * k


def dot3(a: Vec3, b: Vec3) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def cross3(a: Vec3, b: Vec3) -> Vec3:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def length3(v: Vec3) -> float:
    return math.sqrt(dot3(v, v))


def normalize3(v: Vec3) -> Vec3:
    n = length3(v)
    if n == 0.0:
        return 0.0, 0.0, 0.0
    return v[0] / n, v[1] / n, v[2] / n


def wrap_angle(theta: float) -> float:
    """Map ``theta`` onto ``[-pi, pi]``."""

    return math.remainder(theta, TWO_PI)


def normalize_angle_positive(theta: float) -> float:
    """Map ``theta`` onto ``[0, 2*pi)``."""

    wrapped = math.fmod(theta, TWO_PI)
    if wrapped < 0.0:
        wrapped += TWO_PI
    if wrapped >= TWO_PI:
        wrapped = 0.0
    return wrapped
