from __future__ import annotations

import math

from pygame.math import Vector2

_EPSILON_SQ = 1e-12


def safe_normalize(vector: Vector2) -> Vector2:
    magnitude_sq = vector.x * vector.x + vector.y * vector.y
    if magnitude_sq < _EPSILON_SQ:
        return Vector2(vector)
    inv = 1.0 / math.sqrt(magnitude_sq)
    return Vector2(vector.x * inv, vector.y * inv)


def safe_divide(vector: Vector2, divisor: float) -> Vector2:
    if divisor == 0:
        return Vector2(vector)
    return Vector2(vector.x / divisor, vector.y / divisor)


def limit_range(vector: Vector2, min_length: float, max_length: float) -> Vector2:
    """Rescale ``vector`` so its length falls inside ``[min_length, max_length]``.

    Lengths already inside the range, and zero vectors (which have no
    direction to scale), come back unchanged.
    """
    magnitude_sq = vector.x * vector.x + vector.y * vector.y
    if magnitude_sq < _EPSILON_SQ:
        return Vector2(vector)
    magnitude = math.sqrt(magnitude_sq)
    if magnitude < min_length:
        scale = min_length / magnitude
    elif magnitude > max_length:
        scale = max_length / magnitude
    else:
        return Vector2(vector)
    return Vector2(vector.x * scale, vector.y * scale)


def distance(a: Vector2, b: Vector2) -> float:
    return math.hypot(b.x - a.x, b.y - a.y)


def angle_between(a: Vector2, b: Vector2) -> float:
    """Unsigned angle in radians, in ``[0, pi]``; zero when either side is zero-length."""
    len_a = math.hypot(a.x, a.y)
    len_b = math.hypot(b.x, b.y)
    if len_a * len_a < _EPSILON_SQ or len_b * len_b < _EPSILON_SQ:
        return 0.0
    cosine = (a.x * b.x + a.y * b.y) / (len_a * len_b)
    return math.acos(_clamp_value(cosine, -1.0, 1.0))


def heading_from_velocity(vector: Vector2) -> float:
    if vector.length_squared() < _EPSILON_SQ:
        return 0.0
    return math.atan2(vector.y, vector.x)


def _clamp_value(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(max_value, value))
