from __future__ import annotations

import math
from typing import Sequence

from pygame.math import Vector2

from ..core.agent import Boid, PeerState
from ..core.behavior import (
    ALIGN_FACTOR,
    ALIGN_RANGE,
    AVOID_FACTOR,
    AVOID_FOV,
    AVOID_RANGE,
    BIAS_POSITION_X,
    BIAS_POSITION_Y,
    BIAS_RADIUS,
    BIAS_STRENGTH,
    COHESION_FACTOR,
    COHESION_RANGE,
    BehaviorSettings,
)
from ..utils.math2d import angle_between, distance, safe_divide, safe_normalize

# Below this speed a boid has no usable heading for the bias pull.
MIN_BIAS_SPEED = 1e-6

# Angle to any neighbor for a boid without a heading, so it only avoids
# when the field of view is wider than 180 degrees.
RESTING_ANGLE = math.pi / 2.0


def apply_avoidance(boid: Boid, population: Sequence[PeerState], settings: BehaviorSettings) -> int:
    """Push ``boid`` away from visible neighbors inside the avoidance range.

    A neighbor counts when it is closer than the range and within half the
    field of view of the boid's heading. Each one contributes a unit vector
    pointing from it to the boid, scaled by ``range / distance * factor`` so
    closer neighbors push harder. The summed push is added straight onto the
    velocity once the scan is done. Returns the number of neighbors that
    pushed.
    """
    if not settings.enabled:
        return 0
    avoid_range = settings[AVOID_RANGE]
    factor = settings[AVOID_FACTOR]
    half_fov = math.radians(settings[AVOID_FOV]) / 2.0
    heading = safe_normalize(boid.velocity)
    has_heading = heading.length_squared() > 0.0

    steer_x = 0.0
    steer_y = 0.0
    pushing = 0
    for other in population:
        if other.id == boid.id:
            continue
        offset = other.position - boid.position
        dist = offset.length()
        if dist >= avoid_range:
            continue
        # A boid at rest sees every neighbor side-on.
        angle = angle_between(heading, offset) if has_heading else RESTING_ANGLE
        if angle >= half_fov:
            continue
        away = safe_divide(safe_normalize(-offset), dist) * (avoid_range * factor)
        steer_x += away.x
        steer_y += away.y
        pushing += 1

    if pushing:
        boid.velocity = boid.velocity + Vector2(steer_x, steer_y)
    return pushing


def apply_alignment(boid: Boid, population: Sequence[PeerState], settings: BehaviorSettings) -> int:
    """Blend velocity towards the mean velocity of neighbors within range."""
    if not settings.enabled:
        return 0
    align_range = settings[ALIGN_RANGE]
    factor = settings[ALIGN_FACTOR]
    sum_x = 0.0
    sum_y = 0.0
    neighbors = 0
    for other in population:
        if other.id == boid.id:
            continue
        if distance(boid.position, other.position) < align_range:
            sum_x += other.velocity.x
            sum_y += other.velocity.y
            neighbors += 1

    if neighbors > 0:
        average = Vector2(sum_x / neighbors, sum_y / neighbors)
        boid.velocity = boid.velocity + (average - boid.velocity) * factor
    return neighbors


def apply_cohesion(boid: Boid, population: Sequence[PeerState], settings: BehaviorSettings) -> int:
    """Steer towards the mean position of neighbors within range."""
    if not settings.enabled:
        return 0
    cohesion_range = settings[COHESION_RANGE]
    factor = settings[COHESION_FACTOR]
    sum_x = 0.0
    sum_y = 0.0
    neighbors = 0
    for other in population:
        if other.id == boid.id:
            continue
        if distance(boid.position, other.position) < cohesion_range:
            sum_x += other.position.x
            sum_y += other.position.y
            neighbors += 1

    if neighbors > 0:
        center = Vector2(sum_x / neighbors, sum_y / neighbors)
        boid.velocity = boid.velocity + (center - boid.position) * factor
    return neighbors


def bias_target(boid: Boid, settings: BehaviorSettings) -> Vector2:
    return Vector2(
        settings[BIAS_POSITION_X] * boid.screen_size.x,
        settings[BIAS_POSITION_Y] * boid.screen_size.y,
    )


def apply_bias(boid: Boid, population: Sequence[PeerState], settings: BehaviorSettings) -> int:
    """Pull a biased boid towards the bias target until it is inside the radius.

    The pull is divided by the boid's speed so the turning effect stays about
    the same at any speed. A boid at rest gets no pull. Returns 1 when a pull
    was applied.
    """
    if not settings.enabled or not boid.is_biased:
        return 0
    to_target = bias_target(boid, settings) - boid.position
    dist = to_target.length()
    if dist <= settings[BIAS_RADIUS]:
        return 0
    speed = boid.velocity.length()
    if speed < MIN_BIAS_SPEED:
        return 0
    direction = to_target / dist
    boid.velocity = boid.velocity + direction * (settings[BIAS_STRENGTH] / speed)
    return 1
