from __future__ import annotations

from typing import Sequence

from pygame.math import Vector2

from ..core.agent import Boid, PeerState
from ..core.behavior import MAX_SPEED, MIN_SPEED, BehaviorSettings
from ..utils.math2d import limit_range, safe_normalize


def integrate(boid: Boid) -> None:
    """Steer velocity by the pending acceleration, keep the speed, then move.

    Acceleration only turns the boid; its speed is left to the speed limiter.
    """
    speed = boid.velocity.length()
    new_velocity = boid.velocity + boid.acceleration
    if new_velocity.length_squared() > 0.0:
        new_velocity = safe_normalize(new_velocity) * speed
    boid.velocity = new_velocity
    boid.position = boid.position + boid.velocity


def apply_speed_limit(boid: Boid, population: Sequence[PeerState], settings: BehaviorSettings) -> int:
    if not settings.enabled:
        return 0
    boid.velocity = limit_range(boid.velocity, settings[MIN_SPEED], settings[MAX_SPEED])
    return 0


def apply_wrap(boid: Boid, population: Sequence[PeerState], settings: BehaviorSettings) -> int:
    """Toroidal boundary: leaving one edge re-enters from the opposite one."""
    if not settings.enabled:
        return 0
    width = boid.screen_size.x
    height = boid.screen_size.y
    x = boid.position.x
    y = boid.position.y
    if x < 0:
        x += width
    if x > width:
        x -= width
    if y < 0:
        y += height
    if y > height:
        y -= height
    boid.position = Vector2(x, y)
    return 0
