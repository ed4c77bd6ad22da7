from __future__ import annotations

import math
from typing import Sequence

from ..core.agent import Boid
from ..types.metrics import TickMetrics


def compute_metrics(tick: int, boids: Sequence[Boid], neighbor_checks: int, tick_duration_ms: float) -> TickMetrics:
    population = len(boids)
    if population == 0:
        return TickMetrics(tick, 0, 0.0, 0.0, neighbor_checks, tick_duration_ms)
    speed_sum = 0.0
    heading_x = 0.0
    heading_y = 0.0
    for boid in boids:
        speed = math.hypot(boid.velocity.x, boid.velocity.y)
        speed_sum += speed
        if speed > 1e-12:
            heading_x += boid.velocity.x / speed
            heading_y += boid.velocity.y / speed
    return TickMetrics(
        tick=tick,
        population=population,
        average_speed=speed_sum / population,
        polarization=math.hypot(heading_x, heading_y) / population,
        neighbor_checks=neighbor_checks,
        tick_duration_ms=tick_duration_ms,
    )
