from __future__ import annotations

from typing import Callable, Dict, Mapping, Sequence, Tuple

from pygame.math import Vector2

from ..core.agent import Boid, PeerState
from ..core.behavior import BehaviorKind, BehaviorSettings
from . import motion, steering

BehaviorFn = Callable[[Boid, Sequence[PeerState], BehaviorSettings], int]

APPLY: Dict[BehaviorKind, BehaviorFn] = {
    BehaviorKind.AVOIDANCE: steering.apply_avoidance,
    BehaviorKind.ALIGNMENT: steering.apply_alignment,
    BehaviorKind.COHESION: steering.apply_cohesion,
    BehaviorKind.BIAS: steering.apply_bias,
    BehaviorKind.SPEED_LIMITER: motion.apply_speed_limit,
    BehaviorKind.WRAP: motion.apply_wrap,
}

# Order matters: the limiter and wrap act on the post-move state.
STEERING_ORDER: Tuple[BehaviorKind, ...] = (
    BehaviorKind.AVOIDANCE,
    BehaviorKind.ALIGNMENT,
    BehaviorKind.COHESION,
    BehaviorKind.BIAS,
)
POST_MOVE_ORDER: Tuple[BehaviorKind, ...] = (
    BehaviorKind.SPEED_LIMITER,
    BehaviorKind.WRAP,
)
NEIGHBOR_SCANS = frozenset({BehaviorKind.AVOIDANCE, BehaviorKind.ALIGNMENT, BehaviorKind.COHESION})


def apply_behavior(
    kind: BehaviorKind,
    boid: Boid,
    population: Sequence[PeerState],
    settings: Mapping[BehaviorKind, BehaviorSettings],
) -> int:
    return APPLY[kind](boid, population, settings[kind])


def update_boid(
    boid: Boid,
    population: Sequence[PeerState],
    settings: Mapping[BehaviorKind, BehaviorSettings],
) -> int:
    """Advance one boid by a tick. Returns the number of neighbor checks made."""
    checks = 0
    peers = max(0, len(population) - 1)
    for kind in STEERING_ORDER:
        apply_behavior(kind, boid, population, settings)
        if kind in NEIGHBOR_SCANS and settings[kind].enabled:
            checks += peers

    motion.integrate(boid)

    for kind in POST_MOVE_ORDER:
        apply_behavior(kind, boid, population, settings)

    boid.acceleration = Vector2()
    return checks
