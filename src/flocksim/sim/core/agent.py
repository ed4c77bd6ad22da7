from __future__ import annotations

from dataclasses import dataclass, field

from pygame.math import Vector2


def _default_screen() -> Vector2:
    return Vector2(800.0, 600.0)


@dataclass(slots=True)
class Boid:
    id: int
    position: Vector2
    velocity: Vector2
    acceleration: Vector2 = field(default_factory=Vector2)
    screen_size: Vector2 = field(default_factory=_default_screen)
    is_debug: bool = False
    is_biased: bool = False

    def set_screen_size(self, width: float, height: float) -> None:
        self.screen_size = Vector2(width, height)

    def apply_force(self, force: Vector2) -> None:
        self.acceleration = self.acceleration + force

    def peer_state(self) -> "PeerState":
        return PeerState(self.id, Vector2(self.position), Vector2(self.velocity))


@dataclass(frozen=True, slots=True)
class PeerState:
    """What neighbors may read of a boid during a tick: its pre-tick kinematics."""

    id: int
    position: Vector2
    velocity: Vector2
