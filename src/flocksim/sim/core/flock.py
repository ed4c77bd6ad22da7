from __future__ import annotations

import logging
import threading
from time import perf_counter
from typing import List

from pygame.math import Vector2

from ...config import FlockConfig, apply_behavior_config
from ...rng import DeterministicRng
from ..systems.metrics import compute_metrics
from ..systems.pipeline import update_boid
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotBehavior, SnapshotMetadata, SnapshotWorld
from ..utils.math2d import heading_from_velocity
from .agent import Boid
from .behavior import BIAS_PERCENTAGE, BehaviorKind, FlockBehaviors
from .parameters import ParameterGroup

logger = logging.getLogger(__name__)


class Flock:
    """The boid population, its shared behavior configuration and the tick driver.

    Collaborators call :meth:`tick` at their own cadence; the flock does no
    timing of its own. Every boid in a tick reads its neighbors from the same
    pre-tick snapshot, so update order inside a tick does not matter.
    """

    def __init__(self, config: FlockConfig, behaviors: FlockBehaviors | None = None):
        self._config = config
        self._behaviors = behaviors if behaviors is not None else FlockBehaviors()
        apply_behavior_config(self._behaviors, config)
        self._rng = DeterministicRng(config.seed)
        self._screen_size = Vector2(config.screen_width, config.screen_height)
        self._boids: List[Boid] = []
        self._tick = 0
        self._metrics: TickMetrics | None = None
        self._lock = threading.Lock()
        self._bootstrap_population()

    @property
    def config(self) -> FlockConfig:
        return self._config

    @property
    def boids(self) -> List[Boid]:
        return self._boids

    @property
    def behaviors(self) -> FlockBehaviors:
        return self._behaviors

    @property
    def current_tick(self) -> int:
        return self._tick

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    @property
    def screen_size(self) -> Vector2:
        return Vector2(self._screen_size)

    def parameter_groups(self) -> List[ParameterGroup]:
        return self._behaviors.parameter_groups()

    def _bootstrap_population(self) -> None:
        width = self._screen_size.x
        height = self._screen_size.y
        for index in range(self._config.boid_count):
            position = Vector2(self._rng.next_float() * width, self._rng.next_float() * height)
            boid = Boid(
                id=index,
                position=position,
                velocity=self._rng.next_unit_circle(),
                screen_size=Vector2(self._screen_size),
                is_debug=self._config.debug_first_boid and index == 0,
            )
            self._boids.append(boid)
        self._assign_bias()
        logger.info(
            "Bootstrapped %d boids on a %.0fx%.0f screen (seed %d)",
            len(self._boids),
            width,
            height,
            self._config.seed,
        )

    def _assign_bias(self) -> None:
        share = self._behaviors.get(BehaviorKind.BIAS).get_parameter(BIAS_PERCENTAGE).value / 100.0
        for boid in self._boids:
            boid.is_biased = self._rng.next_float() < share

    def rebias(self) -> int:
        """Redraw which boids are biased from the current percentage. Returns the biased count."""
        with self._lock:
            self._assign_bias()
            return sum(1 for boid in self._boids if boid.is_biased)

    def reset(self) -> None:
        with self._lock:
            self._boids.clear()
            self._rng.reset()
            self._tick = 0
            self._metrics = None
            self._bootstrap_population()
        logger.info("Flock reset")

    def set_screen_size(self, width: float, height: float) -> None:
        with self._lock:
            self._screen_size = Vector2(width, height)
            for boid in self._boids:
                boid.set_screen_size(width, height)
        logger.info("Screen resized to %.0fx%.0f", width, height)

    def tick(self) -> TickMetrics:
        with self._lock:
            start = perf_counter()
            settings = self._behaviors.settings()
            population = [boid.peer_state() for boid in self._boids]
            neighbor_checks = 0
            for boid in self._boids:
                neighbor_checks += update_boid(boid, population, settings)
            self._tick += 1
            duration_ms = (perf_counter() - start) * 1000.0
            self._metrics = compute_metrics(self._tick, self._boids, neighbor_checks, duration_ms)
            return self._metrics

    def snapshot(self) -> Snapshot:
        with self._lock:
            metrics = self._metrics or compute_metrics(self._tick, self._boids, 0, 0.0)
            agents = [
                {
                    "id": boid.id,
                    "x": boid.position.x,
                    "y": boid.position.y,
                    "vx": boid.velocity.x,
                    "vy": boid.velocity.y,
                    "heading": heading_from_velocity(boid.velocity),
                    "speed": boid.velocity.length(),
                    "debug": boid.is_debug,
                    "biased": boid.is_biased,
                }
                for boid in self._boids
            ]
            tick = self._tick
            width = self._screen_size.x
            height = self._screen_size.y
        behaviors = {
            kind.value: SnapshotBehavior(
                enabled=settings.enabled,
                debugging=settings.debugging,
                parameters=dict(settings.values),
            )
            for kind, settings in self._behaviors.settings().items()
        }
        return Snapshot(
            tick=tick,
            metrics=metrics,
            agents=agents,
            behaviors=behaviors,
            world=SnapshotWorld(width=width, height=height),
            metadata=SnapshotMetadata(
                tick_rate=self._config.tick_rate,
                seed=self._config.seed,
                config_version=self._config.config_version,
            ),
        )
