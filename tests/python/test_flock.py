from __future__ import annotations

import math
import threading

from pygame.math import Vector2
from pytest import approx

from flocksim.config import BehaviorConfig, FlockConfig
from flocksim.sim.core.agent import Boid
from flocksim.sim.core.behavior import (
    AVOID_FACTOR,
    AVOID_FOV,
    AVOID_RANGE,
    BIAS_PERCENTAGE,
    MAX_SPEED,
    MIN_SPEED,
    BehaviorKind,
)
from flocksim.sim.core.flock import Flock
from flocksim.sim.systems.pipeline import update_boid


def _only(*enabled: BehaviorKind, **extra: BehaviorConfig) -> dict[str, BehaviorConfig]:
    behaviors = {kind.value: BehaviorConfig(enabled=kind in enabled) for kind in BehaviorKind}
    for name, entry in extra.items():
        entry.enabled = True
        behaviors[name] = entry
    return behaviors


def _place(flock: Flock, index: int, position: tuple[float, float], velocity: tuple[float, float]) -> Boid:
    boid = flock.boids[index]
    boid.position = Vector2(position)
    boid.velocity = Vector2(velocity)
    boid.is_biased = False
    return boid


def test_two_boids_push_each_other_apart():
    avoidance = BehaviorConfig(parameters={AVOID_RANGE: 10.0, AVOID_FOV: 360.0, AVOID_FACTOR: 0.1})
    flock = Flock(FlockConfig(boid_count=2, behaviors=_only(avoidance=avoidance)))
    a = _place(flock, 0, (0.0, 0.0), (1.0, 0.0))
    b = _place(flock, 1, (5.0, 0.0), (-1.0, 0.0))

    flock.tick()

    assert a.velocity.x < 1.0
    assert b.velocity.x > -1.0
    # Both read the pre-tick snapshot, so the push is symmetric.
    assert a.velocity.x == approx(0.8)
    assert b.velocity.x == approx(-0.8)


def test_single_boid_wraps_around_right_edge():
    flock = Flock(FlockConfig(boid_count=1, screen_width=800, screen_height=600))
    boid = _place(flock, 0, (799.0, 300.0), (5.0, 0.0))

    flock.tick()

    assert boid.position.x == approx(4.0)
    assert boid.position.y == approx(300.0)


def test_speed_limit_applies_after_the_move():
    flock = Flock(FlockConfig(boid_count=1, behaviors=_only(BehaviorKind.SPEED_LIMITER)))
    boid = _place(flock, 0, (100.0, 100.0), (10.0, 0.0))

    flock.tick()

    assert boid.position.x == approx(110.0)
    assert boid.velocity.length() == approx(6.0)


def test_acceleration_is_a_single_tick_impulse():
    flock = Flock(FlockConfig(boid_count=1, behaviors=_only()))
    boid = _place(flock, 0, (100.0, 100.0), (4.0, 0.0))
    boid.apply_force(Vector2(0.0, 4.0))

    flock.tick()
    turned = Vector2(boid.velocity)
    flock.tick()

    assert turned.length() == approx(4.0)
    assert turned.y > 0.0
    assert boid.acceleration == Vector2()
    assert boid.velocity == turned


def test_update_boid_counts_neighbor_checks(behaviors):
    boids = [Boid(id=i, position=Vector2(i * 200.0, 0.0), velocity=Vector2(1.0, 0.0)) for i in range(4)]
    population = [boid.peer_state() for boid in boids]
    behaviors.set_enabled(BehaviorKind.COHESION, False)

    checks = update_boid(boids[0], population, behaviors.settings())

    assert checks == 2 * 3


def test_bootstrap_is_deterministic_and_marks_debug_boid():
    config = FlockConfig(boid_count=30, seed=1234)
    first = Flock(config)
    second = Flock(FlockConfig(boid_count=30, seed=1234))
    for _ in range(25):
        first.tick()
        second.tick()

    assert [b.position for b in first.boids] == [b.position for b in second.boids]
    assert first.boids[0].is_debug
    assert not any(b.is_debug for b in first.boids[1:])
    assert all(b.id == index for index, b in enumerate(first.boids))


def test_population_stays_on_screen_and_within_speed_limits():
    flock = Flock(FlockConfig(boid_count=40, seed=7))
    for _ in range(60):
        metrics = flock.tick()
        assert metrics.population == 40

    for boid in flock.boids:
        assert 0.0 <= boid.position.x <= 800.0
        assert 0.0 <= boid.position.y <= 600.0
        assert 3.0 - 1e-6 <= boid.velocity.length() <= 6.0 + 1e-6


def test_parameter_write_takes_effect_next_tick():
    flock = Flock(FlockConfig(boid_count=10, seed=3))
    flock.tick()
    limiter = flock.behaviors.get(BehaviorKind.SPEED_LIMITER)
    assert limiter.get_parameter(MIN_SPEED).set_value(0.5)
    assert limiter.get_parameter(MAX_SPEED).set_value(1.0)
    assert not limiter.get_parameter(MAX_SPEED).set_value(11.0)

    flock.tick()

    assert all(boid.velocity.length() <= 1.0 + 1e-6 for boid in flock.boids)


def test_screen_resize_fans_out():
    flock = Flock(FlockConfig(boid_count=5))

    flock.set_screen_size(1024, 768)

    assert flock.screen_size == Vector2(1024, 768)
    assert all(boid.screen_size == Vector2(1024, 768) for boid in flock.boids)


def test_reset_restores_initial_population():
    flock = Flock(FlockConfig(boid_count=8, seed=21))
    initial = [(Vector2(b.position), Vector2(b.velocity)) for b in flock.boids]
    for _ in range(10):
        flock.tick()

    flock.reset()

    assert flock.current_tick == 0
    assert [(b.position, b.velocity) for b in flock.boids] == initial


def test_rebias_follows_percentage():
    flock = Flock(FlockConfig(boid_count=20))
    percentage = flock.behaviors.get(BehaviorKind.BIAS).get_parameter(BIAS_PERCENTAGE)

    percentage.set_value(0.0)
    assert flock.rebias() == 0
    percentage.set_value(100.0)
    assert flock.rebias() == 20
    assert all(boid.is_biased for boid in flock.boids)


def test_snapshot_exposes_render_state_and_overlays():
    flock = Flock(FlockConfig(boid_count=3, seed=5, tick_rate=30.0))
    flock.behaviors.set_debugging(BehaviorKind.AVOIDANCE, True)
    flock.tick()

    snapshot = flock.snapshot()

    assert snapshot.tick == 1
    assert snapshot.metrics.population == 3
    assert snapshot.world.width == approx(800.0)
    assert snapshot.metadata.tick_rate == approx(30.0)
    payload = snapshot.agents[0]
    for key in ["id", "x", "y", "vx", "vy", "heading", "speed", "debug", "biased"]:
        assert key in payload
    assert payload["speed"] == approx(Vector2(payload["vx"], payload["vy"]).length())
    assert payload["debug"]
    avoidance = snapshot.behaviors["avoidance"]
    assert avoidance.debugging
    assert avoidance.parameters[AVOID_FOV] == approx(270.0)


def test_polarization_is_one_for_aligned_flock():
    flock = Flock(FlockConfig(boid_count=4, behaviors=_only()))
    for index, boid in enumerate(flock.boids):
        _place(flock, index, (index * 100.0, 100.0), (2.0, 0.0))

    metrics = flock.tick()

    assert metrics.polarization == approx(1.0)
    assert metrics.average_speed == approx(2.0)


def test_ticks_survive_concurrent_parameter_writes():
    flock = Flock(FlockConfig(boid_count=25, seed=17))
    groups = flock.parameter_groups()
    stop = threading.Event()

    def control_surface() -> None:
        step = 0
        while not stop.is_set():
            for group in groups:
                for parameter in group:
                    span = parameter.maximum - parameter.minimum
                    parameter.set_value(parameter.minimum + span * ((step % 13) / 10.0))
            step += 1

    thread = threading.Thread(target=control_surface)
    thread.start()
    try:
        for _ in range(40):
            flock.tick()
    finally:
        stop.set()
        thread.join()

    for boid in flock.boids:
        assert all(math.isfinite(c) for c in (*boid.position, *boid.velocity))
    for group in groups:
        for parameter in group:
            assert parameter.minimum <= parameter.value <= parameter.maximum
