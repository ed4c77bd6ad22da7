from __future__ import annotations

from pathlib import Path

import pytest

from flocksim.config import FlockConfig, apply_behavior_config, load_config
from flocksim.errors import ConfigurationError
from flocksim.sim.core.behavior import AVOID_RANGE, MAX_SPEED, BehaviorKind, FlockBehaviors
from flocksim.sim.core.flock import Flock


def test_from_yaml_reads_flock_and_behavior_settings(tmp_path):
    path = tmp_path / "flock.yaml"
    path.write_text(
        """
boid_count: 12
screen_width: 640
seed: 9
behaviors:
  avoidance:
    debugging: true
    parameters:
      Avoidance Range: 45
  Speed Limiter:
    enabled: false
    parameters:
      Max Speed: 8.5
"""
    )

    config = FlockConfig.from_yaml(path)
    behaviors = FlockBehaviors()
    apply_behavior_config(behaviors, config)

    assert config.boid_count == 12
    assert config.screen_width == 640
    assert config.screen_height == 600.0
    assert config.seed == 9
    avoidance = behaviors.get(BehaviorKind.AVOIDANCE)
    assert avoidance.debugging
    assert avoidance.get_parameter(AVOID_RANGE).value == 45.0
    limiter = behaviors.get(BehaviorKind.SPEED_LIMITER)
    assert not limiter.enabled
    assert limiter.get_parameter(MAX_SPEED).value == 8.5


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")

    assert FlockConfig.from_yaml(path) == FlockConfig()


@pytest.mark.parametrize(
    "raw",
    [
        {"flock_size": 10},
        {"boid_count": -1},
        {"screen_width": 0},
        {"tick_rate": 0},
        {"behaviors": ["avoidance"]},
        {"boid_count": 10.5},
        {"boid_count": "10"},
        {"boid_count": True},
        {"seed": "42"},
        {"screen_height": "600"},
        {"debug_first_boid": "yes"},
    ],
)
def test_invalid_flock_settings_are_rejected(raw):
    with pytest.raises(ConfigurationError):
        load_config(raw)


@pytest.mark.parametrize(
    "behaviors",
    [
        {"separation": {"enabled": True}},
        {"avoidance": {"parameters": {"Avoidance Radius": 10}}},
        {"avoidance": {"parameters": {"Avoidance Range": 150}}},
    ],
)
def test_invalid_behavior_settings_are_rejected(behaviors):
    config = load_config({"behaviors": behaviors})

    with pytest.raises(ConfigurationError):
        apply_behavior_config(FlockBehaviors(), config)


@pytest.mark.parametrize(
    "behaviors",
    [
        {"avoidance": True},
        {"avoidance": ["Avoidance Range"]},
        {"avoidance": {"parameters": {"Avoidance Range": "far"}}},
        {"avoidance": {"parameters": {"Avoidance Range": None}}},
        {"avoidance": {"parameters": ["Avoidance Range"]}},
        {"avoidance": {"enabled": "off"}},
    ],
)
def test_malformed_behavior_entries_are_rejected_on_load(behaviors):
    with pytest.raises(ConfigurationError):
        Flock(load_config({"behaviors": behaviors}))


def test_malformed_yaml_values_are_configuration_errors(tmp_path):
    path = tmp_path / "flock.yaml"
    path.write_text("boid_count: 10.5\nbehaviors:\n  avoidance: true\n")

    with pytest.raises(ConfigurationError):
        FlockConfig.from_yaml(path)


def test_shipped_default_config_matches_built_in_defaults():
    path = Path(__file__).resolve().parents[2] / "configs" / "default.yaml"
    config = FlockConfig.from_yaml(path)
    configured = FlockBehaviors()
    apply_behavior_config(configured, config)

    assert config.boid_count == FlockConfig().boid_count
    assert configured.settings() == FlockBehaviors().settings()
