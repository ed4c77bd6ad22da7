from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import yaml

from .errors import ConfigurationError, UnknownBehaviorError, UnknownParameterError
from .sim.core.behavior import FlockBehaviors

logger = logging.getLogger(__name__)


@dataclass
class BehaviorConfig:
    enabled: Optional[bool] = None
    debugging: Optional[bool] = None
    parameters: Dict[str, float] = field(default_factory=dict)


@dataclass
class FlockConfig:
    boid_count: int = 100
    screen_width: float = 800.0
    screen_height: float = 600.0
    seed: int = 42
    tick_rate: float = 60.0
    debug_first_boid: bool = True
    config_version: str = "v1"
    behaviors: Dict[str, BehaviorConfig] = field(default_factory=dict)

    @staticmethod
    def from_yaml(path: Path) -> "FlockConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)


@dataclass
class AppConfig:
    simulation: FlockConfig = field(default_factory=FlockConfig)
    broadcast_interval: int = 2


_INT_FIELDS = ("boid_count", "seed")
_NUMBER_FIELDS = ("screen_width", "screen_height", "tick_rate")
_BOOL_FIELDS = ("debug_first_boid",)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _load_behavior(name: str, entry: object) -> BehaviorConfig:
    entry = entry or {}
    if not isinstance(entry, dict):
        raise ConfigurationError(f"behavior {name!r} must be a mapping, got {type(entry).__name__}")
    parameters_raw = entry.get("parameters") or {}
    if not isinstance(parameters_raw, dict):
        raise ConfigurationError(f"behavior {name!r}: 'parameters' must be a mapping of name to value")
    parameters: Dict[str, float] = {}
    for key, value in parameters_raw.items():
        if not _is_number(value):
            raise ConfigurationError(f"behavior {name!r}: parameter {key!r} must be a number, got {value!r}")
        parameters[str(key)] = float(value)
    for flag in ("enabled", "debugging"):
        if entry.get(flag) is not None and not isinstance(entry.get(flag), bool):
            raise ConfigurationError(f"behavior {name!r}: {flag!r} must be true or false")
    return BehaviorConfig(
        enabled=entry.get("enabled"),
        debugging=entry.get("debugging"),
        parameters=parameters,
    )


def load_config(raw: dict) -> FlockConfig:
    if not isinstance(raw, dict):
        raise ConfigurationError(f"expected a mapping at the top level, got {type(raw).__name__}")
    behaviors_raw = raw.get("behaviors") or {}
    if not isinstance(behaviors_raw, dict):
        raise ConfigurationError("'behaviors' must be a mapping of behavior name to settings")
    behaviors = {str(name): _load_behavior(str(name), entry) for name, entry in behaviors_raw.items()}
    flock_values = {k: v for k, v in raw.items() if k != "behaviors"}
    for key in _INT_FIELDS:
        if key in flock_values and (not _is_number(flock_values[key]) or isinstance(flock_values[key], float)):
            raise ConfigurationError(f"{key} must be an integer, got {flock_values[key]!r}")
    for key in _NUMBER_FIELDS:
        if key in flock_values and not _is_number(flock_values[key]):
            raise ConfigurationError(f"{key} must be a number, got {flock_values[key]!r}")
    for key in _BOOL_FIELDS:
        if key in flock_values and not isinstance(flock_values[key], bool):
            raise ConfigurationError(f"{key} must be true or false, got {flock_values[key]!r}")
    try:
        config = FlockConfig(behaviors=behaviors, **flock_values)
    except TypeError as exc:
        raise ConfigurationError(str(exc)) from exc
    if config.boid_count < 0:
        raise ConfigurationError(f"boid_count must be non-negative, got {config.boid_count}")
    if config.screen_width <= 0 or config.screen_height <= 0:
        raise ConfigurationError("screen_width and screen_height must be positive")
    if config.tick_rate <= 0:
        raise ConfigurationError(f"tick_rate must be positive, got {config.tick_rate}")
    return config


def apply_behavior_config(behaviors: FlockBehaviors, config: FlockConfig) -> None:
    """Push configured toggles and parameter overrides onto the shared behaviors.

    Unlike live writes from the control surface, a configured value outside a
    parameter's bounds is an error.
    """
    for name, entry in config.behaviors.items():
        try:
            behavior = behaviors.by_name(name)
        except UnknownBehaviorError as exc:
            raise ConfigurationError(f"unknown behavior {name!r} in configuration") from exc
        if entry.enabled is not None:
            behavior.enabled = entry.enabled
        if entry.debugging is not None:
            behavior.debugging = entry.debugging
        for parameter_name, value in entry.parameters.items():
            try:
                parameter = behavior.get_parameter(parameter_name)
            except UnknownParameterError as exc:
                raise ConfigurationError(f"unknown parameter {parameter_name!r} for {behavior.name}") from exc
            if not parameter.set_value(value):
                raise ConfigurationError(
                    f"{behavior.name}/{parameter_name}: {value} outside [{parameter.minimum}, {parameter.maximum}]"
                )
        logger.debug("Applied configuration for %s", behavior.name)
