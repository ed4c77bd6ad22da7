from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Tuple

from ...errors import UnknownBehaviorError
from .parameters import Parameter, ParameterGroup


class BehaviorKind(str, Enum):
    AVOIDANCE = "avoidance"
    ALIGNMENT = "alignment"
    COHESION = "cohesion"
    SPEED_LIMITER = "speed_limiter"
    BIAS = "bias"
    WRAP = "wrap"


# Parameter names, as shown on the control surface.
AVOID_RANGE = "Avoidance Range"
AVOID_FACTOR = "Avoidance Factor"
AVOID_FOV = "Avoidance FOV"
ALIGN_RANGE = "Alignment Range"
ALIGN_FACTOR = "Alignment Factor"
COHESION_RANGE = "Cohesion Range"
COHESION_FACTOR = "Cohesion Factor"
MIN_SPEED = "Min Speed"
MAX_SPEED = "Max Speed"
BIAS_PERCENTAGE = "Percentage"
BIAS_POSITION_X = "Position X"
BIAS_POSITION_Y = "Position Y"
BIAS_STRENGTH = "Strength"
BIAS_RADIUS = "Radius"

GROUP_NAMES: Dict[BehaviorKind, str] = {
    BehaviorKind.AVOIDANCE: "Avoidance",
    BehaviorKind.ALIGNMENT: "Alignment",
    BehaviorKind.COHESION: "Cohesion",
    BehaviorKind.SPEED_LIMITER: "Speed Limiter",
    BehaviorKind.BIAS: "Bias",
    BehaviorKind.WRAP: "Wrap",
}

# (category, name, description, min, default, max)
_PARAMETER_SPECS: Dict[BehaviorKind, Tuple[Tuple[str, str, str, float, float, float], ...]] = {
    BehaviorKind.AVOIDANCE: (
        ("Avoidance", AVOID_RANGE, "Perception range for avoidance", 0.0, 30.0, 100.0),
        ("Avoidance", AVOID_FACTOR, "Strength of the repulsion from close neighbors", 0.0, 0.5, 1.0),
        ("Avoidance", AVOID_FOV, "Field of view for avoidance, in degrees", 0.0, 270.0, 360.0),
    ),
    BehaviorKind.ALIGNMENT: (
        ("Visibility", ALIGN_RANGE, "Perception range for alignment", 0.0, 50.0, 100.0),
        (
            "Behavior Strength",
            ALIGN_FACTOR,
            "How much the boid steers towards the average velocity of its neighbors",
            0.0,
            0.1,
            0.2,
        ),
    ),
    BehaviorKind.COHESION: (
        ("Cohesion", COHESION_RANGE, "Perception range for cohesion", 0.0, 50.0, 100.0),
        ("Cohesion", COHESION_FACTOR, "How much the boid steers towards the center of its neighbors", 0.0, 0.025, 0.05),
    ),
    BehaviorKind.SPEED_LIMITER: (
        ("Speed Limiter", MIN_SPEED, "Minimum speed at which a boid can travel", 0.0, 3.0, 10.0),
        ("Speed Limiter", MAX_SPEED, "Maximum speed at which a boid can travel", 0.0, 6.0, 10.0),
    ),
    BehaviorKind.BIAS: (
        ("Bias", BIAS_PERCENTAGE, "Percentage of boids the bias applies to", 0.0, 50.0, 100.0),
        ("Bias", BIAS_POSITION_X, "X position of the bias target, as a fraction of the screen width", 0.0, 0.5, 1.0),
        ("Bias", BIAS_POSITION_Y, "Y position of the bias target, as a fraction of the screen height", 0.0, 0.5, 1.0),
        ("Bias", BIAS_STRENGTH, "How strongly biased boids are pulled towards the target", 0.0, 0.05, 1.0),
        ("Bias", BIAS_RADIUS, "Radius of the target area around the bias position", 0.0, 50.0, 250.0),
    ),
    BehaviorKind.WRAP: (),
}


def build_parameter_group(kind: BehaviorKind) -> ParameterGroup:
    group = ParameterGroup(GROUP_NAMES[kind])
    for category, name, description, minimum, default, maximum in _PARAMETER_SPECS[kind]:
        group.add_parameter(Parameter(category, name, description, minimum, default, maximum))
    return group


@dataclass(frozen=True)
class BehaviorSettings:
    """Point-in-time read of one behavior kind, taken once per tick."""

    kind: BehaviorKind
    enabled: bool
    debugging: bool
    values: Mapping[str, float] = field(default_factory=dict)

    def __getitem__(self, name: str) -> float:
        return self.values[name]


class Behavior:
    """Shared state for one behavior kind: its toggles and its parameter group.

    One instance exists per kind for the whole flock; every boid's pipeline
    reads the same instance.
    """

    def __init__(self, kind: BehaviorKind, enabled: bool = True, debugging: bool = False):
        self.kind = kind
        self.parameters = build_parameter_group(kind)
        self._enabled = enabled
        self._debugging = debugging
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self.parameters.name

    @property
    def enabled(self) -> bool:
        with self._lock:
            return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        with self._lock:
            self._enabled = bool(value)

    @property
    def debugging(self) -> bool:
        with self._lock:
            return self._debugging

    @debugging.setter
    def debugging(self, value: bool) -> None:
        with self._lock:
            self._debugging = bool(value)

    def get_parameter(self, name: str) -> Parameter:
        return self.parameters.get_parameter(name)

    def settings(self) -> BehaviorSettings:
        with self._lock:
            enabled = self._enabled
            debugging = self._debugging
        return BehaviorSettings(self.kind, enabled, debugging, self.parameters.values())


class FlockBehaviors:
    """The flock-wide behavior configuration, passed explicitly to every update."""

    def __init__(self) -> None:
        self._behaviors: Dict[BehaviorKind, Behavior] = {kind: Behavior(kind) for kind in BehaviorKind}

    def get(self, kind: BehaviorKind) -> Behavior:
        return self._behaviors[kind]

    def by_name(self, name: str) -> Behavior:
        key = name.strip().lower().replace("-", "_")
        for kind, behavior in self._behaviors.items():
            if key == kind.value or key == behavior.name.lower() or key == behavior.name.lower().replace(" ", "_"):
                return behavior
        raise UnknownBehaviorError(f"unknown behavior {name!r}")

    def __iter__(self):
        return iter(self._behaviors.values())

    def set_enabled(self, kind: BehaviorKind, enabled: bool) -> None:
        self._behaviors[kind].enabled = enabled

    def set_debugging(self, kind: BehaviorKind, debugging: bool) -> None:
        self._behaviors[kind].debugging = debugging

    def parameter_groups(self) -> List[ParameterGroup]:
        return [behavior.parameters for behavior in self._behaviors.values()]

    def settings(self) -> Dict[BehaviorKind, BehaviorSettings]:
        return {kind: behavior.settings() for kind, behavior in self._behaviors.items()}

    def reset_parameters(self) -> None:
        for behavior in self._behaviors.values():
            behavior.parameters.reset()
