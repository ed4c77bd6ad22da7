from __future__ import annotations

import logging
import math
import threading
from typing import Callable, Dict, Iterator, List

from ...errors import ConfigurationError, UnknownParameterError

logger = logging.getLogger(__name__)

ParameterListener = Callable[["Parameter"], None]


class Parameter:
    """A named, bounded scalar that can be tuned while the flock runs.

    Writes outside ``[minimum, maximum]`` are dropped and leave the current
    value in place. Reads and writes hold the parameter's lock so a control
    surface on another thread never exposes a torn update to a tick.
    """

    __slots__ = ("category", "name", "description", "minimum", "maximum", "default", "_value", "_lock", "_listeners")

    def __init__(
        self,
        category: str,
        name: str,
        description: str,
        minimum: float,
        default: float,
        maximum: float,
    ):
        if minimum > maximum:
            raise ConfigurationError(f"parameter {name!r}: minimum {minimum} exceeds maximum {maximum}")
        if not minimum <= default <= maximum:
            raise ConfigurationError(f"parameter {name!r}: default {default} outside [{minimum}, {maximum}]")
        self.category = category
        self.name = name
        self.description = description
        self.minimum = float(minimum)
        self.maximum = float(maximum)
        self.default = float(default)
        self._value = float(default)
        self._lock = threading.Lock()
        self._listeners: List[ParameterListener] = []

    @property
    def value(self) -> float:
        with self._lock:
            return self._value

    def accepts(self, value: float) -> bool:
        return not math.isnan(value) and self.minimum <= value <= self.maximum

    def set_value(self, value: float) -> bool:
        value = float(value)
        with self._lock:
            if not self.accepts(value):
                logger.debug(
                    "Dropped out-of-range write %r to %s (bounds [%s, %s])",
                    value,
                    self.name,
                    self.minimum,
                    self.maximum,
                )
                return False
            self._value = value
            listeners = list(self._listeners)
        for listener in listeners:
            listener(self)
        return True

    def reset(self) -> None:
        self.set_value(self.default)

    def add_listener(self, listener: ParameterListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def as_dict(self) -> Dict[str, object]:
        return {
            "category": self.category,
            "name": self.name,
            "description": self.description,
            "min": self.minimum,
            "max": self.maximum,
            "default": self.default,
            "value": self.value,
        }

    def __repr__(self) -> str:
        return f"Parameter({self.name!r}, value={self.value}, range=[{self.minimum}, {self.maximum}])"


class ParameterGroup:
    """Flat name -> Parameter mapping owned by one behavior kind."""

    def __init__(self, name: str):
        self.name = name
        self._parameters: Dict[str, Parameter] = {}

    def add_parameter(self, parameter: Parameter) -> Parameter:
        if parameter.name in self._parameters:
            raise ConfigurationError(f"group {self.name!r} already has a parameter named {parameter.name!r}")
        self._parameters[parameter.name] = parameter
        return parameter

    def get_parameter(self, name: str) -> Parameter:
        try:
            return self._parameters[name]
        except KeyError:
            raise UnknownParameterError(f"group {self.name!r} has no parameter {name!r}") from None

    def __contains__(self, name: object) -> bool:
        return name in self._parameters

    def __iter__(self) -> Iterator[Parameter]:
        return iter(list(self._parameters.values()))

    def __len__(self) -> int:
        return len(self._parameters)

    def values(self) -> Dict[str, float]:
        return {name: parameter.value for name, parameter in self._parameters.items()}

    def reset(self) -> None:
        for parameter in self._parameters.values():
            parameter.reset()

    def as_dict(self) -> Dict[str, object]:
        return {"name": self.name, "parameters": [parameter.as_dict() for parameter in self._parameters.values()]}
