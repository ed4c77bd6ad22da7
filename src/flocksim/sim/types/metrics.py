from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TickMetrics:
    tick: int
    population: int
    average_speed: float
    polarization: float
    neighbor_checks: int
    tick_duration_ms: float = 0.0
