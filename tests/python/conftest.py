import sys
from pathlib import Path
from typing import Callable, Dict

import pytest

ROOT = Path(__file__).resolve().parents[2]
src_root = ROOT / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))

from flocksim.sim.core.behavior import BehaviorKind, BehaviorSettings, FlockBehaviors  # noqa: E402


@pytest.fixture
def behaviors() -> FlockBehaviors:
    return FlockBehaviors()


@pytest.fixture
def configure(behaviors: FlockBehaviors) -> Callable[..., BehaviorSettings]:
    """Write parameters onto one behavior kind and return its per-tick settings."""

    def _configure(kind: BehaviorKind, values: Dict[str, float] | None = None, enabled: bool = True) -> BehaviorSettings:
        behavior = behaviors.get(kind)
        behavior.enabled = enabled
        for name, value in (values or {}).items():
            assert behavior.get_parameter(name).set_value(value)
        return behavior.settings()

    return _configure
