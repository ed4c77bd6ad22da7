"""Flock simulation exception hierarchy.

The per-tick core never raises; these only surface at lookup and
configuration seams (YAML loading, the control-surface API).
"""


class FlockError(Exception):
    """Root of all flock simulation exceptions."""


class ConfigurationError(FlockError):
    """Invalid or inconsistent configuration."""


class UnknownBehaviorError(FlockError, KeyError):
    """No behavior kind matches the requested name."""


class UnknownParameterError(FlockError, KeyError):
    """A parameter group has no parameter with the requested name."""
