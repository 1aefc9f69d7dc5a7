"""Configuration for the arc agent runtime."""

from .settings import AgentSettings, normalize_limits, resolve_settings  # noqa: F401

__all__ = [
    "AgentSettings",
    "normalize_limits",
    "resolve_settings",
]
