"""Affinity relation agent runtime package."""

__all__ = [
    "config",
    "logging",
    "runtime",
]
