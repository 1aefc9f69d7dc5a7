"""Prompt-facing text templates for the arc agent."""

from .tool_descriptions import OPERATION_GUIDELINES, TOOL_DESCRIPTIONS, TOOL_DESCRIPTIONS_COMPACT  # noqa: F401

__all__ = [
    "OPERATION_GUIDELINES",
    "TOOL_DESCRIPTIONS",
    "TOOL_DESCRIPTIONS_COMPACT",
]
