"""
Module: arcagent/config/settings.py
Summary: Environment-driven settings for arc agent runs, with bound clamping.
Inputs: ARC_* environment variables (OPENAI_API_KEY is read by the SDK itself)
Outputs: AgentSettings plus the list of limits that were clamped
Stability: beta
Boundary: run bounds must stay inside [1, 500] rounds and [5, 3600] seconds
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

TRUTHY = {"1", "true", "yes", "on"}

MAX_ROUNDS_RANGE = (1, 500)
MAX_WALL_CLOCK_RANGE = (5.0, 3600.0)


class AgentSettings(BaseModel):
    """Resolved runtime settings for one process."""

    model: str = "gpt-4o-mini"
    openai_base_url: Optional[str] = None
    render_url: str = "http://localhost:3000/arc"
    render_timeout_s: float = Field(default=30.0, gt=0)
    return_svg: bool = False
    render_on_finish: bool = False
    score_locale: str = "en"
    max_rounds: Optional[int] = 50
    max_wall_clock_s: Optional[float] = 600.0
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def upper_log_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"

    @field_validator("score_locale")
    @classmethod
    def lower_locale(cls, value: str) -> str:
        return value.strip().lower() or "en"


def _flag(value: str) -> bool:
    return value.strip().lower() in TRUTHY


def _optional_number(value: str) -> Optional[str]:
    """Empty, 'none' and '0' disable a bound."""

    lowered = value.strip().lower()
    if lowered in {"", "none", "off", "0"}:
        return None
    return value.strip()


ENV_FIELDS: Mapping[str, Tuple[str, Any]] = {
    "ARC_MODEL": ("model", str.strip),
    "ARC_OPENAI_BASE_URL": ("openai_base_url", lambda v: v.strip() or None),
    "ARC_RENDER_URL": ("render_url", str.strip),
    "ARC_RENDER_TIMEOUT_S": ("render_timeout_s", float),
    "ARC_RETURN_SVG": ("return_svg", _flag),
    "ARC_RENDER_ON_FINISH": ("render_on_finish", _flag),
    "ARC_SCORE_LOCALE": ("score_locale", str.strip),
    "ARC_MAX_ROUNDS": ("max_rounds", _optional_number),
    "ARC_MAX_WALL_CLOCK_S": ("max_wall_clock_s", _optional_number),
    "ARC_LOG_LEVEL": ("log_level", str.strip),
}


def normalize_limits(settings: AgentSettings) -> Tuple[AgentSettings, List[str]]:
    """Clamp run bounds into their supported ranges; returns the clamp reasons."""

    reasons: List[str] = []

    def clamp(v, lo, hi, reason: str):
        if v is None:
            return None
        if v < lo:
            reasons.append(f"{reason}:min")
            return lo
        if v > hi:
            reasons.append(f"{reason}:max")
            return hi
        return v

    max_rounds = clamp(settings.max_rounds, *MAX_ROUNDS_RANGE, "max_rounds")
    max_wall = clamp(settings.max_wall_clock_s, *MAX_WALL_CLOCK_RANGE, "max_wall_clock_s")
    normalized = settings.model_copy(update={"max_rounds": max_rounds, "max_wall_clock_s": max_wall})
    return normalized, reasons


def resolve_settings(env: Mapping[str, str] | None = None, **overrides: Any) -> AgentSettings:
    """Build settings from environment variables, then apply explicit overrides.

    Overrides set to None are ignored so CLI flags can be passed through
    unconditionally.
    """

    source = os.environ if env is None else env
    values: Dict[str, Any] = {}
    for var, (field_name, convert) in ENV_FIELDS.items():
        raw = source.get(var)
        if raw is None:
            continue
        values[field_name] = convert(raw)
    values.update({k: v for k, v in overrides.items() if v is not None})
    settings, reasons = normalize_limits(AgentSettings(**values))
    if reasons:
        logger.warning(f"Clamped run limits: {', '.join(reasons)}")
    return settings


__all__ = [
    "AgentSettings",
    "ENV_FIELDS",
    "normalize_limits",
    "resolve_settings",
]
