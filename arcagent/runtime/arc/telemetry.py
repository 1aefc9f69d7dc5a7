"""
Telemetry Collection - Run performance monitoring

WHAT: Lightweight spans around backend calls, operations and renders
WHERE: arcagent/runtime/arc/telemetry.py - observability layer
WHO: The orchestrator and anything it delegates to
TIME: Zero-overhead when disabled, <0.1ms overhead when enabled

Span names emitted by the runtime:
- arc.model_generate: one inference backend call
- arc.operation: one dispatched operation invocation
- arc.render: one rendering call, agent-initiated or forced (attribute "forced")
"""

from __future__ import annotations

import logging
import time
from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class TelemetrySpan(AbstractContextManager["TelemetrySpan"]):
    """Context manager capturing span metadata and duration."""

    def __init__(
        self,
        client: "TelemetryClient",
        name: str,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._client = client
        self.name = name
        self.attributes: Dict[str, Any] = dict(attributes or {})
        self._start: float = 0.0

    def __enter__(self) -> "TelemetrySpan":
        self._start = time.perf_counter()
        return self

    def set_attribute(self, key: str, value: Any) -> None:
        self.attributes[key] = value

    def __exit__(self, exc_type, exc, exc_tb) -> bool:
        duration_ms = (time.perf_counter() - self._start) * 1000.0
        self.attributes.setdefault("success", exc is None)
        if exc is not None:
            self.attributes.setdefault("error", type(exc).__name__)
        self.attributes["duration_ms"] = duration_ms
        self._client.emit_span(self.name, self.attributes)
        return False


class TelemetryClient:
    """Base telemetry client; override `emit_span` for custom sinks."""

    def span(
        self,
        name: str,
        *,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> TelemetrySpan:
        return TelemetrySpan(self, name, attributes)

    def emit_span(self, name: str, attributes: Dict[str, Any]) -> None:
        raise NotImplementedError


@dataclass(slots=True)
class NoOpTelemetryClient(TelemetryClient):
    """Telemetry client that silently discards spans."""

    def emit_span(self, name: str, attributes: Dict[str, Any]) -> None:
        return None


class LoggingTelemetryClient(TelemetryClient):
    """Writes each finished span to the module logger."""

    def __init__(self, level: int = logging.INFO) -> None:
        self.level = level

    def emit_span(self, name: str, attributes: Dict[str, Any]) -> None:
        payload = {k: attributes[k] for k in sorted(attributes)}
        logger.log(self.level, f"[telemetry] {name}: {payload}")


class RecordingTelemetryClient(TelemetryClient):
    """Keeps finished spans in memory, in completion order."""

    def __init__(self) -> None:
        self.spans: List[Tuple[str, Dict[str, Any]]] = []

    def emit_span(self, name: str, attributes: Dict[str, Any]) -> None:
        self.spans.append((name, dict(attributes)))

    def named(self, name: str) -> List[Dict[str, Any]]:
        return [attrs for span_name, attrs in self.spans if span_name == name]


__all__ = [
    "LoggingTelemetryClient",
    "NoOpTelemetryClient",
    "RecordingTelemetryClient",
    "TelemetryClient",
    "TelemetrySpan",
]
