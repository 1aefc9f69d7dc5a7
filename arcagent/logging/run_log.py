"""Utilities for recording one JSON line per agent run.

A record captures what the caller asked for and how the run went: rounds,
tool calls, model size at the end, whether a diagram was rendered, and the
error for runs that failed. Rendered artefacts are never written here.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping

from ..runtime.arc.orchestrator import RunResult

MAX_INSTRUCTION_CHARS = 2000


def _clip(text: str, limit: int = MAX_INSTRUCTION_CHARS) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


def _model_counts(data: Mapping[str, Any]) -> Dict[str, int]:
    relations = data.get("relations") or {}
    cells = [cell for row in relations.values() for cell in row.values()]
    return {
        "items": len(relations),
        "reasons": len(data.get("reasonTable") or {}),
        "unset_cells": sum(1 for cell in cells if cell.get("score") == "0"),
        "cells_without_reasons": sum(1 for cell in cells if not cell.get("reasons")),
    }


def build_record(
    *,
    label: str,
    instruction: str,
    result: RunResult,
    duration_s: float,
    notes: str = "",
    timestamp: datetime | None = None,
) -> Dict[str, Any]:
    """Construct a structured record for a completed run."""

    return {
        "label": label,
        "timestamp": (timestamp or datetime.now(timezone.utc)).isoformat(),
        "success": True,
        "run_id": result.run_id,
        "instruction": _clip(instruction),
        "duration_s": round(float(duration_s), 3),
        "rounds": result.rounds,
        "tool_calls": result.n_tool_calls,
        "rendered": result.render is not None,
        "render_type": result.render_type,
        "model": _model_counts(result.data),
        "usage": dict(result.usage),
        "notes": notes,
    }


def build_failure_record(
    *,
    label: str,
    instruction: str,
    error: BaseException,
    duration_s: float,
    notes: str = "",
    timestamp: datetime | None = None,
) -> Dict[str, Any]:
    """Construct a record for a run that ended with a run-fatal error."""

    return {
        "label": label,
        "timestamp": (timestamp or datetime.now(timezone.utc)).isoformat(),
        "success": False,
        "instruction": _clip(instruction),
        "duration_s": round(float(duration_s), 3),
        "error_type": type(error).__name__,
        "error": str(error),
        "notes": notes,
    }


def append_record(output_path: Path, record: Mapping[str, Any]) -> None:
    """Append a record to a JSONL file."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("a", encoding="utf-8") as fh:
        json.dump(record, fh, ensure_ascii=False)
        fh.write("\n")


def log_run(record: Mapping[str, Any], *, output_path: Path | None = None, dry_run: bool = False) -> Mapping[str, Any]:
    """Persist a run record when an output path is given; returns the record."""

    if output_path is not None and not dry_run:
        append_record(output_path, record)
    return record


__all__ = [
    "append_record",
    "build_failure_record",
    "build_record",
    "log_run",
]
