"""Run record helpers for the arc agent.

Records are plain dictionaries appended to JSONL files so runs can be
compared offline (rounds, tool calls, failures, duration) without any
extra services.
"""

from __future__ import annotations

from .run_log import append_record, build_record, build_failure_record, log_run  # noqa: F401

__all__ = [
    "append_record",
    "build_failure_record",
    "build_record",
    "log_run",
]
