"""Run-fatal errors raised by the arc agent runtime.

Operation failures (bad arguments, unknown items or reason codes, duplicates,
rendering problems) are never raised; they come back as failed
``OperationResult`` values so the agent can correct itself. Only the
conditions below end a run.
"""

from __future__ import annotations


class ArcRunError(RuntimeError):
    """Base class for errors that abort an agent run."""


class UnknownOperationError(ArcRunError):
    """Raised when the backend requests an operation outside the catalog."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown operation: {name}")
        self.name = name


class InferenceBackendError(ArcRunError):
    """Raised when the inference backend is unreachable or returns an error."""


class RunBudgetExceededError(ArcRunError):
    """Raised when a run exceeds its configured round or wall-clock ceiling."""

    def __init__(self, reason: str, *, rounds: int, elapsed_s: float) -> None:
        super().__init__(f"Run budget exceeded ({reason}) after {rounds} rounds in {elapsed_s:.1f}s")
        self.reason = reason
        self.rounds = rounds
        self.elapsed_s = elapsed_s


__all__ = [
    "ArcRunError",
    "UnknownOperationError",
    "InferenceBackendError",
    "RunBudgetExceededError",
]
