"""
Run State - Explicit per-run state for the arc agent

WHAT: Everything one agent run owns: model, transcript, render cache, counters
WHERE: arcagent/runtime/arc/session.py - passed by reference through the loop
WHO: The orchestrator; one ArcRun per instruction
TIME: Lives for the duration of one run

No state is kept at module level: two runs never share a model or a
transcript, so independent runs can proceed concurrently.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from .models import RelationModel, RenderedArtifact
from .turn_manager import ConversationTurn, TurnManager


@dataclass(slots=True)
class ArcRun:
    run_id: str
    model: RelationModel
    transcript: TurnManager = field(default_factory=TurnManager)
    last_render: Optional[RenderedArtifact] = None
    tool_calls: int = 0
    rounds: int = 0
    started_at: float = field(default_factory=time.monotonic)
    usage: Dict[str, int] = field(default_factory=dict)

    @staticmethod
    def new(
        *,
        instruction: str,
        system_prompt: str,
        model: RelationModel,
        run_id: str | None = None,
    ) -> "ArcRun":
        run = ArcRun(run_id=run_id or str(uuid.uuid4()), model=model)
        run.transcript.add_turn(ConversationTurn.create(role="system", content=system_prompt))
        run.transcript.add_turn(ConversationTurn.create(role="user", content=instruction))
        return run

    @property
    def elapsed_s(self) -> float:
        return time.monotonic() - self.started_at

    def add_usage(self, usage: Mapping[str, int]) -> None:
        """Accumulate backend token counts across every call of the run."""

        for key, value in usage.items():
            self.usage[key] = self.usage.get(key, 0) + value

    @property
    def has_render(self) -> bool:
        return self.last_render is not None


__all__ = [
    "ArcRun",
]
