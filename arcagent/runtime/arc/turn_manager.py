"""
Turn Manager - Conversation transcript for one agent run

WHAT: Records messages, tool calls and tool results in proposal order
WHERE: arcagent/runtime/arc/turn_manager.py - orchestration subsystem
WHO: The orchestrator and the inference engine that renders turns as input
TIME: Appends O(1); summaries O(n) in the transcript length

The transcript is sent to the inference backend in full on every round, so
no retention policy trims it: dropping a tool call without its result (or the
other way round) would desynchronise the backend.

Boundary Notes:
- Tool call and tool result turns share a call_id so the backend can pair them
- Turns carry backend-neutral fields; engines translate them to wire items
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Literal

Role = Literal["user", "assistant", "system", "tool"]
TurnKind = Literal["message", "tool_call", "tool_result"]


@dataclass(slots=True)
class ConversationTurn:
    """Represents a single conversational event in an agent run."""

    turn_id: str
    role: Role
    content: str
    kind: TurnKind = "message"
    call_id: str | None = None
    name: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        *,
        role: Role,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> "ConversationTurn":
        return cls(
            turn_id=str(uuid.uuid4()),
            role=role,
            content=content,
            metadata=metadata or {},
        )

    @classmethod
    def tool_call(cls, *, call_id: str, name: str, arguments: str) -> "ConversationTurn":
        """An operation invocation proposed by the backend; content holds the raw arguments."""

        return cls(
            turn_id=str(uuid.uuid4()),
            role="assistant",
            content=arguments,
            kind="tool_call",
            call_id=call_id,
            name=name,
        )

    @classmethod
    def tool_result(
        cls,
        *,
        call_id: str,
        name: str,
        output: str,
        success: bool,
    ) -> "ConversationTurn":
        return cls(
            turn_id=str(uuid.uuid4()),
            role="tool",
            content=output,
            kind="tool_result",
            call_id=call_id,
            name=name,
            metadata={"success": success},
        )


class TurnManager:
    """Maintains the ordered transcript of one run."""

    def __init__(self) -> None:
        self._turns: List[ConversationTurn] = []

    @property
    def turns(self) -> tuple[ConversationTurn, ...]:
        return tuple(self._turns)

    def __len__(self) -> int:
        return len(self._turns)

    def add_turn(self, turn: ConversationTurn) -> None:
        self._turns.append(turn)

    def summarize(self) -> dict[str, Any]:
        """Return a lightweight summary used for telemetry and run records."""

        return {
            "turn_count": len(self._turns),
            "roles": [t.role for t in self._turns],
            "tool_calls": sum(1 for t in self._turns if t.kind == "tool_call"),
            "failed_tool_results": sum(
                1 for t in self._turns if t.kind == "tool_result" and not t.metadata.get("success", True)
            ),
            "chars": sum(len(t.content) for t in self._turns),
        }


__all__ = [
    "ConversationTurn",
    "Role",
    "TurnKind",
    "TurnManager",
]
