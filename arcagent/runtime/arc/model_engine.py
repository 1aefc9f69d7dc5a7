"""
Model Engine - Tool-calling inference backend interface

WHAT: Sends the transcript plus tool schemas to the model, parses tool calls
WHERE: arcagent/runtime/arc/model_engine.py - inference collaborator boundary
WHO: The orchestrator, once per dispatch round and once to finalize
TIME: One blocking network round trip per call

``InferenceEngine`` fixes the contract the orchestrator depends on: turns in,
``ModelResponse`` (free text plus zero or more tool call requests) out.
``OpenAIResponsesEngine`` implements it on the OpenAI Responses API.

Boundary Notes:
- Backend failures are wrapped in InferenceBackendError and end the run
- Tool call arguments are passed through untouched; validation happens in
  the operation catalog
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from openai import OpenAI, OpenAIError

from .errors import InferenceBackendError
from .turn_manager import ConversationTurn

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"


@dataclass(slots=True)
class ToolCallRequest:
    """One operation invocation proposed by the backend."""

    call_id: str
    name: str
    arguments: str = "{}"


@dataclass(slots=True)
class ModelResponse:
    """Parsed backend reply."""

    text: str = ""
    tool_calls: List[ToolCallRequest] = field(default_factory=list)
    usage: Dict[str, int] = field(default_factory=dict)

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


@dataclass(slots=True)
class ResponsesEngineConfig:
    """Configuration for the OpenAI Responses API engine."""

    model: str = DEFAULT_MODEL
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    timeout: Optional[float] = 60.0
    max_retries: int = 2
    temperature: Optional[float] = None


class InferenceEngine:
    """Base inference engine; override ``respond`` for a concrete backend."""

    def build_input(self, turns: Iterable[ConversationTurn]) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        for turn in turns:
            if turn.kind == "tool_call":
                items.append(
                    {
                        "type": "function_call",
                        "call_id": turn.call_id,
                        "name": turn.name,
                        "arguments": turn.content,
                    }
                )
            elif turn.kind == "tool_result":
                items.append(
                    {
                        "type": "function_call_output",
                        "call_id": turn.call_id,
                        "output": turn.content,
                    }
                )
            else:
                items.append({"role": turn.role, "content": turn.content})
        return items

    def respond(
        self,
        turns: Sequence[ConversationTurn],
        *,
        tools: Sequence[Dict[str, Any]] = (),
        instructions: str | None = None,
    ) -> ModelResponse:
        """Return the backend's next reply for ``turns``."""

        raise NotImplementedError


class OpenAIResponsesEngine(InferenceEngine):
    """Inference engine backed by ``client.responses.create``."""

    def __init__(self, config: ResponsesEngineConfig | None = None, *, client: Any = None) -> None:
        self.config = config or ResponsesEngineConfig()
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            kwargs: Dict[str, Any] = {"max_retries": self.config.max_retries}
            if self.config.api_key:
                kwargs["api_key"] = self.config.api_key
            if self.config.base_url:
                kwargs["base_url"] = self.config.base_url
            if self.config.timeout is not None:
                kwargs["timeout"] = self.config.timeout
            try:
                self._client = OpenAI(**kwargs)
            except OpenAIError as exc:
                raise InferenceBackendError(f"Failed to construct OpenAI client: {exc}") from exc
        return self._client

    def respond(
        self,
        turns: Sequence[ConversationTurn],
        *,
        tools: Sequence[Dict[str, Any]] = (),
        instructions: str | None = None,
    ) -> ModelResponse:
        request: Dict[str, Any] = {
            "model": self.config.model,
            "input": self.build_input(turns),
        }
        if tools:
            request["tools"] = list(tools)
        if instructions:
            request["instructions"] = instructions
        if self.config.temperature is not None:
            request["temperature"] = self.config.temperature

        try:
            resp = self.client.responses.create(**request)
        except OpenAIError as exc:
            logger.error(f"Inference backend call failed: {exc}")
            raise InferenceBackendError(f"Inference backend error: {exc}") from exc
        return self.parse_response(resp)

    @staticmethod
    def parse_response(resp: Any) -> ModelResponse:
        calls: List[ToolCallRequest] = []
        for item in getattr(resp, "output", None) or []:
            if getattr(item, "type", None) != "function_call":
                continue
            calls.append(
                ToolCallRequest(
                    call_id=item.call_id,
                    name=item.name,
                    arguments=item.arguments or "{}",
                )
            )

        usage: Dict[str, int] = {}
        raw_usage = getattr(resp, "usage", None)
        if raw_usage is not None:
            usage = {
                "input_tokens": getattr(raw_usage, "input_tokens", 0) or 0,
                "output_tokens": getattr(raw_usage, "output_tokens", 0) or 0,
                "total_tokens": getattr(raw_usage, "total_tokens", 0) or 0,
            }

        text = getattr(resp, "output_text", "") or ""
        return ModelResponse(text=text.strip(), tool_calls=calls, usage=usage)


__all__ = [
    "DEFAULT_MODEL",
    "InferenceEngine",
    "ModelResponse",
    "OpenAIResponsesEngine",
    "ResponsesEngineConfig",
    "ToolCallRequest",
]
