"""
Arc Operations - Validated tool catalog over a relation model

WHAT: The operations an agent may invoke against a relation model
WHERE: arcagent/runtime/arc/operations.py - tool boundary
WHO: The orchestrator dispatching tool calls proposed by the inference backend
TIME: Every operation is in-process and O(n^2) in the item count at worst,
      except getRenderedArc which blocks on one HTTP round trip

Each operation pairs a pydantic argument model (the validator, and the source
of the JSON schema advertised to the backend) with an executor that applies
the change through RelationModel accessors. Operations receive the model by
reference for the duration of one call and keep nothing afterwards.

Operations:
- setTitleAndSubtitle(title, subtitle): overwrite diagram titles
- addReasonItem(reasonDescription): allocate the next reason code
- deleteReasonItem(reasonCode): delete a code and close the gap
- addItem(itemName) / deleteItem(itemName): grow or shrink the matrix
- setItemRelation(item1, item2, score): score both directions of a pair
- setItemReason / unsetItemReason(item1, item2, reason): attach or detach a code
- getArcModel(): full snapshot
- getRenderedArc(): render through the rendering service

Boundary Notes:
- Invalid payloads, unknown references and duplicates come back as failed
  OperationResult values so the agent can correct itself
- Only an unknown operation name raises (UnknownOperationError)
- Score-before-reason ordering is a workflow rule for the agent, not a check
  performed here: setItemReason accepts a pair whose score is still unset
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import UnknownOperationError
from .models import RelationModel, RenderedArtifact
from .renderer import ArcRenderer, RenderError
from .templates.tool_descriptions import TOOL_DESCRIPTIONS

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class OperationResult:
    """Outcome of one operation invocation, fed back to the agent as a tool result."""

    success: bool
    message: str
    data: Optional[Dict[str, Any]] = None
    artifact: Optional[RenderedArtifact] = field(default=None, repr=False)

    @classmethod
    def ok(
        cls,
        message: str,
        *,
        data: Optional[Dict[str, Any]] = None,
        artifact: Optional[RenderedArtifact] = None,
    ) -> "OperationResult":
        return cls(success=True, message=f"✓ {message}", data=data, artifact=artifact)

    @classmethod
    def fail(cls, message: str) -> "OperationResult":
        return cls(success=False, message=f"✗ {message}")

    def to_tool_output(self) -> str:
        """Serialise for the transcript; artifact bytes are never inlined."""

        payload: Dict[str, Any] = {"success": self.success, "message": self.message}
        if self.data is not None:
            payload["data"] = self.data
        return json.dumps(payload, ensure_ascii=False)


# ============================================================
# Argument models
# ============================================================


class OperationArguments(BaseModel):
    """Base for argument payloads: unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


def _require_text(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value


class NoArguments(OperationArguments):
    pass


class TitleArguments(OperationArguments):
    title: str
    subtitle: str


class ReasonDescriptionArguments(OperationArguments):
    reason_description: str = Field(alias="reasonDescription", min_length=1)

    @field_validator("reason_description")
    @classmethod
    def check_not_blank(cls, value: str) -> str:
        return _require_text(value)


class ReasonCodeArguments(OperationArguments):
    reason_code: str = Field(alias="reasonCode", min_length=1)


class ItemArguments(OperationArguments):
    item_name: str = Field(alias="itemName", min_length=1)

    @field_validator("item_name")
    @classmethod
    def check_not_blank(cls, value: str) -> str:
        return _require_text(value)


class PairScoreArguments(OperationArguments):
    item1: str = Field(min_length=1)
    item2: str = Field(min_length=1)
    score: str = Field(min_length=1)


class PairReasonArguments(OperationArguments):
    item1: str = Field(min_length=1)
    item2: str = Field(min_length=1)
    reason: str = Field(min_length=1)


Executor = Callable[[Any, RelationModel], OperationResult]


@dataclass(slots=True, frozen=True)
class OperationSpec:
    """Catalog entry pairing an argument validator with its executor."""

    name: str
    arguments: Type[OperationArguments]
    executor: Executor

    @property
    def description(self) -> str:
        return TOOL_DESCRIPTIONS.get(self.name, {}).get("description", "")

    def parse(self, raw: str | Mapping[str, Any] | None) -> OperationArguments:
        """Decode and validate a raw payload; raises ValueError on bad input."""

        if raw is None or (isinstance(raw, str) and not raw.strip()):
            data: Any = {}
        elif isinstance(raw, str):
            data = json.loads(raw)
        else:
            data = dict(raw)
        if not isinstance(data, dict):
            raise ValueError(f"arguments must be a JSON object, got {type(data).__name__}")
        return self.arguments.model_validate(data)

    def tool_schema(self) -> Dict[str, Any]:
        """Function-tool schema in the shape the Responses API expects."""

        schema = self.arguments.model_json_schema(by_alias=True)
        param_docs = TOOL_DESCRIPTIONS.get(self.name, {}).get("parameters", {})
        properties: Dict[str, Any] = {}
        for prop_name, prop in schema.get("properties", {}).items():
            entry = {k: v for k, v in prop.items() if k != "title"}
            if prop_name in param_docs:
                entry["description"] = param_docs[prop_name]
            properties[prop_name] = entry
        return {
            "type": "function",
            "name": self.name,
            "description": self.description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": list(schema.get("required", [])),
                "additionalProperties": False,
            },
        }


def _format_validation_error(exc: ValidationError) -> str:
    parts: List[str] = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "arguments"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


def _pairs_text(pairs: List[Tuple[str, str]]) -> str:
    return ", ".join(f"{a}→{b}" for a, b in pairs) or "none"


# ============================================================
# Catalog
# ============================================================


class OperationSet:
    """Catalog of named operations with validation and execution."""

    def __init__(self, *, renderer: ArcRenderer | None = None) -> None:
        self._renderer = renderer
        specs = [
            OperationSpec("getRenderedArc", NoArguments, self.get_rendered_arc),
            OperationSpec("getArcModel", NoArguments, self.get_arc_model),
            OperationSpec("setTitleAndSubtitle", TitleArguments, self.set_title_and_subtitle),
            OperationSpec("addReasonItem", ReasonDescriptionArguments, self.add_reason_item),
            OperationSpec("deleteReasonItem", ReasonCodeArguments, self.delete_reason_item),
            OperationSpec("addItem", ItemArguments, self.add_item),
            OperationSpec("deleteItem", ItemArguments, self.delete_item),
            OperationSpec("setItemRelation", PairScoreArguments, self.set_item_relation),
            OperationSpec("setItemReason", PairReasonArguments, self.set_item_reason),
            OperationSpec("unsetItemReason", PairReasonArguments, self.unset_item_reason),
        ]
        self._operations: Dict[str, OperationSpec] = {spec.name: spec for spec in specs}

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(self._operations)

    @property
    def renderer(self) -> ArcRenderer | None:
        return self._renderer

    def __contains__(self, name: object) -> bool:
        return name in self._operations

    def get(self, name: str) -> OperationSpec:
        spec = self._operations.get(name)
        if spec is None:
            raise UnknownOperationError(name)
        return spec

    def tool_specs(self) -> List[Dict[str, Any]]:
        return [spec.tool_schema() for spec in self._operations.values()]

    def execute(
        self,
        name: str,
        raw_arguments: str | Mapping[str, Any] | None,
        model: RelationModel,
    ) -> OperationResult:
        """Validate a payload and apply the named operation to ``model``."""

        spec = self.get(name)
        try:
            args = spec.parse(raw_arguments)
        except ValidationError as exc:
            detail = _format_validation_error(exc)
            logger.debug(f"Rejected {name} arguments: {detail}")
            return OperationResult.fail(f"Invalid arguments for {name}: {detail}")
        except ValueError as exc:
            logger.debug(f"Rejected {name} payload: {exc}")
            return OperationResult.fail(f"Invalid arguments for {name}: {exc}")
        return spec.executor(args, model)

    # ------------------------------------------------------------
    # read operations
    # ------------------------------------------------------------
    def get_arc_model(self, args: NoArguments, model: RelationModel) -> OperationResult:
        return OperationResult.ok(
            "Current Affinity Diagram model.",
            data={"arcModel": model.snapshot().to_payload()},
        )

    def get_rendered_arc(self, args: NoArguments, model: RelationModel) -> OperationResult:
        if self._renderer is None:
            return OperationResult.fail("Rendering is not configured for this run.")
        try:
            artifact = self._renderer.render(model)
        except RenderError as exc:
            return OperationResult.fail(str(exc))
        return OperationResult.ok(
            "Rendered the Affinity Diagram successfully.",
            data={"type": artifact.encoding},
            artifact=artifact,
        )

    # ------------------------------------------------------------
    # titles and reasons
    # ------------------------------------------------------------
    def set_title_and_subtitle(self, args: TitleArguments, model: RelationModel) -> OperationResult:
        model.set_titles(args.title, args.subtitle)
        return OperationResult.ok(f'Changed title to "{model.title}" with subtitle "{model.subtitle}".')

    def add_reason_item(self, args: ReasonDescriptionArguments, model: RelationModel) -> OperationResult:
        code = model.add_reason(args.reason_description)
        if code is None:
            existing = model.find_reason(args.reason_description)
            return OperationResult.fail(f'Reason already exists with code "{existing}".')
        return OperationResult.ok(
            f'Added reason "{args.reason_description}" with code "{code}".',
            data={"code": code},
        )

    def delete_reason_item(self, args: ReasonCodeArguments, model: RelationModel) -> OperationResult:
        shifted = model.delete_reason(args.reason_code)
        if shifted is None:
            return OperationResult.fail(f'Reason code "{args.reason_code}" not found.')
        return OperationResult.ok(
            f'Deleted reason "{args.reason_code}". Shifted: {", ".join(shifted) or "none"}.'
        )

    # ------------------------------------------------------------
    # items
    # ------------------------------------------------------------
    def add_item(self, args: ItemArguments, model: RelationModel) -> OperationResult:
        created = model.add_item(args.item_name)
        if created is None:
            return OperationResult.fail(f'Item "{args.item_name}" already exists.')
        return OperationResult.ok(
            f'Added item "{args.item_name}". Initialized relations: {_pairs_text(created)}.'
        )

    def delete_item(self, args: ItemArguments, model: RelationModel) -> OperationResult:
        removed = model.remove_item(args.item_name)
        if removed is None:
            return OperationResult.fail(f'Item "{args.item_name}" not found.')
        return OperationResult.ok(
            f'Deleted item "{args.item_name}". Removed relations: {_pairs_text(removed)}.'
        )

    # ------------------------------------------------------------
    # relations
    # ------------------------------------------------------------
    def set_item_relation(self, args: PairScoreArguments, model: RelationModel) -> OperationResult:
        item1, item2, score = args.item1, args.item2, args.score
        if not model.has_item(item1) or not model.has_item(item2):
            return OperationResult.fail(f'Either "{item1}" or "{item2}" does not exist.')
        if not model.has_score(score):
            return OperationResult.fail(f'"{score}" is not a valid score symbol.')
        if not model.set_pair_score(item1, item2, score):
            return OperationResult.fail(f'Relation entry missing between "{item1}" and "{item2}".')

        remaining = model.unset_pairs(item1)
        return OperationResult.ok(
            f'Set relation {item1}→{item2} to "{score}". Remaining unset: {", ".join(remaining) or "none"}.'
        )

    def set_item_reason(self, args: PairReasonArguments, model: RelationModel) -> OperationResult:
        item1, item2, reason = args.item1, args.item2, args.reason
        if not model.has_reason(reason):
            return OperationResult.fail(f'Reason code "{reason}" does not exist.')
        cells = model.pair(item1, item2)
        if cells is None:
            return OperationResult.fail(f'Relation entry missing between "{item1}" and "{item2}".')
        if reason in cells[0].reasons:
            return OperationResult.fail(f'Reason "{reason}" already assigned to {item1}→{item2}.')

        model.add_pair_reason(item1, item2, reason)
        return OperationResult.ok(f'Added reason "{reason}" to {item1}→{item2}.')

    def unset_item_reason(self, args: PairReasonArguments, model: RelationModel) -> OperationResult:
        item1, item2, reason = args.item1, args.item2, args.reason
        if not model.has_reason(reason):
            return OperationResult.fail(f'Reason code "{reason}" does not exist.')
        cells = model.pair(item1, item2)
        if cells is None:
            return OperationResult.fail(f'Relation entry missing between "{item1}" and "{item2}".')
        if reason not in cells[0].reasons:
            return OperationResult.fail(f'Reason "{reason}" was not assigned to {item1}→{item2}.')

        model.remove_pair_reason(item1, item2, reason)
        return OperationResult.ok(f'Removed reason "{reason}" from {item1}→{item2}.')


__all__ = [
    "ItemArguments",
    "NoArguments",
    "OperationArguments",
    "OperationResult",
    "OperationSet",
    "OperationSpec",
    "PairReasonArguments",
    "PairScoreArguments",
    "ReasonCodeArguments",
    "ReasonDescriptionArguments",
    "TitleArguments",
]
