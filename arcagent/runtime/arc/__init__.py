"""
Affinity Relation Agent - relation model, operations and agent loop

WHAT: In-process library that lets a tool-calling model build an affinity diagram
WHERE: arcagent/runtime/arc/ - runtime orchestration subsystem
WHO: Callers turning a natural-language instruction into a diagram
TIME: Operations in-process; each round costs one inference call

Model:
- items: unique, case-sensitive names indexing the relation matrix
- reasonTable: dense codes "1".."N" mapped to justification text
- relations: symmetric cells holding a score symbol and reason codes

Operations (tool catalog):
- setTitleAndSubtitle, addReasonItem, deleteReasonItem, addItem, deleteItem
- setItemRelation, setItemReason, unsetItemReason
- getArcModel, getRenderedArc

Boundary Notes:
- One RelationModel per run, owned by the run state and passed explicitly
- Rendering and inference are external collaborators behind thin clients
"""

from .errors import (  # noqa: F401
    ArcRunError,
    InferenceBackendError,
    RunBudgetExceededError,
    UnknownOperationError,
)
from .model_engine import (  # noqa: F401
    InferenceEngine,
    ModelResponse,
    OpenAIResponsesEngine,
    ResponsesEngineConfig,
    ToolCallRequest,
)
from .models import ArcSnapshot, Relation, RelationModel, RenderedArtifact  # noqa: F401
from .operations import OperationResult, OperationSet, OperationSpec  # noqa: F401
from .orchestrator import ArcAgentOrchestrator, OrchestratorConfig, RunResult  # noqa: F401
from .renderer import ArcRenderer, RenderError  # noqa: F401
from .score_tables import SCORE_UNSET, get_score_table  # noqa: F401
from .session import ArcRun  # noqa: F401
from .telemetry import (  # noqa: F401
    LoggingTelemetryClient,
    NoOpTelemetryClient,
    RecordingTelemetryClient,
    TelemetryClient,
    TelemetrySpan,
)
from .turn_manager import ConversationTurn, TurnManager  # noqa: F401

__all__ = [
    "ArcAgentOrchestrator",
    "ArcRenderer",
    "ArcRun",
    "ArcRunError",
    "ArcSnapshot",
    "ConversationTurn",
    "InferenceBackendError",
    "InferenceEngine",
    "LoggingTelemetryClient",
    "ModelResponse",
    "NoOpTelemetryClient",
    "OpenAIResponsesEngine",
    "OperationResult",
    "OperationSet",
    "OperationSpec",
    "OrchestratorConfig",
    "RecordingTelemetryClient",
    "Relation",
    "RelationModel",
    "RenderError",
    "RenderedArtifact",
    "ResponsesEngineConfig",
    "RunBudgetExceededError",
    "RunResult",
    "SCORE_UNSET",
    "TelemetryClient",
    "TelemetrySpan",
    "ToolCallRequest",
    "TurnManager",
    "UnknownOperationError",
    "get_score_table",
]
