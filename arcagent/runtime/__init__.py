"""
Runtime Orchestration Module

WHAT: Runtime subsystem for building affinity relation diagrams with an agent
WHERE: arcagent/runtime/ - orchestration layer above the relation model
WHO: Callers turning a natural-language instruction into a diagram
TIME: One run per instruction; cost dominated by inference round trips

Provides the execution layer that owns one relation model per run, exposes it
to a tool-calling inference backend as a fixed catalog of operations, and
drives the conversation until the backend stops proposing operations.

Model Architecture:
- items: row/column index of the symmetric relation matrix
- reason table: dense integer codes mapped to justification text
- relations: score symbol plus reason codes per ordered item pair
"""

__all__ = ["arc"]
