"""
Prompt Engineering - Arc agent system directive

WHAT: System directive and finalize instruction for the arc agent
WHERE: arcagent/runtime/arc/prompting.py - prompt generation layer
WHO: The orchestrator seeding and closing each run
TIME: Prompt assembly <1ms

The directive carries the operational ruleset the agent must follow: fill
every relation pair with a score and at least one reason, set the score
before any reason, and finish with exactly one rendering call.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Optional

from .score_tables import SCORE_UNSET
from .templates.tool_descriptions import OPERATION_GUIDELINES, TOOL_DESCRIPTIONS_COMPACT

ARC_AGENT_SYSTEM = (
    "You are an autonomous Affinity Diagram construction agent.\n\n"
    "Given any list of items, you MUST:\n"
    "1. expand or create the reasonTable,\n"
    "2. fully populate every relation between every item pair,\n"
    "3. FIRST assign the correct relation score ({symbols}),\n"
    "4. THEN assign the correct reason codes for every relation "
    "(never assign reasons before a score exists),\n"
    "5. ensure every relation has both a score AND at least one reason code,\n"
    "6. fix missing, inconsistent, or incomplete structures entirely,\n"
    "7. find an appropriate title and subtitle for the diagram,\n"
    "8. and ALWAYS finish with exactly one call to getRenderedArc before the final answer.\n\n"
    "Critical Ordering Rule:\n"
    "- You must never assign a reason to a relation until the score for that relation "
    "has been set using setItemRelation.\n"
    "- After setting a score, immediately follow with setItemReason to fill reasons.\n"
    "- If you detect mismatched ordering (e.g., reasons with no score), correct it using tools.\n\n"
    "Your tools allow you to:\n"
    "{capabilities}\n"
    "{guidelines}\n"
    "Score meanings:\n"
    "{score_meanings}\n\n"
    "Goal:\n"
    "Given any list of items, autonomously produce a complete, consistent, and technically "
    "correct Affinity Diagram.\n"
    "When finished, ALWAYS perform exactly one tool call to getRenderedArc as your final action.\n"
)

FINAL_ANSWER_INSTRUCTIONS = (
    "Give the final answer based only on the changes made through the tools.\n"
    "Do not invent or assume any new data.\n"
    "Keep the answer concise."
)


def format_capabilities(names: Iterable[str]) -> str:
    lines = []
    for name in names:
        summary = TOOL_DESCRIPTIONS_COMPACT.get(name)
        if summary:
            lines.append(f"- {summary} ({name})")
    return "\n".join(lines)


def format_score_meanings(score_table: Mapping[str, str]) -> str:
    return "\n".join(f"{symbol} = {text}" for symbol, text in score_table.items() if symbol != SCORE_UNSET)


def compose_system_prompt(
    *,
    score_table: Mapping[str, str],
    operation_names: Iterable[str],
    extra_rules: Optional[str] = None,
) -> str:
    symbols = ", ".join(symbol for symbol in score_table if symbol != SCORE_UNSET)
    prompt = ARC_AGENT_SYSTEM.format(
        symbols=symbols,
        capabilities=format_capabilities(operation_names),
        guidelines=OPERATION_GUIDELINES,
        score_meanings=format_score_meanings(score_table),
    )
    if extra_rules:
        prompt = f"{prompt}\nAdditional rules:\n{extra_rules.strip()}\n"
    return prompt


__all__ = [
    "ARC_AGENT_SYSTEM",
    "FINAL_ANSWER_INSTRUCTIONS",
    "compose_system_prompt",
    "format_capabilities",
    "format_score_meanings",
]
