"""
Relation Models - Affinity relation matrix and its wire shapes

WHAT: The relation model (items, reason table, symmetric relation matrix)
WHERE: arcagent/runtime/arc/models.py - data layer
WHO: Operations mutating the model on behalf of the agent; renderers reading it
TIME: All accessors O(n) in the item count or better, except add_item (O(n^2))

The relation model is the aggregate root of one agent run. It owns every
structural invariant:
- symmetry: relation(P, S) and relation(S, P) exist together and always carry
  the same score and the same reason list
- density: every ordered pair of distinct live items has a relation cell
- referential closure: cells only reference live items and reason codes that
  exist in the reason table
- contiguity: reason codes are exactly "1".."N"

Mutation only happens through the accessor methods below. Accessors report
referential failures through their return value (None / False) rather than by
raising, because callers turn those into tool results for the agent.

Boundary Notes:
- Snapshots are deep copies; nothing handed out by snapshot() aliases state
- The score table is fixed at construction and read-only afterwards
- Semantic quality of scores and reasons is not checked here
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Literal, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .score_tables import DEFAULT_LOCALE, SCORE_UNSET, get_score_table, resolve_locale

Pair = Tuple[str, str]
RenderEncoding = Literal["svg-base64", "png-base64"]


class Relation(BaseModel):
    """Score and reason codes held by one directional cell of the matrix."""

    score: str = SCORE_UNSET
    reasons: List[str] = Field(default_factory=list)


class ArcSnapshot(BaseModel):
    """Detached copy of a relation model, serialisable to the wire shape."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    subtitle: str = ""
    return_svg: bool = Field(default=False, alias="returnSVG")
    score_table: Dict[str, str] = Field(default_factory=dict, alias="scoreTable")
    reason_table: Dict[str, str] = Field(default_factory=dict, alias="reasonTable")
    relations: Dict[str, Dict[str, Relation]] = Field(default_factory=dict)

    def to_payload(self) -> Dict[str, object]:
        return self.model_dump(by_alias=True)


@dataclass(slots=True, frozen=True)
class RenderedArtifact:
    """A rendered diagram, base64 encoded and tagged with its encoding."""

    content: str
    encoding: RenderEncoding

    @classmethod
    def from_bytes(cls, data: bytes, *, svg: bool) -> "RenderedArtifact":
        return cls(
            content=base64.b64encode(data).decode("ascii"),
            encoding="svg-base64" if svg else "png-base64",
        )

    @property
    def media_type(self) -> str:
        return "image/svg+xml" if self.encoding == "svg-base64" else "image/png"

    def decode(self) -> bytes:
        return base64.b64decode(self.content)


class RelationModel:
    """Symmetric relation matrix over named items plus its reason table."""

    def __init__(
        self,
        *,
        title: str = "",
        subtitle: str = "",
        return_svg: bool = False,
        score_locale: str = DEFAULT_LOCALE,
    ) -> None:
        self.title = title
        self.subtitle = subtitle
        self.return_svg = return_svg
        self.score_locale = resolve_locale(score_locale)
        self._score_table: Mapping[str, str] = MappingProxyType(get_score_table(self.score_locale))
        self._reason_table: Dict[str, str] = {}
        self._relations: Dict[str, Dict[str, Relation]] = {}

    # ------------------------------------------------------------------
    # read access
    # ------------------------------------------------------------------
    @property
    def score_table(self) -> Mapping[str, str]:
        return self._score_table

    @property
    def reason_table(self) -> Mapping[str, str]:
        return MappingProxyType(self._reason_table)

    @property
    def relations(self) -> Mapping[str, Mapping[str, Relation]]:
        return MappingProxyType({item: MappingProxyType(row) for item, row in self._relations.items()})

    @property
    def items(self) -> Tuple[str, ...]:
        return tuple(self._relations)

    def has_item(self, name: str) -> bool:
        return name in self._relations

    def has_score(self, symbol: str) -> bool:
        return symbol in self._score_table

    def has_reason(self, code: str) -> bool:
        return code in self._reason_table

    def relation(self, item1: str, item2: str) -> Optional[Relation]:
        return self._relations.get(item1, {}).get(item2)

    def pair(self, item1: str, item2: str) -> Optional[Tuple[Relation, Relation]]:
        """Return both directional cells of a pair, or None if either is missing."""

        if item1 == item2:
            return None
        forward = self.relation(item1, item2)
        backward = self.relation(item2, item1)
        if forward is None or backward is None:
            return None
        return forward, backward

    def find_reason(self, description: str) -> Optional[str]:
        for code, text in self._reason_table.items():
            if text == description:
                return code
        return None

    def unset_pairs(self, item: str) -> List[str]:
        row = self._relations.get(item, {})
        return [f"{item}→{target}" for target, rel in row.items() if rel.score == SCORE_UNSET]

    def snapshot(self) -> ArcSnapshot:
        return ArcSnapshot(
            title=self.title,
            subtitle=self.subtitle,
            return_svg=self.return_svg,
            score_table=dict(self._score_table),
            reason_table=dict(self._reason_table),
            relations={
                item: {target: rel.model_copy(deep=True) for target, rel in row.items()}
                for item, row in self._relations.items()
            },
        )

    def summary(self) -> Dict[str, int]:
        cells = [rel for row in self._relations.values() for rel in row.values()]
        return {
            "items": len(self._relations),
            "reasons": len(self._reason_table),
            "cells": len(cells),
            "unset_cells": sum(1 for rel in cells if rel.score == SCORE_UNSET),
            "cells_without_reasons": sum(1 for rel in cells if not rel.reasons),
        }

    def check_invariants(self) -> List[str]:
        """Return structural violations; an empty list means the model is well formed."""

        problems: List[str] = []
        expected_codes = {str(i) for i in range(1, len(self._reason_table) + 1)}
        if set(self._reason_table) != expected_codes:
            problems.append(f"reason codes not contiguous: {sorted(self._reason_table)}")

        for item, row in self._relations.items():
            if item in row:
                problems.append(f"diagonal cell present for {item}")
            for target, rel in row.items():
                if target not in self._relations:
                    problems.append(f"{item}→{target} references a missing item")
                    continue
                mirror = self._relations[target].get(item)
                if mirror is None:
                    problems.append(f"{item}→{target} has no mirror cell")
                elif mirror.score != rel.score or set(mirror.reasons) != set(rel.reasons):
                    problems.append(f"{item}→{target} differs from {target}→{item}")
                if rel.score not in self._score_table:
                    problems.append(f"{item}→{target} has unknown score {rel.score!r}")
                for code in rel.reasons:
                    if code not in self._reason_table:
                        problems.append(f"{item}→{target} references unknown reason {code!r}")
            for other in self._relations:
                if other != item and other not in row:
                    problems.append(f"{item}→{other} cell missing")
        return problems

    # ------------------------------------------------------------------
    # mutation
    # ------------------------------------------------------------------
    def set_titles(self, title: str, subtitle: str) -> None:
        self.title = title
        self.subtitle = subtitle

    def add_item(self, name: str) -> Optional[List[Pair]]:
        """Insert an item and fill every missing cell; returns the cells created."""

        if name in self._relations:
            return None
        self._relations[name] = {}

        created: List[Pair] = []
        for source, row in self._relations.items():
            for target in self._relations:
                if source == target or target in row:
                    continue
                row[target] = Relation()
                created.append((source, target))
        return created

    def remove_item(self, name: str) -> Optional[List[Pair]]:
        """Drop an item's row and column; returns the column cells removed."""

        if name not in self._relations:
            return None
        del self._relations[name]

        removed: List[Pair] = []
        for source, row in self._relations.items():
            if row.pop(name, None) is not None:
                removed.append((source, name))
        return removed

    def set_pair_score(self, item1: str, item2: str, score: str) -> bool:
        if score not in self._score_table:
            return False
        cells = self.pair(item1, item2)
        if cells is None:
            return False
        for rel in cells:
            rel.score = score
        return True

    def add_pair_reason(self, item1: str, item2: str, code: str) -> bool:
        if code not in self._reason_table:
            return False
        cells = self.pair(item1, item2)
        if cells is None or code in cells[0].reasons:
            return False
        for rel in cells:
            rel.reasons.append(code)
        return True

    def remove_pair_reason(self, item1: str, item2: str, code: str) -> bool:
        if code not in self._reason_table:
            return False
        cells = self.pair(item1, item2)
        if cells is None or code not in cells[0].reasons:
            return False
        for rel in cells:
            rel.reasons = [r for r in rel.reasons if r != code]
        return True

    def add_reason(self, description: str) -> Optional[str]:
        """Allocate the next reason code for a new description."""

        if self.find_reason(description) is not None:
            return None
        code = str(len(self._reason_table) + 1)
        self._reason_table[code] = description
        return code

    def delete_reason(self, code: str) -> Optional[List[str]]:
        """Delete a reason code and close the gap; returns the shifts applied.

        Descriptions above the deleted code move down by one. Relation
        references are not renumbered: the deleted code is removed everywhere
        and any reference that no longer resolves after the table shrinks is
        dropped with it.
        """

        if code not in self._reason_table:
            return None

        total = len(self._reason_table)
        shifted: List[str] = []
        for index in range(int(code), total):
            self._reason_table[str(index)] = self._reason_table[str(index + 1)]
            shifted.append(f"{index + 1}→{index}")
        del self._reason_table[str(total)]

        for row in self._relations.values():
            for rel in row.values():
                rel.reasons = [r for r in rel.reasons if r != code and r in self._reason_table]
        return shifted


__all__ = [
    "ArcSnapshot",
    "Pair",
    "Relation",
    "RelationModel",
    "RenderEncoding",
    "RenderedArtifact",
]
