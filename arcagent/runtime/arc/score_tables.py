"""Score alphabets for affinity relation diagrams.

The symbol set is fixed; only the description text changes with the locale.
``SCORE_UNSET`` marks a relation whose score has not been chosen yet.
"""

from __future__ import annotations

from typing import Dict, Mapping

SCORE_UNSET = "0"
DEFAULT_LOCALE = "en"

SCORE_TABLES: Mapping[str, Mapping[str, str]] = {
    "en": {
        "A": "Absolutely Necessary",
        "E": "Especially Important",
        "I": "Important",
        "O": "Ordinary Closeness",
        "U": "Unnecessary",
        "X": "Avoid Closeness",
        SCORE_UNSET: "Relation Not Set",
    },
    "id": {
        "A": "Sangat Diperlukan",
        "E": "Sangat Penting",
        "I": "Penting",
        "O": "Kedekatan Biasa",
        "U": "Tidak Diperlukan",
        "X": "Hindari Kedekatan",
        SCORE_UNSET: "Belum Diatur",
    },
}


def get_score_table(locale: str = DEFAULT_LOCALE) -> Dict[str, str]:
    """Return a fresh copy of the score table, falling back to English."""

    table = SCORE_TABLES.get((locale or "").strip().lower(), SCORE_TABLES[DEFAULT_LOCALE])
    return dict(table)


def resolve_locale(locale: str | None) -> str:
    lowered = (locale or "").strip().lower()
    return lowered if lowered in SCORE_TABLES else DEFAULT_LOCALE


__all__ = [
    "SCORE_UNSET",
    "DEFAULT_LOCALE",
    "SCORE_TABLES",
    "get_score_table",
    "resolve_locale",
]
