"""
Text Normalizer

Canonicalizes a pasted note before classification: typographic dashes
become plain hyphens, the text is split into lines and each line trimmed.
Blank lines are kept; the classifier decides what to skip.
"""

import re

from noteledger.models.transaction import normalize_name

# em dash, en dash
_DASH_VARIANTS = re.compile("[—–]")


def normalize_text(text: str) -> list[str]:
    """Split a note into trimmed lines. Never fails; empty input gives []."""
    if not text:
        return []
    normalized = _DASH_VARIANTS.sub("-", text)
    return [line.strip() for line in normalized.split("\n")]


def is_separator(line: str, min_dashes: int = 7) -> bool:
    """True for lines carrying a run of dashes used to divide a note."""
    return "-" * min_dashes in line


__all__ = ["is_separator", "normalize_name", "normalize_text"]
