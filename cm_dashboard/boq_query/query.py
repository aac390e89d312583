# cm_dashboard/boq_query/query.py
"""
Query Compiler - free-text search over BOQ descriptions.

Turns the committed search text + match mode into a compiled pattern:
- words are split on runs of whitespace (Thai/English alike)
- every word is escaped, so "C+M" matches the literal text
- ALL: every word must appear somewhere (any order)
- ANY: at least one word must appear
Matching is case-insensitive substring matching.

VERSION: 1.0.0
"""

import html
import logging
import re
from typing import List, Optional, Pattern, Tuple

import pandas as pd

from .constants import MATCH_ALL, MATCH_ANY, MATCH_MODES
from .exceptions import InvalidQueryError

logger = logging.getLogger(__name__)

_FLAGS = re.IGNORECASE | re.DOTALL


def split_keywords(text: Optional[str]) -> List[str]:
    """Whitespace-separated words of the input, empties dropped."""
    if not text:
        return []
    return [tok for tok in text.split() if tok]


def build_pattern_source(tokens: List[str], mode: str) -> str:
    """Regex source for already-split tokens."""
    escaped = [re.escape(tok) for tok in tokens]
    if mode == MATCH_ANY:
        return "(" + "|".join(escaped) + ")"
    return "".join(f"(?=.*{tok})" for tok in escaped) + ".*"


def compile_query(text: Optional[str], mode: str = MATCH_ALL) -> Optional[Pattern]:
    """
    Compile search text into a description pattern.

    Returns:
        Compiled pattern, or None when the text is blank after trimming.

    Raises:
        InvalidQueryError: the generated pattern does not compile.
        ValueError: unknown match mode.
    """
    if mode not in MATCH_MODES:
        raise ValueError(f"Unknown match mode: {mode!r}")

    tokens = split_keywords(text)
    if not tokens:
        return None

    source = build_pattern_source(tokens, mode)
    try:
        return re.compile(source, _FLAGS)
    except re.error as e:
        logger.warning(f"Search pattern failed to compile: {e}")
        raise InvalidQueryError(text or "", str(e)) from e


def description_matches(pattern: Pattern, descriptions: pd.Series) -> pd.Series:
    """Boolean mask of descriptions matching the pattern (missing → '')."""
    if descriptions.empty:
        return pd.Series([], index=descriptions.index, dtype=bool)
    texts = descriptions.fillna('').astype(str)
    return texts.map(lambda s: pattern.search(s) is not None).astype(bool)


# =============================================================================
# KEYWORD HIGHLIGHTING
# =============================================================================

def highlight_segments(text: Optional[str], keywords: List[str]) -> List[Tuple[str, bool]]:
    """
    Split text into (segment, is_match) pairs for the given keywords.

    Matching is case-insensitive; keywords are taken literally.
    """
    text = text or ""
    if not keywords or not text:
        return [(text, False)] if text else []

    splitter = re.compile(build_pattern_source(keywords, MATCH_ANY), _FLAGS)
    segments = []
    pos = 0
    for match in splitter.finditer(text):
        start, end = match.span()
        if start == end:
            continue
        if start > pos:
            segments.append((text[pos:start], False))
        segments.append((text[start:end], True))
        pos = end
    if pos < len(text):
        segments.append((text[pos:], False))
    return segments


def highlight_html(text: Optional[str], keywords: List[str], color: str = "#fff3a3") -> str:
    """HTML-escaped text with matched keywords wrapped in <mark>."""
    parts = []
    for segment, is_match in highlight_segments(text, keywords):
        escaped = html.escape(segment)
        if is_match:
            parts.append(f'<mark style="background:{color};padding:0 2px;">{escaped}</mark>')
        else:
            parts.append(escaped)
    return "".join(parts)
