"""
Text normalisation shared by the lexicon and the matcher.

OCR output is lower-cased, accent-stripped, cleared of punctuation noise and
whitespace-collapsed. Every normalised character keeps the offset of the source
character it came from so matches can be reported against the original text.
"""

from __future__ import annotations

import unicodedata
from typing import List, Tuple

SOFT_HYPHEN = "\u00ad"
HYPHENS = "-\u2010\u2011"
LINE_BREAKS = "\n\r\u2028\u2029"


def _fold(ch: str) -> str:
    """Lowercase and strip accents from one character (may expand or vanish)."""
    decomposed = unicodedata.normalize("NFKD", ch)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return stripped.lower()


def _line_break_hyphen_end(text: str, index: int) -> int:
    """
    If text[index] is a hyphen that splits a word across a line break
    ("pea-\\nnut"), return the index of the first character after the break.
    Otherwise return -1.
    """
    if index == 0 or not text[index - 1].isalnum():
        return -1
    j = index + 1
    saw_break = False
    while j < len(text) and text[j].isspace():
        if text[j] in LINE_BREAKS:
            saw_break = True
        j += 1
    if saw_break and j < len(text) and text[j].isalnum():
        return j
    return -1


def has_line_break_hyphen(text: str) -> bool:
    return any(
        ch in HYPHENS and _line_break_hyphen_end(text, i) != -1
        for i, ch in enumerate(text)
    )


def normalize_with_offsets(
    text: str, join_hyphenated: bool = True
) -> Tuple[str, List[int]]:
    """
    Return the normalised text and, for each of its characters, the index of
    the source character it was produced from.
    """
    chars: List[str] = []
    offsets: List[int] = []
    pending_space = -1
    i = 0
    length = len(text or "")
    while i < length:
        ch = text[i]
        if ch == SOFT_HYPHEN:
            i += 1
            continue
        if join_hyphenated and ch in HYPHENS:
            resume = _line_break_hyphen_end(text, i)
            if resume != -1:
                i = resume
                continue
        for out in _fold(ch):
            if out.isalnum():
                if pending_space != -1 and chars:
                    chars.append(" ")
                    offsets.append(pending_space)
                pending_space = -1
                chars.append(out)
                offsets.append(i)
            elif chars and pending_space == -1:
                # Punctuation and whitespace collapse into a single separator.
                pending_space = i
        i += 1
    return "".join(chars), offsets


def normalize_term(term: str) -> str:
    """Normalise a lexicon term or lookup key the same way scanned text is."""
    return normalize_with_offsets(term)[0]
