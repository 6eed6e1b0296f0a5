"""
Text Normalizer
===============
Stateless cleanup of the markup artifacts the ETS exporter leaves in
free-text fields.

The exporter does not emit real HTML: it wraps text in stray ``<p>`` /
``</p>`` pairs, uses ``</br>`` as its line separator and prefixes question
stems with internal type markers (``ets_th1 ``). Every function here is total
over arbitrary strings.
"""

from __future__ import annotations

from typing import Sequence

# ─── Vendor Literals ──────────────────────────────────────────────────────────

LINE_BREAK = "</br>"
PARAGRAPH_OPEN = "<p>"
PARAGRAPH_CLOSE = "</p>"
PARAGRAPH_MARKERS = (PARAGRAPH_OPEN, PARAGRAPH_CLOSE)

# Leading wrapper left over when the exporter splits a paragraph
PARAGRAPH_JOIN = PARAGRAPH_CLOSE + PARAGRAPH_OPEN

# "first" / "second" question type markers on choice stems
STEM_PREFIXES = ("ets_th1 ", "ets_th2 ")

# Numbering the exporter puts in front of dialogue questions
DIALOGUE_QUESTION_PREFIXES = (
    "Question 1. ",
    "Question 2. ",
    "Question 3. ",
    "1. ",
    "2. ",
    "3. ",
)


def strip_leading_markup(text: str, tokens: Sequence[str]) -> str:
    """
    Remove any of ``tokens`` from the start of ``text`` until none matches.

    Tokens are tried in order on every pass, so stacked wrappers such as
    ``"ets_th1 ets_th2 stem"`` are fully removed. Applying the function to its
    own output is a no-op.
    """
    changed = True
    while changed:
        changed = False
        for token in tokens:
            if token and text.startswith(token):
                text = text[len(token):]
                changed = True
    return text


def strip_all_markup_pairs(text: str) -> str:
    """Drop every paragraph marker and turn ``</br>`` into real newlines."""
    for marker in PARAGRAPH_MARKERS:
        text = text.replace(marker, "")
    return text.replace(LINE_BREAK, "\n")


def split_on_delimiter(
    text: str,
    delimiter: str = LINE_BREAK,
    keep_empty: bool = True,
) -> list[str]:
    """
    Split ``text`` on a literal delimiter, trimming every piece.

    Args:
        text: Source text.
        delimiter: Literal separator (the exporter's ``</br>`` by default).
        keep_empty: Keep pieces that are blank after trimming.
    """
    if not delimiter:
        pieces = [text.strip()]
    else:
        pieces = [piece.strip() for piece in text.split(delimiter)]
    if keep_empty:
        return pieces
    return [piece for piece in pieces if piece]


def join_lines(text: str, delimiter: str = LINE_BREAK) -> str:
    """Replace a delimiter-separated text with newline-separated lines."""
    return "\n".join(split_on_delimiter(text, delimiter))
