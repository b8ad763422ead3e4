"""Emphasis detection -- flag ALL CAPS tokens for strong vocal stress.

A token is a maximal run of non-whitespace characters.  It is emphasized
when it has at least one alphabetic character and every alphabetic
character in it is uppercase, so ``"HELLO,"`` and ``"R2D2"`` qualify while
``"42"`` and ``"Hello"`` do not.
"""

from __future__ import annotations

import re

from .models import TokenSpan

_TOKEN_RE = re.compile(r"\S+")


def is_emphasized(token: str) -> bool:
    """Return ``True`` if every alphabetic character in *token* is uppercase."""
    letters = [c for c in token if c.isalpha()]
    return bool(letters) and all(c.isupper() for c in letters)


def detect_emphasis(text: str) -> list[TokenSpan]:
    """Split *text* on whitespace runs and flag emphasized tokens.

    Spans are returned in order; the whitespace between them is not part
    of any span.
    """
    return [
        TokenSpan(start=m.start(), end=m.end(), emphasized=is_emphasized(m.group()))
        for m in _TOKEN_RE.finditer(text)
    ]


def reassemble(text: str, spans: list[TokenSpan]) -> str:
    """Rebuild *text* from its token spans and the original whitespace."""
    parts: list[str] = []
    cursor = 0
    for span in spans:
        parts.append(text[cursor:span.start])
        parts.append(span.text(text))
        cursor = span.end
    parts.append(text[cursor:])
    return "".join(parts)
