"""Text normalizer applied to every document before chunking."""

from __future__ import annotations

import re

# C0 controls except \t and \n, DEL, C1 controls, BOM and zero-width marks.
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f\ufeff\u200b-\u200d\u2060]")
_INLINE_WS_RE = re.compile(r"[^\S\n]+")
_NEWLINE_PAD_RE = re.compile(r" ?\n ?")
_BLANK_RUN_RE = re.compile(r"\n{3,}")


def normalize(raw: str) -> str:
    """Clean extracted text while keeping paragraph breaks.

    - ``\\r\\n`` and bare ``\\r`` become ``\\n``.
    - NUL and other control characters are removed; form feeds and
      vertical tabs count as whitespace.
    - Runs of non-newline whitespace collapse to a single space, and
      spaces around newlines are dropped.
    - Three or more consecutive newlines collapse to exactly two.
    - Leading and trailing whitespace is trimmed.
    """
    if not raw:
        return ""
    text = raw.replace("\r\n", "\n").replace("\r", "\n")
    text = text.replace("\f", " ").replace("\v", " ")
    text = _CONTROL_RE.sub("", text)
    text = _INLINE_WS_RE.sub(" ", text)
    text = _NEWLINE_PAD_RE.sub("\n", text)
    text = _BLANK_RUN_RE.sub("\n\n", text)
    return text.strip()
