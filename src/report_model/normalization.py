"""Deterministic text normalization for report parsing and edit buffers."""

from __future__ import annotations

import re


_ZERO_WIDTH_CHARS = frozenset({"\u200b", "\u200c", "\u200d", "\ufeff"})

_RUN_OF_MARKERS_RE = re.compile(r"\*{3,}")
_BOLD_SPAN_RE = re.compile(r"\*\*([^*\n]+?)\*\*")
_ITALIC_SPAN_RE = re.compile(r"\*([^*\n]+?)\*")


def clean_text(text: str | None) -> str:
    """Normalize line endings and invisible characters.

    Current deterministic transforms:
    1. Collapse CRLF and CR to LF.
    2. Convert non-breaking space to plain space.
    3. Remove zero-width characters.
    """
    raw = text or ""
    out: list[str] = []
    i = 0
    while i < len(raw):
        ch = raw[i]
        if ch == "\r":
            out.append("\n")
            if i + 1 < len(raw) and raw[i + 1] == "\n":
                i += 1
        elif ch == "\u00a0":
            out.append(" ")
        elif ch not in _ZERO_WIDTH_CHARS:
            out.append(ch)
        i += 1
    return "".join(out)


def _strip_once(text: str) -> str:
    text = _RUN_OF_MARKERS_RE.sub("", text)
    text = _BOLD_SPAN_RE.sub(r"\1", text)
    return _ITALIC_SPAN_RE.sub(r"\1", text)


def strip_emphasis(text: str | None) -> str:
    """Remove emphasis markup so an edit buffer holds plain text.

    Runs of three or more ``*`` are dropped, then ``**bold**`` and
    ``*italic*`` spans are unwrapped. Each pass only removes markers, so
    iterating to a fixed point terminates and makes the function idempotent.
    """
    current = text or ""
    while True:
        stripped = _strip_once(current)
        if stripped == current:
            return current
        current = stripped


def restore_emphasis(plain: str, original: str) -> str:
    """Re-apply markup from ``original`` to lines the user left untouched.

    A line of ``plain`` whose text equals the stripped form of a line in
    ``original`` gets that original line back verbatim. Edited and new lines
    stay plain. When two original lines strip to the same text, the first
    one wins.
    """
    markup_by_plain: dict[str, str] = {}
    for line in original.split("\n"):
        key = strip_emphasis(line)
        if key.strip() and key not in markup_by_plain:
            markup_by_plain[key] = line
    return "\n".join(markup_by_plain.get(line, line) for line in plain.split("\n"))
