"""Line tokenizer shared by the section parser and every entity extractor.

One token per input line. Classification is first-match over a fixed
order, so a line always gets exactly one kind:

    divider -> heading/title -> table_row -> bold_label -> numbered_item
    -> bold_line -> italic_line -> bullet_item -> blank -> text
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

from report_model.normalization import clean_text


type TokenKind = Literal[
    "title",
    "heading",
    "divider",
    "bold_label",
    "bold_line",
    "italic_line",
    "numbered_item",
    "bullet_item",
    "table_row",
    "blank",
    "text",
]


@dataclass(frozen=True, slots=True)
class LineToken:
    """One classified line of report text."""

    kind: TokenKind
    line_index: int
    raw: str
    text: str           # payload: heading text, item text, label value, ...
    indent: int = 0
    level: int = 0      # heading level (1 for title)
    number: int | None = None
    sub_number: int | None = None  # "2.1." -> number=2, sub_number=1
    label: str | None = None       # bold_label only
    bulleted: bool = False         # bold_label written behind a bullet marker


_DIVIDER_RE = re.compile(r"^[ \t]*-{3,}[ \t]*$")
_HEADING_RE = re.compile(r"^(#{1,6})[ \t]+(\S.*?)[ \t]*$")
_TABLE_ROW_RE = re.compile(r"^[ \t]*\|.*\|[ \t]*$")
# "**Label:** value", "**Label**: value", optionally behind a bullet marker
_BOLD_LABEL_RE = re.compile(
    r"^[ \t]*(?P<bullet>[-*+][ \t]+)?\*\*(?P<label>[^*\n]+?)(?::\*\*|\*\*:)[ \t]*(?P<value>.*?)[ \t]*$",
)
# "1. text", "**1.** text", "**2.1. Title**", "3.1 Title"
_NUMBERED_RE = re.compile(
    r"^(?P<indent>[ \t]*)(?:\*\*)?(?P<num>\d{1,3})\.(?:(?P<sub>\d{1,3})\.?)?(?:\*\*)?[ \t]+(?P<text>\S.*?)[ \t]*$",
)
_BOLD_LINE_RE = re.compile(r"^[ \t]*\*\*(?P<text>[^*\n]+?)\*\*[ \t]*:?[ \t]*$")
_ITALIC_LINE_RE = re.compile(
    r"^[ \t]*(?:\*(?P<star>[^*\s][^*\n]*?)\*|_(?P<under>[^_\s][^_\n]*?)_)[ \t]*$",
)
_BULLET_RE = re.compile(r"^[ \t]*(?:[-*+\u2022])[ \t]+(?P<text>\S.*?)[ \t]*$")
_SEPARATOR_ROW_RE = re.compile(r"^\s*\|?\s*:?-+:?\s*(?:\|\s*:?-+:?\s*)*\|?\s*$")


def _indent_of(line: str) -> int:
    return len(line) - len(line.lstrip(" \t"))


def classify_line(line: str, line_index: int = 0) -> LineToken:
    """Classify a single line. Never raises."""
    indent = _indent_of(line)

    if not line.strip():
        return LineToken("blank", line_index, line, "", indent)

    if _DIVIDER_RE.match(line):
        return LineToken("divider", line_index, line, line.strip(), indent)

    m = _HEADING_RE.match(line)
    if m:
        level = len(m.group(1))
        kind: TokenKind = "title" if level == 1 else "heading"
        return LineToken(kind, line_index, line, m.group(2), indent, level=level)

    if _TABLE_ROW_RE.match(line):
        return LineToken("table_row", line_index, line, line.strip(), indent)

    m = _BOLD_LABEL_RE.match(line)
    if m:
        return LineToken(
            "bold_label", line_index, line, m.group("value"), indent,
            label=m.group("label").strip(),
            bulleted=m.group("bullet") is not None,
        )

    m = _NUMBERED_RE.match(line)
    if m:
        sub = m.group("sub")
        return LineToken(
            "numbered_item", line_index, line, m.group("text"), indent,
            number=int(m.group("num")),
            sub_number=int(sub) if sub else None,
        )

    m = _BOLD_LINE_RE.match(line)
    if m:
        return LineToken("bold_line", line_index, line, m.group("text").strip(), indent)

    m = _ITALIC_LINE_RE.match(line)
    if m:
        body = m.group("star") if m.group("star") is not None else m.group("under")
        return LineToken("italic_line", line_index, line, body.strip(), indent)

    m = _BULLET_RE.match(line)
    if m:
        return LineToken("bullet_item", line_index, line, m.group("text"), indent)

    return LineToken("text", line_index, line, line.strip(), indent)


def tokenize(text: str | None) -> list[LineToken]:
    """Emit one token per line of cleaned text. Empty input yields ``[]``."""
    cleaned = clean_text(text)
    if not cleaned:
        return []
    return [classify_line(line, idx) for idx, line in enumerate(cleaned.split("\n"))]


def is_separator_row(token: LineToken) -> bool:
    """True for a table header separator like ``|---|:--:|``."""
    return token.kind == "table_row" and bool(_SEPARATOR_ROW_RE.match(token.raw))
