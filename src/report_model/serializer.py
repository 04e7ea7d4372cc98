"""Canonical text rendering: the inverse of the section parser.

``serialize_sections`` re-applies the ``## `` heading marker to each title
and separates sections with the divider, in section order. Synthetic
(presentation-only) sections are skipped so a re-parse never brings them
back as authored content.

Round-trip law: for sections produced by ``parse_sections``,
``parse_sections(serialize_sections(sections))`` gives back the same
titles and contents.
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from report_model.report_types import ExternalDocument, ParsedSection, Section

_LEVEL2_LINE_RE = re.compile(r"^##[ \t]+\S", re.MULTILINE)
_TITLE_CELL_RE = re.compile(r"^[A-Z]")
_DASH_RUN_RE = re.compile(r"^([ \t]*)(-{3,})([ \t]*)$")

NO_DOCUMENTS_TEXT = "*No documents were uploaded for this assessment.*"


def escape_dividers(content: str, divider: str = "---") -> str:
    """Backslash-escape content lines a re-parse would split on as a divider."""
    lines = content.split("\n")
    for i, line in enumerate(lines):
        m = _DASH_RUN_RE.match(line)
        if m and len(m.group(2)) >= len(divider):
            lines[i] = f"{m.group(1)}\\{m.group(2)}{m.group(3)}"
    return "\n".join(lines)


def _render_section(section: Section | ParsedSection, divider: str) -> str:
    content = escape_dividers(section.content.strip("\n").rstrip(), divider)
    if not content:
        return f"## {section.title}"
    return f"## {section.title}\n{content}"


def serialize_sections(
    sections: Sequence[Section | ParsedSection],
    *,
    title_line: str | None = None,
    divider: str = "---",
) -> str:
    """Render sections as canonical text.

    Zero sections give ``""``, or just the title line when one is set.
    """
    authored = [s for s in sections if not getattr(s, "synthetic", False)]
    parts = [_render_section(s, divider) for s in authored]
    body = f"\n\n{divider}\n\n".join(parts)

    # A lone section whose content carries "## " lines came from a divider
    # split; keep a divider so the re-parse does not fall back to headings.
    if len(authored) == 1 and _LEVEL2_LINE_RE.search(authored[0].content):
        body = f"{body}\n\n{divider}"

    if title_line:
        return f"{title_line}\n\n{body}" if body else title_line
    return body


def render_table(rows: Iterable[Sequence[str]]) -> str:
    """Markdown pipe table; the first row is the header.

    Body-row first cells that look like titles (capitalized, longer than two
    characters, not already bold) are bold-wrapped.
    """
    lines: list[str] = []
    for idx, row in enumerate(rows):
        cells = list(row)
        if idx > 0 and cells:
            first = cells[0].strip()
            if len(first) > 2 and "**" not in first and _TITLE_CELL_RE.match(first):
                cells[0] = f"**{first}**"
        lines.append("| " + " | ".join(cells) + " |")
        if idx == 0:
            lines.append("|" + "|".join("---" for _ in cells) + "|")
    return "\n".join(lines)


def render_document_list(documents: Sequence[ExternalDocument]) -> str:
    """Content for a synthetic "Documents Reviewed" section."""
    if not documents:
        return NO_DOCUMENTS_TEXT
    entries: list[str] = []
    for doc in documents:
        head = f"- **{doc.name}**" + (f" ({doc.type})" if doc.type else "")
        details = " - ".join(
            part for part in (doc.size, f"Uploaded {doc.upload_date}" if doc.upload_date else "") if part
        )
        entries.append(f"{head}\n  {details}" if details else head)
    return "\n".join(entries)
