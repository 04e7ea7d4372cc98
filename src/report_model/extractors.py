"""Category-specific second-pass extractors over a section body.

Each extractor is a pure function of the body text (plus optional rule
tables) built on the shared line tokenizer. All of them are total: any
input, including ``None`` or text that ignores the grammar entirely,
produces a possibly-empty result and never raises.

Extractors:
    extract_metadata            : ``**Label:** value`` fields -> dict
    extract_citations           : bullets under "Documents Reviewed"
    extract_functional_impacts  : numbered barrier / impact lines
    extract_accommodations      : bold title + optional italic barrier pairs
    split_subsections           : ``###`` / ``**3.1 Title**`` blocks
    extract_tables              : markdown pipe tables
"""

from __future__ import annotations

import re

from report_model.classifier import ClassifierTable, classify_title
from report_model.lexer import LineToken, is_separator_row, tokenize
from report_model.normalization import strip_emphasis
from report_model.report_types import (
    DEFAULT_CATEGORY,
    DEFAULT_DISPLAY_KEY,
    Accommodation,
    DocumentCitation,
    FunctionalImpactEntry,
    Subsection,
    TableBlock,
)

# Casefolded bold label -> field name.
METADATA_FIELDS: dict[str, str] = {
    "student name": "student_name",
    "grade": "grade",
    "unique id": "unique_id",
    "program/major": "program_major",
    "report author": "report_author",
    "date issued": "date_issued",
    "status": "status",
}

CITATION_HEADING = "documents reviewed"

_BULLET_PREFIX_RE = re.compile(r"^[-*+\u2022][ \t]+")
_EVIDENCE_RE = re.compile(r"\s*\(([^()]+)\)\s*\[([^\]]+)\]\s*$")
_OBSERVED_BARRIER_RE = re.compile(r"^observed barrier\s+(\d+)$", re.IGNORECASE)
_LEADING_BOLD_RE = re.compile(r"^\*\*(.+?)\*\*")
_HEADING_LABEL_RE = re.compile(r"^(\d+\.\d+)\.?[ \t]+(\S.*)$")

DEFAULT_SUBSECTION_LABEL_RE: re.Pattern[str] = re.compile(r"^(\d+\.\d+)\.?[ \t]+(\S.*)$")


def _clean(text: str) -> str:
    """Plain text with emphasis removed and stray edge markers trimmed."""
    return strip_emphasis(text).strip().strip("*").strip()


def _without_bullet(tok: LineToken) -> str:
    return _BULLET_PREFIX_RE.sub("", tok.raw.strip(), count=1)


def _is_bold_wrapped(tok: LineToken) -> bool:
    raw = tok.raw.strip()
    return raw.startswith("**") and raw.endswith("**") and len(raw) > 4


# ---------------------------------------------------------------------------
# Key/value metadata
# ---------------------------------------------------------------------------

def extract_metadata(
    body: str | None,
    fields: dict[str, str] | None = None,
) -> dict[str, str]:
    """Collect ``**Label:** value`` lines whose label is a known field.

    Unmatched lines are ignored and missing fields stay absent; no
    placeholder values are filled in. The first occurrence of a field wins.
    """
    field_map = METADATA_FIELDS if fields is None else fields
    out: dict[str, str] = {}
    for tok in tokenize(body):
        if tok.kind != "bold_label" or tok.label is None:
            continue
        key = field_map.get(tok.label.casefold())
        if key is None or key in out:
            continue
        value = _clean(tok.text)
        if value:
            out[key] = value
    return out


# ---------------------------------------------------------------------------
# Document citations
# ---------------------------------------------------------------------------

def _is_citation_heading(tok: LineToken) -> bool:
    if tok.kind not in ("heading", "bold_label", "bold_line", "text"):
        return False
    return CITATION_HEADING in strip_emphasis(tok.raw).lower()


def extract_citations(body: str | None, *, in_list: bool = False) -> list[DocumentCitation]:
    """Bullets following a "Documents Reviewed" sub-heading.

    Collection stops at the next heading, divider, or a bold-labelled field
    that does not mention documents. No heading means no citations, unless
    ``in_list`` says the body itself is the list (the section title was the
    heading).
    """
    out: list[DocumentCitation] = []
    collecting = in_list
    for tok in tokenize(body):
        if not collecting:
            collecting = _is_citation_heading(tok)
            continue
        if tok.kind == "bullet_item" or (tok.kind == "bold_label" and tok.bulleted):
            name = _clean(_without_bullet(tok))
            if name:
                out.append(DocumentCitation(name=name))
            continue
        if tok.kind in ("heading", "title", "divider"):
            break
        if tok.kind in ("bold_label", "bold_line") and "document" not in tok.raw.lower():
            break
    return out


# ---------------------------------------------------------------------------
# Functional impact / numbered barriers
# ---------------------------------------------------------------------------

def _split_evidence(description: str) -> tuple[str, str | None]:
    m = _EVIDENCE_RE.search(description)
    if not m or m.start() == 0:
        return description, None
    return description[:m.start()].rstrip(), f"{m.group(1).strip()} [{m.group(2).strip()}]"


def extract_functional_impacts(body: str | None) -> list[FunctionalImpactEntry]:
    """Numbered ``N. text`` lines (optionally bold-wrapped) in encounter order.

    ``**2.1. Title**`` uses the sub-number as the entry number. The legacy
    ``**Observed Barrier N:** text`` form is also recognized. A trailing
    ``(source) [reference]`` annotation is split off into ``evidence``.
    """
    out: list[FunctionalImpactEntry] = []
    for tok in tokenize(body):
        number: int | None = None
        text = ""
        if tok.kind == "numbered_item" and tok.number is not None:
            number = tok.sub_number if tok.sub_number is not None else tok.number
            text = tok.text
        elif tok.kind == "bold_label" and tok.label is not None:
            m = _OBSERVED_BARRIER_RE.match(tok.label.strip())
            if m:
                number = int(m.group(1))
                text = tok.text
        if number is None:
            continue
        description, evidence = _split_evidence(_clean(text))
        if description:
            out.append(FunctionalImpactEntry(number=number, description=description, evidence=evidence))
    return out


# ---------------------------------------------------------------------------
# Accommodations
# ---------------------------------------------------------------------------

def _accommodation_title(tok: LineToken) -> tuple[str, int | None] | None:
    if tok.kind == "bold_line":
        title = tok.text.rstrip(":").strip()
        return (title, None) if title else None
    if tok.kind == "bold_label" and not tok.bulleted and not tok.text and tok.label:
        return tok.label, None
    if tok.kind == "numbered_item":
        m = _LEADING_BOLD_RE.match(tok.text)
        raw_title = m.group(1) if m else tok.text
        title = _clean(raw_title).rstrip(":").strip()
        return (title, tok.number) if title else None
    return None


def _is_barrier_line(tok: LineToken) -> bool:
    if tok.kind == "italic_line":
        return True
    return tok.indent > 0 and tok.kind in ("text", "bullet_item", "bold_label")


def extract_accommodations(body: str | None) -> list[Accommodation]:
    """Pair bold title lines with an optional following barrier line.

    A barrier line is italic (``*Barrier: ...*``) or indented under the
    title. Blank lines between the two are allowed. A title with no barrier
    line yields ``barrier=None``.
    """
    out: list[Accommodation] = []
    pending: tuple[str, int | None] | None = None
    for tok in tokenize(body):
        if tok.kind == "blank":
            continue
        title = _accommodation_title(tok)
        if title is not None:
            if pending is not None:
                out.append(Accommodation(title=pending[0], barrier=None, number=pending[1]))
            pending = title
            continue
        if pending is None:
            continue
        barrier = _clean(_without_bullet(tok)) if _is_barrier_line(tok) else ""
        out.append(Accommodation(title=pending[0], barrier=barrier or None, number=pending[1]))
        pending = None
    if pending is not None:
        out.append(Accommodation(title=pending[0], barrier=None, number=pending[1]))
    return out


# ---------------------------------------------------------------------------
# Subsections
# ---------------------------------------------------------------------------

def _subsection_boundary(
    tok: LineToken,
    label_pattern: re.Pattern[str] | None,
) -> tuple[str, str | None] | None:
    """(title, label) when the token opens a subsection."""
    if tok.kind == "heading" and tok.level >= 3:
        m = _HEADING_LABEL_RE.match(tok.text.strip())
        if m:
            return _clean(m.group(2)), m.group(1)
        return _clean(tok.text), None
    if label_pattern is not None and _is_bold_wrapped(tok) and tok.kind in ("numbered_item", "bold_line"):
        m = label_pattern.match(strip_emphasis(tok.raw).strip())
        if m:
            return _clean(m.group(2)), m.group(1)
    return None


def split_subsections(
    body: str | None,
    parent_index: int = 0,
    table: ClassifierTable | None = None,
    label_pattern: re.Pattern[str] | None = DEFAULT_SUBSECTION_LABEL_RE,
) -> list[Subsection]:
    """Split a section body on level-3+ headings or bold numbered labels.

    Text ahead of the first boundary belongs to no subsection. Subsections
    whose title is a meta title in ``table`` are skipped.
    """
    blocks: list[tuple[str, str | None, list[LineToken]]] = []
    for tok in tokenize(body):
        boundary = _subsection_boundary(tok, label_pattern)
        if boundary is not None:
            blocks.append((boundary[0], boundary[1], []))
        elif blocks:
            blocks[-1][2].append(tok)

    out: list[Subsection] = []
    for title, label, toks in blocks:
        category, display_key = DEFAULT_CATEGORY, DEFAULT_DISPLAY_KEY
        if table is not None:
            result = classify_title(title, table)
            if result is None:
                continue
            category, display_key = result.category, result.display_key
        content = "\n".join(t.raw for t in toks).strip("\n").rstrip()
        out.append(Subsection(
            title=title,
            content=content,
            category=category,
            display_key=display_key,
            index=len(out),
            parent_index=parent_index,
            label=label,
        ))
    return out


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

def _row_cells(tok: LineToken) -> list[str]:
    cells = tok.raw.strip().split("|")
    if cells and not cells[0].strip():
        cells = cells[1:]
    if cells and not cells[-1].strip():
        cells = cells[:-1]
    return [_clean(c) for c in cells]


def extract_tables(body: str | None) -> list[TableBlock]:
    """Markdown pipe tables, separator rows dropped, rows padded to equal width."""
    blocks: list[list[list[str]]] = []
    in_table = False
    for tok in tokenize(body):
        if tok.kind != "table_row":
            in_table = False
            continue
        if not in_table:
            blocks.append([])
            in_table = True
        if is_separator_row(tok):
            continue
        cells = _row_cells(tok)
        if any(cells):
            blocks[-1].append(cells)

    out: list[TableBlock] = []
    for rows in blocks:
        if not rows:
            continue
        width = max(len(r) for r in rows)
        out.append(TableBlock(rows=tuple(tuple(r + [""] * (width - len(r))) for r in rows)))
    return out
