"""Section parser for generated assessment reports.

Splits raw report text into ordered top-level sections:

    1. Drop the leading document title line when it matches the profile's
       title pattern.
    2. Split on divider lines: dash runs at least as long as the configured
       divider (``---`` by default). When the text has no dividers but
       does have level-2 headings, split immediately before each ``## `` line.
    3. For each chunk, drop residual divider fragments, take the ``## ``
       heading as the title and everything after it as the content. A stray
       level-3+ heading right under the title is discarded when configured.

Empty chunks and chunks that do not open with a level-2 heading are
dropped and do not consume an index. Parsing is a pure function of the
input text and the config: no I/O, never raises.
"""
from __future__ import annotations

import hashlib
import logging
import re
from dataclasses import dataclass

from report_model.lexer import LineToken, tokenize
from report_model.report_types import ParsedSection

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ParserConfig:
    """Grammar knobs for one report surface."""

    title_pattern: str = r"#[ \t]+.*"   # full-match against the stripped first line
    divider: str = "---"
    drop_leading_subheading: bool = True

    def __post_init__(self) -> None:
        if len(self.divider) < 3 or set(self.divider) != {"-"}:
            raise ValueError(f"divider must be three or more '-' characters, got {self.divider!r}")
        re.compile(self.title_pattern)

    def is_divider(self, tok: LineToken) -> bool:
        """A dash run at least as long as the configured divider splits sections."""
        return tok.kind == "divider" and len(tok.text) >= len(self.divider)


DEFAULT_PARSER_CONFIG = ParserConfig()

_RESIDUAL_DASHES_RE = re.compile(r"^-+\s*")


# ---------------------------------------------------------------------------
# Chunking
# ---------------------------------------------------------------------------

def _strip_title(tokens: list[LineToken], title_pattern: str) -> list[LineToken]:
    """Drop the leading document title line (and blank lines before it)."""
    pattern = re.compile(title_pattern)
    for pos, tok in enumerate(tokens):
        if tok.kind == "blank":
            continue
        if pattern.fullmatch(tok.raw.strip()):
            return tokens[pos + 1:]
        return tokens
    return tokens


def _split_on_dividers(tokens: list[LineToken], config: ParserConfig) -> list[list[LineToken]]:
    chunks: list[list[LineToken]] = [[]]
    for tok in tokens:
        if config.is_divider(tok):
            chunks.append([])
        else:
            chunks[-1].append(tok)
    return chunks


def _split_on_headings(tokens: list[LineToken]) -> list[list[LineToken]]:
    chunks: list[list[LineToken]] = [[]]
    for tok in tokens:
        if tok.kind == "heading" and tok.level == 2 and chunks[-1]:
            chunks.append([])
        chunks[-1].append(tok)
    return chunks


def _trim_blank(tokens: list[LineToken]) -> list[LineToken]:
    start = 0
    end = len(tokens)
    while start < end and tokens[start].kind == "blank":
        start += 1
    while end > start and tokens[end - 1].kind == "blank":
        end -= 1
    return tokens[start:end]


def _heading_text(tok: LineToken) -> str | None:
    """Title of a level-2 heading line, tolerating leading dash residue."""
    if tok.kind == "heading" and tok.level == 2:
        return tok.text.strip()
    m = _RESIDUAL_DASHES_RE.match(tok.raw.strip())
    if m:
        rest = tok.raw.strip()[m.end():]
        heading = re.match(r"^##[ \t]+(\S.*?)[ \t]*$", rest)
        if heading:
            return heading.group(1)
    return None


def _chunk_to_section(
    chunk: list[LineToken],
    config: ParserConfig,
) -> tuple[str, str] | None:
    body = _trim_blank(chunk)
    # Residual divider fragments ("--", "-") ahead of the heading
    while body and set(body[0].raw.strip()) == {"-"}:
        body = _trim_blank(body[1:])
    if not body:
        return None

    title = _heading_text(body[0])
    if title is None:
        return None

    rest = _trim_blank(body[1:])
    if (
        config.drop_leading_subheading
        and rest
        and rest[0].kind == "heading"
        and rest[0].level >= 3
    ):
        rest = _trim_blank(rest[1:])
    content = "\n".join(tok.raw for tok in rest).rstrip()
    return title, content


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_sections(
    text: str | None,
    config: ParserConfig = DEFAULT_PARSER_CONFIG,
) -> list[ParsedSection]:
    """Parse report text into ordered, zero-indexed sections.

    Returns ``[]`` for empty text or text with neither dividers nor level-2
    headings. A zero-section result is a valid state, not an error.
    """
    tokens = tokenize(text)
    if not tokens:
        return []
    tokens = _strip_title(tokens, config.title_pattern)

    if any(config.is_divider(tok) for tok in tokens):
        chunks = _split_on_dividers(tokens, config)
        strategy = "divider"
    elif any(tok.kind == "heading" and tok.level == 2 for tok in tokens):
        chunks = _split_on_headings(tokens)
        strategy = "heading"
    else:
        log.debug("parse_sections: no dividers or level-2 headings; 0 sections")
        return []

    sections: list[ParsedSection] = []
    for chunk in chunks:
        parsed = _chunk_to_section(chunk, config)
        if parsed is None:
            continue
        title, content = parsed
        sections.append(ParsedSection(title=title, content=content, index=len(sections)))

    log.debug(
        "parse_sections: %d chunks via %s split -> %d sections",
        len(chunks), strategy, len(sections),
    )
    return sections


def section_key(title: str, occurrence: int) -> str:
    """Stable section id: SHA-256 of casefolded title + occurrence (16 hex chars)."""
    payload = f"{' '.join(title.casefold().split())}#{occurrence}"
    return hashlib.sha256(payload.encode()).hexdigest()[:16]


def assign_section_ids(titles: list[str]) -> list[str]:
    """Ids for titles in document order; repeated titles are told apart by occurrence."""
    seen: dict[str, int] = {}
    ids: list[str] = []
    for title in titles:
        norm = " ".join(title.casefold().split())
        occurrence = seen.get(norm, 0)
        seen[norm] = occurrence + 1
        ids.append(section_key(title, occurrence))
    return ids
