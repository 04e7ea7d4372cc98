"""Core types for the report document model.

Every layer shares these types. Derived records (sections, subsections,
extracted entities) are frozen and rebuilt on every parse. Owned records
(changes, versions, comments) live in their own modules because they carry
a lifecycle.

Type hierarchy:
  Ok[T] / Err[E]         : Strict algebraic Result type for identity lookups
  LookupFailure          : Typed reason an id lookup failed
  ParsedSection          : Raw (title, content, index) chunk from the parser
  Section                : Classified top-level section
  Subsection             : Classified block nested in a section body
  Accommodation          : Title + optional barrier reference
  FunctionalImpactEntry  : Numbered barrier / impact line
  DocumentCitation       : Cited document name (text or external fallback)
  ExternalDocument       : Caller-supplied uploaded document metadata
  TableBlock             : Markdown pipe table as rows of cells
  SectionDetail          : Section plus the entities extracted from it
  ReportDocument         : Ordered SectionDetail list for one parse
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

# ---------------------------------------------------------------------------
# Result ADT: strict Ok/Err for identity lookups
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Ok[T]:
    """Success case of Result[T, E].

    Usage::

        result = tracker.accept(change_id)
        match result:
            case Ok(value=change): print(change.status)
            case Err(error=e): print(e.reason)
    """
    value: T


@dataclass(frozen=True, slots=True)
class Err[E]:
    """Failure case of Result[T, E].

    Preserves why a lookup failed instead of collapsing to None.
    """
    error: E


type Result[T, E] = Ok[T] | Err[E]


@dataclass(frozen=True, slots=True)
class LookupFailure:
    """Typed failure for change/version/comment id lookups."""

    reason: str  # "not_found" | "not_pending"
    entity: str  # "change" | "version" | "comment"
    entity_id: str


# ---------------------------------------------------------------------------
# Derived document records
# ---------------------------------------------------------------------------

DEFAULT_CATEGORY = "general"
DEFAULT_DISPLAY_KEY = "target.gray"


@dataclass(frozen=True, slots=True)
class ParsedSection:
    """An unclassified section chunk straight from the section parser."""

    title: str
    content: str
    index: int


@dataclass(frozen=True, slots=True)
class Section:
    """A classified top-level section.

    ``index`` is the zero-based position in this parse. ``section_id`` is
    stable across re-parses as long as the title (and its occurrence
    number among same-titled sections) is unchanged.
    """

    title: str
    content: str
    category: str
    display_key: str
    index: int
    section_id: str = ""
    synthetic: bool = False  # presentation-only, never serialized


@dataclass(frozen=True, slots=True)
class Subsection:
    """A titled block nested under a parent section's body."""

    title: str
    content: str
    category: str
    display_key: str
    index: int
    parent_index: int
    label: str | None = None  # "3.1" when the heading carried a numbered label


@dataclass(frozen=True, slots=True)
class Accommodation:
    title: str
    barrier: str | None = None
    number: int | None = None


@dataclass(frozen=True, slots=True)
class FunctionalImpactEntry:
    number: int
    description: str
    evidence: str | None = None


type CitationSource = Literal["text", "external"]


@dataclass(frozen=True, slots=True)
class DocumentCitation:
    """A reviewed document, cited in the text or taken from the upload list."""

    name: str
    source: CitationSource = "text"
    type: str | None = None
    size: str | None = None
    upload_date: str | None = None
    status: str | None = None


@dataclass(frozen=True, slots=True)
class ExternalDocument:
    """Caller-supplied uploaded document metadata (``{name, type, size, uploadDate, status}``)."""

    name: str
    type: str = ""
    size: str = ""
    upload_date: str = ""
    status: str = ""


@dataclass(frozen=True, slots=True)
class TableBlock:
    """A markdown pipe table; first row is the header."""

    rows: tuple[tuple[str, ...], ...]

    @property
    def header(self) -> tuple[str, ...]:
        return self.rows[0] if self.rows else ()

    @property
    def width(self) -> int:
        return len(self.header)


@dataclass(frozen=True, slots=True)
class SubsectionDetail:
    subsection: Subsection
    accommodations: tuple[Accommodation, ...] = ()


@dataclass(frozen=True, slots=True)
class SectionDetail:
    """A section plus every entity its category's extractors produced.

    Extractors that do not apply to the category leave their field empty.
    """

    section: Section
    metadata: dict[str, str] = field(default_factory=dict)
    citations: tuple[DocumentCitation, ...] = ()
    functional_impacts: tuple[FunctionalImpactEntry, ...] = ()
    subsections: tuple[SubsectionDetail, ...] = ()
    tables: tuple[TableBlock, ...] = ()


@dataclass(frozen=True, slots=True)
class ReportDocument:
    """The typed, navigable view of one parse of canonical text."""

    profile: str
    details: tuple[SectionDetail, ...]

    @property
    def sections(self) -> list[Section]:
        return [d.section for d in self.details]

    def by_id(self, section_id: str) -> SectionDetail | None:
        for detail in self.details:
            if detail.section.section_id == section_id:
                return detail
        return None

    def by_category(self, category: str) -> list[SectionDetail]:
        return [d for d in self.details if d.section.category == category]
