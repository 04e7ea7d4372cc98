"""Section title classification: ordered trigger table, first match wins.

A ``ClassifierTable`` holds ``CategoryRule`` rows. Each rule carries an
explicit ``priority``; rules are evaluated in ascending priority and the
first rule with a trigger contained in the title (case-insensitive) wins.
Titles matching nothing get the table's default category and neutral
display key. Titles listed as meta titles (cheat-sheets, TL;DR blocks)
are not classified at all: ``classify_title`` returns ``None`` and the
caller drops the section.

No file I/O, no document state: pure functions over a title string.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from report_model.report_types import DEFAULT_CATEGORY, DEFAULT_DISPLAY_KEY

log = logging.getLogger(__name__)

# Extractor names a rule may enable for its sections.
EXTRACTOR_NAMES: frozenset[str] = frozenset({
    "metadata",
    "citations",
    "functional_impacts",
    "subsections",
    "tables",
})


@dataclass(frozen=True, slots=True)
class CategoryRule:
    """One row of the classifier table."""

    category: str
    triggers: tuple[str, ...]
    display_key: str
    priority: int
    extractors: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.triggers:
            raise ValueError(f"rule {self.category!r} has no triggers")
        unknown = set(self.extractors) - EXTRACTOR_NAMES
        if unknown:
            raise ValueError(f"rule {self.category!r} names unknown extractors: {sorted(unknown)}")


@dataclass(frozen=True, slots=True)
class Classification:
    category: str
    display_key: str
    matched_trigger: str | None  # None when the default category applied
    extractors: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ClassifierTable:
    """Ordered rule table plus default and meta-skip policy."""

    rules: tuple[CategoryRule, ...]
    default_category: str = DEFAULT_CATEGORY
    default_display_key: str = DEFAULT_DISPLAY_KEY
    default_extractors: tuple[str, ...] = ()
    meta_titles: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        priorities = [r.priority for r in self.rules]
        if len(set(priorities)) != len(priorities):
            raise ValueError("classifier rule priorities must be unique")
        categories = [r.category for r in self.rules]
        if len(set(categories)) != len(categories):
            raise ValueError("classifier rule categories must be unique")

    def ordered(self) -> tuple[CategoryRule, ...]:
        """Rules in evaluation order (ascending priority)."""
        return tuple(sorted(self.rules, key=lambda r: r.priority))

    def rule_for(self, category: str) -> CategoryRule | None:
        for rule in self.rules:
            if rule.category == category:
                return rule
        return None


def _contains(title_lower: str, trigger: str) -> bool:
    """Substring containment, also tolerant of collapsed whitespace."""
    t = trigger.lower()
    if t in title_lower:
        return True
    return t.replace(" ", "") in title_lower.replace(" ", "")


def is_meta_title(title: str, table: ClassifierTable) -> bool:
    """True when the title names a meta block that is excluded outright."""
    lower = (title or "").lower()
    return any(_contains(lower, meta) for meta in table.meta_titles)


def classify_title(title: str, table: ClassifierTable) -> Classification | None:
    """Map a section title to its category and display key.

    Returns ``None`` for meta titles (hard skip). Otherwise always returns a
    classification; unmatched titles get the default category. The result
    depends only on the title and the table, never on position or siblings.
    """
    if is_meta_title(title, table):
        log.debug("classify_title: meta title skipped: %r", title)
        return None

    lower = (title or "").lower()
    for rule in table.ordered():
        for trigger in rule.triggers:
            if _contains(lower, trigger):
                return Classification(
                    category=rule.category,
                    display_key=rule.display_key,
                    matched_trigger=trigger,
                    extractors=rule.extractors,
                )

    log.debug("classify_title: no rule matched %r; using %s", title, table.default_category)
    return Classification(
        category=table.default_category,
        display_key=table.default_display_key,
        matched_trigger=None,
        extractors=table.default_extractors,
    )
