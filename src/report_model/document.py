"""Assemble the typed document view from canonical text.

parse -> classify (meta titles dropped) -> re-index -> stable ids ->
per-category extractors. Two caller policies live here rather than in the
extractors: the external document list as citation fallback, and the
synthetic "Documents Reviewed" section for profiles that ask for it.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence

from report_model.classifier import classify_title
from report_model.extractors import (
    CITATION_HEADING,
    extract_accommodations,
    extract_citations,
    extract_functional_impacts,
    extract_metadata,
    extract_tables,
    split_subsections,
)
from report_model.profiles import ReportProfile
from report_model.report_types import (
    DocumentCitation,
    ExternalDocument,
    ReportDocument,
    Section,
    SectionDetail,
    SubsectionDetail,
)
from report_model.section_parser import assign_section_ids, parse_sections
from report_model.serializer import render_document_list, serialize_sections

log = logging.getLogger(__name__)


def external_citations(documents: Sequence[ExternalDocument]) -> list[DocumentCitation]:
    return [
        DocumentCitation(
            name=doc.name,
            source="external",
            type=doc.type or None,
            size=doc.size or None,
            upload_date=doc.upload_date or None,
            status=doc.status or None,
        )
        for doc in documents
    ]


def _detail(
    section: Section,
    extractors: tuple[str, ...],
    profile: ReportProfile,
    documents: Sequence[ExternalDocument],
) -> SectionDetail:
    body = section.content
    citations: list[DocumentCitation] = []
    if "citations" in extractors:
        citations = extract_citations(body, in_list=CITATION_HEADING in section.title.lower())
        if not citations and documents:
            citations = external_citations(documents)

    subsections: list[SubsectionDetail] = []
    if "subsections" in extractors:
        for sub in split_subsections(body, section.index, profile.subsection_classifier):
            subsections.append(SubsectionDetail(sub, tuple(extract_accommodations(sub.content))))

    return SectionDetail(
        section=section,
        metadata=extract_metadata(body) if "metadata" in extractors else {},
        citations=tuple(citations),
        functional_impacts=tuple(extract_functional_impacts(body)) if "functional_impacts" in extractors else (),
        subsections=tuple(subsections),
        tables=tuple(extract_tables(body)) if "tables" in extractors else (),
    )


def build_document(
    text: str | None,
    profile: ReportProfile,
    documents: Sequence[ExternalDocument] = (),
) -> ReportDocument:
    """Parse and classify ``text`` into a ReportDocument. Never raises on text input."""
    kept = []
    for parsed in parse_sections(text, profile.parser):
        result = classify_title(parsed.title, profile.classifier)
        if result is not None:
            kept.append((parsed, result))

    has_documents_section = any(r.category == profile.documents_category for _, r in kept)
    synthesize = profile.synthesize_documents_section and not has_documents_section and bool(documents)

    titles = [p.title for p, _ in kept]
    if synthesize:
        titles.append(profile.documents_title)
    ids = assign_section_ids(titles)

    details: list[SectionDetail] = []
    for index, (parsed, result) in enumerate(kept):
        section = Section(
            title=parsed.title,
            content=parsed.content,
            category=result.category,
            display_key=result.display_key,
            index=index,
            section_id=ids[index],
        )
        details.append(_detail(section, result.extractors, profile, documents))

    if synthesize:
        rule = profile.classifier.rule_for(profile.documents_category)
        section = Section(
            title=profile.documents_title,
            content=render_document_list(documents),
            category=profile.documents_category,
            display_key=rule.display_key if rule else profile.classifier.default_display_key,
            index=len(details),
            section_id=ids[-1],
            synthetic=True,
        )
        details.append(SectionDetail(section=section, citations=tuple(external_citations(documents))))
        log.debug("build_document: synthesized %r from %d documents", profile.documents_title, len(documents))

    return ReportDocument(profile=profile.name, details=tuple(details))


def serialize_document(document: ReportDocument, profile: ReportProfile) -> str:
    """Canonical text for a document under its profile's title and divider."""
    return serialize_sections(
        document.sections,
        title_line=profile.title_line,
        divider=profile.parser.divider,
    )
