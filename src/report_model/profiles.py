"""Built-in report profiles.

A profile bundles the grammar knobs and rule tables for one report
surface: the title line to strip and re-emit, the section classifier,
the optional subsection classifier, and whether a presentation-only
"Documents Reviewed" section is synthesized from uploaded documents.
"""
from __future__ import annotations

from dataclasses import dataclass

from report_model.classifier import CategoryRule, ClassifierTable
from report_model.section_parser import ParserConfig


@dataclass(frozen=True, slots=True)
class ReportProfile:
    name: str
    parser: ParserConfig
    classifier: ClassifierTable
    subsection_classifier: ClassifierTable | None = None
    title_line: str | None = None   # emitted by the serializer when set
    synthesize_documents_section: bool = False
    documents_title: str = "Documents Reviewed"
    documents_category: str = "documents_reviewed"


UNIFIED = ReportProfile(
    name="unified",
    parser=ParserConfig(),
    classifier=ClassifierTable(
        rules=(
            CategoryRule("strengths", ("strength", "asset"), "star.green", 10, ("tables",)),
            CategoryRule("challenges", ("challenge", "barrier", "difficulty"), "alert-triangle.orange", 20, ("tables",)),
            CategoryRule("recommendations", ("recommendation", "support", "strategy"), "lightbulb.blue", 30, ("tables",)),
            CategoryRule("cognitive", ("cognitive", "academic", "learning"), "brain.purple", 40, ("tables",)),
            CategoryRule("social_emotional", ("social", "emotional", "behavioral"), "heart.pink", 50, ("tables",)),
            CategoryRule("summary", ("summary", "overview"), "file-text.indigo", 60, ("metadata", "tables")),
            CategoryRule("profile", ("student", "profile"), "user.teal", 70, ("metadata", "tables")),
        ),
        default_extractors=("tables",),
    ),
)

K12 = ReportProfile(
    name="k12",
    parser=ParserConfig(),
    classifier=ClassifierTable(
        rules=(
            CategoryRule("student_overview", ("student overview", "overview"), "user.blue", 10, ("metadata", "tables")),
            CategoryRule("key_support_strategies", ("key support", "support strateg"), "lightbulb.green", 20, ("tables",)),
            CategoryRule("strengths", ("strength",), "star.green", 30, ("tables",)),
            CategoryRule("challenges", ("challenge", "areas of need"), "alert-triangle.orange", 40, ("tables",)),
            CategoryRule("additional_notes", ("additional notes", "notes"), "file-text.gray", 50),
        ),
        default_extractors=("tables",),
        meta_titles=("tl;dr", "tldr", "teacher cheat-sheet", "teacher cheat sheet", "cheat-sheet"),
    ),
    title_line="# Student Support Report",
)

TUTORING = ReportProfile(
    name="tutoring",
    parser=ParserConfig(title_pattern=r"#[ \t]+Student Support Report.*"),
    classifier=ClassifierTable(
        rules=(
            CategoryRule("student_overview", ("student overview", "overview"), "user.blue", 10, ("metadata", "tables")),
            CategoryRule("learning_profile", ("learning profile",), "brain.purple", 20, ("tables",)),
            CategoryRule("strengths", ("strength",), "star.green", 30, ("tables",)),
            CategoryRule("challenges", ("challenge", "areas of need"), "alert-triangle.orange", 40, ("tables",)),
            # ranks ahead of tutoring_strategies, whose "strateg" trigger also matches
            CategoryRule("key_support_strategies", ("key support",), "key.amber", 45, ("tables",)),
            CategoryRule("tutoring_strategies", ("tutoring strateg", "strateg", "approach"), "lightbulb.blue", 50, ("tables",)),
            CategoryRule("support_recommendations", ("support recommendation", "recommendation"), "check-circle.teal", 60, ("tables",)),
            CategoryRule("documents_reviewed", ("documents reviewed", "document"), "folder.gray", 70, ("citations",)),
            CategoryRule("additional_notes", ("additional notes", "notes"), "file-text.gray", 80),
        ),
        default_extractors=("tables",),
    ),
    title_line="# Student Support Report \u2014 Tutor Orientation",
    synthesize_documents_section=True,
)

POST_SECONDARY = ReportProfile(
    name="post_secondary",
    parser=ParserConfig(drop_leading_subheading=False),
    classifier=ClassifierTable(
        rules=(
            CategoryRule("student_information", ("student information", "student info"), "user.blue", 10, ("metadata",)),
            CategoryRule("documents_reviewed", ("documents reviewed", "document"), "folder.gray", 20, ("citations",)),
            CategoryRule("functional_impact", ("functional impact", "barrier"), "alert-triangle.orange", 30, ("functional_impacts",)),
            CategoryRule("accommodations", ("accommodation",), "check-circle.green", 40, ("subsections",)),
            CategoryRule("implementation", ("implementation", "next steps"), "list-checks.indigo", 50, ("tables",)),
        ),
        default_extractors=("tables",),
    ),
    subsection_classifier=ClassifierTable(
        rules=(
            CategoryRule("non_accommodation_supports", ("non-accommodation", "referral"), "compass.gray", 5),
            CategoryRule("academic", ("academic",), "book.blue", 10),
            CategoryRule("instructional_program", ("instructional", "program"), "presentation.purple", 20),
            CategoryRule("auxiliary_aids", ("auxiliary", "aids"), "headphones.teal", 30),
        ),
    ),
)

PROFILES: dict[str, ReportProfile] = {
    p.name: p for p in (UNIFIED, K12, TUTORING, POST_SECONDARY)
}


def get_profile(name: str) -> ReportProfile:
    """Look up a built-in profile by name."""
    profile = PROFILES.get(name.strip().lower())
    if profile is None:
        raise ValueError(f"Unknown report profile {name!r}; expected one of {sorted(PROFILES)}")
    return profile
