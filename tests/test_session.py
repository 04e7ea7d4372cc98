"""Tests for report_model.session."""
from datetime import UTC, datetime

import pytest

from report_model.changes import Change
from report_model.comments import Comment
from report_model.config import ReportConfig
from report_model.io_utils import dumps, loads
from report_model.report_types import Err, ExternalDocument, Ok
from report_model.session import (
    EditInProgressError,
    Editing,
    Idle,
    NotEditingError,
    ReportSession,
    UnknownSectionError,
)
from report_model.versions import Version

SAMPLE = "## Strengths\n**Curious** learner\n\n---\n\n## Challenges\nReading is slow"
EDITED = "## Strengths\n**Curious** learner\nLoves maps\n\n---\n\n## Challenges\nReading is slow"


class FakeClock:
    def __init__(self) -> None:
        self.t = 0.0

    def __call__(self) -> float:
        return self.t


class Recorder:
    def __init__(self) -> None:
        self.events: list[tuple[str, object]] = []

    def on_change(self, text: str, change: Change | None) -> None:
        self.events.append(("change", change.id if change else None))

    def on_save_version(self, version: Version) -> None:
        self.events.append(("version", version.number))

    def on_accept_change(self, change: Change) -> None:
        self.events.append(("accept", change.id))

    def on_reject_change(self, change: Change) -> None:
        self.events.append(("reject", change.id))

    def on_add_comment(self, comment: Comment) -> None:
        self.events.append(("comment", comment.id))


def _now() -> datetime:
    return datetime(2024, 5, 5, tzinfo=UTC)


def _session(text: str = SAMPLE, **kwargs: object) -> tuple[ReportSession, FakeClock, Recorder]:
    clock = FakeClock()
    recorder = Recorder()
    session = ReportSession(text, clock=clock, now=_now, listener=recorder, **kwargs)  # type: ignore[arg-type]
    return session, clock, recorder


def _ids(session: ReportSession) -> list[str]:
    return [s.section_id for s in session.document.sections]


def _edit(session: ReportSession, section_id: str, buffer: str, author: str = "Ana") -> Change:
    session.begin_edit(section_id)
    session.update_buffer(buffer)
    return session.commit_edit(author)


class TestSectionEditing:
    def test_commit_edit(self) -> None:
        session, _, recorder = _session()
        strengths = _ids(session)[0]
        assert session.begin_edit(strengths) == "Curious learner"
        assert isinstance(session.state, Editing)
        session.update_buffer("Curious learner\nLoves maps")
        change = session.commit_edit("Ana")

        assert change.type == "edit"
        assert change.status == "pending"
        assert change.section_index == 0
        assert change.section_id == strengths
        assert change.section_title == "Strengths"
        assert change.old_content == "**Curious** learner"
        assert change.new_content == "**Curious** learner\nLoves maps"
        assert session.text == EDITED
        assert session.document.sections[0].content == "**Curious** learner\nLoves maps"
        assert isinstance(session.state, Idle)
        assert session.pending_change_count == 1
        assert recorder.events == [("change", change.id)]
        assert not session.autosave.has_unsaved_changes

    def test_one_edit_at_a_time(self) -> None:
        session, _, _ = _session()
        first, second = _ids(session)
        session.begin_edit(first)
        with pytest.raises(EditInProgressError):
            session.begin_edit(second)
        with pytest.raises(EditInProgressError):
            session.undo()

    def test_buffer_ops_need_an_open_edit(self) -> None:
        session, _, _ = _session()
        with pytest.raises(NotEditingError):
            session.update_buffer("x")
        with pytest.raises(NotEditingError):
            session.commit_edit()
        with pytest.raises(NotEditingError):
            session.cancel_edit()

    def test_unknown_section(self) -> None:
        session, _, _ = _session()
        with pytest.raises(UnknownSectionError):
            session.begin_edit("missing")
        with pytest.raises(KeyError):
            session.add_comment("missing", "hi")

    def test_cancel_edit(self) -> None:
        session, clock, _ = _session()
        session.begin_edit(_ids(session)[0])
        session.update_buffer("scrap this")
        session.cancel_edit()
        assert isinstance(session.state, Idle)
        assert session.text == SAMPLE
        clock.t = 60.0
        assert session.poll_autosave() is None
        assert len(session.tracker) == 0

    def test_synthetic_section_not_editable(self) -> None:
        text = "# Student Support Report\n\n## Strengths\n- Kind"
        session, _, _ = _session(
            text,
            config=ReportConfig(profile="tutoring"),
            documents=[ExternalDocument("eval.pdf", "PDF")],
        )
        synthetic = session.document.sections[-1]
        assert synthetic.synthetic
        with pytest.raises(ValueError):
            session.begin_edit(synthetic.section_id)


class TestAdoptedContent:
    def test_dash_line_in_buffer_keeps_following_text(self) -> None:
        session, _, _ = _session()
        strengths, challenges = _ids(session)
        change = _edit(session, strengths, "intro\n---\noutro")
        content = session.section(strengths).content
        assert content == "intro\n\\---\noutro"
        assert change.new_content == content
        assert session.section(challenges).content == "Reading is slow"
        assert len(session.document.sections) == 2

    def test_change_matches_reparsed_content(self) -> None:
        session, _, _ = _session()
        strengths = _ids(session)[0]
        change = _edit(session, strengths, "### Aside\nbody")
        assert change.new_content == session.section(strengths).content == "body"

    def test_autosaved_draft_with_dash_line(self) -> None:
        session, clock, _ = _session()
        strengths = _ids(session)[0]
        session.begin_edit(strengths)
        session.update_buffer("intro\n---\noutro")
        clock.t = 5.0
        assert session.poll_autosave() is not None
        assert session.section(strengths).content == "intro\n\\---\noutro"
        assert len(session.document.sections) == 2


class TestUndoRedo:
    def test_undo_redo(self) -> None:
        session, _, recorder = _session()
        _edit(session, _ids(session)[0], "Curious learner\nLoves maps")
        assert session.undo() == SAMPLE
        assert session.text == SAMPLE
        assert session.document.sections[0].content == "**Curious** learner"
        assert session.redo() == EDITED
        assert session.redo() is None
        assert recorder.events[-2:] == [("change", None), ("change", None)]


class TestReview:
    def test_accept_and_reject(self) -> None:
        session, _, recorder = _session()
        a = _edit(session, _ids(session)[0], "one")
        b = _edit(session, _ids(session)[1], "two")
        assert isinstance(session.accept_change(a.id), Ok)
        assert isinstance(session.reject_change(b.id), Ok)
        assert isinstance(session.accept_change(b.id), Err)
        assert isinstance(session.accept_change("missing"), Err)
        assert ("accept", a.id) in recorder.events
        assert ("reject", b.id) in recorder.events
        assert recorder.events.count(("accept", b.id)) == 0
        assert session.pending_change_count == 0


class TestVersions:
    def test_save_and_restore(self) -> None:
        session, _, recorder = _session()
        strengths = _ids(session)[0]
        change = _edit(session, strengths, "Curious learner\nLoves maps")
        session.accept_change(change.id)
        version = session.save_version("first draft", "Ana")
        assert version.number == 1
        assert version.content == EDITED
        assert [c.id for c in version.changes] == [change.id]
        assert ("version", 1) in recorder.events

        _edit(session, strengths, "rewritten")
        assert session.text != EDITED

        result = session.restore_version(version.id, "Ben")
        assert isinstance(result, Ok)
        assert result.value.comment == "Restored version 1"
        assert result.value.old_content.startswith("## Strengths\nrewritten")
        assert session.text == EDITED
        assert session.undo() is not None
        assert session.text.startswith("## Strengths\nrewritten")

    def test_restore_unknown_version(self) -> None:
        session, _, _ = _session()
        before = len(session.tracker)
        assert isinstance(session.restore_version("missing"), Err)
        assert session.text == SAMPLE
        assert len(session.tracker) == before


class TestComments:
    def test_comment_thread(self) -> None:
        session, _, recorder = _session()
        challenges = _ids(session)[1]
        comment = session.add_comment(challenges, "Add evidence", "Ana")
        assert comment.section_index == 1
        assert comment.section_id == challenges
        assert session.unresolved_comment_count == 1
        assert ("comment", comment.id) in recorder.events

        assert isinstance(session.reply_to_comment(comment.id, "Done", "Ben"), Ok)
        assert isinstance(session.resolve_comment(comment.id), Ok)
        assert session.unresolved_comment_count == 0
        assert isinstance(session.unresolve_comment(comment.id), Ok)
        assert session.unresolved_comment_count == 1
        assert isinstance(session.resolve_comment("missing"), Err)


class TestAutosave:
    def test_debounced_draft_save(self) -> None:
        session, clock, _ = _session()
        strengths = _ids(session)[0]
        session.begin_edit(strengths)
        session.update_buffer("draft one")
        clock.t = 1.0
        session.update_buffer("draft two")
        clock.t = 2.0
        assert session.poll_autosave() is None
        clock.t = 3.0
        change = session.poll_autosave()
        assert change is not None
        draft = "## Strengths\ndraft two\n\n---\n\n## Challenges\nReading is slow"
        assert change.old_content == SAMPLE
        assert change.new_content == draft
        assert session.text == draft
        assert isinstance(session.state, Editing)
        assert len(session.tracker) == 1

        final = session.commit_edit()
        assert final.old_content == "**Curious** learner"
        assert final.new_content == "draft two"
        assert len(session.tracker) == 2

    def test_reverting_buffer_records_nothing(self) -> None:
        session, clock, _ = _session()
        session.begin_edit(_ids(session)[0])
        session.update_buffer("changed")
        session.update_buffer("Curious learner")
        clock.t = 10.0
        assert session.poll_autosave() is None
        assert len(session.tracker) == 0

    def test_manual_flush_when_disabled(self) -> None:
        session, clock, _ = _session(config=ReportConfig(autosave_enabled=False))
        session.begin_edit(_ids(session)[0])
        session.update_buffer("manual")
        clock.t = 10.0
        assert session.poll_autosave() is None
        change = session.flush_autosave()
        assert change is not None
        assert session.text.startswith("## Strengths\nmanual")


class TestPersistence:
    def test_dict_round_trip(self) -> None:
        session, _, _ = _session(documents=[ExternalDocument("eval.pdf", "PDF")])
        change = _edit(session, _ids(session)[0], "Curious learner\nLoves maps")
        session.accept_change(change.id)
        session.save_version("v1")
        session.add_comment(_ids(session)[1], "Check this")

        restored = ReportSession.from_dict(loads(dumps(session.to_dict())), now=_now)
        assert restored.text == session.text
        assert restored.tracker.changes == session.tracker.changes
        assert restored.versions.versions == session.versions.versions
        assert restored.comments.comments == session.comments.comments
        assert restored.documents == session.documents
        assert restored.config == session.config
        assert _ids(restored) == _ids(session)

    def test_from_dict_keeps_save_callback(self) -> None:
        session, _, _ = _session()
        saved: list[str] = []
        restored = ReportSession.from_dict(session.to_dict(), now=_now, on_save=saved.append)
        restored.begin_edit(_ids(restored)[0])
        restored.update_buffer("changed")
        assert restored.flush_autosave() is not None
        assert saved == [restored.text]
