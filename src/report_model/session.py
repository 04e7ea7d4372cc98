"""Editing session: one document, one writer, at most one open edit.

``ReportSession`` owns the canonical text and every owned record (changes,
versions, comments) plus the undo/redo and autosave coordinators. The
document view is rebuilt from canonical text after every adopted edit.

Edit state is an explicit tagged value, ``Idle`` or ``Editing``. Opening a
second edit while one is open raises ``EditInProgressError``.

Text flow for a section edit::

    begin_edit(id)      buffer = strip_emphasis(section content)
    update_buffer(txt)  autosave sees the prospective document text
    commit_edit()       restore_emphasis -> serialize -> history -> Change

When the autosave timer fires during an edit, the draft becomes canonical
text (it was saved) while the edit stays open. ``cancel_edit`` discards
only what was not yet saved.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass, replace
from datetime import datetime
from typing import Any, Protocol

from report_model.autosave import AutoSaveCoordinator
from report_model.changes import Change, ChangeTracker, change_from_dict, change_to_dict, utc_now
from report_model.comments import Comment, CommentStore, comment_from_dict, comment_to_dict
from report_model.config import ReportConfig, config_from_dict, config_to_dict
from report_model.document import build_document, serialize_document
from report_model.history import UndoRedoCoordinator
from report_model.normalization import restore_emphasis, strip_emphasis
from report_model.report_types import (
    Err,
    ExternalDocument,
    LookupFailure,
    ReportDocument,
    Result,
    Section,
)
from report_model.serializer import serialize_sections
from report_model.versions import Version, VersionManager, version_from_dict, version_to_dict

log = logging.getLogger(__name__)


class EditInProgressError(RuntimeError):
    """Raised when an operation needs the session idle but an edit is open."""


class NotEditingError(RuntimeError):
    """Raised when a buffer operation is called with no open edit."""


class UnknownSectionError(KeyError):
    """Raised when a section id is not in the current document."""


@dataclass(frozen=True, slots=True)
class Idle:
    pass


@dataclass(frozen=True, slots=True)
class Editing:
    section_id: str
    original: str  # section content (with markup) when the edit opened
    buffer: str    # plain text being edited


type EditState = Idle | Editing


class SessionListener(Protocol):
    """Seam to the external store. ``change`` is None for undo/redo."""

    def on_change(self, text: str, change: Change | None) -> None: ...
    def on_save_version(self, version: Version) -> None: ...
    def on_accept_change(self, change: Change) -> None: ...
    def on_reject_change(self, change: Change) -> None: ...
    def on_add_comment(self, comment: Comment) -> None: ...


class ReportSession:
    def __init__(
        self,
        text: str = "",
        *,
        config: ReportConfig | None = None,
        documents: Sequence[ExternalDocument] = (),
        listener: SessionListener | None = None,
        changes: Sequence[Change] = (),
        versions: Sequence[Version] = (),
        comments: Sequence[Comment] = (),
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = utc_now,
        on_save: Callable[[str], None] | None = None,
    ) -> None:
        self.config = config or ReportConfig()
        self.profile = self.config.resolve_profile()
        self.documents = tuple(documents)
        self._listener = listener
        self.tracker = ChangeTracker(changes, now=now)
        self.versions = VersionManager(self.tracker, versions, now=now)
        self.comments = CommentStore(comments, now=now)
        self.history = UndoRedoCoordinator(text, self.config.history_limit)
        self.autosave = AutoSaveCoordinator(
            self.tracker,
            text,
            delay=self.config.autosave_delay_seconds,
            clock=clock,
            author=self.config.default_author,
            enabled=self.config.autosave_enabled,
            on_save=on_save,
            now=now,
        )
        self._state: EditState = Idle()
        self._document = build_document(text, self.profile, self.documents)

    # -- views ----------------------------------------------------------

    @property
    def text(self) -> str:
        return self.history.current

    @property
    def document(self) -> ReportDocument:
        return self._document

    @property
    def state(self) -> EditState:
        return self._state

    @property
    def pending_change_count(self) -> int:
        return len(self.tracker.pending())

    @property
    def unresolved_comment_count(self) -> int:
        return self.comments.unresolved_count()

    def section(self, section_id: str) -> Section:
        detail = self._document.by_id(section_id)
        if detail is None:
            raise UnknownSectionError(section_id)
        return detail.section

    # -- internals ------------------------------------------------------

    def _author(self, author: str | None) -> str:
        return author or self.config.default_author

    def _adopt(self, text: str) -> None:
        """Make ``text`` canonical (with a history entry) and rebuild the view."""
        if text != self.text:
            self.history.commit_edit(text)
        self._document = build_document(text, self.profile, self.documents)

    def _render_with(self, section_id: str, content: str) -> str:
        sections = [
            replace(s, content=content) if s.section_id == section_id else s
            for s in self._document.sections
        ]
        return serialize_sections(
            sections,
            title_line=self.profile.title_line,
            divider=self.profile.parser.divider,
        )

    def _require_idle(self, operation: str) -> None:
        if isinstance(self._state, Editing):
            raise EditInProgressError(
                f"cannot {operation} while section {self._state.section_id} is being edited"
            )

    def _editing(self) -> Editing:
        if not isinstance(self._state, Editing):
            raise NotEditingError("no section is being edited")
        return self._state

    def _emit_change(self, text: str, change: Change | None) -> None:
        if self._listener is not None:
            self._listener.on_change(text, change)

    # -- section editing ------------------------------------------------

    def begin_edit(self, section_id: str) -> str:
        """Open ``section_id`` for editing. Returns the plain-text buffer."""
        self._require_idle("begin a new edit")
        section = self.section(section_id)
        if section.synthetic:
            raise ValueError(f"section {section.title!r} is generated and cannot be edited")
        buffer = strip_emphasis(section.content)
        self._state = Editing(section_id=section_id, original=section.content, buffer=buffer)
        return buffer

    def update_buffer(self, text: str) -> None:
        st = self._editing()
        self._state = replace(st, buffer=text)
        self.autosave.notify(self._render_with(st.section_id, restore_emphasis(text, st.original)))

    def cancel_edit(self) -> None:
        """Discard the buffer. Text already auto-saved stays canonical."""
        self._editing()
        self._state = Idle()
        self.autosave.notify(self.text)

    def commit_edit(self, author: str | None = None) -> Change:
        """Apply the buffer to its section and record one pending edit change.

        The change carries the section content as re-parsed from the new
        canonical text, so it always matches what the document holds.
        """
        st = self._editing()
        section = self.section(st.section_id)
        new_text = self._render_with(st.section_id, restore_emphasis(st.buffer, st.original))
        self._adopt(new_text)
        adopted = self._document.by_id(st.section_id)
        change = self.tracker.record(
            "edit",
            self._author(author),
            section_index=section.index,
            section_id=section.section_id,
            section_title=section.title,
            old_content=st.original,
            new_content=adopted.section.content if adopted is not None else "",
        )
        self.autosave.mark_saved(new_text)
        self._state = Idle()
        self._emit_change(new_text, change)
        return change

    # -- change review --------------------------------------------------

    def accept_change(self, change_id: str) -> Result[Change, LookupFailure]:
        result = self.tracker.accept(change_id)
        if self._listener is not None and not isinstance(result, Err):
            self._listener.on_accept_change(result.value)
        return result

    def reject_change(self, change_id: str) -> Result[Change, LookupFailure]:
        result = self.tracker.reject(change_id)
        if self._listener is not None and not isinstance(result, Err):
            self._listener.on_reject_change(result.value)
        return result

    # -- versions -------------------------------------------------------

    def save_version(self, description: str, author: str | None = None) -> Version:
        version = self.versions.save_version(self.text, description, self._author(author))
        if self._listener is not None:
            self._listener.on_save_version(version)
        return version

    def restore_version(self, version_id: str, author: str | None = None) -> Result[Change, LookupFailure]:
        self._require_idle("restore a version")
        result = self.versions.restore(version_id, self.text, self._author(author))
        if isinstance(result, Err):
            return result
        text = result.value.new_content or ""
        self._adopt(text)
        self.autosave.mark_saved(text)
        self._emit_change(text, result.value)
        return result

    # -- comments -------------------------------------------------------

    def add_comment(self, section_id: str, content: str, author: str | None = None) -> Comment:
        section = self.section(section_id)
        comment = self.comments.add(section.index, content, self._author(author), section_id=section_id)
        if self._listener is not None:
            self._listener.on_add_comment(comment)
        return comment

    def reply_to_comment(self, comment_id: str, content: str, author: str | None = None) -> Result[Comment, LookupFailure]:
        return self.comments.reply(comment_id, content, self._author(author))

    def resolve_comment(self, comment_id: str) -> Result[Comment, LookupFailure]:
        return self.comments.resolve(comment_id)

    def unresolve_comment(self, comment_id: str) -> Result[Comment, LookupFailure]:
        return self.comments.unresolve(comment_id)

    # -- undo / redo ----------------------------------------------------

    def _jump(self, text: str | None) -> str | None:
        if text is None:
            return None
        self._document = build_document(text, self.profile, self.documents)
        self.autosave.mark_saved(text)
        self._emit_change(text, None)
        return text

    def undo(self) -> str | None:
        """Revert the most recent committed edit. ``None`` when there is none."""
        self._require_idle("undo")
        return self._jump(self.history.undo())

    def redo(self) -> str | None:
        self._require_idle("redo")
        return self._jump(self.history.redo())

    # -- autosave -------------------------------------------------------

    def _after_autosave(self, change: Change | None) -> Change | None:
        if change is None:
            return None
        text = change.new_content or ""
        self._adopt(text)
        self._emit_change(text, change)
        return change

    def poll_autosave(self) -> Change | None:
        return self._after_autosave(self.autosave.poll())

    def flush_autosave(self) -> Change | None:
        return self._after_autosave(self.autosave.flush())

    # -- persistence seam -----------------------------------------------

    def canonical_text(self) -> str:
        """The current document re-serialized (synthetic sections excluded)."""
        return serialize_document(self._document, self.profile)

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "config": config_to_dict(self.config),
            "documents": [asdict(d) for d in self.documents],
            "changes": [change_to_dict(c) for c in self.tracker.changes],
            "versions": [version_to_dict(v) for v in self.versions.versions],
            "comments": [comment_to_dict(c) for c in self.comments.comments],
        }

    @classmethod
    def from_dict(
        cls,
        d: dict[str, Any],
        *,
        listener: SessionListener | None = None,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = utc_now,
        on_save: Callable[[str], None] | None = None,
    ) -> ReportSession:
        """Rebuild a session from ``to_dict`` output. History starts empty."""
        return cls(
            d.get("text") or "",
            config=config_from_dict(d.get("config") or {}),
            documents=[ExternalDocument(**doc) for doc in d.get("documents") or ()],
            listener=listener,
            changes=[change_from_dict(c) for c in d.get("changes") or ()],
            versions=[version_from_dict(v) for v in d.get("versions") or ()],
            comments=[comment_from_dict(c) for c in d.get("comments") or ()],
            clock=clock,
            now=now,
            on_save=on_save,
        )
