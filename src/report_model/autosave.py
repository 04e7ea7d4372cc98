"""Debounced auto-save: turns bursts of edits into one committed Change.

Single-threaded and cooperative. There is at most one pending deadline;
every ``notify`` re-arms it, replacing the previous one. The caller drives
time by calling ``poll()`` from its event loop. When the deadline has
passed, one ``edit`` Change comparing the last-saved text to the current
text is recorded. If the text is back to the last-saved value, the
deadline is dropped and nothing is recorded.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime

from report_model.changes import Change, ChangeTracker, utc_now

log = logging.getLogger(__name__)

AUTOSAVE_COMMENT = "Auto-saved"


class AutoSaveCoordinator:
    def __init__(
        self,
        tracker: ChangeTracker,
        baseline_text: str = "",
        *,
        delay: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
        author: str = "Unknown",
        enabled: bool = True,
        on_save: Callable[[str], None] | None = None,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self._tracker = tracker
        self._saved_text = baseline_text
        self._current_text = baseline_text
        self._delay = delay
        self._clock = clock
        self._now = now
        self.author = author
        self.enabled = enabled
        self._on_save = on_save
        self._deadline: float | None = None
        self._last_saved_at: datetime | None = None
        self._save_error: str | None = None

    # -- state ----------------------------------------------------------

    @property
    def saved_text(self) -> str:
        return self._saved_text

    @property
    def has_unsaved_changes(self) -> bool:
        return self._current_text != self._saved_text

    @property
    def is_pending(self) -> bool:
        return self._deadline is not None

    @property
    def deadline(self) -> float | None:
        return self._deadline

    @property
    def last_saved_at(self) -> datetime | None:
        return self._last_saved_at

    @property
    def save_error(self) -> str | None:
        return self._save_error

    # -- events ---------------------------------------------------------

    def notify(self, text: str) -> None:
        """Record a content mutation and (re)arm the timer."""
        self._current_text = text
        if not self.enabled:
            return
        if text == self._saved_text:
            if self._deadline is not None:
                log.debug("autosave: content back to last save; timer cancelled")
            self._deadline = None
            return
        self._deadline = self._clock() + self._delay
        log.debug("autosave: timer armed for %.3f", self._deadline)

    def poll(self) -> Change | None:
        """Commit if the deadline has passed. Returns the recorded change, if any."""
        if self._deadline is None or self._clock() < self._deadline:
            return None
        self._deadline = None
        log.debug("autosave: timer fired")
        return self._commit()

    def flush(self) -> Change | None:
        """Manual save: cancel the timer and commit now."""
        self._deadline = None
        return self._commit()

    def cancel(self) -> None:
        self._deadline = None

    def mark_saved(self, text: str) -> None:
        """Adopt ``text`` as saved without recording a change."""
        self._saved_text = text
        self._current_text = text
        self._deadline = None
        self._last_saved_at = self._now()

    def _commit(self) -> Change | None:
        if self._current_text == self._saved_text:
            return None
        text = self._current_text
        if self._on_save is not None:
            try:
                self._on_save(text)
            except Exception as exc:
                self._save_error = str(exc)
                log.warning("autosave: save callback failed: %s", exc)
                raise
        change = self._tracker.record(
            "edit",
            self.author,
            old_content=self._saved_text,
            new_content=text,
            comment=AUTOSAVE_COMMENT,
        )
        self._saved_text = text
        self._last_saved_at = self._now()
        self._save_error = None
        return change
