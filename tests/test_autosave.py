"""Tests for report_model.autosave."""
from datetime import UTC, datetime

import pytest

from report_model.autosave import AutoSaveCoordinator
from report_model.changes import ChangeTracker


class FakeClock:
    def __init__(self) -> None:
        self.t = 0.0

    def __call__(self) -> float:
        return self.t


def _now() -> datetime:
    return datetime(2024, 4, 4, tzinfo=UTC)


def _coordinator(**kwargs: object) -> tuple[ChangeTracker, FakeClock, AutoSaveCoordinator]:
    tracker = ChangeTracker(now=_now)
    clock = FakeClock()
    coordinator = AutoSaveCoordinator(tracker, "base", delay=2.0, clock=clock, now=_now, **kwargs)  # type: ignore[arg-type]
    return tracker, clock, coordinator


class TestDebounce:
    def test_burst_commits_once(self) -> None:
        tracker, clock, auto = _coordinator()
        auto.notify("v1")
        clock.t = 1.0
        auto.notify("v2")
        clock.t = 2.5
        assert auto.poll() is None
        clock.t = 3.0
        change = auto.poll()
        assert change is not None
        assert change.old_content == "base"
        assert change.new_content == "v2"
        assert len(tracker) == 1
        assert auto.poll() is None
        assert not auto.has_unsaved_changes
        assert auto.last_saved_at == _now()

    def test_return_to_saved_value_commits_nothing(self) -> None:
        tracker, clock, auto = _coordinator()
        auto.notify("v1")
        clock.t = 1.0
        auto.notify("base")
        assert not auto.is_pending
        clock.t = 10.0
        assert auto.poll() is None
        assert len(tracker) == 0

    def test_single_deadline(self) -> None:
        _, clock, auto = _coordinator()
        auto.notify("v1")
        first = auto.deadline
        clock.t = 1.5
        auto.notify("v2")
        assert auto.deadline == 3.5
        assert first == 2.0

    def test_disabled(self) -> None:
        tracker, clock, auto = _coordinator(enabled=False)
        auto.notify("v1")
        assert not auto.is_pending
        clock.t = 100.0
        assert auto.poll() is None
        assert auto.has_unsaved_changes
        change = auto.flush()
        assert change is not None
        assert len(tracker) == 1

    def test_flush_without_changes(self) -> None:
        _, _, auto = _coordinator()
        assert auto.flush() is None


class TestSaveCallback:
    def test_callback_sees_text(self) -> None:
        saved: list[str] = []
        _, clock, auto = _coordinator(on_save=saved.append)
        auto.notify("v1")
        clock.t = 5.0
        auto.poll()
        assert saved == ["v1"]

    def test_failure_is_recorded_and_raised(self) -> None:
        def boom(text: str) -> None:
            raise RuntimeError("disk full")

        tracker, _, auto = _coordinator(on_save=boom)
        auto.notify("v1")
        with pytest.raises(RuntimeError):
            auto.flush()
        assert auto.save_error == "disk full"
        assert len(tracker) == 0
        assert auto.has_unsaved_changes

    def test_mark_saved(self) -> None:
        tracker, _, auto = _coordinator()
        auto.notify("v1")
        auto.mark_saved("v1")
        assert not auto.is_pending
        assert auto.saved_text == "v1"
        assert auto.flush() is None
        assert len(tracker) == 0
