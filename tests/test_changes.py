"""Tests for report_model.changes."""
import itertools
from collections.abc import Callable
from datetime import UTC, datetime

import pytest

from report_model.changes import Change, ChangeTracker, change_from_dict, change_to_dict
from report_model.report_types import Err, LookupFailure, Ok


def _fixed_now() -> datetime:
    return datetime(2024, 1, 1, tzinfo=UTC)


def _ids(prefix: str) -> Callable[[], str]:
    counter = itertools.count(1)
    return lambda: f"{prefix}-{next(counter)}"


def _tracker() -> ChangeTracker:
    return ChangeTracker(now=_fixed_now, new_id=_ids("change"))


class TestRecord:
    def test_edit_starts_pending(self) -> None:
        tracker = _tracker()
        change = tracker.record(
            "edit", "Ana",
            section_index=0, section_id="abc", section_title="Strengths",
            old_content="old", new_content="new",
        )
        assert change.id == "change-1"
        assert change.status == "pending"
        assert change.timestamp == "2024-01-01T00:00:00+00:00"
        assert len(tracker) == 1

    def test_edit_requires_both_contents(self) -> None:
        tracker = _tracker()
        with pytest.raises(ValueError):
            tracker.record("edit", "Ana", section_index=0, old_content="old")
        assert len(tracker) == 0

    def test_comment_change_may_omit_contents(self) -> None:
        change = _tracker().record("comment", "Ana", comment="Looks good")
        assert change.old_content is None
        assert change.new_content is None

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(ValueError):
            Change(id="x", type="rename", author="a", timestamp="t")  # type: ignore[arg-type]

    def test_duplicate_ids_rejected(self) -> None:
        c = Change(id="x", type="add", author="a", timestamp="t")
        with pytest.raises(ValueError):
            ChangeTracker([c, c])


class TestLifecycle:
    def test_accept(self) -> None:
        tracker = _tracker()
        change = tracker.record("edit", "Ana", old_content="a", new_content="b")
        result = tracker.accept(change.id)
        assert isinstance(result, Ok)
        assert result.value.status == "accepted"
        assert result.value.new_content == "b"
        assert tracker.accepted() == [result.value]
        assert tracker.pending() == []

    def test_terminal_states_are_final(self) -> None:
        tracker = _tracker()
        a = tracker.record("edit", "Ana", old_content="a", new_content="b")
        b = tracker.record("edit", "Ana", old_content="b", new_content="c")
        tracker.accept(a.id)
        tracker.reject(b.id)

        assert tracker.reject(a.id) == Err(LookupFailure("not_pending", "change", a.id))
        assert tracker.accept(b.id) == Err(LookupFailure("not_pending", "change", b.id))
        statuses = [c.status for c in tracker.changes]
        assert statuses == ["accepted", "rejected"]

    def test_unknown_id(self) -> None:
        tracker = _tracker()
        tracker.record("add", "Ana")
        before = tracker.changes
        result = tracker.accept("missing")
        assert result == Err(LookupFailure("not_found", "change", "missing"))
        assert tracker.changes == before

    def test_transition_keeps_position(self) -> None:
        tracker = _tracker()
        first = tracker.record("add", "Ana")
        tracker.record("add", "Ben")
        tracker.accept(first.id)
        assert tracker.changes[0].id == first.id

    def test_for_section(self) -> None:
        tracker = _tracker()
        tracker.record("edit", "Ana", section_id="s1", old_content="a", new_content="b")
        tracker.record("edit", "Ana", section_id="s2", old_content="a", new_content="b")
        assert [c.section_id for c in tracker.for_section("s1")] == ["s1"]

    def test_get(self) -> None:
        tracker = _tracker()
        change = tracker.record("delete", "Ana")
        assert tracker.get(change.id) == Ok(change)
        assert isinstance(tracker.get("nope"), Err)


class TestSerialization:
    def test_dict_round_trip_ignores_unknown_keys(self) -> None:
        change = _tracker().record(
            "edit", "Ana", section_index=2, section_id="s", old_content="a", new_content="b",
        )
        d = change_to_dict(change)
        d["extra"] = "ignored"
        assert change_from_dict(d) == change

    def test_invalid_status_rejected(self) -> None:
        d = change_to_dict(_tracker().record("add", "Ana"))
        d["status"] = "archived"
        with pytest.raises(ValueError):
            change_from_dict(d)
