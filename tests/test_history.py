"""Tests for report_model.history."""
import pytest

from report_model.history import UndoRedoCoordinator


class TestUndoRedo:
    def test_empty_stacks_are_noops(self) -> None:
        history = UndoRedoCoordinator("start")
        assert history.undo() is None
        assert history.redo() is None
        assert history.current == "start"

    def test_undo_then_redo_restores_text(self) -> None:
        history = UndoRedoCoordinator("v0")
        history.commit_edit("v1")
        history.commit_edit("v2")
        assert history.undo() == "v1"
        assert history.redo() == "v2"
        assert history.current == "v2"

    def test_commit_after_undo_clears_redo(self) -> None:
        history = UndoRedoCoordinator("v0")
        history.commit_edit("v1")
        history.undo()
        assert history.can_redo()
        history.commit_edit("v1b")
        assert not history.can_redo()
        assert history.redo() is None
        assert history.undo() == "v0"

    def test_bounded(self) -> None:
        history = UndoRedoCoordinator("0", limit=2)
        for text in ("a", "b", "c"):
            history.commit_edit(text)
        assert history.undo() == "b"
        assert history.undo() == "a"
        assert history.undo() is None
        assert history.current == "a"

    def test_reset(self) -> None:
        history = UndoRedoCoordinator("0")
        history.commit_edit("a")
        history.reset("z")
        assert history.current == "z"
        assert not history.can_undo()

    def test_limit_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            UndoRedoCoordinator("", limit=0)
