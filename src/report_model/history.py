"""Bounded linear undo/redo over whole-document text snapshots."""
from __future__ import annotations

from collections import deque


class UndoRedoCoordinator:
    """Two bounded stacks of canonical-text snapshots.

    Works at document granularity: undo reverts the most recent committed
    edit, whichever section it touched. When the undo stack is full the
    oldest snapshot is dropped.
    """

    def __init__(self, initial_text: str = "", limit: int = 100) -> None:
        if limit < 1:
            raise ValueError(f"history limit must be >= 1, got {limit}")
        self._current = initial_text
        self._undo: deque[str] = deque(maxlen=limit)
        self._redo: deque[str] = deque(maxlen=limit)

    @property
    def current(self) -> str:
        return self._current

    def can_undo(self) -> bool:
        return bool(self._undo)

    def can_redo(self) -> bool:
        return bool(self._redo)

    def commit_edit(self, new_text: str) -> None:
        self._undo.append(self._current)
        self._redo.clear()
        self._current = new_text

    def undo(self) -> str | None:
        """Adopt the previous snapshot. ``None`` when there is nothing to undo."""
        if not self._undo:
            return None
        self._redo.append(self._current)
        self._current = self._undo.pop()
        return self._current

    def redo(self) -> str | None:
        if not self._redo:
            return None
        self._undo.append(self._current)
        self._current = self._redo.pop()
        return self._current

    def reset(self, text: str) -> None:
        """Adopt ``text`` and forget all history."""
        self._current = text
        self._undo.clear()
        self._redo.clear()
