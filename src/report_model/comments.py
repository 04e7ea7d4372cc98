"""Resolvable comment threads attached to sections.

Comments carry both the positional ``section_index`` seen when they were
written and the stable ``section_id`` used to find them again after
re-parses. ``resolve`` and ``unresolve`` are separate operations; whether
a product wires up the latter is its own decision.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, fields, replace
from datetime import datetime
from typing import Any

from report_model.changes import utc_now
from report_model.report_types import Err, LookupFailure, Ok, Result

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Comment:
    id: str
    section_index: int
    content: str
    author: str
    timestamp: str
    section_id: str | None = None
    resolved: bool = False
    replies: tuple[Comment, ...] = ()


def new_comment_id() -> str:
    return f"comment-{uuid.uuid4().hex[:12]}"


class CommentStore:
    """Top-level comments in creation order; replies nest one level down."""

    def __init__(
        self,
        comments: Iterable[Comment] = (),
        *,
        now: Callable[[], datetime] = utc_now,
        new_id: Callable[[], str] = new_comment_id,
    ) -> None:
        self._comments: list[Comment] = list(comments)
        self._now = now
        self._new_id = new_id

    def _make(self, section_index: int, section_id: str | None, content: str, author: str) -> Comment:
        if not content.strip():
            raise ValueError("Comment content must not be blank")
        return Comment(
            id=self._new_id(),
            section_index=section_index,
            section_id=section_id,
            content=content.strip(),
            author=author,
            timestamp=self._now().isoformat(),
        )

    def _find(self, comment_id: str) -> int | None:
        for pos, comment in enumerate(self._comments):
            if comment.id == comment_id:
                return pos
        return None

    def add(self, section_index: int, content: str, author: str, section_id: str | None = None) -> Comment:
        comment = self._make(section_index, section_id, content, author)
        self._comments.append(comment)
        return comment

    def reply(self, comment_id: str, content: str, author: str) -> Result[Comment, LookupFailure]:
        """Append a reply to a top-level comment. Returns the updated parent."""
        pos = self._find(comment_id)
        if pos is None:
            log.warning("cannot reply to comment %s: no such comment", comment_id)
            return Err(LookupFailure("not_found", "comment", comment_id))
        parent = self._comments[pos]
        child = self._make(parent.section_index, parent.section_id, content, author)
        updated = replace(parent, replies=parent.replies + (child,))
        self._comments[pos] = updated
        return Ok(updated)

    def _set_resolved(self, comment_id: str, resolved: bool) -> Result[Comment, LookupFailure]:
        pos = self._find(comment_id)
        if pos is None:
            log.warning("cannot set resolved=%s on comment %s: no such comment", resolved, comment_id)
            return Err(LookupFailure("not_found", "comment", comment_id))
        updated = replace(self._comments[pos], resolved=resolved)
        self._comments[pos] = updated
        return Ok(updated)

    def resolve(self, comment_id: str) -> Result[Comment, LookupFailure]:
        return self._set_resolved(comment_id, True)

    def unresolve(self, comment_id: str) -> Result[Comment, LookupFailure]:
        return self._set_resolved(comment_id, False)

    @property
    def comments(self) -> tuple[Comment, ...]:
        return tuple(self._comments)

    def for_section(self, section_id: str) -> list[Comment]:
        return [c for c in self._comments if c.section_id == section_id]

    def unresolved_count(self) -> int:
        return sum(1 for c in self._comments if not c.resolved)


def comment_to_dict(comment: Comment) -> dict[str, Any]:
    return {
        "id": comment.id,
        "section_index": comment.section_index,
        "section_id": comment.section_id,
        "content": comment.content,
        "author": comment.author,
        "timestamp": comment.timestamp,
        "resolved": comment.resolved,
        "replies": [comment_to_dict(r) for r in comment.replies],
    }


def comment_from_dict(d: dict[str, Any]) -> Comment:
    valid = {f.name for f in fields(Comment)}
    converted: dict[str, Any] = {k: v for k, v in d.items() if k in valid}
    converted["replies"] = tuple(comment_from_dict(r) for r in d.get("replies") or ())
    converted["resolved"] = bool(d.get("resolved", False))
    return Comment(**converted)
