"""Change records and their pending -> accepted | rejected lifecycle.

Every committed edit creates exactly one ``pending`` Change. Accept and
reject move a pending change to a terminal status; nothing leaves
``accepted`` or ``rejected``. All other fields are immutable after
creation: a transition swaps in a new frozen record at the same position.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import asdict, dataclass, fields, replace
from datetime import UTC, datetime
from typing import Any, Literal

from report_model.report_types import Err, LookupFailure, Ok, Result

log = logging.getLogger(__name__)

type ChangeType = Literal["edit", "add", "delete", "comment"]
type ChangeStatus = Literal["pending", "accepted", "rejected"]

CHANGE_TYPES: frozenset[str] = frozenset({"edit", "add", "delete", "comment"})
CHANGE_STATUSES: frozenset[str] = frozenset({"pending", "accepted", "rejected"})


@dataclass(frozen=True, slots=True)
class Change:
    id: str
    type: ChangeType
    author: str
    timestamp: str  # ISO-8601, UTC
    status: ChangeStatus = "pending"
    section_index: int | None = None
    section_id: str | None = None
    section_title: str | None = None
    old_content: str | None = None
    new_content: str | None = None
    comment: str | None = None

    def __post_init__(self) -> None:
        if self.type not in CHANGE_TYPES:
            raise ValueError(f"Unknown change type {self.type!r}")
        if self.status not in CHANGE_STATUSES:
            raise ValueError(f"Unknown change status {self.status!r}")
        if self.type == "edit" and (self.old_content is None or self.new_content is None):
            raise ValueError("An edit change must carry both old_content and new_content")


def utc_now() -> datetime:
    return datetime.now(UTC)


def new_change_id() -> str:
    return f"change-{uuid.uuid4().hex[:12]}"


class ChangeTracker:
    """Ordered, id-addressable store of Change records for one session."""

    def __init__(
        self,
        changes: Iterable[Change] = (),
        *,
        now: Callable[[], datetime] = utc_now,
        new_id: Callable[[], str] = new_change_id,
    ) -> None:
        self._changes: list[Change] = []
        self._pos: dict[str, int] = {}
        self._now = now
        self._new_id = new_id
        for change in changes:
            self._append(change)

    def _append(self, change: Change) -> None:
        if change.id in self._pos:
            raise ValueError(f"Duplicate change id {change.id!r}")
        self._pos[change.id] = len(self._changes)
        self._changes.append(change)

    def record(
        self,
        type: ChangeType,
        author: str,
        *,
        section_index: int | None = None,
        section_id: str | None = None,
        section_title: str | None = None,
        old_content: str | None = None,
        new_content: str | None = None,
        comment: str | None = None,
    ) -> Change:
        """Create and store a new pending change."""
        change = Change(
            id=self._new_id(),
            type=type,
            author=author,
            timestamp=self._now().isoformat(),
            section_index=section_index,
            section_id=section_id,
            section_title=section_title,
            old_content=old_content,
            new_content=new_content,
            comment=comment,
        )
        self._append(change)
        log.debug("recorded %s change %s (section=%s)", change.type, change.id, section_id)
        return change

    def get(self, change_id: str) -> Result[Change, LookupFailure]:
        pos = self._pos.get(change_id)
        if pos is None:
            return Err(LookupFailure("not_found", "change", change_id))
        return Ok(self._changes[pos])

    def _transition(self, change_id: str, status: ChangeStatus) -> Result[Change, LookupFailure]:
        pos = self._pos.get(change_id)
        if pos is None:
            log.warning("cannot mark change %s %s: no such change", change_id, status)
            return Err(LookupFailure("not_found", "change", change_id))
        current = self._changes[pos]
        if current.status != "pending":
            log.warning("cannot mark change %s %s: already %s", change_id, status, current.status)
            return Err(LookupFailure("not_pending", "change", change_id))
        updated = replace(current, status=status)
        self._changes[pos] = updated
        return Ok(updated)

    def accept(self, change_id: str) -> Result[Change, LookupFailure]:
        return self._transition(change_id, "accepted")

    def reject(self, change_id: str) -> Result[Change, LookupFailure]:
        return self._transition(change_id, "rejected")

    @property
    def changes(self) -> tuple[Change, ...]:
        return tuple(self._changes)

    def pending(self) -> list[Change]:
        return [c for c in self._changes if c.status == "pending"]

    def accepted(self) -> list[Change]:
        return [c for c in self._changes if c.status == "accepted"]

    def for_section(self, section_id: str) -> list[Change]:
        return [c for c in self._changes if c.section_id == section_id]

    def __len__(self) -> int:
        return len(self._changes)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def change_to_dict(change: Change) -> dict[str, Any]:
    return asdict(change)


def change_from_dict(d: dict[str, Any]) -> Change:
    """Build a Change from a stored dict. Unknown keys are ignored."""
    valid = {f.name for f in fields(Change)}
    return Change(**{k: v for k, v in d.items() if k in valid})
