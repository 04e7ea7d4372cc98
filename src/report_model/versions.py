"""Numbered whole-document snapshots.

A version stores the full canonical text plus the changes that were
``accepted`` at snapshot time. Numbers are 1-based and monotonic
(previous max + 1). Restoring a version is itself an auditable ``edit``
change whose ``old_content`` is the pre-restore text.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any

from report_model.changes import Change, ChangeTracker, change_from_dict, change_to_dict, utc_now
from report_model.report_types import Err, LookupFailure, Ok, Result

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Version:
    id: str
    number: int
    content: str
    author: str
    timestamp: str
    description: str
    changes: tuple[Change, ...] = ()


def new_version_id() -> str:
    return f"version-{uuid.uuid4().hex[:12]}"


class VersionManager:
    def __init__(
        self,
        tracker: ChangeTracker,
        versions: Iterable[Version] = (),
        *,
        now: Callable[[], datetime] = utc_now,
        new_id: Callable[[], str] = new_version_id,
    ) -> None:
        self._tracker = tracker
        self._versions: list[Version] = list(versions)
        self._now = now
        self._new_id = new_id

    @property
    def versions(self) -> tuple[Version, ...]:
        return tuple(self._versions)

    def latest(self) -> Version | None:
        if not self._versions:
            return None
        return max(self._versions, key=lambda v: v.number)

    def save_version(self, content: str, description: str, author: str) -> Version:
        """Snapshot ``content`` with the currently accepted changes."""
        latest = self.latest()
        version = Version(
            id=self._new_id(),
            number=(latest.number + 1) if latest else 1,
            content=content,
            author=author,
            timestamp=self._now().isoformat(),
            description=description,
            changes=tuple(self._tracker.accepted()),
        )
        self._versions.append(version)
        log.debug("saved version %d (%s) with %d accepted changes",
                  version.number, version.id, len(version.changes))
        return version

    def get(self, version_id: str) -> Result[Version, LookupFailure]:
        for version in self._versions:
            if version.id == version_id:
                return Ok(version)
        return Err(LookupFailure("not_found", "version", version_id))

    def restore(
        self,
        version_id: str,
        current_text: str,
        author: str,
    ) -> Result[Change, LookupFailure]:
        """Record the edit that replaces ``current_text`` with the version's content.

        The caller adopts ``change.new_content`` as the new canonical text.
        An unknown id records nothing.
        """
        found = self.get(version_id)
        if isinstance(found, Err):
            log.warning("cannot restore version %s: no such version", version_id)
            return found
        version = found.value
        change = self._tracker.record(
            "edit",
            author,
            old_content=current_text,
            new_content=version.content,
            comment=f"Restored version {version.number}",
        )
        return Ok(change)


def version_to_dict(version: Version) -> dict[str, Any]:
    return {
        "id": version.id,
        "number": version.number,
        "content": version.content,
        "author": version.author,
        "timestamp": version.timestamp,
        "description": version.description,
        "changes": [change_to_dict(c) for c in version.changes],
    }


def version_from_dict(d: dict[str, Any]) -> Version:
    valid = {f.name for f in fields(Version)}
    converted: dict[str, Any] = {k: v for k, v in d.items() if k in valid}
    converted["changes"] = tuple(change_from_dict(c) for c in d.get("changes") or ())
    return Version(**converted)
