"""I/O utilities for JSON records and script output.

orjson-backed encode/decode plus file helpers used by config loading and
the command-line scripts.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any

import orjson


def dumps(obj: Any, *, pretty: bool = False) -> bytes:
    """Encode ``obj`` as JSON bytes with sorted keys."""
    opts = orjson.OPT_SORT_KEYS
    if pretty:
        opts |= orjson.OPT_INDENT_2
    return orjson.dumps(obj, option=opts)


def loads(raw: bytes | str) -> Any:
    return orjson.loads(raw)


def load_json(path: Path) -> Any:
    """Load JSON from a file."""
    return orjson.loads(path.read_bytes())


def save_json(obj: Any, path: Path, *, pretty: bool = True) -> None:
    """Save an object as JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(dumps(obj, pretty=pretty))
