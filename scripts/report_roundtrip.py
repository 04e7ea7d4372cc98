#!/usr/bin/env python3
"""Check that parse -> serialize -> parse preserves every section.

Usage:
    python3 scripts/report_roundtrip.py --input report.md --profile k12

Prints a JSON verdict to stdout and exits 1 when any section's title or
content differs after the round trip.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from report_model.io_utils import dumps
from report_model.profiles import PROFILES, get_profile
from report_model.section_parser import parse_sections
from report_model.serializer import serialize_sections

log = logging.getLogger("report_roundtrip")


def dump_json(obj: object) -> None:
    sys.stdout.buffer.write(dumps(obj, pretty=True))
    sys.stdout.buffer.write(b"\n")


def _norm(text: str) -> str:
    return "\n".join(line.rstrip() for line in text.strip().split("\n"))


def main() -> None:
    parser = argparse.ArgumentParser(description="Verify the parse/serialize round trip on a report.")
    parser.add_argument("--input", type=Path, required=True, help="Report text file")
    parser.add_argument("--profile", default="unified", choices=sorted(PROFILES))
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    if not args.input.exists():
        print(f"Error: input not found: {args.input}", file=sys.stderr)
        sys.exit(1)

    profile = get_profile(args.profile)
    first = parse_sections(args.input.read_text(encoding="utf-8"), profile.parser)
    text = serialize_sections(first, title_line=profile.title_line, divider=profile.parser.divider)
    second = parse_sections(text, profile.parser)

    mismatches: list[dict[str, object]] = []
    for index in range(max(len(first), len(second))):
        a = first[index] if index < len(first) else None
        b = second[index] if index < len(second) else None
        if a is None or b is None or a.title != b.title or _norm(a.content) != _norm(b.content):
            mismatches.append({
                "index": index,
                "before": a.title if a else None,
                "after": b.title if b else None,
            })

    ok = not mismatches
    for m in mismatches:
        log.warning("round-trip mismatch at section %s: %r -> %r", m["index"], m["before"], m["after"])
    dump_json({
        "ok": ok,
        "profile": profile.name,
        "sections": len(first),
        "mismatches": mismatches,
    })
    if not ok:
        sys.exit(1)


if __name__ == "__main__":
    main()
