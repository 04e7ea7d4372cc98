#!/usr/bin/env python3
"""Print the assembled report document as JSON.

Usage:
    python3 scripts/report_outline.py --input report.md --profile tutoring \\
      --documents uploads.json

``--documents`` is a JSON list of ``{name, type, size, uploadDate, status}``
objects, used for the synthetic documents section and citation fallback.

Outputs structured JSON to stdout, human messages to stderr.
"""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any

from report_model.document import build_document
from report_model.io_utils import dumps, load_json
from report_model.profiles import PROFILES, get_profile
from report_model.report_types import ExternalDocument, SectionDetail

log = logging.getLogger("report_outline")


def dump_json(obj: object) -> None:
    sys.stdout.buffer.write(dumps(obj, pretty=True))
    sys.stdout.buffer.write(b"\n")


def _documents_from_json(raw: Any) -> list[ExternalDocument]:
    if not isinstance(raw, list):
        raise ValueError("documents file must hold a JSON list")
    docs: list[ExternalDocument] = []
    for item in raw:
        if not isinstance(item, dict) or not item.get("name"):
            log.warning("skipping document entry without a name: %r", item)
            continue
        docs.append(ExternalDocument(
            name=str(item["name"]),
            type=str(item.get("type") or ""),
            size=str(item.get("size") or ""),
            upload_date=str(item.get("uploadDate") or item.get("upload_date") or ""),
            status=str(item.get("status") or ""),
        ))
    return docs


def _detail_to_dict(detail: SectionDetail) -> dict[str, Any]:
    s = detail.section
    return {
        "index": s.index,
        "section_id": s.section_id,
        "title": s.title,
        "category": s.category,
        "display_key": s.display_key,
        "synthetic": s.synthetic,
        "metadata": detail.metadata,
        "citations": [asdict(c) for c in detail.citations],
        "functional_impacts": [asdict(f) for f in detail.functional_impacts],
        "subsections": [
            {
                "title": sub.subsection.title,
                "label": sub.subsection.label,
                "category": sub.subsection.category,
                "display_key": sub.subsection.display_key,
                "accommodations": [asdict(a) for a in sub.accommodations],
            }
            for sub in detail.subsections
        ],
        "tables": [[list(row) for row in t.rows] for t in detail.tables],
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Outline a generated report as JSON.")
    parser.add_argument("--input", type=Path, required=True, help="Report text file")
    parser.add_argument(
        "--profile", default="unified", choices=sorted(PROFILES),
        help="Report profile (default: unified)",
    )
    parser.add_argument("--documents", type=Path, default=None, help="Uploaded documents JSON list")
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser


def main() -> None:
    args = build_parser().parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    if not args.input.exists():
        print(f"Error: input not found: {args.input}", file=sys.stderr)
        sys.exit(1)

    documents: list[ExternalDocument] = []
    if args.documents is not None:
        try:
            documents = _documents_from_json(load_json(args.documents))
        except (OSError, ValueError) as exc:
            print(f"Error: cannot read documents: {exc}", file=sys.stderr)
            sys.exit(1)

    profile = get_profile(args.profile)
    doc = build_document(args.input.read_text(encoding="utf-8"), profile, documents)
    print(f"{len(doc.details)} sections ({profile.name} profile)", file=sys.stderr)
    dump_json({
        "profile": doc.profile,
        "sections": [_detail_to_dict(d) for d in doc.details],
    })


if __name__ == "__main__":
    main()
