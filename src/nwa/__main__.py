"""
nwa.__main__

CLI entry point.

This file is intentionally small:
- parse args
- dispatch to the public API in nwa.__init__
It must not contain decoding logic.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Optional

import nwa

_KIND_CHOICES = ["auto", "name", "nwa", "nwk", "ovk"]


def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="nwatowav",
        description="Convert NWA streams and NWK/OVK archives to WAV/OGG files.",
    )
    p.add_argument("input", help="Input .nwa, .nwk or .ovk file.")
    p.add_argument("-o", "--output-dir", default=".", help="Directory for converted files (default: current directory).")
    p.add_argument(
        "--kind",
        choices=_KIND_CHOICES,
        default="auto",
        help="Input kind. 'auto' inspects the content, 'name' guesses from the file name.",
    )
    p.add_argument("-j", "--jobs", type=int, default=None, help="Workers for archive extraction (default: CPU count).")
    p.add_argument(
        "--executor",
        choices=["process", "thread"],
        default="process",
        help="Worker pool for archive extraction (default: process).",
    )
    p.add_argument("--info", action="store_true", help="Print the stream header as JSON instead of converting (NWA only).")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return p.parse_args(argv)


def _resolve_kind(args: argparse.Namespace) -> Optional[nwa.FileKind]:
    if args.kind == "auto":
        return None
    if args.kind == "name":
        return nwa.file_kind_from_name(args.input)
    return nwa.FileKind(args.kind)


def _print_info(path: str) -> None:
    with open(path, "rb") as f:
        header = nwa.StreamHeader.parse(f)
    print(json.dumps(header.to_dict(), indent=2))


def main(argv: Optional[list[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.info:
            _print_info(args.input)
            return 0
        results = nwa.convert_path(
            args.input,
            args.output_dir,
            kind=_resolve_kind(args),
            max_workers=args.jobs,
            executor=args.executor,
        )
    except (nwa.NWAError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    failed = 0
    for res in results:
        if res.ok:
            print(res.path)
        else:
            failed += 1
            print(f"error: entry {res.entry.index}: {res.error}", file=sys.stderr)
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
