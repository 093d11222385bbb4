#!/usr/bin/env python3
"""Dump the decoded events of one or more Standard MIDI Files.

Each file prints a header summary followed by one CSV-like line per event::

    0, 0, Header, 1, 2, 96
    1, 0, Start_track
    0, 1, Note_on_c, 64, 127
    ...

Decoding errors are reported per file; the exit status is 1 if any file
failed.
"""

from __future__ import annotations

import argparse
import glob
import logging
from pathlib import Path
import sys
from typing import Iterable, List, Sequence

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from smf import MidiReader, SMFError, format_event  # noqa: E402

logger = logging.getLogger("inspect_midi")


def collect_paths(patterns: Iterable[str]) -> List[Path]:
    paths: List[Path] = []
    for pattern in patterns:
        matches = sorted(Path(p) for p in glob.glob(pattern, recursive=True))
        if matches:
            paths.extend(matches)
        else:
            # Treat literal path when glob finds nothing.
            candidate = Path(pattern)
            if candidate.exists():
                paths.append(candidate)
    # Deduplicate while preserving order.
    seen: set[Path] = set()
    unique_paths: List[Path] = []
    for path in paths:
        resolved = path.resolve()
        if resolved not in seen:
            seen.add(resolved)
            unique_paths.append(path)
    return unique_paths


def dump(data: bytes, *, track: int | None = None, strict_bounds: bool = True) -> List[str]:
    """Decode ``data`` and return the report lines for it."""
    reader = MidiReader(data, strict_bounds=strict_bounds)
    header = reader.read_header()
    lines = [f"0, 0, Header, {header.format}, {header.tracks}, {header.division}"]
    for frame in reader.tracks():
        if track is not None and frame.index != track:
            continue
        lines.append(f"{frame.index}, 0, Start_track")
        last_tick = 0
        for event in reader.iter_events():
            lines.append(f"{frame.index}, {format_event(event)}")
            last_tick = event.tick
        lines.append(f"{frame.index}, {last_tick}, End_of_chunk")
    return lines


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Print every decoded event in Standard MIDI Files."
    )
    parser.add_argument(
        "paths",
        nargs="+",
        help="File paths or glob patterns (quotes recommended for wildcards).",
    )
    parser.add_argument("--track", type=int, help="Only print this 1-based track.")
    parser.add_argument(
        "--no-strict-bounds",
        action="store_true",
        help="Do not fail when an event runs past the end of its track chunk.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    targets = collect_paths(args.paths)
    if not targets:
        parser.error("No files matched the provided paths/patterns.")

    status = 0
    for path in targets:
        if len(targets) > 1:
            print(f"# {path}")
        try:
            lines = dump(
                path.read_bytes(),
                track=args.track,
                strict_bounds=not args.no_strict_bounds,
            )
        except SMFError as err:
            logger.error("%s: %s: %s", path, type(err).__name__, err)
            status = 1
            continue
        for line in lines:
            print(line)
    return status


if __name__ == "__main__":
    raise SystemExit(main())
