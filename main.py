from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys

from confetti_ui.timeline import (
    TimelineAsciiConfig,
    TimelineDocument,
    TimelineWindowConfig,
    calculate_optimal_window,
    export_timeline_bundle,
    layout_events,
    load_timeline_events,
    render_timeline_ascii,
    timeline_events_schema,
    validate_timeline_suite,
)
from confetti_core.core import TimelineCoordinateMapper


LOGGER = logging.getLogger("confetti")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="confetti")
    parser.add_argument("--log-level", choices=["debug", "info", "warning", "error"], default="warning")
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Print an ASCII timeline for an events JSON file.")
    render.add_argument("events_json", type=Path)
    render.add_argument("--out", type=Path, default=None, help="Write to a file instead of stdout.")
    render.add_argument("--row-minutes", type=int, default=15)
    render.add_argument("--track-chars", type=int, default=48)
    render.add_argument("--no-legend", action="store_true")

    export = sub.add_parser("export", help="Write ASCII, markdown and PNG renditions of a timeline.")
    export.add_argument("events_json", type=Path)
    export.add_argument("--out-dir", type=Path, required=True)
    export.add_argument("--prefix", default="timeline")

    validate = sub.add_parser("validate", help="Check layout soundness, minimality and determinism.")
    validate.add_argument("events_json", type=Path)

    sub.add_parser("schema", help="Print the events JSON schema.")
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level.upper()), format="%(levelname)s %(name)s: %(message)s")

    if args.command == "schema":
        print(json.dumps(timeline_events_schema(), indent=2, sort_keys=True))
        return 0

    doc = load_timeline_events(args.events_json)
    mapper = _resolve_mapper(doc)
    LOGGER.debug("loaded %d events from %s", len(doc.events), args.events_json)

    if args.command == "render":
        plan = layout_events(doc.events, mapper)
        text = render_timeline_ascii(
            doc.events,
            plan,
            mapper,
            TimelineAsciiConfig(
                row_minutes=args.row_minutes,
                track_chars=args.track_chars,
                show_legend=not args.no_legend,
            ),
            title=doc.title,
        )
        if args.out is None:
            sys.stdout.write(text)
        else:
            args.out.write_text(text, encoding="utf-8")
            print(f"wrote {args.out}")
        return 0

    if args.command == "export":
        bundle = export_timeline_bundle(
            doc.events,
            out_dir=args.out_dir,
            prefix=args.prefix,
            title=doc.title,
            mapper=mapper,
        )
        print(json.dumps(bundle.as_dict(), indent=2, sort_keys=True))
        return 0

    if args.command == "validate":
        report = validate_timeline_suite(doc.events, mapper)
        for warning in report.warnings:
            print(f"warning: {warning}")
        for error in report.errors:
            print(f"error: {error}")
        print("ok" if report.ok else "failed")
        return 0 if report.ok else 1

    raise RuntimeError(f"unsupported command: {args.command}")


def _resolve_mapper(doc: TimelineDocument) -> TimelineCoordinateMapper:
    if doc.window_start is not None and doc.window_end is not None:
        window = TimelineWindowConfig(start=doc.window_start, end=doc.window_end)
        return window.mapper()
    return calculate_optimal_window(doc.events).mapper()


if __name__ == "__main__":
    raise SystemExit(main())
