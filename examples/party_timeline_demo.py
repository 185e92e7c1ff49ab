from __future__ import annotations

import argparse
from dataclasses import replace
import datetime as dt
import logging
from pathlib import Path
import sys

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from confetti_core.core import DeferredCallQueue, ManualClock, normalize_gesture_input
from confetti_ui.timeline import (
    EventTimelineComponent,
    TimelineWindowConfig,
    export_timeline_bundle,
    load_timeline_events,
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Drag an event on the party timeline and export the result.")
    parser.add_argument("--events", default=str(REPO_ROOT / "examples" / "party_timeline.json"))
    parser.add_argument("--event-id", default="cleanup")
    parser.add_argument("--drag-px", type=float, default=-45.0)
    parser.add_argument("--export-dir", default="party_exports")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    doc = load_timeline_events(args.events)
    assert doc.window_start is not None and doc.window_end is not None
    mapper = TimelineWindowConfig(start=doc.window_start, end=doc.window_end).mapper()

    events = {event.event_id: event for event in doc.events}
    proposals: list[tuple[str, dt.datetime, dt.datetime]] = []
    clock = ManualClock()
    timeline = EventTimelineComponent(
        component_id="party",
        events=doc.events,
        mapper=mapper,
        scheduler=DeferredCallQueue(clock=clock),
        on_time_change=lambda event_id, start, end: proposals.append((event_id, start, end)),
    )

    bounds = timeline.event_bounds(args.event_id)
    if bounds is None:
        raise SystemExit(f"event `{args.event_id}` is not visible")
    x = bounds.x + bounds.width / 2.0
    y = bounds.y + bounds.height / 2.0
    last = None
    for kind, payload in (
        ("mouse_down", {"x": x, "y": y}),
        ("mouse_move", {"x": x, "y": y + args.drag_px / 2.0}),
        ("mouse_move", {"x": x, "y": y + args.drag_px}),
        ("mouse_up", {}),
    ):
        gesture = normalize_gesture_input(kind, payload, last_position=last)
        if gesture is None:
            continue
        last = (gesture.x, gesture.y)
        timeline.handle_input(gesture)
        timeline.tick()

    if proposals:
        event_id, start, end = proposals[-1]
        events[event_id] = replace(events[event_id], start=start, end=end)
        print(f"{event_id}: {start:%H:%M}-{end:%H:%M}")
    timeline.unmount()

    bundle = export_timeline_bundle(
        events.values(),
        out_dir=args.export_dir,
        prefix="party",
        title=doc.title,
        mapper=mapper,
    )
    for key, value in bundle.as_dict().items():
        print(f"- {key}: {value}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
