from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Iterable

from confetti_core.core.coordinates import TimelineCoordinateMapper

from .layout import RenderPlan, RenderSlot
from .schema import CATEGORY_COLORS, TimelineEvent
from .viewport import format_clock, format_duration

CATEGORY_FILL: dict[str, str] = {
    "setup": "s",
    "activity": "a",
    "meal": "m",
    "entertainment": "e",
    "cleanup": "c",
    "other": "o",
}

MILESTONE_FILL = "*"


@dataclass(frozen=True)
class TimelineAsciiConfig:
    row_minutes: int = 15
    track_chars: int = 48
    show_legend: bool = True

    def __post_init__(self) -> None:
        if self.row_minutes < 1:
            raise ValueError("row_minutes must be >= 1")
        if self.track_chars < 8:
            raise ValueError("track_chars must be >= 8")


def render_timeline_ascii(
    events: Iterable[TimelineEvent],
    plan: RenderPlan,
    mapper: TimelineCoordinateMapper,
    config: TimelineAsciiConfig | None = None,
    *,
    title: str = "Event Timeline",
) -> str:
    cfg = config or TimelineAsciiConfig()
    lookup = {event.event_id: event for event in events if event.event_id in plan}

    lines: list[str] = []
    lines.append(title)
    lines.append(
        f"Window: {format_clock(mapper.window_start)}-{format_clock(mapper.window_end)}"
        f" | rows={cfg.row_minutes}min | px/min={mapper.pixels_per_minute:g}"
    )
    lines.append("Categories: " + ", ".join(f"{k}={CATEGORY_FILL[k]} ({v})" for k, v in CATEGORY_COLORS.items()))
    lines.extend(_render_rows(lookup, plan, mapper, cfg))

    if cfg.show_legend:
        lines.append("")
        lines.append("Events:")
        legend = _render_legend(lookup, plan)
        if legend:
            lines.extend(legend)
        else:
            lines.append("  (none)")
    return "\n".join(lines) + "\n"


def _render_rows(
    lookup: dict[str, TimelineEvent],
    plan: RenderPlan,
    mapper: TimelineCoordinateMapper,
    cfg: TimelineAsciiConfig,
) -> list[str]:
    row_count = max(1, -(-int(mapper.total_minutes) // cfg.row_minutes))
    step = dt.timedelta(minutes=cfg.row_minutes)
    rows: list[list[str]] = [[" "] * cfg.track_chars for _ in range(row_count)]

    for slot in plan.slots():
        event = lookup.get(slot.event_id)
        if event is None or slot.is_milestone:
            continue
        assert event.end is not None
        first, last = _row_span(event.start, event.end, mapper.window_start, step, row_count)
        if first > last:
            continue
        x0, x1 = _column_span(slot, cfg.track_chars)
        fill = CATEGORY_FILL[event.category]
        for row in range(first, last + 1):
            for x in range(x0, x1):
                rows[row][x] = fill
        caption = event.title[: max(0, x1 - x0 - 2)]
        for offset, ch in enumerate(caption):
            rows[first][x0 + 1 + offset] = ch

    for slot in plan.slots():
        event = lookup.get(slot.event_id)
        if event is None or not slot.is_milestone:
            continue
        row = int((event.start - mapper.window_start) // step)
        if row < 0 or row >= row_count:
            continue
        rows[row] = [MILESTONE_FILL] * cfg.track_chars
        caption = f" {event.title} "[: cfg.track_chars - 2]
        for offset, ch in enumerate(caption):
            rows[row][1 + offset] = ch

    out: list[str] = []
    for row in range(row_count):
        t = mapper.window_start + step * row
        label = format_clock(t) if t.minute == 0 or row == 0 else ""
        out.append(f"{label:>8} |{''.join(rows[row])}|")
    return out


def _render_legend(lookup: dict[str, TimelineEvent], plan: RenderPlan) -> list[str]:
    lines: list[str] = []
    for slot in plan.slots():
        event = lookup.get(slot.event_id)
        if event is None:
            continue
        if slot.is_milestone:
            lines.append(f"  {event.event_id:<10} {format_clock(event.start):>7}          milestone {event.title}")
            continue
        assert event.end is not None
        span = f"{format_clock(event.start):>7}-{format_clock(event.end):<7}"
        placement = f"col {slot.column_index + 1}/{slot.column_count}"
        lines.append(
            f"  {event.event_id:<10} {span} {placement:<9} {event.title} ({format_duration(event.start, event.end)})"
        )
    return lines


def _row_span(
    start: dt.datetime,
    end: dt.datetime,
    window_start: dt.datetime,
    step: dt.timedelta,
    row_count: int,
) -> tuple[int, int]:
    first = int((start - window_start) // step)
    # Half-open: an event ending exactly on a row boundary does not fill that row.
    last = int((end - window_start - dt.timedelta(microseconds=1)) // step)
    return (max(0, first), min(row_count - 1, last))


def _column_span(slot: RenderSlot, track_chars: int) -> tuple[int, int]:
    width = track_chars // slot.column_count
    x0 = slot.column_index * width
    x1 = track_chars if slot.column_index == slot.column_count - 1 else x0 + width - 1
    return (x0, max(x0 + 1, x1))
