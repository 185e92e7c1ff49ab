from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Iterable, Literal

from confetti_core.core.coordinates import TimelineCoordinateMapper, minutes_between

from .schema import EVENT_CATEGORIES, EVENT_PRIORITIES, TimelineEvent


TimeScale = Literal["30min", "15min", "5min"]

TIME_SCALE_PIXELS_PER_MINUTE: dict[str, float] = {
    "30min": 1.0,
    "15min": 2.0,
    "5min": 4.0,
}

_WINDOW_PADDING = dt.timedelta(minutes=30)


@dataclass(frozen=True)
class TimelineWindowConfig:
    start: dt.datetime
    end: dt.datetime
    time_scale: TimeScale = "30min"

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise ValueError("TimelineWindowConfig.end must be after start")
        if self.time_scale not in TIME_SCALE_PIXELS_PER_MINUTE:
            raise ValueError(f"Unsupported time scale: {self.time_scale}")

    @property
    def pixels_per_minute(self) -> float:
        return TIME_SCALE_PIXELS_PER_MINUTE[self.time_scale]

    def mapper(self, pixels_per_minute: float | None = None) -> TimelineCoordinateMapper:
        return TimelineCoordinateMapper(
            window_start=self.start,
            window_end=self.end,
            pixels_per_minute=pixels_per_minute or self.pixels_per_minute,
        )


def calculate_optimal_window(
    events: Iterable[TimelineEvent],
    *,
    today: dt.date | None = None,
) -> TimelineWindowConfig:
    """Fit a window around the events with 30 minutes of padding on 30-minute marks."""

    items = list(events)
    if not items:
        day = today or dt.date.today()
        return TimelineWindowConfig(
            start=dt.datetime.combine(day, dt.time(hour=9)),
            end=dt.datetime.combine(day, dt.time(hour=17)),
            time_scale="30min",
        )

    earliest = min(event.start for event in items)
    latest = max(event.end or event.start for event in items)
    start = _floor_to_half_hour(earliest - _WINDOW_PADDING)
    end = _ceil_to_half_hour(latest + _WINDOW_PADDING)

    hours = (end - start).total_seconds() / 3600.0
    if hours <= 2:
        scale: TimeScale = "5min"
    elif hours <= 4:
        scale = "15min"
    else:
        scale = "30min"
    return TimelineWindowConfig(start=start, end=end, time_scale=scale)


def grid_step_minutes(focused: TimelineEvent | None = None) -> int:
    """Axis tick step: finer when a short event is focused."""

    if focused is None or focused.is_milestone:
        return 60
    duration = focused.duration_minutes()
    if duration <= 12:
        return 5
    if duration <= 60:
        return 15
    return 60


@dataclass(frozen=True)
class AxisTick:
    time: dt.datetime
    pixel: float
    label: str


def build_ticks(mapper: TimelineCoordinateMapper, step_minutes: int) -> tuple[AxisTick, ...]:
    if step_minutes <= 0:
        raise ValueError("step_minutes must be > 0")
    total = int(mapper.total_minutes)
    ticks: list[AxisTick] = []
    for minute in range(0, total + 1, step_minutes):
        t = mapper.window_start + dt.timedelta(minutes=minute)
        ticks.append(AxisTick(time=t, pixel=float(round(mapper.time_to_pixel(t))), label=format_clock(t)))
    return tuple(ticks)


def format_clock(t: dt.datetime) -> str:
    hour = t.hour % 12 or 12
    period = "am" if t.hour < 12 else "pm"
    return f"{hour}:{t.minute:02d}{period}"


def format_duration(start: dt.datetime, end: dt.datetime) -> str:
    total_minutes = int(minutes_between(start, end))
    hours, minutes = divmod(max(0, total_minutes), 60)
    if hours == 0:
        return f"{minutes}m"
    if minutes == 0:
        return f"{hours}h"
    return f"{hours}h {minutes}m"


@dataclass(frozen=True)
class EventFilter:
    text_query: str = ""
    category: str = "all"
    priority: str = "all"

    def __post_init__(self) -> None:
        if self.category != "all" and self.category not in EVENT_CATEGORIES:
            raise ValueError(f"Unsupported category filter: {self.category}")
        if self.priority != "all" and self.priority not in EVENT_PRIORITIES:
            raise ValueError(f"Unsupported priority filter: {self.priority}")

    @property
    def is_active(self) -> bool:
        return bool(self.text_query.strip()) or self.category != "all" or self.priority != "all"

    def matches(self, event: TimelineEvent) -> bool:
        query = self.text_query.strip().lower()
        if query:
            haystack = " ".join((event.title, event.description, event.location or "")).lower()
            if query not in haystack:
                return False
        if self.category != "all" and event.category != self.category:
            return False
        if self.priority != "all" and event.priority != self.priority:
            return False
        return True

    def apply(self, events: Iterable[TimelineEvent], *, max_events: int = 200) -> tuple[TimelineEvent, ...]:
        out = [event for event in events if self.matches(event)]
        return tuple(out[:max_events])


def _floor_to_half_hour(t: dt.datetime) -> dt.datetime:
    return t.replace(minute=(t.minute // 30) * 30, second=0, microsecond=0)


def _ceil_to_half_hour(t: dt.datetime) -> dt.datetime:
    floored = _floor_to_half_hour(t)
    if floored == t:
        return t
    return floored + dt.timedelta(minutes=30)
