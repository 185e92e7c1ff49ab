from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass

_SECONDS_PER_MINUTE = 60.0


@dataclass(frozen=True)
class TimelineCoordinateMapper:
    """Maps wall-clock instants onto the vertical pixel axis of one timeline window.

    `time_to_pixel` and `pixel_to_time` are exact inverses. Neither clamps; callers
    that draw must decide whether out-of-window values are hidden or clipped and use
    `clamp_pixel` / `clamp_time` explicitly.
    """

    window_start: dt.datetime
    window_end: dt.datetime
    pixels_per_minute: float

    def __post_init__(self) -> None:
        if self.pixels_per_minute <= 0:
            raise ValueError("pixels_per_minute must be > 0")
        if self.window_end <= self.window_start:
            raise ValueError("window_end must be after window_start")

    @property
    def total_minutes(self) -> float:
        return minutes_between(self.window_start, self.window_end)

    @property
    def total_height(self) -> float:
        return self.total_minutes * self.pixels_per_minute

    def time_to_pixel(self, t: dt.datetime) -> float:
        return minutes_between(self.window_start, t) * self.pixels_per_minute

    def pixel_to_time(self, y: float) -> dt.datetime:
        return self.window_start + dt.timedelta(minutes=float(y) / self.pixels_per_minute)

    def pixels_to_minutes(self, dy: float) -> float:
        return float(dy) / self.pixels_per_minute

    def snap_to_grid(self, t: dt.datetime, grid_minutes: float) -> dt.datetime:
        return snap_to_grid(t, grid_minutes)

    def contains(self, t: dt.datetime) -> bool:
        return self.window_start <= t <= self.window_end

    def clamp_time(self, t: dt.datetime) -> dt.datetime:
        return max(self.window_start, min(self.window_end, t))

    def clamp_pixel(self, y: float) -> float:
        return max(0.0, min(self.total_height, float(y)))


def minutes_between(a: dt.datetime, b: dt.datetime) -> float:
    return (b - a).total_seconds() / _SECONDS_PER_MINUTE


def snap_to_grid(t: dt.datetime, grid_minutes: float) -> dt.datetime:
    """Round `t` to the nearest multiple of `grid_minutes` counted from the Unix epoch.

    Halfway values round up, so a pointer resting exactly between two grid lines
    always lands on the later one.
    """

    if grid_minutes <= 0:
        raise ValueError("grid_minutes must be > 0")
    epoch = dt.datetime(1970, 1, 1, tzinfo=t.tzinfo)
    step_s = float(grid_minutes) * _SECONDS_PER_MINUTE
    offset_s = (t - epoch).total_seconds()
    snapped_s = math.floor(offset_s / step_s + 0.5) * step_s
    return epoch + dt.timedelta(seconds=snapped_s)
