from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Literal, Mapping

from confetti_core.core.coordinates import TimelineCoordinateMapper, minutes_between

from .schema import InvalidRangeError, TimelineEvent


OverflowMode = Literal["clip", "hide"]


@dataclass(frozen=True)
class TimelineRenderContext:
    """Rendering context shared by every visual variant of the timeline."""

    axis_width_px: float = 72.0
    track_width_px: float = 840.0
    column_gap_px: float = 10.0
    min_event_height_px: float = 6.0
    milestone_height_px: float = 24.0
    overflow: OverflowMode = "clip"
    max_events: int = 200

    def __post_init__(self) -> None:
        if self.axis_width_px < 0:
            raise ValueError("axis_width_px must be >= 0")
        if self.track_width_px <= 0:
            raise ValueError("track_width_px must be > 0")
        if self.column_gap_px < 0:
            raise ValueError("column_gap_px must be >= 0")
        if self.min_event_height_px < 0 or self.milestone_height_px < 0:
            raise ValueError("event heights must be >= 0")
        if self.overflow not in ("clip", "hide"):
            raise ValueError(f"Unsupported overflow mode: {self.overflow}")
        if self.max_events < 1:
            raise ValueError("max_events must be >= 1")


@dataclass(frozen=True)
class RenderSlot:
    event_id: str
    top_offset: float
    height: float
    column_index: int
    column_count: int
    cluster_id: int
    is_milestone: bool = False

    @property
    def bottom_offset(self) -> float:
        return self.top_offset + self.height


@dataclass(frozen=True)
class RenderPlan(Mapping[str, RenderSlot]):
    """Per-event render slots, iterated in layout order."""

    _slots: dict[str, RenderSlot] = field(default_factory=dict)
    total_height: float = 0.0

    def __getitem__(self, event_id: str) -> RenderSlot:
        return self._slots[event_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._slots)

    def __len__(self) -> int:
        return len(self._slots)

    def slots(self) -> tuple[RenderSlot, ...]:
        return tuple(self._slots.values())

    def clusters(self) -> dict[int, tuple[RenderSlot, ...]]:
        grouped: dict[int, list[RenderSlot]] = {}
        for slot in self._slots.values():
            if slot.is_milestone:
                continue
            grouped.setdefault(slot.cluster_id, []).append(slot)
        return {cluster_id: tuple(slots) for cluster_id, slots in grouped.items()}

    def has_overlaps(self) -> bool:
        return any(slot.column_count > 1 for slot in self._slots.values())


def layout_sort_key(event: TimelineEvent) -> tuple[object, ...]:
    # Earlier first, then longer first so the dominant event claims column 0.
    return (event.start, -event.duration_minutes(), event.event_id)


def layout_events(
    events: Iterable[TimelineEvent],
    mapper: TimelineCoordinateMapper,
    context: TimelineRenderContext | None = None,
) -> RenderPlan:
    """Pack overlapping duration events into columns and place every event on the axis.

    Raises `InvalidRangeError` for any duration event whose end is not after its
    start; the caller is expected to filter such data before rendering.
    """

    ctx = context or TimelineRenderContext()
    durations: list[TimelineEvent] = []
    milestones: list[TimelineEvent] = []
    seen: set[str] = set()
    for event in events:
        if event.event_id in seen:
            raise ValueError(f"Duplicate event id: {event.event_id}")
        seen.add(event.event_id)
        if event.is_milestone:
            milestones.append(event)
            continue
        event.validate_range()
        durations.append(event)

    placed = _assign_columns(sorted(durations, key=layout_sort_key))
    max_cols_by_cluster: dict[int, int] = {}
    for _, column, cluster_id in placed:
        max_cols_by_cluster[cluster_id] = max(max_cols_by_cluster.get(cluster_id, 0), column + 1)

    slots: dict[str, RenderSlot] = {}
    for event, column, cluster_id in placed:
        assert event.end is not None
        height = max(minutes_between(event.start, event.end) * mapper.pixels_per_minute, ctx.min_event_height_px)
        slots[event.event_id] = RenderSlot(
            event_id=event.event_id,
            top_offset=mapper.time_to_pixel(event.start),
            height=height,
            column_index=column,
            column_count=max_cols_by_cluster[cluster_id],
            cluster_id=cluster_id,
        )
    for event in sorted(milestones, key=lambda m: (m.start, m.event_id)):
        slots[event.event_id] = RenderSlot(
            event_id=event.event_id,
            top_offset=mapper.time_to_pixel(event.start),
            height=ctx.milestone_height_px,
            column_index=0,
            column_count=1,
            cluster_id=-1,
            is_milestone=True,
        )
    return RenderPlan(_slots=slots, total_height=mapper.total_height)


def find_overlap_clusters(events: Iterable[TimelineEvent]) -> list[tuple[TimelineEvent, ...]]:
    """Group duration events into maximal chains of pairwise overlap."""

    durations = [e for e in events if not e.is_milestone]
    for event in durations:
        event.validate_range()
    clusters: dict[int, list[TimelineEvent]] = {}
    for event, _, cluster_id in _assign_columns(sorted(durations, key=layout_sort_key)):
        clusters.setdefault(cluster_id, []).append(event)
    return [tuple(members) for _, members in sorted(clusters.items())]


def _assign_columns(sorted_events: list[TimelineEvent]) -> list[tuple[TimelineEvent, int, int]]:
    column_ends: list = []
    active_ends: list = []
    cluster_id = -1
    out: list[tuple[TimelineEvent, int, int]] = []
    for event in sorted_events:
        start = event.start
        end = event.end
        active_ends = [active_end for active_end in active_ends if active_end > start]
        if not active_ends:
            column_ends = []
            cluster_id += 1
        column = next((i for i, column_end in enumerate(column_ends) if column_end <= start), -1)
        if column == -1:
            column_ends.append(end)
            column = len(column_ends) - 1
        else:
            column_ends[column] = end
        active_ends.append(end)
        out.append((event, column, cluster_id))
    return out
