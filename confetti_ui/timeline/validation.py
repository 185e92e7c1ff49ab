from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import numpy as np

from confetti_core.core.coordinates import TimelineCoordinateMapper

from .layout import RenderPlan, TimelineRenderContext, find_overlap_clusters, layout_events
from .schema import TimelineEvent


@dataclass(frozen=True)
class ValidationReport:
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors


def max_concurrency(events: Iterable[TimelineEvent]) -> int:
    """Largest number of duration events alive at any instant (half-open ranges)."""

    durations = [e for e in events if e.end is not None]
    if not durations:
        return 0
    starts = np.array([e.start.timestamp() for e in durations], dtype=np.float64)
    ends = np.array([e.end.timestamp() for e in durations], dtype=np.float64)
    times = np.concatenate([starts, ends])
    deltas = np.concatenate([np.ones(len(starts), dtype=np.int64), -np.ones(len(ends), dtype=np.int64)])
    # Ends sort before starts at the same instant, so touching ranges never stack.
    order = np.lexsort((deltas, times))
    return int(np.cumsum(deltas[order]).max())


def validate_layout_soundness(events: Iterable[TimelineEvent], plan: RenderPlan) -> ValidationReport:
    errors: list[str] = []
    by_cluster: dict[int, list[TimelineEvent]] = {}
    for event in events:
        slot = plan.get(event.event_id)
        if slot is None or slot.is_milestone:
            continue
        by_cluster.setdefault(slot.cluster_id, []).append(event)

    for cluster_id, members in sorted(by_cluster.items()):
        ordered = sorted(members, key=lambda e: e.event_id)
        for i, a in enumerate(ordered):
            for b in ordered[i + 1 :]:
                if not a.overlaps(b):
                    continue
                if plan[a.event_id].column_index == plan[b.event_id].column_index:
                    errors.append(
                        f"Cluster {cluster_id}: overlapping events `{a.event_id}` and `{b.event_id}` share column "
                        f"{plan[a.event_id].column_index}"
                    )
        counts = {plan[e.event_id].column_count for e in members}
        if len(counts) != 1:
            errors.append(f"Cluster {cluster_id}: inconsistent column counts {sorted(counts)}")
    return ValidationReport(errors=tuple(errors))


def validate_column_minimality(events: Iterable[TimelineEvent], plan: RenderPlan) -> ValidationReport:
    errors: list[str] = []
    warnings: list[str] = []
    for cluster in find_overlap_clusters(events):
        slots = [plan.get(e.event_id) for e in cluster]
        if any(slot is None for slot in slots):
            warnings.append(f"Cluster starting at `{cluster[0].event_id}` is not fully present in the plan")
            continue
        depth = max_concurrency(cluster)
        column_count = slots[0].column_count
        if column_count != depth:
            errors.append(
                f"Cluster starting at `{cluster[0].event_id}` uses {column_count} columns for overlap depth {depth}"
            )
    return ValidationReport(errors=tuple(errors), warnings=tuple(warnings))


def validate_layout_determinism(
    events: Iterable[TimelineEvent],
    mapper: TimelineCoordinateMapper,
    context: TimelineRenderContext | None = None,
) -> ValidationReport:
    items = list(events)
    forward = layout_events(items, mapper, context)
    backward = layout_events(list(reversed(items)), mapper, context)
    if forward != backward:
        return ValidationReport(errors=("Layout differs when the same events arrive in a different order",))
    return ValidationReport()


def validate_timeline_suite(
    events: Iterable[TimelineEvent],
    mapper: TimelineCoordinateMapper,
    context: TimelineRenderContext | None = None,
) -> ValidationReport:
    items = list(events)
    plan = layout_events(items, mapper, context)
    reports = (
        validate_layout_soundness(items, plan),
        validate_column_minimality(items, plan),
        validate_layout_determinism(items, mapper, context),
    )
    return ValidationReport(
        errors=tuple(error for report in reports for error in report.errors),
        warnings=tuple(warning for report in reports for warning in report.warnings),
    )


def require_valid_timeline(
    events: Iterable[TimelineEvent],
    mapper: TimelineCoordinateMapper,
    context: TimelineRenderContext | None = None,
) -> None:
    report = validate_timeline_suite(events, mapper, context)
    if report.errors:
        joined = "; ".join(report.errors)
        raise ValueError(f"Timeline validation failed: {joined}")
