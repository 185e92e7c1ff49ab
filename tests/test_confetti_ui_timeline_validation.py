from __future__ import annotations

import datetime as dt
import unittest

from confetti_core.core.coordinates import TimelineCoordinateMapper
from confetti_ui.timeline.layout import RenderPlan, RenderSlot, layout_events
from confetti_ui.timeline.schema import InvalidRangeError, TimelineEvent
from confetti_ui.timeline.validation import (
    max_concurrency,
    require_valid_timeline,
    validate_column_minimality,
    validate_layout_determinism,
    validate_layout_soundness,
    validate_timeline_suite,
)


def _at(hour: int, minute: int = 0) -> dt.datetime:
    return dt.datetime(2026, 6, 13, hour, minute)


def _events() -> list[TimelineEvent]:
    return [
        TimelineEvent(event_id="a", title="A", start=_at(9), end=_at(10)),
        TimelineEvent(event_id="b", title="B", start=_at(9, 30), end=_at(10, 30)),
        TimelineEvent(event_id="c", title="C", start=_at(10, 30), end=_at(11)),
        TimelineEvent(event_id="m", title="M", start=_at(9, 15)),
    ]


def _mapper() -> TimelineCoordinateMapper:
    return TimelineCoordinateMapper(window_start=_at(8), window_end=_at(12), pixels_per_minute=1.0)


def _forged_plan(column_b: int, column_count: int) -> RenderPlan:
    def slot(event_id: str, top: float, height: float, column: int, count: int, cluster: int) -> RenderSlot:
        return RenderSlot(
            event_id=event_id,
            top_offset=top,
            height=height,
            column_index=column,
            column_count=count,
            cluster_id=cluster,
        )

    return RenderPlan(
        _slots={
            "a": slot("a", 60.0, 60.0, 0, column_count, 0),
            "b": slot("b", 90.0, 60.0, column_b, column_count, 0),
            "c": slot("c", 150.0, 30.0, 0, 1, 1),
        },
        total_height=240.0,
    )


class TimelineValidationTests(unittest.TestCase):
    def test_real_layout_passes_suite(self) -> None:
        report = validate_timeline_suite(_events(), _mapper())
        self.assertTrue(report.ok)
        self.assertEqual(report.errors, ())
        require_valid_timeline(_events(), _mapper())

    def test_shared_column_is_unsound(self) -> None:
        report = validate_layout_soundness(_events(), _forged_plan(column_b=0, column_count=2))
        self.assertFalse(report.ok)
        self.assertIn("share column", report.errors[0])

    def test_extra_columns_are_not_minimal(self) -> None:
        report = validate_column_minimality(_events(), _forged_plan(column_b=1, column_count=3))
        self.assertFalse(report.ok)
        self.assertIn("3 columns for overlap depth 2", report.errors[0])

    def test_missing_slots_warn(self) -> None:
        plan = RenderPlan(_slots={}, total_height=240.0)
        report = validate_column_minimality(_events(), plan)
        self.assertTrue(report.ok)
        self.assertEqual(len(report.warnings), 2)

    def test_determinism_check_passes_for_real_layout(self) -> None:
        self.assertTrue(validate_layout_determinism(_events(), _mapper()).ok)

    def test_max_concurrency_is_half_open(self) -> None:
        events = _events()
        self.assertEqual(max_concurrency(events), 2)
        self.assertEqual(max_concurrency(events[2:]), 1)
        self.assertEqual(max_concurrency([]), 0)
        touching = [
            TimelineEvent(event_id="x", title="X", start=_at(9), end=_at(10)),
            TimelineEvent(event_id="y", title="Y", start=_at(10), end=_at(11)),
        ]
        self.assertEqual(max_concurrency(touching), 1)

    def test_invalid_range_propagates(self) -> None:
        with self.assertRaises(InvalidRangeError):
            require_valid_timeline([TimelineEvent(event_id="bad", title="Bad", start=_at(10), end=_at(9))], _mapper())

    def test_layout_agrees_with_sweep(self) -> None:
        plan = layout_events(_events(), _mapper())
        self.assertEqual(max(slot.column_count for slot in plan.slots()), max_concurrency(_events()))


if __name__ == "__main__":
    unittest.main()
