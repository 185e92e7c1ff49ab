from __future__ import annotations

import datetime as dt
import unittest

from confetti_core.core.coordinates import TimelineCoordinateMapper
from confetti_core.core.deferred import DeferredCallQueue, ManualClock
from confetti_core.core.input_events import GestureInput, TouchPoint
from confetti_ui.component_schema import CoordinatePoint
from confetti_ui.timeline.component import DIMMED_OPACITY, EventTimelineComponent
from confetti_ui.timeline.layout import TimelineRenderContext
from confetti_ui.timeline.schema import TimelineEvent
from confetti_ui.timeline.viewport import EventFilter


def _at(hour: int, minute: int = 0) -> dt.datetime:
    return dt.datetime(2026, 6, 13, hour, minute)


def _events() -> tuple[TimelineEvent, ...]:
    return (
        TimelineEvent(event_id="setup", title="Set up", start=_at(9), end=_at(10), category="setup"),
        TimelineEvent(event_id="balloons", title="Balloons", start=_at(9, 30), end=_at(10, 30), category="setup"),
        TimelineEvent(event_id="doors", title="Doors open", start=_at(11)),
        TimelineEvent(event_id="lunch", title="Lunch", start=_at(12), end=_at(13), category="meal"),
    )


def _mouse(kind: str, x: float, y: float) -> GestureInput:
    return GestureInput(kind=kind, timestamp=0.0, x=x, y=y)  # type: ignore[arg-type]


def _touch(kind: str, x: float, y: float) -> GestureInput:
    touches = (TouchPoint(x=x, y=y),) if kind in ("touch_start", "touch_move") else ()
    return GestureInput(kind=kind, timestamp=0.0, x=x, y=y, touches=touches)  # type: ignore[arg-type]


class EventTimelineComponentTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = ManualClock()
        self.taps: list[str] = []
        self.proposals: list[tuple[str, dt.datetime, dt.datetime]] = []
        self.background: list[dt.datetime] = []
        self.pulses: list[int] = []
        self.drag_ends: list[int] = []
        self.timeline = self._timeline(_events())

    def _timeline(self, events, **kwargs) -> EventTimelineComponent:
        return EventTimelineComponent(
            component_id="party",
            events=events,
            mapper=TimelineCoordinateMapper(window_start=_at(8), window_end=_at(14), pixels_per_minute=2.0),
            scheduler=DeferredCallQueue(clock=self.clock),
            on_tap=self.taps.append,
            on_time_change=lambda event_id, start, end: self.proposals.append((event_id, start, end)),
            on_drag_end=lambda: self.drag_ends.append(1),
            on_background_tap=self.background.append,
            haptics=self.pulses.append,
            **kwargs,
        )

    def _tap(self, x: float, y: float) -> None:
        self.timeline.handle_input(_mouse("mouse_down", x, y))
        self.timeline.handle_input(_mouse("mouse_up", x, y))
        self.timeline.handle_input(_mouse("click", x, y))

    def test_overlapping_events_split_track_width(self) -> None:
        setup = self.timeline.event_bounds("setup")
        balloons = self.timeline.event_bounds("balloons")
        lunch = self.timeline.event_bounds("lunch")
        assert setup is not None and balloons is not None and lunch is not None
        self.assertEqual((setup.x, setup.y, setup.width, setup.height), (72.0, 120.0, 415.0, 120.0))
        self.assertEqual((balloons.x, balloons.y), (497.0, 180.0))
        self.assertEqual((lunch.x, lunch.width), (72.0, 840.0))

    def test_milestone_spans_track_centred_on_time(self) -> None:
        doors = self.timeline.event_bounds("doors")
        assert doors is not None
        self.assertEqual((doors.x, doors.y, doors.width, doors.height), (72.0, 348.0, 840.0, 24.0))

    def test_event_at_resolves_zones(self) -> None:
        self.assertEqual(self.timeline.event_at(100.0, 150.0), ("setup", "body"))
        self.assertEqual(self.timeline.event_at(100.0, 122.0), ("setup", "resize-start"))
        self.assertEqual(self.timeline.event_at(100.0, 238.0), ("setup", "resize-end"))
        self.assertEqual(self.timeline.event_at(600.0, 200.0), ("balloons", "body"))
        self.assertEqual(self.timeline.event_at(100.0, 360.0), ("doors", "body"))
        self.assertIsNone(self.timeline.event_at(100.0, 440.0))
        self.assertIsNone(self.timeline.event_at(10.0, 150.0))

    def test_tap_selects_event_and_dims_others(self) -> None:
        self._tap(100.0, 150.0)
        self.assertEqual(self.taps, ["setup"])
        self.assertEqual(self.timeline.selected_event_id, "setup")
        self.assertFalse(self.timeline.is_dimmed("setup"))
        self.assertTrue(self.timeline.is_dimmed("balloons"))
        opacities = {(c.x, c.y): c.opacity for c in self.timeline.block_commands()}
        self.assertEqual(opacities[(72.0, 120.0)], 1.0)
        self.assertEqual(opacities[(497.0, 180.0)], DIMMED_OPACITY)

    def test_mouse_drag_proposes_times_and_swallows_click(self) -> None:
        timeline = self.timeline
        timeline.handle_input(_mouse("mouse_down", 300.0, 510.0))
        timeline.handle_input(_mouse("mouse_move", 300.0, 540.0))
        # Pointer leaves the block; the leased listeners keep tracking it.
        timeline.handle_input(_mouse("mouse_move", 20.0, 570.0))
        timeline.handle_input(_mouse("mouse_up", 20.0, 570.0))
        timeline.handle_input(_mouse("click", 20.0, 570.0))

        self.assertEqual(self.proposals[0], ("lunch", _at(12, 15), _at(13, 15)))
        self.assertEqual(self.proposals[-1], ("lunch", _at(12, 30), _at(13, 30)))
        self.assertEqual(self.drag_ends, [1])
        self.assertEqual(self.taps, [])
        self.assertEqual(self.background, [])
        self.assertIsNone(timeline.selected_event_id)
        self.assertIsNone(timeline.listener_hub.active_owner)

    def test_preview_moves_painted_block_until_caller_commits(self) -> None:
        timeline = self.timeline
        timeline.handle_input(_mouse("mouse_down", 300.0, 510.0))
        timeline.handle_input(_mouse("mouse_move", 300.0, 570.0))
        timeline.tick()
        lunch = [c for c in timeline.block_commands() if c.color_hex == "#EC4899"]
        self.assertEqual(lunch[0].y, 540.0)

        _, start, end = self.proposals[-1]
        timeline.handle_input(_mouse("mouse_up", 300.0, 570.0))
        timeline.update_events(
            tuple(
                TimelineEvent(event_id=e.event_id, title=e.title, start=start, end=end, category=e.category)
                if e.event_id == "lunch"
                else e
                for e in timeline.events
            )
        )
        timeline.tick()
        bounds = timeline.event_bounds("lunch")
        assert bounds is not None
        self.assertEqual(bounds.y, 540.0)
        self.assertFalse(timeline.drag_state("lunch").dragging)

    def test_long_press_on_touch_starts_drag(self) -> None:
        timeline = self.timeline
        timeline.handle_input(_touch("touch_start", 300.0, 510.0))
        self.clock.advance(0.3)
        timeline.tick()
        self.assertEqual(self.pulses, [50])
        timeline.handle_input(_touch("touch_move", 300.0, 570.0))
        timeline.handle_input(_touch("touch_end", 300.0, 570.0))
        timeline.handle_input(_touch("click", 300.0, 570.0))
        self.assertEqual(self.proposals[-1], ("lunch", _at(12, 30), _at(13, 30)))
        self.assertEqual(self.taps, [])

    def test_milestone_is_not_draggable(self) -> None:
        timeline = self.timeline
        self.assertFalse(timeline.controller("doors").drag_enabled)
        timeline.handle_input(_mouse("mouse_down", 300.0, 360.0))
        timeline.handle_input(_mouse("mouse_move", 300.0, 420.0))
        timeline.handle_input(_mouse("mouse_up", 300.0, 420.0))
        timeline.handle_input(_mouse("click", 300.0, 420.0))
        self.assertEqual(self.proposals, [])
        self.assertEqual(self.taps, ["doors"])

    def test_background_tap_reports_snapped_time(self) -> None:
        self._tap(100.0, 441.0)
        self.assertEqual(self.background, [_at(11, 40)])
        self.assertEqual(self.taps, [])

    def test_filter_hides_events_and_drops_their_controllers(self) -> None:
        self.timeline.select("setup")
        self.timeline.set_filter(EventFilter(category="meal"))
        self.assertEqual([e.event_id for e in self.timeline.visible_events()], ["lunch"])
        self.assertIsNone(self.timeline.event_bounds("setup"))
        self.assertIsNone(self.timeline.selected_event_id)
        with self.assertRaises(KeyError):
            self.timeline.controller("setup")
        with self.assertRaises(KeyError):
            self.timeline.select("setup")

    def test_overflow_clip_and_hide(self) -> None:
        early = (TimelineEvent(event_id="early", title="Early", start=_at(7, 30), end=_at(8, 30)),)
        clipped = self._timeline(early).event_bounds("early")
        assert clipped is not None
        self.assertEqual((clipped.y, clipped.height), (0.0, 60.0))
        hidden = self._timeline(early, context=TimelineRenderContext(overflow="hide"))
        self.assertIsNone(hidden.event_bounds("early"))

    def test_visual_bounds_and_hit_test(self) -> None:
        bounds = self.timeline.visual_bounds()
        self.assertEqual((bounds.width, bounds.height), (912.0, 720.0))
        self.assertTrue(self.timeline.hit_test(CoordinatePoint(x=10.0, y=10.0)))
        self.timeline.disabled = True
        self.assertFalse(self.timeline.hit_test(CoordinatePoint(x=10.0, y=10.0)))
        self.assertFalse(self.timeline.handle_input(_mouse("mouse_down", 100.0, 150.0)))

    def test_unmount_stops_all_interaction(self) -> None:
        timeline = self.timeline
        timeline.handle_input(_touch("touch_start", 300.0, 510.0))
        timeline.unmount()
        self.clock.advance(1.0)
        self.assertEqual(timeline.tick(), 0)
        self.assertEqual(self.pulses, [])
        self.assertFalse(timeline.handle_input(_mouse("mouse_down", 100.0, 150.0)))
        self.assertTrue(timeline.controller("lunch").unmounted)

    def test_new_press_on_other_event_drops_stale_drag(self) -> None:
        timeline = self.timeline
        timeline.handle_input(_mouse("mouse_down", 100.0, 150.0))
        timeline.handle_input(_mouse("mouse_move", 100.0, 200.0))
        self.assertEqual(timeline.listener_hub.active_owner, "setup")
        self.proposals.clear()

        # No mouse_up reached us; the next press lands on lunch.
        timeline.handle_input(_mouse("mouse_down", 300.0, 510.0))
        self.assertFalse(timeline.controller("setup").is_dragging)
        self.assertIsNone(timeline.controller("setup").session)
        timeline.handle_input(_mouse("mouse_move", 300.0, 540.0))

        self.assertEqual([p[0] for p in self.proposals], ["lunch"])
        self.assertEqual(timeline.listener_hub.active_owner, "lunch")

    def test_new_touch_on_other_event_clears_stale_long_press(self) -> None:
        timeline = self.timeline
        timeline.handle_input(_touch("touch_start", 100.0, 150.0))
        timeline.handle_input(_touch("touch_start", 300.0, 510.0))
        timeline.handle_input(_touch("touch_end", 300.0, 510.0))
        self.clock.advance(0.4)
        timeline.tick()

        self.assertEqual(self.pulses, [])
        self.assertFalse(timeline.controller("setup").is_dragging)
        self.assertIsNone(timeline.controller("setup").session)
        self.assertIsNone(timeline.listener_hub.active_owner)

    def test_background_press_releases_stale_drag(self) -> None:
        timeline = self.timeline
        timeline.handle_input(_mouse("mouse_down", 100.0, 150.0))
        timeline.handle_input(_mouse("mouse_move", 100.0, 200.0))
        self.proposals.clear()

        self.assertFalse(timeline.handle_input(_mouse("mouse_down", 100.0, 441.0)))
        self.assertIsNone(timeline.listener_hub.active_owner)
        self.assertFalse(timeline.handle_input(_mouse("mouse_move", 100.0, 470.0)))
        self.assertEqual(self.proposals, [])

    def test_clipped_event_has_no_handle_on_window_edge(self) -> None:
        early = (TimelineEvent(event_id="early", title="Early", start=_at(7, 30), end=_at(8, 30)),)
        timeline = self._timeline(early)
        self.assertEqual(timeline.event_at(100.0, 3.0), ("early", "body"))
        self.assertEqual(timeline.event_at(100.0, 58.0), ("early", "resize-end"))

    def test_two_finger_touch_on_background_is_not_a_tap(self) -> None:
        timeline = self.timeline
        two_fingers = GestureInput(
            kind="touch_start",
            timestamp=0.0,
            x=100.0,
            y=441.0,
            touches=(TouchPoint(x=100.0, y=441.0), TouchPoint(x=300.0, y=510.0)),
        )
        timeline.handle_input(two_fingers)
        timeline.handle_input(_touch("touch_end", 100.0, 441.0))
        timeline.handle_input(_touch("click", 100.0, 441.0))
        self.assertEqual(self.background, [])
        self.assertEqual(self.taps, [])

        self._tap(100.0, 441.0)
        self.assertEqual(self.background, [_at(11, 40)])

    def test_axis_lines_follow_focused_event(self) -> None:
        self.assertEqual(len(self.timeline.axis_lines()), 7)
        self.timeline.select("setup")
        self.assertEqual(len(self.timeline.axis_lines()), 25)


if __name__ == "__main__":
    unittest.main()
