from __future__ import annotations

import datetime as dt
import json
import tempfile
import unittest
from pathlib import Path

from confetti_ui.timeline.schema import (
    CATEGORY_COLORS,
    MILESTONE_COLOR,
    InvalidRangeError,
    TimelineEvent,
    events_from_dict,
    load_timeline_events,
    parse_event_time,
    timeline_events_schema,
)


def _at(hour: int, minute: int = 0) -> dt.datetime:
    return dt.datetime(2026, 6, 13, hour, minute)


class TimelineEventTests(unittest.TestCase):
    def test_milestone_has_no_end(self) -> None:
        event = TimelineEvent(event_id="doors", title="Doors open", start=_at(11))
        self.assertTrue(event.is_milestone)
        self.assertEqual(event.duration_minutes(), 0.0)
        self.assertEqual(event.display_color(), MILESTONE_COLOR)

    def test_duration_event_colors_by_category(self) -> None:
        event = TimelineEvent(event_id="lunch", title="Lunch", start=_at(12), end=_at(13), category="meal")
        self.assertEqual(event.duration_minutes(), 60.0)
        self.assertEqual(event.display_color(), CATEGORY_COLORS["meal"])
        custom = TimelineEvent(event_id="x", title="X", start=_at(12), end=_at(13), color="#000000")
        self.assertEqual(custom.display_color(), "#000000")

    def test_overlap_is_half_open(self) -> None:
        a = TimelineEvent(event_id="a", title="A", start=_at(9), end=_at(10))
        b = TimelineEvent(event_id="b", title="B", start=_at(10), end=_at(11))
        c = TimelineEvent(event_id="c", title="C", start=_at(9, 30), end=_at(10, 30))
        self.assertFalse(a.overlaps(b))
        self.assertTrue(a.overlaps(c))
        self.assertTrue(c.overlaps(b))

    def test_validate_range_raises_for_inverted_event(self) -> None:
        event = TimelineEvent(event_id="bad", title="Bad", start=_at(10), end=_at(10))
        with self.assertRaises(InvalidRangeError) as ctx:
            event.validate_range()
        self.assertEqual(ctx.exception.event_id, "bad")
        self.assertIsInstance(ctx.exception, ValueError)

    def test_rejects_unknown_category_and_priority(self) -> None:
        with self.assertRaises(ValueError):
            TimelineEvent(event_id="a", title="A", start=_at(9), category="party")
        with self.assertRaises(ValueError):
            TimelineEvent(event_id="a", title="A", start=_at(9), priority="urgent")
        with self.assertRaises(ValueError):
            TimelineEvent(event_id=" ", title="A", start=_at(9))


class TimelineLoaderTests(unittest.TestCase):
    def test_parse_event_time_accepts_clock_and_iso(self) -> None:
        day = dt.date(2026, 6, 13)
        self.assertEqual(parse_event_time("09:45", base_date=day), _at(9, 45))
        self.assertEqual(parse_event_time("2026-06-13T14:05:00", base_date=day), _at(14, 5))
        with self.assertRaises(ValueError):
            parse_event_time("9", base_date=day)

    def test_events_from_dict_reads_window_and_fields(self) -> None:
        doc = events_from_dict(
            {
                "title": "Party",
                "date": "2026-06-13",
                "window": {"start": "08:00", "end": "16:00"},
                "events": [
                    {
                        "id": "games",
                        "title": "Games",
                        "start": "11:00",
                        "end": "12:30",
                        "category": "activity",
                        "assigned_to": ["Sam", " ", "Riley"],
                        "attendees": "40",
                    },
                    {"id": "doors", "title": "Doors open", "start": "11:00", "end": ""},
                ],
            }
        )
        self.assertEqual(doc.title, "Party")
        self.assertEqual(doc.window_start, _at(8))
        self.assertEqual(doc.window_end, _at(16))
        games, doors = doc.events
        self.assertEqual(games.assigned_to, ("Sam", "Riley"))
        self.assertEqual(games.attendees, 40)
        self.assertTrue(doors.is_milestone)

    def test_events_from_dict_rejects_wrong_shapes(self) -> None:
        with self.assertRaises(TypeError):
            events_from_dict({"events": {"id": "a"}})
        with self.assertRaises(TypeError):
            events_from_dict({"events": ["a"]})
        with self.assertRaises(TypeError):
            events_from_dict({"events": [], "window": "all day"})

    def test_load_timeline_events_from_file(self) -> None:
        payload = {"date": "2026-06-13", "events": [{"id": "a", "title": "A", "start": "09:00", "end": "10:00"}]}
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "events.json"
            path.write_text(json.dumps(payload), encoding="utf-8")
            doc = load_timeline_events(path)
        self.assertEqual(len(doc.events), 1)
        self.assertEqual(doc.events[0].end, _at(10))
        self.assertIsNone(doc.window_start)

    def test_schema_copy_is_independent(self) -> None:
        schema = timeline_events_schema()
        self.assertEqual(schema["type"], "object")
        schema["type"] = "array"
        self.assertEqual(timeline_events_schema()["type"], "object")


if __name__ == "__main__":
    unittest.main()
