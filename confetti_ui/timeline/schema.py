from __future__ import annotations

import datetime as dt
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping

EVENT_CATEGORIES: tuple[str, ...] = ("setup", "activity", "meal", "entertainment", "cleanup", "other")
EVENT_PRIORITIES: tuple[str, ...] = ("low", "medium", "high", "critical")

CATEGORY_COLORS: dict[str, str] = {
    "setup": "#FB923C",
    "activity": "#3B82F6",
    "meal": "#EC4899",
    "entertainment": "#8B5CF6",
    "cleanup": "#10B981",
    "other": "#6B7280",
}

MILESTONE_COLOR = "#E11D48"


class InvalidRangeError(ValueError):
    """A duration event whose end is not strictly after its start."""

    def __init__(self, event_id: str, start: dt.datetime, end: dt.datetime) -> None:
        super().__init__(
            f"Event `{event_id}` has end {end.isoformat()} <= start {start.isoformat()}"
        )
        self.event_id = event_id
        self.start = start
        self.end = end


@dataclass(frozen=True)
class TimelineEvent:
    event_id: str
    title: str
    start: dt.datetime
    end: dt.datetime | None = None
    description: str = ""
    category: str = "other"
    priority: str = "medium"
    location: str | None = None
    attendees: int | None = None
    assigned_to: tuple[str, ...] = ()
    assigned_tasks: tuple[str, ...] = ()
    related_elements: tuple[str, ...] = ()
    color: str | None = None

    def __post_init__(self) -> None:
        if not self.event_id.strip():
            raise ValueError("TimelineEvent.event_id must be non-empty")
        if not self.title.strip():
            raise ValueError("TimelineEvent.title must be non-empty")
        if self.category not in EVENT_CATEGORIES:
            raise ValueError(f"Unsupported event category: {self.category}")
        if self.priority not in EVENT_PRIORITIES:
            raise ValueError(f"Unsupported event priority: {self.priority}")
        if self.attendees is not None and self.attendees < 0:
            raise ValueError("TimelineEvent.attendees must be >= 0")

    @property
    def is_milestone(self) -> bool:
        return self.end is None

    def duration_minutes(self) -> float:
        if self.end is None:
            return 0.0
        return (self.end - self.start).total_seconds() / 60.0

    def validate_range(self) -> None:
        if self.end is not None and self.end <= self.start:
            raise InvalidRangeError(self.event_id, self.start, self.end)

    def overlaps(self, other: "TimelineEvent") -> bool:
        if self.end is None or other.end is None:
            return False
        return self.start < other.end and other.start < self.end

    def display_color(self) -> str:
        if self.color:
            return self.color
        if self.is_milestone:
            return MILESTONE_COLOR
        return CATEGORY_COLORS[self.category]


@dataclass(frozen=True)
class TimeProposal:
    """Proposed new time range for one event, produced by a drag."""

    event_id: str
    start: dt.datetime
    end: dt.datetime

    def duration_minutes(self) -> float:
        return (self.end - self.start).total_seconds() / 60.0


TIMELINE_EVENTS_JSON_SCHEMA: dict[str, object] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "$id": "https://confetti.dev/schemas/timeline_events.schema.json",
    "title": "Confetti Event Timeline",
    "type": "object",
    "required": ["events"],
    "properties": {
        "title": {"type": "string"},
        "date": {"type": "string", "format": "date"},
        "window": {
            "type": "object",
            "properties": {
                "start": {"type": "string"},
                "end": {"type": "string"},
            },
        },
        "events": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id", "title", "start"],
                "properties": {
                    "id": {"type": "string"},
                    "title": {"type": "string"},
                    "description": {"type": "string"},
                    "start": {"type": "string"},
                    "end": {"type": "string"},
                    "category": {"type": "string", "enum": list(EVENT_CATEGORIES)},
                    "priority": {"type": "string", "enum": list(EVENT_PRIORITIES)},
                    "location": {"type": "string"},
                    "attendees": {"type": "integer", "minimum": 0},
                    "assigned_to": {"type": "array", "items": {"type": "string"}},
                    "assigned_tasks": {"type": "array", "items": {"type": "string"}},
                    "related_elements": {"type": "array", "items": {"type": "string"}},
                    "color": {"type": "string"},
                },
            },
        },
    },
}


def timeline_events_schema() -> dict[str, object]:
    return json.loads(json.dumps(TIMELINE_EVENTS_JSON_SCHEMA))


@dataclass(frozen=True)
class TimelineDocument:
    title: str
    events: tuple[TimelineEvent, ...]
    window_start: dt.datetime | None = None
    window_end: dt.datetime | None = None


def parse_event_time(raw: object, *, base_date: dt.date) -> dt.datetime:
    """Accept ISO datetimes or `HH:MM` wall-clock strings anchored on `base_date`."""

    if isinstance(raw, dt.datetime):
        return raw
    text = str(raw).strip()
    if not text:
        raise ValueError("event time must be non-empty")
    if "T" in text or "-" in text[:5]:
        return dt.datetime.fromisoformat(text)
    parts = text.split(":")
    if len(parts) != 2:
        raise ValueError(f"Unsupported time format: {text}")
    hours, minutes = int(parts[0]), int(parts[1])
    return dt.datetime.combine(base_date, dt.time(hour=hours, minute=minutes))


def event_from_dict(raw: Mapping[str, Any], *, base_date: dt.date) -> TimelineEvent:
    end_raw = raw.get("end")
    attendees = raw.get("attendees")
    return TimelineEvent(
        event_id=str(raw["id"]),
        title=str(raw["title"]),
        start=parse_event_time(raw["start"], base_date=base_date),
        end=parse_event_time(end_raw, base_date=base_date) if end_raw not in (None, "") else None,
        description=str(raw.get("description", "")),
        category=str(raw.get("category", "other")),
        priority=str(raw.get("priority", "medium")),
        location=_coerce_optional_str(raw.get("location")),
        attendees=int(attendees) if attendees is not None else None,
        assigned_to=_coerce_string_tuple(raw.get("assigned_to")),
        assigned_tasks=_coerce_string_tuple(raw.get("assigned_tasks")),
        related_elements=_coerce_string_tuple(raw.get("related_elements")),
        color=_coerce_optional_str(raw.get("color")),
    )


def events_from_dict(payload: Mapping[str, object]) -> TimelineDocument:
    title = str(payload.get("title", "Event Timeline"))
    base_date = dt.date.fromisoformat(str(payload["date"])) if payload.get("date") else dt.date.today()

    raw_events = payload.get("events")
    if not isinstance(raw_events, list):
        raise TypeError("`events` must be a list")
    events: list[TimelineEvent] = []
    for raw in raw_events:
        if not isinstance(raw, Mapping):
            raise TypeError("Each event must be a mapping")
        events.append(event_from_dict(raw, base_date=base_date))

    window_start: dt.datetime | None = None
    window_end: dt.datetime | None = None
    raw_window = payload.get("window")
    if raw_window is not None:
        if not isinstance(raw_window, Mapping):
            raise TypeError("`window` must be a mapping when provided")
        window_start = parse_event_time(raw_window["start"], base_date=base_date)
        window_end = parse_event_time(raw_window["end"], base_date=base_date)

    return TimelineDocument(
        title=title,
        events=tuple(events),
        window_start=window_start,
        window_end=window_end,
    )


def load_timeline_events(path: str | Path) -> TimelineDocument:
    source = Path(path)
    payload = json.loads(source.read_text(encoding="utf-8"))
    if not isinstance(payload, Mapping):
        raise TypeError("Timeline payload must be a JSON object")
    return events_from_dict(payload)


def _coerce_optional_str(raw: object) -> str | None:
    if raw is None:
        return None
    text = str(raw).strip()
    return text if text else None


def _coerce_string_tuple(raw: object) -> tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        text = raw.strip()
        return (text,) if text else ()
    if isinstance(raw, Iterable):
        out: list[str] = []
        for item in raw:
            value = str(item).strip()
            if value:
                out.append(value)
        return tuple(out)
    raise TypeError("Expected string or iterable of strings")
