from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Mapping


GestureKind = Literal[
    "mouse_down",
    "mouse_move",
    "mouse_up",
    "touch_start",
    "touch_move",
    "touch_end",
    "touch_cancel",
    "click",
]

_GESTURE_KINDS = frozenset(
    {
        "mouse_down",
        "mouse_move",
        "mouse_up",
        "touch_start",
        "touch_move",
        "touch_end",
        "touch_cancel",
        "click",
    }
)


@dataclass(frozen=True)
class TouchPoint:
    x: float
    y: float


@dataclass(frozen=True)
class GestureInput:
    """Normalized pointer/touch input consumed by timeline interaction code."""

    kind: GestureKind
    timestamp: float
    x: float
    y: float
    touches: tuple[TouchPoint, ...] = ()
    target: str | None = None

    @property
    def is_touch(self) -> bool:
        return self.kind.startswith("touch_")

    @property
    def touch_count(self) -> int:
        if self.is_touch:
            return len(self.touches)
        return 1


def normalize_gesture_input(
    event_type: str,
    payload: object,
    *,
    last_position: tuple[float, float] | None = None,
) -> GestureInput | None:
    """Parse a raw input-surface event into a `GestureInput`.

    Real hardware streams are noisy, so anything malformed comes back as `None`
    and callers treat it as "nothing happened" rather than an error.
    """

    if event_type not in _GESTURE_KINDS or not isinstance(payload, Mapping):
        return None
    timestamp = _coerce_float(payload.get("timestamp", 0.0))
    if timestamp is None:
        timestamp = 0.0
    target = payload.get("target")
    target_name = str(target) if target is not None else None

    if event_type in ("touch_start", "touch_move"):
        touches = _parse_touches(payload.get("touches"), last_position)
        if not touches:
            return None
        first = touches[0]
        return GestureInput(
            kind=event_type,
            timestamp=timestamp,
            x=first.x,
            y=first.y,
            touches=touches,
            target=target_name,
        )

    if event_type in ("touch_end", "touch_cancel"):
        x, y = last_position or (0.0, 0.0)
        return GestureInput(kind=event_type, timestamp=timestamp, x=x, y=y, touches=(), target=target_name)

    position = _parse_position(payload, last_position)
    if position is None:
        # mouse_up and click carry no meaningful position on some surfaces.
        if event_type in ("mouse_up", "click"):
            position = last_position or (0.0, 0.0)
        else:
            return None
    x, y = position
    return GestureInput(kind=event_type, timestamp=timestamp, x=x, y=y, target=target_name)


def _parse_touches(raw: object, last_position: tuple[float, float] | None) -> tuple[TouchPoint, ...]:
    if not isinstance(raw, (list, tuple)):
        return ()
    out: list[TouchPoint] = []
    for item in raw:
        if not isinstance(item, Mapping):
            continue
        position = _parse_position(item, last_position)
        if position is None:
            continue
        out.append(TouchPoint(x=position[0], y=position[1]))
    return tuple(out)


def _parse_position(
    payload: Mapping[object, object],
    last_position: tuple[float, float] | None,
) -> tuple[float, float] | None:
    raw_y = payload.get("y", payload.get("client_y"))
    y = _coerce_float(raw_y)
    if y is None:
        return None
    raw_x = payload.get("x", payload.get("client_x"))
    x = _coerce_float(raw_x)
    if x is None:
        # Vertical-only streams are common on document-level listeners.
        if last_position is None:
            x = 0.0
        else:
            x = last_position[0]
    return (x, y)


def _coerce_float(raw: object) -> float | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        return None
