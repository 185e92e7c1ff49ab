from __future__ import annotations

import datetime as dt
import logging
import math
from dataclasses import dataclass
from typing import Callable, Literal

from confetti_core.core.coordinates import TimelineCoordinateMapper, snap_to_grid
from confetti_core.core.deferred import DeferredCall, DeferredCallQueue
from confetti_core.core.listeners import GlobalListenerHub, ListenerLease

from .schema import TimeProposal


LOGGER = logging.getLogger(__name__)

DragMode = Literal["move", "resize-start", "resize-end"]
GrabZone = Literal["body", "resize-start", "resize-end"]
InputKind = Literal["mouse", "touch"]
GesturePhase = Literal["idle", "tracking", "dragging"]

TapCallback = Callable[[str], None]
TimeChangeCallback = Callable[[str, dt.datetime, dt.datetime], None]
DragEndCallback = Callable[[], None]
HapticCallback = Callable[[int], None]

_ZONE_TO_MODE: dict[str, DragMode] = {
    "body": "move",
    "resize-start": "resize-start",
    "resize-end": "resize-end",
}


@dataclass(frozen=True)
class DragConfig:
    drag_threshold_px: float = 10.0
    long_press_ms: int = 300
    min_duration_minutes: float = 15.0
    snap_minutes: float = 5.0
    haptic_pulse_ms: int = 50
    resize_handle_px: float = 8.0

    def __post_init__(self) -> None:
        if self.drag_threshold_px < 0:
            raise ValueError("drag_threshold_px must be >= 0")
        if self.long_press_ms <= 0:
            raise ValueError("long_press_ms must be > 0")
        if self.min_duration_minutes <= 0:
            raise ValueError("min_duration_minutes must be > 0")
        if self.snap_minutes <= 0:
            raise ValueError("snap_minutes must be > 0")
        if self.haptic_pulse_ms < 0:
            raise ValueError("haptic_pulse_ms must be >= 0")
        if self.resize_handle_px < 0:
            raise ValueError("resize_handle_px must be >= 0")


@dataclass
class InteractionSession:
    """Ephemeral state for one pointer/touch sequence on one event."""

    mode: DragMode
    zone: GrabZone
    input_kind: InputKind
    anchor_x: float
    anchor_y: float
    original_start: dt.datetime
    original_end: dt.datetime | None
    has_crossed_drag_threshold: bool = False
    phase: GesturePhase = "tracking"
    drag_suppressed: bool = False
    long_press: DeferredCall | None = None
    lease: ListenerLease | None = None

    @property
    def dragging(self) -> bool:
        return self.phase == "dragging"


@dataclass(frozen=True)
class DragRenderState:
    """Visual drag state, committed asynchronously for renderers."""

    phase: GesturePhase = "idle"
    mode: DragMode | None = None
    preview: TimeProposal | None = None

    @property
    def dragging(self) -> bool:
        return self.phase == "dragging"


def zone_for_point(top: float, height: float, y: float, handle_px: float) -> GrabZone:
    """Pick the grabbed zone of an event block from a pointer-down position."""

    handle = min(float(handle_px), max(0.0, float(height)) / 3.0)
    if handle <= 0:
        return "body"
    if y - top <= handle:
        return "resize-start"
    if (top + height) - y <= handle:
        return "resize-end"
    return "body"


def propose_times(
    mode: DragMode,
    original_start: dt.datetime,
    original_end: dt.datetime,
    delta_minutes: float,
    mapper: TimelineCoordinateMapper,
    config: DragConfig,
) -> tuple[dt.datetime, dt.datetime]:
    """Apply an anchor-relative delta to the gesture-start snapshot.

    Order matters: snap, then clip to the window, then enforce the minimum
    duration, so the floor holds however far the pointer travels.
    """

    delta = dt.timedelta(minutes=delta_minutes)
    floor = dt.timedelta(minutes=config.min_duration_minutes)
    window_start = mapper.window_start
    window_end = mapper.window_end

    if mode == "move":
        duration = original_end - original_start
        start = snap_to_grid(original_start + delta, config.snap_minutes)
        end = start + duration
        if start < window_start:
            shift = window_start - start
            start += shift
            end += shift
        if end > window_end:
            shift = end - window_end
            start -= shift
            end -= shift
            if start < window_start:
                start = window_start
                end = start + duration
        return (start, end)

    if mode == "resize-start":
        start = min(original_start + delta, original_end - floor)
        start = snap_to_grid(start, config.snap_minutes)
        start = max(window_start, min(window_end, start))
        if original_end - start < floor:
            start = original_end - floor
        return (start, original_end)

    if mode == "resize-end":
        end = max(original_end + delta, original_start + floor)
        end = snap_to_grid(end, config.snap_minutes)
        end = min(window_end, max(window_start, end))
        if end - original_start < floor:
            end = original_start + floor
        return (original_start, end)

    raise ValueError(f"Unsupported drag mode: {mode}")


class EventDragController:
    """Turns pointer/touch activity on one rendered event into a tap, move or resize.

    Click suppression is read from a synchronously updated shadow flag. The
    `render_state` seen by renderers is committed later through the scheduler and
    must never feed a same-tick decision.
    """

    def __init__(
        self,
        event_id: str,
        start: dt.datetime,
        end: dt.datetime | None,
        mapper: TimelineCoordinateMapper,
        *,
        config: DragConfig | None = None,
        scheduler: DeferredCallQueue | None = None,
        listener_hub: GlobalListenerHub | None = None,
        on_tap: TapCallback | None = None,
        on_time_change: TimeChangeCallback | None = None,
        on_drag_end: DragEndCallback | None = None,
        haptics: HapticCallback | None = None,
    ) -> None:
        self.event_id = event_id
        self._start = start
        self._end = end
        self.mapper = mapper
        self.config = config or DragConfig()
        self.scheduler = scheduler or DeferredCallQueue()
        self._hub = listener_hub
        self._on_tap = on_tap
        self._on_time_change = on_time_change
        self._on_drag_end = on_drag_end
        self._haptics = haptics
        self._session: InteractionSession | None = None
        self._suppress_click = False
        self._unmounted = False
        self._last_proposal: TimeProposal | None = None
        self._render_state = DragRenderState()
        self._pending_render: DragRenderState | None = None
        self._render_call: DeferredCall | None = None

    @property
    def drag_enabled(self) -> bool:
        return self._on_time_change is not None and self._end is not None and not self._unmounted

    @property
    def session(self) -> InteractionSession | None:
        return self._session

    @property
    def is_dragging(self) -> bool:
        return self._session is not None and self._session.dragging

    @property
    def suppress_click(self) -> bool:
        return self._suppress_click

    @property
    def render_state(self) -> DragRenderState:
        return self._render_state

    @property
    def last_proposal(self) -> TimeProposal | None:
        return self._last_proposal

    @property
    def unmounted(self) -> bool:
        return self._unmounted

    def sync_event(self, start: dt.datetime, end: dt.datetime | None) -> None:
        """Accept re-rendered caller data; an active gesture keeps its own snapshot."""

        self._start = start
        self._end = end

    def pointer_down(
        self,
        x: float,
        y: float,
        *,
        zone: GrabZone = "body",
        input_kind: InputKind = "mouse",
        touch_count: int = 1,
    ) -> bool:
        if self._unmounted:
            return False
        if self._session is not None:
            LOGGER.debug("event %s: discarding stale gesture session", self.event_id)
        self._teardown()
        self._suppress_click = False
        self._last_proposal = None

        if input_kind == "touch" and touch_count > 1:
            LOGGER.debug("event %s: rejecting multi-touch gesture (%d contacts)", self.event_id, touch_count)
            self._suppress_click = True
            return False
        if touch_count < 1:
            return False

        if not self.drag_enabled:
            zone = "body"
        self._session = InteractionSession(
            mode=_ZONE_TO_MODE[zone],
            zone=zone,
            input_kind=input_kind,
            anchor_x=float(x),
            anchor_y=float(y),
            original_start=self._start,
            original_end=self._end,
        )
        if self.drag_enabled and input_kind == "touch":
            self._session.long_press = self.scheduler.call_later(
                self.config.long_press_ms / 1000.0, self._long_press_fired
            )
        LOGGER.debug("event %s: gesture start (%s, zone=%s)", self.event_id, input_kind, zone)
        self._commit_render(DragRenderState(phase="tracking", mode=self._session.mode))
        return True

    def pointer_move(self, x: float, y: float, *, touch_count: int = 1) -> bool:
        """Feed one move sample. Returns True when a time proposal was emitted."""

        session = self._session
        if session is None or self._unmounted:
            return False
        if session.input_kind == "touch" and touch_count != 1:
            return False
        if session.dragging:
            self._emit_proposal(float(y))
            return True
        if session.drag_suppressed or not self.drag_enabled:
            return False

        displacement = math.hypot(float(x) - session.anchor_x, float(y) - session.anchor_y)
        if displacement <= self.config.drag_threshold_px:
            return False
        session.has_crossed_drag_threshold = True
        self._suppress_click = True

        if session.input_kind == "touch":
            # Early finger travel reads as a scroll, never as a reschedule.
            self._cancel_long_press(session)
            session.drag_suppressed = True
            LOGGER.debug("event %s: touch moved before long press, drag suppressed", self.event_id)
            return False

        if not self._begin_drag(session):
            return False
        self._emit_proposal(float(y))
        return True

    def pointer_up(self) -> None:
        self._finish("pointer-up")

    def touch_cancel(self) -> None:
        self._finish("touch-cancel")

    def click(self, zone: GrabZone = "body") -> bool:
        """Resolve the synthetic click that follows a gesture. Returns True if it tapped."""

        if self._unmounted:
            return False
        if self.drag_enabled and zone != "body":
            return False
        if self._suppress_click:
            LOGGER.debug("event %s: click swallowed after drag", self.event_id)
            return False
        if self._on_tap is not None:
            self._on_tap(self.event_id)
        return True

    def unmount(self) -> None:
        if self._unmounted:
            return
        self._teardown()
        if self._render_call is not None:
            self._render_call.cancel()
            self._render_call = None
        self._pending_render = None
        self._unmounted = True
        LOGGER.debug("event %s: unmounted", self.event_id)

    def _long_press_fired(self) -> None:
        session = self._session
        if session is None or self._unmounted:
            return
        session.long_press = None
        if session.dragging or session.drag_suppressed:
            return
        session.mode = "move"
        if not self._begin_drag(session):
            return
        self._suppress_click = True
        LOGGER.debug("event %s: long press promoted gesture to drag", self.event_id)
        if self._haptics is not None:
            self._haptics(self.config.haptic_pulse_ms)

    def _begin_drag(self, session: InteractionSession) -> bool:
        if self._hub is not None:
            lease = self._hub.acquire(
                self.event_id,
                on_move=self._on_global_move,
                on_end=self.pointer_up,
                on_cancel=self.touch_cancel,
            )
            if lease is None:
                LOGGER.debug(
                    "event %s: drag refused, listeners held by %s", self.event_id, self._hub.active_owner
                )
                session.drag_suppressed = True
                return False
            session.lease = lease
        self._cancel_long_press(session)
        session.phase = "dragging"
        LOGGER.debug("event %s: drag started (mode=%s)", self.event_id, session.mode)
        self._commit_render(DragRenderState(phase="dragging", mode=session.mode))
        return True

    def _on_global_move(self, x: float, y: float, touch_count: int) -> None:
        self.pointer_move(x, y, touch_count=touch_count)

    def _emit_proposal(self, y: float) -> None:
        session = self._session
        if session is None or session.original_end is None:
            return
        delta_minutes = self.mapper.pixels_to_minutes(y - session.anchor_y)
        start, end = propose_times(
            session.mode,
            session.original_start,
            session.original_end,
            delta_minutes,
            self.mapper,
            self.config,
        )
        proposal = TimeProposal(event_id=self.event_id, start=start, end=end)
        self._last_proposal = proposal
        if self._on_time_change is not None:
            self._on_time_change(self.event_id, start, end)
        self._commit_render(DragRenderState(phase="dragging", mode=session.mode, preview=proposal))

    def _finish(self, reason: str) -> None:
        session = self._session
        if session is None:
            return
        was_dragging = session.dragging
        LOGGER.debug("event %s: gesture end via %s (dragging=%s)", self.event_id, reason, was_dragging)
        self._teardown()
        if was_dragging and self._on_drag_end is not None:
            self._on_drag_end()

    def _teardown(self) -> None:
        session = self._session
        self._session = None
        if session is None:
            return
        self._cancel_long_press(session)
        if session.lease is not None:
            session.lease.release()
            session.lease = None
        if not self._unmounted:
            self._commit_render(DragRenderState())

    def _cancel_long_press(self, session: InteractionSession) -> None:
        if session.long_press is not None:
            session.long_press.cancel()
            session.long_press = None

    def _commit_render(self, state: DragRenderState) -> None:
        self._pending_render = state
        if self._render_call is None or not self._render_call.active:
            self._render_call = self.scheduler.call_later(0.0, self._flush_render)

    def _flush_render(self) -> None:
        self._render_call = None
        if self._pending_render is not None:
            self._render_state = self._pending_render
            self._pending_render = None
