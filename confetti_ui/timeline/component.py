from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from confetti_core.core.coordinates import TimelineCoordinateMapper, snap_to_grid
from confetti_core.core.deferred import DeferredCallQueue
from confetti_core.core.input_events import GestureInput
from confetti_core.core.listeners import GlobalListenerHub
from confetti_core.core.timeline_frame_renderer import TimelineAxisLine, TimelineBlockCommand

from confetti_ui.component_schema import BoundingBox, ComponentBase

from .drag import (
    DragConfig,
    DragEndCallback,
    DragRenderState,
    EventDragController,
    GrabZone,
    HapticCallback,
    TapCallback,
    TimeChangeCallback,
    zone_for_point,
)
from .layout import RenderPlan, TimelineRenderContext, layout_events
from .schema import CATEGORY_COLORS, TimelineEvent
from .viewport import EventFilter, build_ticks, calculate_optimal_window, grid_step_minutes


LOGGER = logging.getLogger(__name__)

BackgroundTapCallback = Callable[[dt.datetime], None]

DIMMED_OPACITY = 0.3


@dataclass
class EventTimelineComponent(ComponentBase):
    """Interactive vertical event timeline.

    Lays events out in overlap columns, hit-tests pointer input against the
    rendered blocks and hands each gesture to the owning event's drag controller.
    Time changes are only proposed upward; the caller commits them and calls
    `update_events` with the new data.
    """

    events: tuple[TimelineEvent, ...] = ()
    mapper: TimelineCoordinateMapper | None = None
    context: TimelineRenderContext = field(default_factory=TimelineRenderContext)
    drag_config: DragConfig = field(default_factory=DragConfig)
    event_filter: EventFilter = field(default_factory=EventFilter)
    scheduler: DeferredCallQueue = field(default_factory=DeferredCallQueue)
    listener_hub: GlobalListenerHub = field(default_factory=GlobalListenerHub)
    on_tap: TapCallback | None = None
    on_time_change: TimeChangeCallback | None = None
    on_drag_end: DragEndCallback | None = None
    on_background_tap: BackgroundTapCallback | None = None
    haptics: HapticCallback | None = None
    selected_event_id: str | None = None
    _plan: RenderPlan | None = field(default=None, init=False, repr=False)
    _controllers: dict[str, EventDragController] = field(default_factory=dict, init=False, repr=False)
    _pressed: tuple[str, GrabZone] | None = field(default=None, init=False, repr=False)
    _last_position: tuple[float, float] | None = field(default=None, init=False, repr=False)
    _multi_touch: bool = field(default=False, init=False, repr=False)
    _unmounted: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        self.events = tuple(self.events)
        if self.mapper is None:
            self.mapper = calculate_optimal_window(self.events).mapper()
        self._rebuild()

    @property
    def resolved_mapper(self) -> TimelineCoordinateMapper:
        assert self.mapper is not None
        return self.mapper

    def visible_events(self) -> tuple[TimelineEvent, ...]:
        return self.event_filter.apply(self.events, max_events=self.context.max_events)

    def plan(self) -> RenderPlan:
        if self._plan is None:
            self._plan = layout_events(self.visible_events(), self.resolved_mapper, self.context)
        return self._plan

    def controller(self, event_id: str) -> EventDragController:
        return self._controllers[event_id]

    def visual_bounds(self) -> BoundingBox:
        return BoundingBox(
            x=0.0,
            y=0.0,
            width=self.context.axis_width_px + self.context.track_width_px,
            height=self.resolved_mapper.total_height,
        )

    def event_bounds(self, event_id: str) -> BoundingBox | None:
        """Pixel rectangle of one rendered event, or None when it is hidden."""

        slot = self.plan().get(event_id)
        if slot is None:
            return None
        ctx = self.context
        if slot.is_milestone:
            top = slot.top_offset - slot.height / 2.0
            x = ctx.axis_width_px
            width = ctx.track_width_px
        else:
            top = slot.top_offset
            col_width = (ctx.track_width_px - (slot.column_count - 1) * ctx.column_gap_px) / slot.column_count
            x = ctx.axis_width_px + slot.column_index * (col_width + ctx.column_gap_px)
            width = max(0.0, col_width)
        return self._fit_to_window(top, slot.height, x, width)

    def event_at(self, x: float, y: float) -> tuple[str, GrabZone] | None:
        plan = self.plan()
        # Milestones paint above duration blocks, so they win the hit test.
        ordered = sorted(plan.slots(), key=lambda s: (not s.is_milestone,))
        for slot in ordered:
            bounds = self.event_bounds(slot.event_id)
            if bounds is None or not bounds.contains(x, y):
                continue
            if slot.is_milestone:
                return (slot.event_id, "body")
            # Handles sit on the real edges, which may lie outside the window.
            zone = zone_for_point(slot.top_offset, slot.height, y, self.drag_config.resize_handle_px)
            return (slot.event_id, zone)
        return None

    def handle_input(self, event: GestureInput) -> bool:
        """Route one normalized input event. Returns True when something consumed it."""

        if self._unmounted or self.disabled:
            return False
        kind = event.kind
        if kind in ("mouse_down", "touch_start"):
            return self._on_gesture_start(event)
        if kind in ("mouse_move", "touch_move"):
            self._last_position = (event.x, event.y)
            if self.listener_hub.active_owner is not None:
                return self.listener_hub.dispatch_move(event.x, event.y, event.touch_count)
            if self._pressed is None:
                return False
            return self._controllers[self._pressed[0]].pointer_move(event.x, event.y, touch_count=event.touch_count)
        if kind in ("mouse_up", "touch_end"):
            if self.listener_hub.dispatch_end():
                return True
            if self._pressed is None:
                return False
            self._controllers[self._pressed[0]].pointer_up()
            return True
        if kind == "touch_cancel":
            if self.listener_hub.dispatch_cancel():
                return True
            if self._pressed is None:
                return False
            self._controllers[self._pressed[0]].touch_cancel()
            return True
        if kind == "click":
            return self._on_click(event)
        return False

    def tick(self) -> int:
        """Run due deferred work (long-press timers, render commits)."""

        if self._unmounted:
            return 0
        return self.scheduler.run_due()

    def update_events(self, events: Iterable[TimelineEvent]) -> None:
        self.events = tuple(events)
        self._rebuild()

    def set_filter(self, event_filter: EventFilter) -> None:
        self.event_filter = event_filter
        self._rebuild()

    def select(self, event_id: str | None) -> None:
        if event_id is not None and event_id not in self.plan():
            raise KeyError(f"Unknown event id: {event_id}")
        self.selected_event_id = event_id

    def is_dimmed(self, event_id: str) -> bool:
        if self.selected_event_id is None or event_id == self.selected_event_id:
            return False
        return self.plan().has_overlaps()

    def drag_state(self, event_id: str) -> DragRenderState:
        return self._controllers[event_id].render_state

    def block_commands(self) -> tuple[TimelineBlockCommand, ...]:
        """Paint commands for every visible event, with drag previews applied."""

        mapper = self.resolved_mapper
        commands: list[TimelineBlockCommand] = []
        for event in self.visible_events():
            bounds = self.event_bounds(event.event_id)
            if bounds is None:
                continue
            preview = self._controllers[event.event_id].render_state.preview
            if preview is not None and not event.is_milestone:
                top = mapper.time_to_pixel(preview.start)
                height = max(mapper.time_to_pixel(preview.end) - top, self.context.min_event_height_px)
                fitted = self._fit_to_window(top, height, bounds.x, bounds.width)
                if fitted is not None:
                    bounds = fitted
            commands.append(
                TimelineBlockCommand(
                    x=bounds.x,
                    y=bounds.y,
                    width=bounds.width,
                    height=bounds.height,
                    color_hex=_paint_color(event),
                    opacity=DIMMED_OPACITY if self.is_dimmed(event.event_id) else 1.0,
                    is_milestone=event.is_milestone,
                )
            )
        return tuple(commands)

    def axis_lines(self) -> tuple[TimelineAxisLine, ...]:
        focused = None
        if self.selected_event_id is not None:
            focused = next((e for e in self.visible_events() if e.event_id == self.selected_event_id), None)
        ticks = build_ticks(self.resolved_mapper, grid_step_minutes(focused))
        return tuple(TimelineAxisLine(y=tick.pixel) for tick in ticks)

    def unmount(self) -> None:
        if self._unmounted:
            return
        for controller in self._controllers.values():
            controller.unmount()
        self.scheduler.cancel_all()
        self._pressed = None
        self._unmounted = True
        LOGGER.debug("timeline %s: unmounted", self.component_id)

    def _on_gesture_start(self, event: GestureInput) -> bool:
        self._last_position = (event.x, event.y)
        hit = self.event_at(event.x, event.y)
        self._drop_stale_session(None if hit is None else hit[0])
        self._multi_touch = event.is_touch and event.touch_count > 1
        if hit is None:
            self._pressed = None
            return False
        event_id, zone = hit
        self._pressed = (event_id, zone)
        return self._controllers[event_id].pointer_down(
            event.x,
            event.y,
            zone=zone,
            input_kind="touch" if event.is_touch else "mouse",
            touch_count=event.touch_count,
        )

    def _drop_stale_session(self, next_owner: str | None) -> None:
        """Tear down a gesture still live on another event before a new one starts."""

        if self._pressed is not None and self._pressed[0] != next_owner:
            stale = self._controllers.get(self._pressed[0])
            if stale is not None and stale.session is not None:
                LOGGER.debug("timeline %s: dropping stale gesture on %s", self.component_id, stale.event_id)
                stale.touch_cancel()
        owner = self.listener_hub.active_owner
        if owner is not None and owner != next_owner:
            self.listener_hub.dispatch_cancel()

    def _on_click(self, event: GestureInput) -> bool:
        if self._multi_touch:
            LOGGER.debug("timeline %s: click from multi-touch gesture swallowed", self.component_id)
            return False
        hit = self.event_at(event.x, event.y)
        if hit is None and self._pressed is None:
            return self._background_tap(event.y)
        if self._pressed is not None:
            event_id, zone = self._pressed
        else:
            assert hit is not None
            event_id, zone = hit
        return self._controllers[event_id].click(zone)

    def _background_tap(self, y: float) -> bool:
        if self.on_background_tap is None:
            return False
        mapper = self.resolved_mapper
        t = snap_to_grid(mapper.pixel_to_time(mapper.clamp_pixel(y)), self.drag_config.snap_minutes)
        self.on_background_tap(mapper.clamp_time(t))
        return True

    def _handle_tap(self, event_id: str) -> None:
        self.selected_event_id = event_id
        if self.on_tap is not None:
            self.on_tap(event_id)

    def _fit_to_window(self, top: float, height: float, x: float, width: float) -> BoundingBox | None:
        total = self.resolved_mapper.total_height
        bottom = top + height
        if top >= 0 and bottom <= total:
            return BoundingBox(x=x, y=top, width=width, height=height)
        if self.context.overflow == "hide" or bottom < 0 or top > total:
            return None
        clipped_top = max(0.0, top)
        clipped_bottom = min(total, bottom)
        return BoundingBox(x=x, y=clipped_top, width=width, height=max(0.0, clipped_bottom - clipped_top))

    def _rebuild(self) -> None:
        self._plan = None
        plan = self.plan()
        by_id = {event.event_id: event for event in self.visible_events()}
        for event_id in list(self._controllers):
            if event_id not in by_id:
                self._controllers.pop(event_id).unmount()
                if self._pressed is not None and self._pressed[0] == event_id:
                    self._pressed = None
        for event_id, event in by_id.items():
            existing = self._controllers.get(event_id)
            if existing is not None:
                existing.sync_event(event.start, event.end)
                continue
            self._controllers[event_id] = EventDragController(
                event_id,
                event.start,
                event.end,
                self.resolved_mapper,
                config=self.drag_config,
                scheduler=self.scheduler,
                listener_hub=self.listener_hub,
                on_tap=self._handle_tap,
                on_time_change=None if event.is_milestone else self.on_time_change,
                on_drag_end=self.on_drag_end,
                haptics=self.haptics,
            )
        if self.selected_event_id is not None and self.selected_event_id not in plan:
            self.selected_event_id = None
        LOGGER.debug("timeline %s: planned %d events", self.component_id, len(plan))


def _paint_color(event: TimelineEvent) -> str:
    color = event.display_color()
    if color.startswith("#") and len(color) in (7, 9):
        return color
    return CATEGORY_COLORS[event.category]
