from .coordinates import TimelineCoordinateMapper, minutes_between, snap_to_grid
from .deferred import DeferredCall, DeferredCallQueue, ManualClock
from .input_events import GestureInput, GestureKind, TouchPoint, normalize_gesture_input
from .listeners import GlobalListenerHub, ListenerLease
from .timeline_frame_renderer import TimelineAxisLine, TimelineBlockCommand, TimelineFrameRenderer

__all__ = [
    "DeferredCall",
    "DeferredCallQueue",
    "GestureInput",
    "GestureKind",
    "GlobalListenerHub",
    "ListenerLease",
    "ManualClock",
    "TimelineAxisLine",
    "TimelineBlockCommand",
    "TimelineCoordinateMapper",
    "TimelineFrameRenderer",
    "TouchPoint",
    "minutes_between",
    "normalize_gesture_input",
    "snap_to_grid",
]
