"""Event timeline layout, drag interaction and rendering for Confetti."""

from .component import EventTimelineComponent
from .drag import (
    DragConfig,
    DragMode,
    DragRenderState,
    EventDragController,
    GrabZone,
    InteractionSession,
    propose_times,
    zone_for_point,
)
from .exporters import TimelineExportBundle, export_timeline_bundle
from .layout import (
    RenderPlan,
    RenderSlot,
    TimelineRenderContext,
    find_overlap_clusters,
    layout_events,
    layout_sort_key,
)
from .renderer import TimelineAsciiConfig, render_timeline_ascii
from .schema import (
    CATEGORY_COLORS,
    EVENT_CATEGORIES,
    EVENT_PRIORITIES,
    MILESTONE_COLOR,
    TIMELINE_EVENTS_JSON_SCHEMA,
    InvalidRangeError,
    TimelineDocument,
    TimelineEvent,
    TimeProposal,
    event_from_dict,
    events_from_dict,
    load_timeline_events,
    parse_event_time,
    timeline_events_schema,
)
from .validation import (
    ValidationReport,
    max_concurrency,
    require_valid_timeline,
    validate_column_minimality,
    validate_layout_determinism,
    validate_layout_soundness,
    validate_timeline_suite,
)
from .viewport import (
    AxisTick,
    EventFilter,
    TimelineWindowConfig,
    build_ticks,
    calculate_optimal_window,
    format_clock,
    format_duration,
    grid_step_minutes,
)

__all__ = [
    "AxisTick",
    "CATEGORY_COLORS",
    "DragConfig",
    "DragMode",
    "DragRenderState",
    "EVENT_CATEGORIES",
    "EVENT_PRIORITIES",
    "EventDragController",
    "EventFilter",
    "EventTimelineComponent",
    "GrabZone",
    "InteractionSession",
    "InvalidRangeError",
    "MILESTONE_COLOR",
    "RenderPlan",
    "RenderSlot",
    "TIMELINE_EVENTS_JSON_SCHEMA",
    "TimeProposal",
    "TimelineAsciiConfig",
    "TimelineDocument",
    "TimelineEvent",
    "TimelineExportBundle",
    "TimelineRenderContext",
    "TimelineWindowConfig",
    "ValidationReport",
    "build_ticks",
    "calculate_optimal_window",
    "event_from_dict",
    "events_from_dict",
    "export_timeline_bundle",
    "find_overlap_clusters",
    "format_clock",
    "format_duration",
    "grid_step_minutes",
    "layout_events",
    "layout_sort_key",
    "load_timeline_events",
    "max_concurrency",
    "parse_event_time",
    "propose_times",
    "render_timeline_ascii",
    "require_valid_timeline",
    "timeline_events_schema",
    "validate_column_minimality",
    "validate_layout_determinism",
    "validate_layout_soundness",
    "validate_timeline_suite",
    "zone_for_point",
]
