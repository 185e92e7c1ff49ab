from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import numpy as np
from PIL import Image

from confetti_core.core.coordinates import TimelineCoordinateMapper
from confetti_core.core.timeline_frame_renderer import TimelineFrameRenderer

from confetti_ui.component_schema import DisplayableArea

from .component import EventTimelineComponent
from .layout import TimelineRenderContext
from .renderer import TimelineAsciiConfig, render_timeline_ascii
from .schema import TimelineEvent
from .validation import ValidationReport, validate_timeline_suite
from .viewport import format_clock, format_duration


LOGGER = logging.getLogger(__name__)

_CLEAR_COLOR = (255, 255, 255, 255)


@dataclass(frozen=True)
class TimelineExportBundle:
    ascii_timeline: Path
    markdown_overview: Path
    png_timeline: Path

    def as_dict(self) -> dict[str, str]:
        return {
            "ascii_timeline": str(self.ascii_timeline),
            "markdown_overview": str(self.markdown_overview),
            "png_timeline": str(self.png_timeline),
        }


def export_timeline_bundle(
    events: Iterable[TimelineEvent],
    *,
    out_dir: str | Path,
    prefix: str = "timeline",
    title: str = "Event Timeline",
    mapper: TimelineCoordinateMapper | None = None,
    context: TimelineRenderContext | None = None,
    ascii_config: TimelineAsciiConfig | None = None,
) -> TimelineExportBundle:
    root = Path(out_dir)
    root.mkdir(parents=True, exist_ok=True)

    component = EventTimelineComponent(
        component_id=f"{prefix}-export",
        events=tuple(events),
        mapper=mapper,
        context=context or TimelineRenderContext(),
    )
    items = component.visible_events()
    plan = component.plan()
    resolved = component.resolved_mapper

    ascii_text = render_timeline_ascii(items, plan, resolved, ascii_config, title=title)
    report = validate_timeline_suite(items, resolved, component.context)
    overview = _build_markdown_overview(title=title, items=items, ascii_text=ascii_text, report=report)

    path_ascii = root / f"{prefix}_timeline.txt"
    path_overview = root / f"{prefix}_overview.md"
    path_png = root / f"{prefix}_timeline.png"

    path_ascii.write_text(ascii_text, encoding="utf-8")
    path_overview.write_text(overview, encoding="utf-8")
    _render_frame_png(component, out_path=path_png)
    component.unmount()

    LOGGER.info("exported %d events to %s (prefix=%s)", len(items), root, prefix)
    return TimelineExportBundle(
        ascii_timeline=path_ascii,
        markdown_overview=path_overview,
        png_timeline=path_png,
    )


def _build_markdown_overview(
    *,
    title: str,
    items: tuple[TimelineEvent, ...],
    ascii_text: str,
    report: ValidationReport,
) -> str:
    rows = ["| Time | Event | Category | Duration |", "| --- | --- | --- | --- |"]
    for event in sorted(items, key=lambda e: (e.start, e.event_id)):
        if event.end is None:
            rows.append(f"| {format_clock(event.start)} | {event.title} | milestone | - |")
            continue
        span = f"{format_clock(event.start)}-{format_clock(event.end)}"
        rows.append(f"| {span} | {event.title} | {event.category} | {format_duration(event.start, event.end)} |")
    status = "ok" if report.ok else f"{len(report.errors)} error(s)"
    lines = [f"# {title}", "", f"Layout check: {status}", ""]
    lines.extend(f"- {error}" for error in report.errors)
    if report.errors:
        lines.append("")
    lines.extend(rows)
    return "\n".join(lines) + "\n\n## Timeline\n\n```text\n" + ascii_text.rstrip() + "\n```\n"


def _render_frame_png(component: EventTimelineComponent, *, out_path: Path) -> None:
    bounds = component.visual_bounds()
    renderer = TimelineFrameRenderer()
    renderer.begin_frame(
        DisplayableArea(content_width_px=max(1.0, bounds.width), content_height_px=max(1.0, bounds.height)),
        _CLEAR_COLOR,
    )
    renderer.draw_axis(component.axis_lines(), x=0.0, width=bounds.width)
    renderer.draw_blocks(component.block_commands())
    frame = renderer.end_frame()
    pixels = np.ascontiguousarray(frame.cpu().numpy(), dtype=np.uint8)
    Image.fromarray(pixels).save(out_path)
