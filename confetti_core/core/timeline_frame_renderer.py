from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import torch

from confetti_ui.component_schema import DisplayableArea


@dataclass(frozen=True)
class TimelineBlockCommand:
    """One rectangle of the timeline, already resolved to pixels."""

    x: float
    y: float
    width: float
    height: float
    color_hex: str
    opacity: float = 1.0
    is_milestone: bool = False

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError("block width/height must be >= 0")
        if not (0.0 <= self.opacity <= 1.0):
            raise ValueError("opacity must be in [0, 1]")


@dataclass(frozen=True)
class TimelineAxisLine:
    y: float
    color_hex: str = "#D1D5DB"
    thickness_px: int = 1


@dataclass
class TimelineFrameRenderer:
    """Torch-first rasteriser for timeline blocks and axis lines."""

    border_px: int = 1
    _frame: torch.Tensor | None = None

    def begin_frame(self, display: DisplayableArea, clear_color: tuple[int, int, int, int]) -> None:
        width = int(round(display.content_width_px))
        height = int(round(display.content_height_px))
        if width <= 0 or height <= 0:
            raise ValueError("frame dimensions must be > 0")
        self._frame = torch.zeros((height, width, 4), dtype=torch.uint8)
        self._frame[:, :, 0] = clear_color[0]
        self._frame[:, :, 1] = clear_color[1]
        self._frame[:, :, 2] = clear_color[2]
        self._frame[:, :, 3] = clear_color[3]

    def draw_axis(self, lines: Iterable[TimelineAxisLine], *, x: float, width: float) -> None:
        if self._frame is None:
            raise RuntimeError("begin_frame must be called before draw_axis")
        for line in lines:
            color = _parse_rgba_u8(line.color_hex, 1.0)
            self._blend_rect(int(round(x)), int(round(line.y)), int(round(width)), line.thickness_px, color)

    def draw_blocks(self, commands: Iterable[TimelineBlockCommand]) -> int:
        if self._frame is None:
            raise RuntimeError("begin_frame must be called before draw_blocks")
        drawn = 0
        # Milestones paint last so they sit above duration blocks.
        ordered = sorted(commands, key=lambda c: c.is_milestone)
        for command in ordered:
            x = int(round(command.x))
            y = int(round(command.y))
            w = int(round(command.width))
            h = max(1, int(round(command.height)))
            fill = _parse_rgba_u8(command.color_hex, command.opacity)
            self._blend_rect(x, y, w, h, fill)
            if command.is_milestone:
                self._blend_rect(x, y + h // 2, w, 1, _parse_rgba_u8("#111827", command.opacity))
            elif self.border_px > 0 and h > 2 * self.border_px:
                edge = _parse_rgba_u8(command.color_hex, min(1.0, command.opacity + 0.3))
                self._blend_rect(x, y, self.border_px, h, edge)
            drawn += 1
        return drawn

    def end_frame(self) -> torch.Tensor:
        if self._frame is None:
            raise RuntimeError("begin_frame must be called before end_frame")
        out = self._frame.clone()
        self._frame = None
        return out

    def _blend_rect(self, x: int, y: int, w: int, h: int, color: tuple[int, int, int, int]) -> None:
        if self._frame is None or w <= 0 or h <= 0:
            return
        x0 = max(0, x)
        y0 = max(0, y)
        x1 = min(self._frame.shape[1], x + w)
        y1 = min(self._frame.shape[0], y + h)
        if x1 <= x0 or y1 <= y0:
            return
        alpha = color[3] / 255.0
        if alpha <= 0:
            return
        dst = self._frame[y0:y1, x0:x1, :3].to(torch.float32)
        src = torch.tensor(color[:3], dtype=torch.float32).view(1, 1, 3)
        out = torch.clamp(src * alpha + dst * (1.0 - alpha), 0, 255).to(torch.uint8)
        self._frame[y0:y1, x0:x1, :3] = out
        self._frame[y0:y1, x0:x1, 3] = 255


def _parse_rgba_u8(hex_color: str, opacity: float) -> tuple[int, int, int, int]:
    value = hex_color.strip()
    if not value.startswith("#"):
        raise ValueError(f"color must be #RRGGBB or #RRGGBBAA, got `{hex_color}`")
    raw = value[1:]
    if len(raw) == 6:
        a = 255
    elif len(raw) == 8:
        a = int(raw[6:8], 16)
    else:
        raise ValueError(f"color must be #RRGGBB or #RRGGBBAA, got `{hex_color}`")
    r = int(raw[0:2], 16)
    g = int(raw[2:4], 16)
    b = int(raw[4:6], 16)
    alpha = int(max(0.0, min(1.0, (a / 255.0) * opacity)) * 255.0)
    return (r, g, b, alpha)
