"""Transient per-canvas viewport state."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class InteractionState(str, Enum):
    IDLE = "idle"
    PANNING = "panning"
    DRAWING = "drawing"


class Rect(BaseModel):
    """Axis-aligned rectangle in logical units."""

    x: float
    y: float
    width: float
    height: float


class ViewportState(BaseModel):
    """
    Zoom, pan and gesture state for one canvas.

    Never persisted and never shared between images.
    """

    scale: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0
    state: InteractionState = InteractionState.IDLE
    armed_defect_type: str | None = None
    armed_location_extent: bool = False
    start_point: tuple[float, float] | None = None
    candidate: Rect | None = None

    def screen_to_logical(self, point: tuple[float, float]) -> tuple[float, float]:
        """Undo the zoom/pan transform for a pointer position."""
        return ((point[0] - self.pan_x) / self.scale, (point[1] - self.pan_y) / self.scale)

    def logical_to_screen(self, point: tuple[float, float]) -> tuple[float, float]:
        return (point[0] * self.scale + self.pan_x, point[1] * self.scale + self.pan_y)

    def disarm(self) -> None:
        self.state = InteractionState.IDLE
        self.armed_defect_type = None
        self.armed_location_extent = False
        self.start_point = None
        self.candidate = None
