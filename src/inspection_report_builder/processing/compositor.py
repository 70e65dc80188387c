"""Burn annotations into full-resolution rasters."""

from __future__ import annotations

from typing import Callable, Iterable, Sequence

import cv2
import numpy as np

from ..config import constants
from ..config.constants import get_defect_color
from ..models.annotation import Annotation, LogicalSize
from ..utils.exceptions import RenderSurfaceUnavailable
from ..utils.logger import get_logger
from .geometry import scale_annotation, scale_factors

logger = get_logger(__name__)

FONT = cv2.FONT_HERSHEY_SIMPLEX


def render_annotations(
    raster: np.ndarray | None,
    annotations: Iterable[Annotation],
    logical_size: LogicalSize | None,
    fill_alpha: float | None = None,
) -> np.ndarray:
    """
    Draw annotations onto a copy of a source raster at native resolution.

    Annotation geometry is in the logical space the annotations were drawn
    in; it is projected onto the raster with
    ``scale = source_size / logical_size`` per axis. Annotations are painted
    in list order, each as a stroked rectangle followed by a label box just
    above its top edge. With ``fill_alpha`` set, defect rectangles are also
    filled with their colour at that opacity.

    Args:
        raster: Source image (BGR, BGRA or greyscale)
        annotations: Annotations in paint order
        logical_size: Logical dimensions in effect when the annotations were authored
        fill_alpha: Opacity of the defect box fill; no fill when None

    Returns:
        New BGR raster with the annotations burned in

    Raises:
        RenderSurfaceUnavailable: If there is no raster or no usable logical size
    """
    canvas = _prepare_surface(raster)
    if logical_size is None:
        raise RenderSurfaceUnavailable("No logical size recorded for annotations")

    height, width = canvas.shape[:2]
    scale_x, scale_y = scale_factors((width, height), logical_size)

    count = 0
    for annotation in annotations:
        box = scale_annotation(annotation, scale_x, scale_y)
        if annotation.is_location_extent:
            _draw_location_extent(canvas, box)
        else:
            _draw_defect_box(canvas, box, annotation.defect_type, fill_alpha)
        _draw_label(canvas, annotation.label, box[0], box[1])
        count += 1

    logger.debug(
        f"Rendered {count} annotations on {width}x{height} surface "
        f"(scale {scale_x:.3f}, {scale_y:.3f})"
    )
    return canvas


def _prepare_surface(raster: np.ndarray | None) -> np.ndarray:
    if raster is None or raster.size == 0:
        raise RenderSurfaceUnavailable("No decoded raster available")
    try:
        if raster.ndim == 2:
            return cv2.cvtColor(raster, cv2.COLOR_GRAY2BGR)
        if raster.shape[2] == 4:
            return cv2.cvtColor(raster, cv2.COLOR_BGRA2BGR)
        return raster.copy()
    except cv2.error as e:
        raise RenderSurfaceUnavailable(f"Could not create drawing surface: {e}") from e


def _bgr(rgba: Sequence[float]) -> tuple[int, int, int]:
    return (int(rgba[2]), int(rgba[1]), int(rgba[0]))


def _corners(box: tuple[float, float, float, float]) -> tuple[int, int, int, int]:
    x, y, w, h = box
    return (int(round(x)), int(round(y)), int(round(x + w)), int(round(y + h)))


def _draw_defect_box(
    canvas: np.ndarray,
    box: tuple[float, float, float, float],
    defect_type: str,
    fill_alpha: float | None = None,
) -> None:
    rgba = get_defect_color(defect_type)
    x0, y0, x1, y1 = _corners(box)
    thickness = constants.DEFECT_STROKE_PX

    if fill_alpha:

        def fill(surface: np.ndarray, dx: int, dy: int) -> None:
            cv2.rectangle(surface, (x0 + dx, y0 + dy), (x1 + dx, y1 + dy), _bgr(rgba), cv2.FILLED)

        _paint(canvas, (x0, y0, x1, y1), fill_alpha, fill)

    def draw(surface: np.ndarray, dx: int, dy: int) -> None:
        cv2.rectangle(surface, (x0 + dx, y0 + dy), (x1 + dx, y1 + dy), _bgr(rgba), thickness)

    _paint(canvas, (x0, y0, x1, y1), rgba[3], draw, margin=thickness)


def _draw_location_extent(canvas: np.ndarray, box: tuple[float, float, float, float]) -> None:
    rgba = constants.LOCATION_EXTENT_COLOR
    x0, y0, x1, y1 = _corners(box)
    thickness = constants.LOCATION_EXTENT_STROKE_PX
    edges = [((x0, y0), (x1, y0)), ((x1, y0), (x1, y1)), ((x1, y1), (x0, y1)), ((x0, y1), (x0, y0))]

    def draw(surface: np.ndarray, dx: int, dy: int) -> None:
        for start, end in edges:
            for a, b in dash_segments(start, end, constants.LOCATION_EXTENT_DASH):
                cv2.line(surface, (a[0] + dx, a[1] + dy), (b[0] + dx, b[1] + dy), _bgr(rgba), thickness)

    _paint(canvas, (x0, y0, x1, y1), rgba[3], draw, margin=thickness)


def dash_segments(
    start: tuple[int, int], end: tuple[int, int], pattern: tuple[int, int]
) -> list[tuple[tuple[int, int], tuple[int, int]]]:
    """Split a straight edge into dash segments following an (on, off) pattern."""
    on, off = pattern
    (sx, sy), (ex, ey) = start, end
    length = float(np.hypot(ex - sx, ey - sy))
    if length == 0:
        return [(start, end)]

    ux, uy = (ex - sx) / length, (ey - sy) / length
    segments = []
    pos = 0.0
    while pos < length:
        stop = min(pos + on, length)
        a = (int(round(sx + ux * pos)), int(round(sy + uy * pos)))
        b = (int(round(sx + ux * stop)), int(round(sy + uy * stop)))
        segments.append((a, b))
        pos += on + off
    return segments


def _draw_label(canvas: np.ndarray, text: str, x: float, y: float) -> None:
    (text_width, _), _ = cv2.getTextSize(
        text, FONT, constants.LABEL_FONT_SCALE, constants.LABEL_FONT_THICKNESS
    )
    left = int(round(x))
    top = int(round(y)) - constants.LABEL_HEIGHT_PX
    right = left + text_width + constants.LABEL_PADDING_PX
    bottom = int(round(y))
    background = constants.LABEL_BACKGROUND

    def fill(surface: np.ndarray, dx: int, dy: int) -> None:
        cv2.rectangle(surface, (left + dx, top + dy), (right + dx, bottom + dy), _bgr(background), cv2.FILLED)

    _paint(canvas, (left, top, right, bottom), background[3], fill, margin=1)

    text_color = constants.LABEL_TEXT_COLOR
    cv2.putText(
        canvas,
        text,
        (left + constants.LABEL_TEXT_INSET_PX, bottom - constants.LABEL_BASELINE_OFFSET_PX),
        FONT,
        constants.LABEL_FONT_SCALE,
        (text_color[2], text_color[1], text_color[0]),
        constants.LABEL_FONT_THICKNESS,
        lineType=cv2.LINE_AA,
    )


def _paint(
    canvas: np.ndarray,
    bounds: tuple[int, int, int, int],
    alpha: float,
    draw: Callable[[np.ndarray, int, int], None],
    margin: int = 0,
) -> None:
    """
    Run ``draw`` on the canvas, blending at ``alpha`` when it is below 1.

    Blending only touches the clipped region around ``bounds`` so a single
    label does not copy the whole full-resolution surface.
    """
    if alpha >= 1.0:
        draw(canvas, 0, 0)
        return

    height, width = canvas.shape[:2]
    x0, y0, x1, y1 = bounds
    cx0, cy0 = max(0, min(x0, x1) - margin), max(0, min(y0, y1) - margin)
    cx1, cy1 = min(width, max(x0, x1) + margin + 1), min(height, max(y0, y1) + margin + 1)
    if cx0 >= cx1 or cy0 >= cy1:
        return

    region = canvas[cy0:cy1, cx0:cx1]
    overlay = region.copy()
    draw(overlay, -cx0, -cy0)
    canvas[cy0:cy1, cx0:cx1] = cv2.addWeighted(overlay, alpha, region, 1.0 - alpha, 0)
