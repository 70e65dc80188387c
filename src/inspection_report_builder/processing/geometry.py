"""Pure coordinate transforms between logical display space and source pixels."""

from __future__ import annotations

import math

from ..models.annotation import Annotation, LogicalSize
from ..models.viewport import Rect


def fit_logical_size(
    source_width: float,
    source_height: float,
    max_width: float,
    max_height: float,
) -> LogicalSize:
    """
    Fit a source raster into display bounds, preserving aspect ratio.

    Images smaller than the bounds keep their native size; larger ones are
    shrunk first to the width bound and then, if still too tall, to the
    height bound.

    Args:
        source_width: Native raster width in pixels
        source_height: Native raster height in pixels
        max_width: Widest allowed logical width
        max_height: Tallest allowed logical height

    Returns:
        Logical rendering size
    """
    if source_width <= 0 or source_height <= 0:
        raise ValueError(f"Invalid source size {source_width}x{source_height}")

    width, height = float(source_width), float(source_height)

    if width > max_width:
        ratio = max_width / width
        width = float(max_width)
        height = height * ratio

    if height > max_height:
        ratio = max_height / height
        height = float(max_height)
        width = width * ratio

    return LogicalSize(width=width, height=height)


def scale_factors(source_size: tuple[int, int], logical_size: LogicalSize) -> tuple[float, float]:
    """Return (scale_x, scale_y) mapping logical units onto source pixels."""
    source_width, source_height = source_size
    return (source_width / logical_size.width, source_height / logical_size.height)


def scale_annotation(
    annotation: Annotation, scale_x: float, scale_y: float
) -> tuple[float, float, float, float]:
    """Project an annotation into source pixel space as (x, y, width, height)."""
    return (
        annotation.x * scale_x,
        annotation.y * scale_y,
        annotation.width * scale_x,
        annotation.height * scale_y,
    )


def normalize_rect(start: tuple[float, float], end: tuple[float, float]) -> Rect:
    """Rectangle spanned by two drag points, min corner first, non-negative size."""
    return Rect(
        x=min(start[0], end[0]),
        y=min(start[1], end[1]),
        width=abs(end[0] - start[0]),
        height=abs(end[1] - start[1]),
    )


def exceeds_min_size(rect: Rect, min_size: float) -> bool:
    """Whether a drawn rectangle is large enough to keep."""
    return rect.width > min_size or rect.height > min_size


def contains_point(annotation: Annotation, point: tuple[float, float]) -> bool:
    x, y = point
    return (
        annotation.x <= x <= annotation.x + annotation.width
        and annotation.y <= y <= annotation.y + annotation.height
    )


def zoom_about_point(
    scale: float,
    pan: tuple[float, float],
    pointer: tuple[float, float],
    new_scale: float,
) -> tuple[float, float]:
    """
    Pan offset that keeps the content under ``pointer`` fixed while scaling.

    new_pan = pointer - (pointer - old_pan) / old_scale * new_scale
    """
    anchor_x = (pointer[0] - pan[0]) / scale
    anchor_y = (pointer[1] - pan[1]) / scale
    return (pointer[0] - anchor_x * new_scale, pointer[1] - anchor_y * new_scale)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
