"""Image processing modules for geometry, interaction and rendering."""

from .canvas_controller import CanvasController
from .compositor import render_annotations
from .geometry import fit_logical_size, scale_factors, scale_annotation, normalize_rect
from .registry import ModalityRegistry

__all__ = [
    "CanvasController",
    "render_annotations",
    "fit_logical_size",
    "scale_factors",
    "scale_annotation",
    "normalize_rect",
    "ModalityRegistry",
]
