"""Pointer/wheel state machine for one annotation canvas."""

from __future__ import annotations

from typing import Callable

from ..config import settings
from ..models.annotation import (
    Annotation,
    AnnotationHandle,
    AnnotationList,
    LogicalSize,
    LOCATION_EXTENT_LABEL,
)
from ..models.image import ImageRecord, LocationPlan
from ..models.viewport import InteractionState, ViewportState
from ..utils.exceptions import InvalidInputError
from ..utils.logger import get_logger
from .geometry import contains_point, exceeds_min_size, fit_logical_size, normalize_rect, zoom_about_point

logger = get_logger(__name__)

Point = tuple[float, float]


class CanvasController:
    """
    Translates pointer and wheel input on one image view into viewport
    changes and annotation edits.

    States:
        IDLE     -- nothing in progress; pointer-down starts a pan
        PANNING  -- pointer is held down, moves shift the pan offset
        DRAWING  -- a defect type (or location extent) is armed; a drag
                    opens and resizes a candidate rectangle

    Pointer positions arrive in screen coordinates of the view. Stored
    annotation geometry is always in logical units: positions are mapped
    back through the current zoom/pan before they are recorded.
    """

    def __init__(
        self,
        record: ImageRecord | LocationPlan | None = None,
        *,
        interactive: bool = True,
        on_select: Callable[[AnnotationHandle], None] | None = None,
        on_created: Callable[[AnnotationHandle], None] | None = None,
        zoom_step: float | None = None,
        min_size: float | None = None,
        click_tolerance: float | None = None,
    ):
        """
        Args:
            record: Photo or location plan shown in this view
            interactive: False for secondary, synchronized views that only display
            on_select: Called with the handle of a clicked annotation
            on_created: Called with the handle of a newly drawn annotation
        """
        self.interactive = interactive
        self.on_select = on_select
        self.on_created = on_created
        self.zoom_step = zoom_step or settings.zoom_step
        self.min_size = settings.min_annotation_size if min_size is None else min_size
        self.click_tolerance = settings.click_tolerance if click_tolerance is None else click_tolerance
        self.viewport = ViewportState()
        self.record: ImageRecord | LocationPlan | None = None
        self._last_pointer: Point | None = None
        self._press_pointer: Point | None = None
        self.bind(record)

    # ------------------------------------------------------------------
    # Binding and sizing
    # ------------------------------------------------------------------
    @property
    def state(self) -> InteractionState:
        return self.viewport.state

    @property
    def is_location_plan(self) -> bool:
        return isinstance(self.record, LocationPlan)

    @property
    def annotations(self) -> AnnotationList | None:
        return None if self.record is None else self.record.annotations

    def bind(self, record: ImageRecord | LocationPlan | None) -> None:
        """Show a different image; resets zoom, pan and any gesture in progress."""
        self.record = record
        self.viewport = ViewportState()
        self._last_pointer = None
        self._press_pointer = None
        if record is not None and record.decoded and record.logical_size is None:
            self.fit(settings.max_view_width, settings.max_view_height)

    def fit(self, max_width: float, max_height: float) -> LogicalSize | None:
        """
        Recompute the logical size of the bound image for new view bounds.

        Stored annotations keep their coordinates; export-time scale factors
        absorb the change.
        """
        if self.record is None or self.record.source_size is None:
            return None
        width, height = self.record.source_size
        logical = fit_logical_size(width, height, max_width, max_height)
        self.record.logical_size = logical
        logger.debug(f"Fitted {self.record.name} to {logical.width:.1f}x{logical.height:.1f}")
        return logical

    # ------------------------------------------------------------------
    # Arming
    # ------------------------------------------------------------------
    def arm_defect(self, defect_type: str) -> None:
        """Enter drawing mode for a defect type."""
        self._require_interactive()
        if self.is_location_plan:
            raise InvalidInputError("Location plans only accept location extent markers")
        if not defect_type or not defect_type.strip():
            raise InvalidInputError("Defect type must not be empty")
        self.viewport.disarm()
        self.viewport.armed_defect_type = defect_type
        self.viewport.state = InteractionState.DRAWING

    def arm_location_extent(self) -> None:
        """Enter drawing mode for a location extent marker on a location plan."""
        self._require_interactive()
        if not self.is_location_plan:
            raise InvalidInputError("Location extent markers belong on a location plan")
        self.viewport.disarm()
        self.viewport.armed_location_extent = True
        self.viewport.state = InteractionState.DRAWING

    def cancel(self) -> None:
        """Drop any armed mode or in-progress rectangle and return to idle."""
        self.viewport.disarm()
        self._last_pointer = None
        self._press_pointer = None

    # ------------------------------------------------------------------
    # Pointer events
    # ------------------------------------------------------------------
    def pointer_down(self, pointer: Point) -> None:
        if not self.interactive or self.record is None:
            return

        if self.state is InteractionState.DRAWING:
            start = self.viewport.screen_to_logical(pointer)
            self.viewport.start_point = start
            self.viewport.candidate = normalize_rect(start, start)
            return

        self.viewport.state = InteractionState.PANNING
        self._last_pointer = pointer
        self._press_pointer = pointer

    def pointer_move(self, pointer: Point) -> None:
        if not self.interactive or self.record is None:
            return

        if self.state is InteractionState.PANNING and self._last_pointer is not None:
            self.viewport.pan_x += pointer[0] - self._last_pointer[0]
            self.viewport.pan_y += pointer[1] - self._last_pointer[1]
            self._last_pointer = pointer
            return

        if self.state is InteractionState.DRAWING and self.viewport.start_point is not None:
            current = self.viewport.screen_to_logical(pointer)
            self.viewport.candidate = normalize_rect(self.viewport.start_point, current)

    def pointer_up(self, pointer: Point | None = None) -> AnnotationHandle | None:
        """
        Finish the current gesture.

        Returns:
            Handle of the annotation created by a drawing gesture, if any
        """
        if not self.interactive or self.record is None:
            return None

        if self.state is InteractionState.PANNING:
            press = self._press_pointer
            self.viewport.state = InteractionState.IDLE
            self._last_pointer = None
            self._press_pointer = None
            if pointer is not None and press is not None and self._is_click(press, pointer):
                self.select_at(pointer)
            return None

        if self.state is InteractionState.DRAWING and self.viewport.start_point is not None:
            if pointer is not None:
                self.pointer_move(pointer)
            return self._finish_drawing()

        return None

    def _finish_drawing(self) -> AnnotationHandle | None:
        candidate = self.viewport.candidate
        viewport = self.viewport
        handle = None

        if candidate is not None and exceeds_min_size(candidate, self.min_size):
            if viewport.armed_location_extent:
                annotation = Annotation(
                    x=candidate.x,
                    y=candidate.y,
                    width=candidate.width,
                    height=candidate.height,
                    defect_type=LOCATION_EXTENT_LABEL,
                    is_location_plan=True,
                    is_location_extent=True,
                )
            else:
                annotation = Annotation(
                    x=candidate.x,
                    y=candidate.y,
                    width=candidate.width,
                    height=candidate.height,
                    defect_type=viewport.armed_defect_type or "",
                    is_location_plan=self.is_location_plan,
                )
            handle = self.record.annotations.append(annotation)
            logger.info(
                f"Added {annotation.label} on {self.record.name} at "
                f"({annotation.x:.1f}, {annotation.y:.1f}) {annotation.width:.1f}x{annotation.height:.1f}"
            )
        else:
            logger.debug("Discarded drawing below minimum size")

        viewport.disarm()
        if handle is not None and self.on_created is not None:
            self.on_created(handle)
        return handle

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    def select_at(self, pointer: Point) -> AnnotationHandle | None:
        """Report the topmost annotation under the pointer without changing it."""
        if not self.interactive or self.record is None or self.state is not InteractionState.IDLE:
            return None

        point = self.viewport.screen_to_logical(pointer)
        annotations = self.record.annotations
        for index in range(len(annotations) - 1, -1, -1):
            if contains_point(annotations[index], point):
                handle = annotations.handle_at(index)
                if self.on_select is not None:
                    self.on_select(handle)
                return handle
        return None

    def _is_click(self, press: Point, release: Point) -> bool:
        return (
            abs(release[0] - press[0]) <= self.click_tolerance
            and abs(release[1] - press[1]) <= self.click_tolerance
        )

    # ------------------------------------------------------------------
    # Zoom
    # ------------------------------------------------------------------
    @property
    def zoom_enabled(self) -> bool:
        return self.interactive and self.state is not InteractionState.DRAWING

    def wheel(self, pointer: Point, delta_y: float) -> bool:
        """Zoom one notch about the pointer; negative delta zooms in."""
        if delta_y == 0:
            return False
        factor = self.zoom_step if delta_y < 0 else 1 / self.zoom_step
        return self.zoom_to(pointer, self.viewport.scale * factor)

    def zoom_in(self) -> bool:
        return self.zoom_to(self._view_center(), self.viewport.scale * self.zoom_step)

    def zoom_out(self) -> bool:
        return self.zoom_to(self._view_center(), self.viewport.scale / self.zoom_step)

    def zoom_to(self, pointer: Point, new_scale: float) -> bool:
        """
        Set the zoom scale keeping the content under ``pointer`` in place.

        Returns:
            False when zooming is currently disabled
        """
        if not self.zoom_enabled or new_scale <= 0:
            return False
        viewport = self.viewport
        viewport.pan_x, viewport.pan_y = zoom_about_point(
            viewport.scale, (viewport.pan_x, viewport.pan_y), pointer, new_scale
        )
        viewport.scale = new_scale
        return True

    def reset_zoom(self) -> None:
        if not self.interactive:
            return
        self.viewport.scale = 1.0
        self.viewport.pan_x = 0.0
        self.viewport.pan_y = 0.0

    def _view_center(self) -> Point:
        logical = self.record.logical_size if self.record is not None else None
        if logical is None:
            return (0.0, 0.0)
        return (logical.width / 2, logical.height / 2)

    def _require_interactive(self) -> None:
        if not self.interactive:
            raise InvalidInputError("Secondary views do not accept drawing")
        if self.record is None:
            raise InvalidInputError("No image bound to this view")
