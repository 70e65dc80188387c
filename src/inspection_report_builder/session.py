"""Application session tying the registry, canvases and background actions together."""

from __future__ import annotations

import threading
from concurrent.futures import Future
from typing import Iterable

from .config import settings
from .models.annotation import Annotation, AnnotationHandle, AnnotationList
from .models.image import ImageRecord, ImageSource, LocationPlan, Modality
from .models.report import BatchExportResult, FormMetadata, GeneratedReport
from .processing.canvas_controller import CanvasController
from .processing.registry import ModalityRegistry
from .report.builder import ReportBuilder
from .report.exporter import annotated_filename, export_all, export_one
from .utils.exceptions import InvalidInputError
from .utils.logger import get_logger
from .utils.tasks import ActionGate, BackgroundTaskRunner, TaskEvent

logger = get_logger(__name__)

SAVE_ALL = "save_all"
REPORT = "report"


class InspectionSession:
    """
    One inspector's working set: uploads, the active image, the current
    selection and the save/report actions.

    Only the canvases owned by this session edit annotation lists, and
    only for the active image. Long-running actions go to the background
    runner; their completions show up in ``poll_events()``.
    """

    def __init__(
        self,
        runner: BackgroundTaskRunner | None = None,
        registry: ModalityRegistry | None = None,
        form: FormMetadata | None = None,
    ):
        self.runner = runner or BackgroundTaskRunner(settings.background_workers)
        self.registry = registry or ModalityRegistry(self.runner)
        self.form = form or FormMetadata()
        self.active_index = 0
        self.selection: AnnotationHandle | None = None

        self.canvas = CanvasController(on_select=self.select)
        self.plan_canvas = CanvasController(on_select=self.select)
        self.parallel_views = {
            Modality.INFRARED: CanvasController(interactive=False),
            Modality.HYPERSPECTRAL: CanvasController(interactive=False),
        }
        self.gates = {SAVE_ALL: ActionGate(SAVE_ALL), REPORT: ActionGate(REPORT)}
        self._cancel_events: dict[str, threading.Event] = {}

    # ------------------------------------------------------------------
    # Uploads
    # ------------------------------------------------------------------
    def upload(self, modality: Modality, sources: Iterable[ImageSource]) -> list[ImageRecord]:
        records = self.registry.append(modality, sources)
        self._bind_views()
        return records

    def upload_location_plan(self, source: ImageSource) -> LocationPlan:
        """Attach a location plan to the active visual image."""
        plan = self.registry.attach_location_plan(self.active_index, source)
        self.clear_selection()
        self._bind_views()
        return plan

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    @property
    def current_record(self) -> ImageRecord | None:
        return self.registry.get(Modality.VISUAL, self.active_index)

    def set_active_index(self, index: int) -> None:
        count = self.registry.count(Modality.VISUAL)
        if not 0 <= index < max(count, 1):
            raise InvalidInputError(f"Image index {index} out of range (0..{count - 1})")
        self.active_index = index
        self.clear_selection()
        self._bind_views()
        logger.debug(f"Active image is now {index + 1}")

    def next_image(self) -> bool:
        if self.active_index < self.registry.count(Modality.VISUAL) - 1:
            self.set_active_index(self.active_index + 1)
            return True
        return False

    def previous_image(self) -> bool:
        if self.active_index > 0:
            self.set_active_index(self.active_index - 1)
            return True
        return False

    def _bind_views(self) -> None:
        record = self.current_record
        plan = record.location_plan if record is not None else None
        if self.canvas.record is not record:
            self.canvas.bind(record)
        if self.plan_canvas.record is not plan:
            self.plan_canvas.bind(plan)
        for modality, view in self.parallel_views.items():
            parallel = self.registry.get(modality, self.active_index)
            if view.record is not parallel:
                view.bind(parallel)

    def refresh_views(self) -> None:
        """Fit newly decoded images bound to a view that has no logical size yet."""
        for view in [self.canvas, self.plan_canvas, *self.parallel_views.values()]:
            if view.record is not None and view.record.decoded and view.record.logical_size is None:
                view.fit(settings.max_view_width, settings.max_view_height)

    def poll_events(self) -> list[TaskEvent]:
        """Collect finished background work and update views for new decodes."""
        events = self.runner.poll_events()
        if events:
            self.refresh_views()
        return events

    # ------------------------------------------------------------------
    # Selection and editing
    # ------------------------------------------------------------------
    def _active_lists(self) -> list[AnnotationList]:
        record = self.current_record
        if record is None:
            return []
        lists = [record.annotations]
        if record.location_plan is not None:
            lists.append(record.location_plan.annotations)
        return lists

    def _owner_of(self, handle: AnnotationHandle | None) -> AnnotationList | None:
        for annotations in self._active_lists():
            if annotations.index_of(handle) is not None:
                return annotations
        return None

    def select(self, handle: AnnotationHandle) -> None:
        if self._owner_of(handle) is None:
            raise InvalidInputError("Annotation does not belong to the active image")
        self.selection = handle

    def clear_selection(self) -> None:
        self.selection = None

    def selected_annotation(self) -> Annotation | None:
        """The selected annotation, or None if the selection no longer resolves."""
        owner = self._owner_of(self.selection)
        if owner is None:
            self.selection = None
            return None
        return owner.get(self.selection)

    def update_selected(self, **changes: object) -> Annotation | None:
        """Edit fields (typically ``defect_type`` or ``notes``) of the selected annotation."""
        owner = self._owner_of(self.selection)
        if owner is None:
            self.selection = None
            return None
        return owner.update(self.selection, **changes)

    def delete_selected(self) -> bool:
        owner = self._owner_of(self.selection)
        removed = owner.remove(self.selection) if owner is not None else False
        self.selection = None
        return removed

    def delete_annotation_at(self, index: int) -> Annotation:
        """
        Remove an annotation of the active visual image by position.

        The selection is cleared if it pointed at or past the removed position.
        """
        record = self.current_record
        if record is None or not 0 <= index < len(record.annotations):
            raise InvalidInputError(f"No annotation at index {index}")
        selected_index = record.annotations.index_of(self.selection)
        removed = record.annotations.remove_at(index)
        if selected_index is not None and selected_index >= index:
            self.selection = None
        logger.info(f"Deleted {removed.label} from {record.name}")
        return removed

    # ------------------------------------------------------------------
    # Background actions
    # ------------------------------------------------------------------
    def save_current_image(self) -> Future | None:
        """Render the active image to PNG in the background."""
        record = self.current_record
        if record is None:
            return None
        index = self.active_index + 1
        name = annotated_filename(record.name, index)
        return self.runner.submit(f"save:{name}", export_one, record, index)

    def save_all_images(self) -> Future | None:
        """
        Export every visual image into one archive in the background.

        Returns:
            Future of BatchExportResult, or None if nothing to export or the
            action is already running
        """
        if self.registry.count(Modality.VISUAL) == 0:
            return None
        return self._submit_gated(SAVE_ALL, self._save_all)

    def _save_all(self, cancel_event: threading.Event) -> BatchExportResult:
        records = self.registry.records(Modality.VISUAL)
        return export_all(records, cancel_event=cancel_event)

    def generate_report(self) -> Future | None:
        """
        Build the inspection report in the background.

        Returns:
            Future of GeneratedReport, or None if nothing to report or the
            action is already running
        """
        if self.registry.count(Modality.VISUAL) == 0:
            return None
        return self._submit_gated(REPORT, self._generate_report)

    def _generate_report(self, cancel_event: threading.Event) -> GeneratedReport:
        return ReportBuilder(self.registry, self.form, cancel_event=cancel_event).generate()

    def is_busy(self, action: str) -> bool:
        return self.gates[action].busy

    def cancel(self, action: str) -> None:
        """Ask a running action to stop before its next image."""
        event = self._cancel_events.get(action)
        if event is not None:
            event.set()

    def _submit_gated(self, action: str, fn) -> Future | None:
        gate = self.gates[action]
        if not gate.acquire():
            logger.info(f"'{action}' already running; request ignored")
            return None
        cancel_event = threading.Event()
        self._cancel_events[action] = cancel_event
        try:
            return self.runner.submit(action, gate.guarded(fn), cancel_event)
        except Exception:
            gate.release()
            raise

    def close(self) -> None:
        for event in self._cancel_events.values():
            event.set()
        self.runner.shutdown()
