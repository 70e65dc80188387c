"""Position-indexed image collections per modality."""

from __future__ import annotations

import threading
from concurrent.futures import Future, wait
from typing import Iterable

from ..config import settings
from ..io.image_loader import decode_image, is_image_source
from ..models.image import ImageRecord, ImageSource, LocationPlan, Modality
from ..utils.exceptions import DecodeFailure, InvalidInputError
from ..utils.logger import get_logger
from ..utils.tasks import BackgroundTaskRunner
from .geometry import fit_logical_size

logger = get_logger(__name__)


class ModalityRegistry:
    """
    Ordered image collections for the visual, infrared and hyperspectral channels.

    Records in different modalities belong together only by position: the
    infrared record at index 2 pairs with the visual record at index 2.
    Collections may differ in length, and a missing position is reported
    as ``None`` rather than an error.
    """

    def __init__(self, task_runner: BackgroundTaskRunner | None = None):
        """
        Args:
            task_runner: Runner for background decoding. When omitted,
                records are decoded synchronously on append.
        """
        self._runner = task_runner
        self._lock = threading.Lock()
        self._collections: dict[Modality, list[ImageRecord]] = {m: [] for m in Modality}
        self._pending: list[Future] = []

    def append(self, modality: Modality, sources: Iterable[ImageSource]) -> list[ImageRecord]:
        """
        Register uploads at the end of a modality's collection.

        Non-image uploads are skipped. Each accepted upload is registered
        immediately in ``pending`` state and becomes usable once its decode
        finishes, carrying the default display fit as its logical size. A
        failed decode leaves the record registered but flagged.

        Returns:
            The newly registered records, in upload order
        """
        modality = Modality(modality)
        added: list[ImageRecord] = []

        for source in sources:
            if not is_image_source(source):
                logger.warning(f"Skipping non-image upload {source.name} ({source.content_type})")
                continue

            record = ImageRecord(name=source.name, modality=modality)
            with self._lock:
                self._collections[modality].append(record)
            added.append(record)
            self._schedule_decode(record, source)

        logger.info(
            f"Registered {len(added)} {modality.value} image(s), "
            f"collection size now {self.count(modality)}"
        )
        return added

    def attach_location_plan(self, visual_index: int, source: ImageSource) -> LocationPlan:
        """
        Attach or replace the location plan of a visual record.

        Replacing a plan discards the previous plan's annotations.

        Raises:
            InvalidInputError: If no visual record exists at that index
        """
        record = self.get(Modality.VISUAL, visual_index)
        if record is None:
            raise InvalidInputError(f"No visual image at index {visual_index}")
        if not is_image_source(source):
            raise InvalidInputError(f"Location plan {source.name} is not an image")

        plan = LocationPlan(name=source.name)
        record.location_plan = plan
        self._schedule_decode(plan, source)
        logger.info(f"Attached location plan {source.name} to visual image {visual_index + 1}")
        return plan

    def get(self, modality: Modality, index: int) -> ImageRecord | None:
        """Positional lookup; ``None`` when nothing was captured at that index."""
        with self._lock:
            collection = self._collections[Modality(modality)]
            if 0 <= index < len(collection):
                return collection[index]
        return None

    def get_decoded(self, modality: Modality, index: int) -> ImageRecord | None:
        """Like ``get`` but also treats pending or failed decodes as absent."""
        record = self.get(modality, index)
        if record is None or not record.decoded:
            return None
        return record

    def records(self, modality: Modality) -> list[ImageRecord]:
        with self._lock:
            return list(self._collections[Modality(modality)])

    def count(self, modality: Modality) -> int:
        with self._lock:
            return len(self._collections[Modality(modality)])

    def wait_until_decoded(self, timeout: float | None = None) -> bool:
        """Block until every scheduled decode has settled. Returns False on timeout."""
        with self._lock:
            pending = [f for f in self._pending if not f.done()]
            self._pending = pending
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def _schedule_decode(self, record: ImageRecord | LocationPlan, source: ImageSource) -> None:
        if self._runner is None:
            _decode_into(record, source)
            return
        future = self._runner.submit(f"decode:{source.name}", _decode_into, record, source)
        with self._lock:
            self._pending.append(future)


def _decode_into(record: ImageRecord | LocationPlan, source: ImageSource) -> bool:
    try:
        record.mark_decoded(decode_image(source.data, source.name))
    except DecodeFailure as e:
        record.mark_failed(str(e))
        return False

    # Default display fit; a canvas refits it when the view bounds change
    if record.logical_size is None:
        width, height = record.source_size
        record.logical_size = fit_logical_size(width, height, settings.max_view_width, settings.max_view_height)
    return True
