"""Export annotated images as single PNGs or a dated ZIP archive."""

from __future__ import annotations

import io
import threading
import zipfile
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from pathlib import PurePath
from typing import Sequence

from ..config import constants, settings
from ..io.image_loader import encode_png
from ..models.image import ImageRecord
from ..models.report import BatchExportResult, ExportedImage
from ..processing.compositor import render_annotations
from ..utils.exceptions import ArchiveAssemblyError, OperationCancelled
from ..utils.logger import get_logger

logger = get_logger(__name__)


def annotated_filename(original_name: str, index: int) -> str:
    """
    Name for an exported image, e.g. ``site_a_annotated_3.png``.

    Args:
        original_name: Uploaded file name
        index: 1-based position in the visual collection
    """
    return f"{PurePath(original_name).stem}_annotated_{index}.png"


def archive_filename(on: date | None = None) -> str:
    """Name of the batch archive, stamped with the export date."""
    on = on or date.today()
    return f"annotated_images_{on.isoformat()}.zip"


def export_one(record: ImageRecord | None, index: int) -> ExportedImage | None:
    """
    Render one visual record with its annotations and encode it as PNG.

    Args:
        record: Visual record (may be absent or undecoded)
        index: 1-based position used for the file name

    Returns:
        The encoded image, or None when the record cannot be rendered
    """
    if record is None:
        logger.warning(f"No image at position {index}, nothing to export")
        return None

    try:
        rendered = render_annotations(
            record.raster, record.annotations, record.logical_size, fill_alpha=constants.DEFECT_FILL_ALPHA
        )
        data = encode_png(rendered)
    except Exception as e:
        logger.warning(f"Skipping export of {record.name} (image {index}): {e}")
        return None

    file_name = annotated_filename(record.name, index)
    logger.info(f"Exported {file_name}: {len(data) / 1_000:.1f} KB")
    return ExportedImage(file_name=file_name, index=index, data=data)


def export_all(
    records: Sequence[ImageRecord | None],
    cancel_event: threading.Event | None = None,
    max_workers: int | None = None,
    on: date | None = None,
) -> BatchExportResult:
    """
    Export every visual record into a single ZIP archive.

    Entries live under ``annotated_images/`` and keep the 1-based index of
    their record, so a failed image leaves a gap instead of renumbering the
    rest. Failed images are logged and listed in the result.

    Args:
        records: Visual records in collection order
        cancel_event: Checked between images; when set the export is abandoned
        max_workers: Images rendered concurrently (default from settings)
        on: Date used in the archive name (default today)

    Returns:
        BatchExportResult with the archive bytes and per-image outcome

    Raises:
        OperationCancelled: If cancel_event was set before all images finished
        ArchiveAssemblyError: If the archive could not be written
    """
    workers = max(1, max_workers or settings.export_workers)
    logger.info(f"Exporting {len(records)} images with {workers} worker(s)")

    exported: list[ExportedImage] = []
    failed: list[int] = []

    for index, result in _render_in_order(records, workers, cancel_event):
        if result is None:
            failed.append(index)
        else:
            exported.append(result)

    data = _build_archive(exported)
    result = BatchExportResult(
        archive_name=archive_filename(on),
        data=data,
        exported=[image.file_name for image in exported],
        failed=failed,
    )

    if failed:
        logger.warning(
            f"Batch export incomplete: {result.exported_count} exported, "
            f"{result.failed_count} skipped (images {failed})"
        )
    else:
        logger.info(f"Batch export complete: {result.exported_count} images")
    return result


def _render_in_order(records, workers, cancel_event):
    """Yield (1-based index, ExportedImage | None) in collection order."""

    def check_cancel() -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.info("Batch export cancelled")
            raise OperationCancelled("Batch export cancelled")

    if workers == 1:
        for index, record in enumerate(records, start=1):
            check_cancel()
            yield index, export_one(record, index)
        return

    # Bounded window keeps at most `workers` full-resolution surfaces alive
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="export") as pool:
        items = list(enumerate(records, start=1))
        for start in range(0, len(items), workers):
            check_cancel()
            window = items[start : start + workers]
            futures = [pool.submit(export_one, record, index) for index, record in window]
            for (index, _), future in zip(window, futures):
                yield index, future.result()


def _build_archive(images: Sequence[ExportedImage]) -> bytes:
    folder = settings.archive_folder
    buffer = io.BytesIO()
    try:
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for image in images:
                archive.writestr(f"{folder}/{image.file_name}", image.data)
    except (zipfile.BadZipFile, OSError, ValueError) as e:
        error_msg = f"Failed to assemble archive: {e}"
        logger.error(error_msg)
        raise ArchiveAssemblyError(error_msg) from e
    return buffer.getvalue()
