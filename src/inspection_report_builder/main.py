"""Batch entrypoint - turns a session manifest into annotated images, a report and a defect register."""

import sys
import time
from pathlib import Path

from .config import settings
from .io import load_image_file, load_session_manifest, read_image_source, save_bytes
from .models.image import ImageSource, Modality
from .models.report import FormMetadata
from .models.session import SessionManifest
from .processing import ModalityRegistry
from .report import ReportBuilder, export_all, export_metrics_csv, export_metrics_json
from .utils import setup_logging, get_logger
from .utils.exceptions import DecodeFailure, InspectionError, InvalidInputError

logger = get_logger(__name__)


def _sources(paths: list[Path]) -> list[ImageSource]:
    sources = []
    for path in paths:
        try:
            sources.append(read_image_source(path))
        except DecodeFailure:
            # Keep the position so later images stay aligned with other modalities
            sources.append(ImageSource(name=Path(path).name, data=b"", content_type="image/unknown"))
    return sources


def build_registry(manifest: SessionManifest) -> ModalityRegistry:
    """
    Register every image in the manifest and restore its annotations.

    Records without a stored logical size keep the default display fit
    applied when they were decoded.
    """
    registry = ModalityRegistry()

    listed = {
        Modality.VISUAL: [entry.path for entry in manifest.visual],
        Modality.INFRARED: manifest.infrared,
        Modality.HYPERSPECTRAL: manifest.hyperspectral,
    }
    for modality, paths in listed.items():
        added = registry.append(modality, _sources(paths))
        if len(added) != len(paths):
            raise InvalidInputError(
                f"Manifest lists {len(paths) - len(added)} non-image {modality.value} file(s); "
                "positions would no longer line up across modalities"
            )
    visual = registry.records(Modality.VISUAL)

    for index, (entry, record) in enumerate(zip(manifest.visual, visual)):
        if entry.logical_size is not None:
            record.logical_size = entry.logical_size
        record.annotations.replace_all(entry.annotations)

        if entry.location_plan is not None:
            plan_entry = entry.location_plan
            try:
                plan = registry.attach_location_plan(index, read_image_source(plan_entry.path))
            except (DecodeFailure, InvalidInputError) as e:
                logger.warning(f"Location plan for image {index + 1} unavailable: {e}")
                continue
            if plan_entry.logical_size is not None:
                plan.logical_size = plan_entry.logical_size
            plan.annotations.replace_all(
                ann.model_copy(update={"is_location_plan": True}) for ann in plan_entry.annotations
            )

    return registry


def _optional_raster(path: Path | None, what: str):
    if path is None:
        return None
    try:
        return load_image_file(path)
    except DecodeFailure as e:
        logger.warning(f"{what} unavailable: {e}")
        return None


def run(manifest_path: Path, output_dir: Path) -> dict[str, Path]:
    """
    Produce every artifact for one session manifest.

    Returns:
        Mapping of artifact kind to written path
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    artifacts: dict[str, Path] = {}

    # ===== STEP 1: Load manifest and images =====
    logger.info("=" * 80)
    logger.info("STEP 1: Loading session manifest and images")
    logger.info("=" * 80)

    manifest = load_session_manifest(manifest_path)
    registry = build_registry(manifest)
    form = FormMetadata(
        location=manifest.location,
        location_map=_optional_raster(manifest.location_map, "Location map"),
        drawing=_optional_raster(manifest.drawing, "Drawing"),
    )

    visual = registry.records(Modality.VISUAL)
    decoded = sum(1 for record in visual if record.decoded)
    total_annotations = sum(len(record.annotations) for record in visual)
    logger.info(f"Visual images: {len(visual)} ({decoded} decoded), {total_annotations} annotations")

    # ===== STEP 2: Export annotated images =====
    logger.info("=" * 80)
    logger.info("STEP 2: Exporting annotated images")
    logger.info("=" * 80)

    batch = export_all(visual)
    artifacts["archive"] = save_bytes(batch.data, output_dir / batch.archive_name)
    if not batch.complete:
        logger.warning(f"{batch.failed_count} image(s) missing from archive: {batch.failed}")

    # ===== STEP 3: Generate report =====
    logger.info("=" * 80)
    logger.info("STEP 3: Generating inspection report")
    logger.info("=" * 80)

    report = ReportBuilder(registry, form).generate()
    artifacts["report"] = save_bytes(report.data, output_dir / report.file_name)

    # ===== STEP 4: Export defect register =====
    logger.info("=" * 80)
    logger.info("STEP 4: Exporting defect register")
    logger.info("=" * 80)

    artifacts["metrics_json"] = export_metrics_json(registry, output_dir / "defect_register.json")
    artifacts["metrics_csv"] = export_metrics_csv(registry, output_dir / "defect_register.csv")

    return artifacts


def main(argv: list[str] | None = None) -> int:
    """
    Command-line entrypoint.

    Usage: inspection-report [SESSION_MANIFEST]

    The manifest path falls back to INSPECT_SESSION_FILE; outputs go to
    INSPECT_WORK_DIR.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    argv = sys.argv[1:] if argv is None else argv

    setup_logging(settings.log_level, json_format=settings.log_json)
    logger.info("=" * 80)
    logger.info("Starting Inspection Report Builder v0.1.0")
    logger.info("=" * 80)

    manifest_path = Path(argv[0]) if argv else settings.session_file
    if manifest_path is None:
        logger.error("No session manifest given (argument or INSPECT_SESSION_FILE)")
        return 1

    start_time = time.time()

    try:
        artifacts = run(manifest_path, settings.work_dir)

        duration = time.time() - start_time
        logger.info("=" * 80)
        logger.info(f"Completed in {duration:.1f}s")
        for kind, path in artifacts.items():
            logger.info(f"  {kind}: {path}")
        logger.info("=" * 80)
        return 0

    except InspectionError as e:
        logger.error(f"Processing failed: {e}", exc_info=True)
        return 1
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
