"""Export the defect register to JSON and CSV formats."""

import csv
import json
from collections import Counter
from datetime import datetime
from pathlib import Path

from ..models.image import Modality
from ..models.report import DefectMetrics, DefectRow
from ..processing.registry import ModalityRegistry
from ..utils.logger import get_logger
from .builder import defect_rows

logger = get_logger(__name__)


def collect_defect_rows(registry: ModalityRegistry) -> list[DefectRow]:
    """All defect rows across visual images, in image then insertion order."""
    rows: list[DefectRow] = []
    for index, record in enumerate(registry.records(Modality.VISUAL), start=1):
        rows.extend(defect_rows(record.annotations, index, record.name))
    return rows


def calculate_metrics(registry: ModalityRegistry) -> DefectMetrics:
    """
    Calculate defect metrics from the visual collection.

    Args:
        registry: Image collections

    Returns:
        DefectMetrics object
    """
    visual = registry.records(Modality.VISUAL)
    counts = Counter(ann.defect_type for record in visual for ann in record.annotations)

    return DefectMetrics(
        total_images=len(visual),
        images_with_defects=sum(1 for record in visual if len(record.annotations) > 0),
        total_defects=sum(counts.values()),
        counts_by_type=dict(counts),
    )


def export_metrics_json(
    registry: ModalityRegistry,
    output_path: Path,
    include_details: bool = True,
) -> Path:
    """
    Export metrics to JSON file.

    Args:
        registry: Image collections
        output_path: Path to save JSON file
        include_details: If True, include one entry per defect

    Returns:
        Path to saved file
    """
    logger.info(f"Exporting metrics to JSON: {output_path}")

    metrics = calculate_metrics(registry)

    data = {
        "export_date": datetime.now().isoformat(),
        "summary": metrics.to_dict(),
    }

    if include_details:
        data["defects"] = [row.model_dump() for row in collect_defect_rows(registry)]

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)

    logger.info(f"Exported metrics JSON: {output_path.stat().st_size / 1_000:.1f} KB")
    return output_path


def export_metrics_csv(registry: ModalityRegistry, output_path: Path) -> Path:
    """
    Export one row per defect to a CSV file.

    Args:
        registry: Image collections
        output_path: Path to save CSV file

    Returns:
        Path to saved file
    """
    logger.info(f"Exporting metrics to CSV: {output_path}")

    fieldnames = [
        "defect_id",
        "image_index",
        "image_name",
        "defect_type",
        "remark",
        "x",
        "y",
        "width",
        "height",
    ]

    with open(output_path, "w", newline="", encoding="utf-8") as csvfile:
        writer = csv.DictWriter(csvfile, fieldnames=fieldnames)
        writer.writeheader()
        for row in collect_defect_rows(registry):
            writer.writerow(row.model_dump(include=set(fieldnames)))

    logger.info(f"Exported metrics CSV: {output_path.stat().st_size / 1_000:.1f} KB")
    return output_path
