"""Report generation modules for images, archives, documents and metrics."""

from .builder import ComparisonCell, ReportBuilder, defect_id, defect_rows, report_filename
from .exporter import export_one, export_all, annotated_filename, archive_filename
from .metrics_exporter import export_metrics_json, export_metrics_csv, calculate_metrics

__all__ = [
    "ReportBuilder",
    "ComparisonCell",
    "defect_id",
    "defect_rows",
    "report_filename",
    "export_one",
    "export_all",
    "annotated_filename",
    "archive_filename",
    "export_metrics_json",
    "export_metrics_csv",
    "calculate_metrics",
]
