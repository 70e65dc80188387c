"""Data models for the inspection report builder."""

from .annotation import (
    DefectType,
    LogicalSize,
    Annotation,
    AnnotationHandle,
    AnnotationList,
    LOCATION_EXTENT_LABEL,
)
from .image import Modality, DecodeStatus, ImageSource, ImageRecord, LocationPlan
from .viewport import InteractionState, Rect, ViewportState
from .report import (
    FormMetadata,
    ExportedImage,
    BatchExportResult,
    GeneratedReport,
    DefectRow,
    DefectMetrics,
)
from .session import SessionManifest, VisualEntry, LocationPlanEntry

__all__ = [
    "DefectType",
    "LogicalSize",
    "Annotation",
    "AnnotationHandle",
    "AnnotationList",
    "LOCATION_EXTENT_LABEL",
    "Modality",
    "DecodeStatus",
    "ImageSource",
    "ImageRecord",
    "LocationPlan",
    "InteractionState",
    "Rect",
    "ViewportState",
    "FormMetadata",
    "ExportedImage",
    "BatchExportResult",
    "GeneratedReport",
    "DefectRow",
    "DefectMetrics",
    "SessionManifest",
    "VisualEntry",
    "LocationPlanEntry",
]
