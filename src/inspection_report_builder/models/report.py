"""Data models for export results, report inputs and defect metrics."""

from __future__ import annotations

from datetime import datetime

import numpy as np
from pydantic import BaseModel, ConfigDict, Field


class FormMetadata(BaseModel):
    """Site details entered alongside the photos; passed through to the report."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    location: str = ""
    location_map: np.ndarray | None = Field(default=None, repr=False)
    drawing: np.ndarray | None = Field(default=None, repr=False)


class ExportedImage(BaseModel):
    """One annotated PNG ready for download."""

    file_name: str
    index: int = Field(ge=1, description="1-based position in the visual collection")
    data: bytes = Field(repr=False)


class BatchExportResult(BaseModel):
    """Archive produced by a save-all request plus per-image bookkeeping."""

    archive_name: str
    data: bytes = Field(repr=False)
    exported: list[str] = Field(default_factory=list)
    failed: list[int] = Field(default_factory=list, description="1-based indices skipped")

    @property
    def exported_count(self) -> int:
        return len(self.exported)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def complete(self) -> bool:
        return not self.failed


class GeneratedReport(BaseModel):
    """Serialized inspection document."""

    file_name: str
    data: bytes = Field(repr=False)
    image_sections: int = 0
    missing_cells: int = Field(default=0, description="Image cells left empty because nothing was captured")
    failed_cells: int = Field(default=0, description="Image cells whose render or encode failed")
    generation_date: datetime = Field(default_factory=datetime.now)

    @property
    def degraded_cells(self) -> int:
        """All image cells replaced by placeholder text."""
        return self.missing_cells + self.failed_cells


class DefectRow(BaseModel):
    """One line of a per-image defect table."""

    defect_id: str
    defect_type: str
    remark: str
    image_index: int
    image_name: str
    x: float
    y: float
    width: float
    height: float


class DefectMetrics(BaseModel):
    """Metrics and statistics for annotated defects."""

    total_images: int = Field(description="Number of visual images")
    images_with_defects: int = Field(description="Visual images with at least one defect")
    total_defects: int = Field(description="Total number of defect annotations")
    counts_by_type: dict[str, int] = Field(default_factory=dict)

    @property
    def defect_rate(self) -> float:
        """Percentage of images with defects."""
        if self.total_images == 0:
            return 0.0
        return (self.images_with_defects / self.total_images) * 100

    def to_dict(self) -> dict:
        """Convert to dictionary for export."""
        return {
            "total_images": self.total_images,
            "images_with_defects": self.images_with_defects,
            "total_defects": self.total_defects,
            "defect_rate_percent": round(self.defect_rate, 2),
            "by_type": dict(sorted(self.counts_by_type.items())),
        }
