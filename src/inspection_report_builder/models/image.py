"""Data models for image records across modalities."""

from __future__ import annotations

from enum import Enum

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from .annotation import AnnotationList, LogicalSize


class Modality(str, Enum):
    """Imaging channels captured for the same scene."""

    VISUAL = "visual"
    INFRARED = "infrared"
    HYPERSPECTRAL = "hyperspectral"


class DecodeStatus(str, Enum):
    PENDING = "pending"
    DECODED = "decoded"
    FAILED = "failed"


class ImageSource(BaseModel):
    """Raw upload: file name, declared MIME type and bytes."""

    name: str
    data: bytes = Field(repr=False)
    content_type: str | None = None


class _RasterRecord(BaseModel):
    """Fields shared by photos and location plans."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    raster: np.ndarray | None = Field(default=None, repr=False)
    status: DecodeStatus = DecodeStatus.PENDING
    error: str | None = None
    logical_size: LogicalSize | None = None
    annotations: AnnotationList = Field(default_factory=AnnotationList)

    @property
    def decoded(self) -> bool:
        return self.status is DecodeStatus.DECODED and self.raster is not None

    @property
    def source_size(self) -> tuple[int, int] | None:
        """Native (width, height) in pixels once decoded."""
        if self.raster is None:
            return None
        height, width = self.raster.shape[:2]
        return (width, height)

    def mark_decoded(self, raster: np.ndarray) -> None:
        self.raster = raster
        self.status = DecodeStatus.DECODED
        self.error = None

    def mark_failed(self, reason: str) -> None:
        self.raster = None
        self.status = DecodeStatus.FAILED
        self.error = reason


class LocationPlan(_RasterRecord):
    """Reference plan attached to a visual photo; owns its own coordinate space."""


class ImageRecord(_RasterRecord):
    """One uploaded photo in one modality."""

    modality: Modality
    location_plan: LocationPlan | None = None
