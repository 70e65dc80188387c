import cv2
import numpy as np
import pytest

from inspection_report_builder.models.annotation import Annotation, LogicalSize
from inspection_report_builder.models.image import ImageRecord, ImageSource, LocationPlan, Modality


def _png(width: int, height: int, color=(0, 0, 0)) -> bytes:
    raster = np.zeros((height, width, 3), dtype=np.uint8)
    raster[:, :] = color
    ok, encoded = cv2.imencode(".png", raster)
    assert ok
    return encoded.tobytes()


@pytest.fixture
def png_bytes():
    """Factory for small encoded PNG files: png_bytes(width, height, bgr)."""
    return _png


@pytest.fixture
def image_source(png_bytes):
    def make(name: str = "photo.png", width: int = 160, height: int = 120) -> ImageSource:
        return ImageSource(name=name, data=png_bytes(width, height), content_type="image/png")

    return make


@pytest.fixture
def visual_record():
    """Factory for a decoded visual record with an explicit logical size."""

    def make(
        name: str = "photo.jpg",
        width: int = 1600,
        height: int = 1200,
        logical: tuple[float, float] | None = (800, 600),
        annotations=(),
    ) -> ImageRecord:
        record = ImageRecord(name=name, modality=Modality.VISUAL)
        record.mark_decoded(np.zeros((height, width, 3), dtype=np.uint8))
        if logical is not None:
            record.logical_size = LogicalSize(width=logical[0], height=logical[1])
        record.annotations.replace_all(annotations)
        return record

    return make


@pytest.fixture
def location_plan():
    def make(width: int = 400, height: int = 300) -> LocationPlan:
        plan = LocationPlan(name="plan.png")
        plan.mark_decoded(np.zeros((height, width, 3), dtype=np.uint8))
        plan.logical_size = LogicalSize(width=width, height=height)
        return plan

    return make


@pytest.fixture
def crack():
    return Annotation(x=100, y=100, width=50, height=50, defect_type="Crack")
