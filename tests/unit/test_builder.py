import threading

import numpy as np
import pytest

from inspection_report_builder.models.annotation import Annotation
from inspection_report_builder.models.image import ImageSource, Modality
from inspection_report_builder.models.report import FormMetadata
from inspection_report_builder.processing.registry import ModalityRegistry
from inspection_report_builder.report import builder as builder_module
from inspection_report_builder.report.builder import ReportBuilder, defect_id, defect_rows, report_filename
from inspection_report_builder.utils.exceptions import OperationCancelled, RenderSurfaceUnavailable


@pytest.mark.parametrize(
    "defect_type, index, x, y, expected",
    [
        ("Crack", 1, 7, 42, "Crack01007042"),
        ("Seepage", 3, 5, 120, "Seepage03005120"),
        ("Stain Tiles", 12, 2.5, 99.4, "StainTiles12003099"),
        ("Aged  Sealant", 2, 123.5, 0, "AgedSealant02124000"),
    ],
)
def test_defect_id(defect_type, index, x, y, expected):
    assert defect_id(defect_type, index, x, y) == expected


def test_defect_rows_default_remark():
    annotations = [
        Annotation(x=7, y=42, width=10, height=10, defect_type="Crack"),
        Annotation(x=1, y=2, width=3, height=4, defect_type="Rust", notes="near window"),
    ]

    rows = defect_rows(annotations, 1, "a.jpg")

    assert [r.defect_id for r in rows] == ["Crack01007042", "Rust01001002"]
    assert [r.remark for r in rows] == ["N.A", "near window"]


def test_report_filename():
    assert report_filename("Block A") == "inspection_report_Block A.pdf"
    assert report_filename("Tower 1/Level 3") == "inspection_report_Tower 1_Level 3.pdf"
    assert report_filename("  ") == "inspection_report_unspecified.pdf"


@pytest.fixture
def registry(image_source):
    registry = ModalityRegistry()
    registry.append(Modality.VISUAL, [image_source("a.jpg"), image_source("b.jpg")])
    registry.append(Modality.INFRARED, [image_source("a_ir.jpg")])
    crack = Annotation(x=10, y=20, width=30, height=40, defect_type="Crack")
    registry.get(Modality.VISUAL, 0).annotations.append(crack)
    return registry


def test_comparison_cells_reuse_visual_annotations(registry):
    builder = ReportBuilder(registry, FormMetadata(location="Block A"))

    cells = builder.comparison_cells(0)

    labels = [cell.label for cell in cells]
    assert labels == ["Visual Image", "Location Plan", "Infrared Image", "Hyperspectral Image"]
    visual, plan, infrared, hyperspectral = [cell.raster for cell in cells]
    assert visual is not None and infrared is not None
    assert plan is None and hyperspectral is None
    # crack burned into the infrared copy at the same place as on the visual one
    assert tuple(infrared[40, 10]) == (0, 0, 255)
    assert np.array_equal(visual, infrared)


def test_comparison_cells_missing_infrared(registry):
    builder = ReportBuilder(registry, FormMetadata())

    cell = builder.comparison_cells(1)[2]

    assert cell.raster is None
    assert cell.placeholder == "No infrared image available"
    assert not cell.failed


def test_generate_pdf(registry):
    report = ReportBuilder(
        registry,
        FormMetadata(location="Block A", location_map=np.full((50, 80, 3), 255, dtype=np.uint8)),
    ).generate()

    assert report.file_name == "inspection_report_Block A.pdf"
    assert report.data.startswith(b"%PDF")
    assert report.image_sections == 2
    # drawing missing; image 1 lacks plan + hyperspectral; image 2 lacks plan + IR + hyperspectral
    assert report.missing_cells == 6
    assert report.failed_cells == 0
    assert report.degraded_cells == 6


def test_generate_without_images():
    report = ReportBuilder(ModalityRegistry(), FormMetadata(location="<&>")).generate()

    assert report.data.startswith(b"%PDF")
    assert report.image_sections == 0
    assert report.missing_cells == 2
    assert report.degraded_cells == 2


def test_generate_cancelled(registry):
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(OperationCancelled):
        ReportBuilder(registry, FormMetadata(), cancel_event=cancel).generate()


def test_infrared_renders_when_visual_decode_failed(image_source):
    registry = ModalityRegistry()
    registry.append(Modality.VISUAL, [ImageSource(name="bad.png", data=b"junk", content_type="image/png")])
    registry.append(Modality.INFRARED, [image_source("a_ir.png", width=320, height=240)])

    cells = ReportBuilder(registry, FormMetadata()).comparison_cells(0)

    visual, _, infrared, _ = cells
    assert visual.raster is None and not visual.failed
    assert infrared.raster is not None
    assert infrared.raster.shape == (240, 320, 3)
    assert not infrared.failed


def test_render_failures_are_counted_apart_from_missing_images(registry, monkeypatch):
    def broken(*args, **kwargs):
        raise RenderSurfaceUnavailable("surface lost")

    monkeypatch.setattr(builder_module, "render_annotations", broken)

    report = ReportBuilder(registry, FormMetadata()).generate()

    # image 1: visual + IR fail; image 2: visual fails
    assert report.failed_cells == 3
    # map, drawing; image 1: plan, hyperspectral; image 2: plan, IR, hyperspectral
    assert report.missing_cells == 7
    cell = ReportBuilder(registry, FormMetadata()).comparison_cells(0)[0]
    assert cell.failed and cell.placeholder == "No visual image available"
