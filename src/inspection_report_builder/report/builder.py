"""Inspection report builder producing a PDF document."""

from __future__ import annotations

import io
import re
import threading
from typing import Iterable, NamedTuple
from xml.sax.saxutils import escape

import numpy as np
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..config import constants, settings
from ..io.image_loader import encode_png
from ..models.annotation import Annotation, LogicalSize
from ..models.image import Modality
from ..models.report import DefectRow, FormMetadata, GeneratedReport
from ..processing.compositor import render_annotations
from ..processing.geometry import round_half_up
from ..processing.registry import ModalityRegistry
from ..utils.exceptions import OperationCancelled, ReportGenerationError
from ..utils.logger import get_logger

logger = get_logger(__name__)

MAX_IMAGE_HEIGHT_PT = 520.0
GRID = [("GRID", (0, 0), (-1, -1), 0.5, colors.black)]


class ComparisonCell(NamedTuple):
    """One labelled row of an image comparison table."""

    label: str
    raster: np.ndarray | None
    placeholder: str
    failed: bool = False


def defect_id(defect_type: str, image_index: int, x: float, y: float) -> str:
    """
    Display identifier for one defect, e.g. ``Crack01007042``.

    Built from the defect type without whitespace, the 1-based image index
    (2 digits) and the stored x and y (3 digits each, rounded half-up).
    Two defects of the same type at the same rounded spot on the same image
    get the same ID.
    """
    compact_type = re.sub(r"\s+", "", defect_type)
    return (
        f"{compact_type}{image_index:02d}"
        f"{round_half_up(x):03d}{round_half_up(y):03d}"
    )


def defect_rows(annotations: Iterable[Annotation], image_index: int, image_name: str) -> list[DefectRow]:
    """Defect table rows for one image, in annotation insertion order."""
    return [
        DefectRow(
            defect_id=defect_id(ann.defect_type, image_index, ann.x, ann.y),
            defect_type=ann.defect_type,
            remark=ann.notes or constants.EMPTY_REMARK_TEXT,
            image_index=image_index,
            image_name=image_name,
            x=ann.x,
            y=ann.y,
            width=ann.width,
            height=ann.height,
        )
        for ann in annotations
    ]


def report_filename(location: str) -> str:
    """``inspection_report_<location>.pdf`` with path separators removed."""
    safe = re.sub(r"[\\/]+", "_", location.strip()) or "unspecified"
    return f"inspection_report_{safe}.pdf"


class ReportBuilder:
    """Builds the inspection report from the registry and form metadata."""

    def __init__(
        self,
        registry: ModalityRegistry,
        form: FormMetadata,
        cancel_event: threading.Event | None = None,
    ):
        """
        Initialize report builder.

        Args:
            registry: Image collections with their annotations
            form: Site location and optional map/drawing rasters
            cancel_event: Checked between image sections
        """
        self.registry = registry
        self.form = form
        self.cancel_event = cancel_event
        self.missing_cells = 0
        self.failed_cells = 0

        styles = getSampleStyleSheet()
        self.styles = {
            "title": styles["Title"],
            "heading": styles["Heading2"],
            "body": styles["BodyText"],
            "centered": ParagraphStyle("Centered", parent=styles["BodyText"], alignment=TA_CENTER),
        }

        logger.info(
            f"Initialized report builder: {registry.count(Modality.VISUAL)} visual, "
            f"{registry.count(Modality.INFRARED)} infrared, "
            f"{registry.count(Modality.HYPERSPECTRAL)} hyperspectral images"
        )

    @property
    def file_name(self) -> str:
        return report_filename(self.form.location)

    def generate(self) -> GeneratedReport:
        """
        Render the whole report to PDF bytes.

        Raises:
            OperationCancelled: If cancel_event was set while composing
            ReportGenerationError: If the document could not be assembled
        """
        logger.info(f"Generating report {self.file_name}")
        self.missing_cells = 0
        self.failed_cells = 0

        story = self._create_story()

        buffer = io.BytesIO()
        try:
            doc = SimpleDocTemplate(
                buffer,
                pagesize=A4,
                title="Inspection Report",
                leftMargin=2 * cm,
                rightMargin=2 * cm,
                topMargin=2 * cm,
                bottomMargin=2 * cm,
            )
            doc.build(story)
        except Exception as e:
            error_msg = f"Failed to generate PDF: {e}"
            logger.error(error_msg)
            raise ReportGenerationError(error_msg) from e

        data = buffer.getvalue()
        logger.info(
            f"Generated report: {len(data) / 1_000_000:.2f} MB, "
            f"{self.missing_cells} image cell(s) not captured, "
            f"{self.failed_cells} failed to render"
        )
        return GeneratedReport(
            file_name=self.file_name,
            data=data,
            image_sections=self.registry.count(Modality.VISUAL),
            missing_cells=self.missing_cells,
            failed_cells=self.failed_cells,
        )

    def _create_story(self) -> list:
        story: list = []
        self._add_title(story)
        self._add_metadata_table(story)
        self._add_location_details(story)

        for index in range(self.registry.count(Modality.VISUAL)):
            if self.cancel_event is not None and self.cancel_event.is_set():
                logger.info("Report generation cancelled")
                raise OperationCancelled("Report generation cancelled")
            self._add_image_section(story, index)

        return story

    def _add_title(self, story: list) -> None:
        story.append(Paragraph("Inspection Report", self.styles["title"]))
        story.append(Spacer(1, 0.4 * cm))

    def _add_metadata_table(self, story: list) -> None:
        table = Table(
            [[self._text("Location:"), self._text(self.form.location)]],
            colWidths=["20%", "80%"],
        )
        table.setStyle(TableStyle(GRID))
        story.append(table)
        story.append(Spacer(1, 0.4 * cm))

    def _add_location_details(self, story: list) -> None:
        """Location map and drawing side by side."""
        story.append(Paragraph("Location Details", self.styles["heading"]))

        width = settings.report_location_image_width_pt
        height = settings.report_location_image_height_pt
        rows = [
            [self._text("Location Map", centered=True), self._text("Drawing", centered=True)],
            [
                self._image_or_text(self.form.location_map, constants.NO_LOCATION_MAP_TEXT, width, height),
                self._image_or_text(self.form.drawing, constants.NO_DRAWING_TEXT, width, height),
            ],
        ]
        table = Table(rows, colWidths=["50%", "50%"])
        table.setStyle(
            TableStyle(GRID + [("ALIGN", (0, 0), (-1, -1), "CENTER"), ("VALIGN", (0, 0), (-1, -1), "MIDDLE")])
        )
        story.append(table)
        story.append(Spacer(1, 0.6 * cm))

    def comparison_cells(self, index: int) -> list[ComparisonCell]:
        """
        Rendered rasters for the four comparison rows of one image section.

        Visual, infrared and hyperspectral rows reuse the visual record's
        annotations and logical size; the location plan row uses the plan's
        own. When the visual record has no logical size (its decode failed),
        parallel rows fall back to their own default fit. A row whose record
        is missing or undecoded carries no raster; a row that fails to render
        carries none either and is flagged ``failed``.
        """
        record = self.registry.get(Modality.VISUAL, index)
        annotations = record.annotations if record is not None else []
        logical = record.logical_size if record is not None else None

        plan = record.location_plan if record is not None else None
        rows = [
            ("visual", self.registry.get_decoded(Modality.VISUAL, index), annotations, logical),
            (
                "location_plan",
                plan if plan is not None and plan.decoded else None,
                plan.annotations if plan is not None else [],
                plan.logical_size if plan is not None else None,
            ),
            ("infrared", self.registry.get_decoded(Modality.INFRARED, index), annotations, logical),
            ("hyperspectral", self.registry.get_decoded(Modality.HYPERSPECTRAL, index), annotations, logical),
        ]

        cells = []
        for key, source, anns, size in rows:
            label = constants.MODALITY_ROW_LABELS[key]
            placeholder = constants.MODALITY_MISSING_TEXT[key]
            if source is None:
                cells.append(ComparisonCell(label, None, placeholder))
                continue
            rendered = self._render(source.raster, anns, size or source.logical_size, f"{key} of image {index + 1}")
            cells.append(ComparisonCell(label, rendered, placeholder, failed=rendered is None))
        return cells

    def _render(
        self,
        raster: np.ndarray | None,
        annotations: Iterable[Annotation],
        logical_size: LogicalSize | None,
        what: str,
    ) -> np.ndarray | None:
        if raster is None:
            return None
        try:
            return render_annotations(raster, annotations, logical_size)
        except Exception as e:
            logger.warning(f"Could not render {what}: {e}")
            return None

    def _add_image_section(self, story: list, index: int) -> None:
        record = self.registry.get(Modality.VISUAL, index)
        name = record.name if record is not None else f"image {index + 1}"
        story.append(Paragraph(escape(f"Image {index + 1}: {name}"), self.styles["heading"]))

        width = settings.report_image_width_pt
        rows = []
        for cell in self.comparison_cells(index):
            rows.append([self._text(cell.label)])
            rows.append(
                [self._image_or_text(cell.raster, cell.placeholder, width, MAX_IMAGE_HEIGHT_PT, failed=cell.failed)]
            )
        comparison = Table(rows, colWidths=["100%"])
        comparison.setStyle(TableStyle(GRID))
        story.append(comparison)
        story.append(Spacer(1, 0.3 * cm))

        defect_data = [[self._text("Defect ID"), self._text("Defect Type"), self._text("Engineer's Remark")]]
        annotations = record.annotations if record is not None else []
        for row in defect_rows(annotations, index + 1, name):
            defect_data.append([self._text(row.defect_id), self._text(row.defect_type), self._text(row.remark)])
        defect_table = Table(defect_data, colWidths=["25%", "20%", "55%"], repeatRows=1)
        defect_table.setStyle(
            TableStyle(GRID + [("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey), ("VALIGN", (0, 0), (-1, -1), "TOP")])
        )
        story.append(defect_table)
        story.append(Spacer(1, 1 * cm))
        logger.debug(f"Added report section for image {index + 1} ({len(defect_data) - 1} defects)")

    def _image_or_text(
        self,
        raster: np.ndarray | None,
        missing_text: str,
        max_width: float,
        max_height: float,
        failed: bool = False,
    ):
        if raster is None:
            if failed:
                self.failed_cells += 1
            else:
                self.missing_cells += 1
            return self._text(missing_text)
        try:
            png = encode_png(raster)
        except Exception as e:
            logger.warning(f"Could not embed image ({e}); using placeholder")
            self.failed_cells += 1
            return self._text(missing_text)

        height_px, width_px = raster.shape[:2]
        ratio = min(max_width / width_px, max_height / height_px)
        return Image(io.BytesIO(png), width=width_px * ratio, height=height_px * ratio)

    def _text(self, text: str, centered: bool = False) -> Paragraph:
        style = self.styles["centered" if centered else "body"]
        return Paragraph(escape(text), style)
