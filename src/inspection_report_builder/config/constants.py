"""Constants and configuration values."""

from ..models.annotation import DefectType, LOCATION_EXTENT_LABEL

# RGBA colours per defect type (alpha in 0..1)
DEFECT_COLORS: dict[str, tuple[int, int, int, float]] = {
    DefectType.CRACK.value: (255, 0, 0, 1.0),  # Red
    DefectType.SPALLING.value: (255, 165, 0, 1.0),  # Orange
    DefectType.SEEPAGE.value: (0, 0, 255, 1.0),  # Blue
    DefectType.STAIN_TILES.value: (128, 0, 128, 1.0),  # Purple
    DefectType.CHIPPING_TILES.value: (255, 192, 203, 1.0),  # Pink
    DefectType.RUST.value: (139, 69, 19, 1.0),  # Brown
    DefectType.DELAMINATION.value: (0, 128, 0, 1.0),  # Green
    DefectType.AGED_SEALANT.value: (255, 255, 0, 1.0),  # Yellow
    DefectType.HOT_ABNORMAL.value: (255, 0, 255, 1.0),  # Magenta
    DefectType.COLD_ABNORMAL.value: (0, 255, 255, 1.0),  # Cyan
    DefectType.DIRT.value: (210, 180, 140, 1.0),  # Tan
}
DEFAULT_DEFECT_COLOR = (128, 128, 128, 1.0)  # Grey

# Location extent marker style
LOCATION_EXTENT_COLOR = (0, 255, 0, 0.8)
LOCATION_EXTENT_DASH = (10, 5)  # on, off (px)
LOCATION_EXTENT_STROKE_PX = 3
DEFECT_STROKE_PX = 2
DEFECT_FILL_ALPHA = 0.3  # exported images only

# Label box drawn above each rectangle
LABEL_HEIGHT_PX = 25
LABEL_PADDING_PX = 10
LABEL_TEXT_INSET_PX = 5
LABEL_BASELINE_OFFSET_PX = 5
LABEL_BACKGROUND = (255, 255, 255, 0.8)
LABEL_TEXT_COLOR = (0, 0, 0)
LABEL_FONT_SCALE = 0.55
LABEL_FONT_THICKNESS = 1

# Report placeholders
NO_LOCATION_MAP_TEXT = "No location map provided"
NO_DRAWING_TEXT = "No drawing provided"
EMPTY_REMARK_TEXT = "N.A"
MODALITY_ROW_LABELS = {
    "visual": "Visual Image",
    "location_plan": "Location Plan",
    "infrared": "Infrared Image",
    "hyperspectral": "Hyperspectral Image",
}
MODALITY_MISSING_TEXT = {
    "visual": "No visual image available",
    "location_plan": "No location plan available",
    "infrared": "No infrared image available",
    "hyperspectral": "No hyperspectral image available",
}


def get_defect_color(defect_type: str, alpha: float | None = None) -> tuple[int, int, int, float]:
    """
    Look up the stroke colour for a defect type.

    Unknown types fall back to neutral grey, so any user-entered string maps to a colour.
    """
    r, g, b, a = DEFECT_COLORS.get(defect_type, DEFAULT_DEFECT_COLOR)
    return (r, g, b, a if alpha is None else alpha)
