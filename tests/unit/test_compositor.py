import numpy as np
import pytest

from inspection_report_builder.models.annotation import Annotation, LogicalSize
from inspection_report_builder.processing.compositor import dash_segments, render_annotations
from inspection_report_builder.utils.exceptions import RenderSurfaceUnavailable

LOGICAL = LogicalSize(width=800, height=600)


def _blank(width=1600, height=1200):
    return np.zeros((height, width, 3), dtype=np.uint8)


def test_output_keeps_native_resolution_and_source_untouched(crack):
    raster = _blank()

    out = render_annotations(raster, [crack], LOGICAL)

    assert out.shape == raster.shape
    assert out is not raster
    assert not raster.any()


def test_defect_box_is_drawn_at_scaled_position(crack):
    # crack is at logical (100, 100) 50x50 -> source (200, 200) to (300, 300)
    out = render_annotations(_blank(), [crack], LOGICAL)

    assert tuple(out[250, 200]) == (0, 0, 255)
    assert tuple(out[250, 300]) == (0, 0, 255)
    assert tuple(out[300, 250]) == (0, 0, 255)
    assert not out[250, 250].any()
    # nothing painted at the unscaled position
    assert not out[125, 100].any()


def test_label_box_sits_above_rectangle(crack):
    out = render_annotations(_blank(), [crack], LOGICAL)

    # white at 0.8 opacity over black, clear of the glyphs
    assert all(195 <= channel <= 210 for channel in out[178, 203])
    assert not out[170, 250].any()


def test_unknown_defect_type_is_grey():
    ann = Annotation(x=100, y=100, width=50, height=50, defect_type="Mould")

    out = render_annotations(_blank(), [ann], LOGICAL)

    assert tuple(out[250, 200]) == (128, 128, 128)


def test_location_extent_is_green_and_translucent():
    ann = Annotation(
        x=100,
        y=100,
        width=50,
        height=50,
        defect_type="Location Extent",
        is_location_plan=True,
        is_location_extent=True,
    )

    out = render_annotations(_blank(), [ann], LOGICAL)

    b, g, r = out[297, 200]
    assert 180 < g < 255
    assert b == 0 and r == 0


def test_annotations_paint_in_list_order():
    first = Annotation(x=100, y=100, width=50, height=50, defect_type="Crack")
    second = Annotation(x=100, y=100, width=50, height=50, defect_type="Seepage")

    out = render_annotations(_blank(), [first, second], LOGICAL)

    assert tuple(out[250, 200]) == (255, 0, 0)


def test_greyscale_input_is_promoted_to_bgr(crack):
    out = render_annotations(np.zeros((1200, 1600), dtype=np.uint8), [crack], LOGICAL)
    assert out.shape == (1200, 1600, 3)


def test_missing_raster_raises(crack):
    with pytest.raises(RenderSurfaceUnavailable):
        render_annotations(None, [crack], LOGICAL)


def test_missing_logical_size_raises(crack):
    with pytest.raises(RenderSurfaceUnavailable):
        render_annotations(_blank(), [crack], None)


def test_dash_segments_follow_pattern():
    segments = dash_segments((0, 0), (40, 0), (10, 5))
    assert segments == [((0, 0), (10, 0)), ((15, 0), (25, 0)), ((30, 0), (40, 0))]
