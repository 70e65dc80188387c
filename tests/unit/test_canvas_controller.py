import pytest

from inspection_report_builder.models.annotation import Annotation
from inspection_report_builder.models.viewport import InteractionState
from inspection_report_builder.processing.canvas_controller import CanvasController
from inspection_report_builder.utils.exceptions import InvalidInputError


def _drag(canvas, start, end):
    canvas.pointer_down(start)
    canvas.pointer_move(end)
    return canvas.pointer_up(end)


def test_bind_fits_undecorated_record(visual_record):
    record = visual_record(width=1600, height=1200, logical=None)

    CanvasController(record)

    assert (record.logical_size.width, record.logical_size.height) == (800, 600)


def test_drag_creates_annotation_and_disarms(visual_record):
    created = []
    record = visual_record()
    canvas = CanvasController(record, on_created=created.append)

    canvas.arm_defect("Crack")
    handle = _drag(canvas, (50, 60), (20, 10))

    ann = record.annotations.get(handle)
    assert (ann.x, ann.y, ann.width, ann.height) == (20, 10, 30, 50)
    assert ann.defect_type == "Crack"
    assert not ann.is_location_plan
    assert created == [handle]
    assert canvas.state is InteractionState.IDLE
    assert canvas.viewport.armed_defect_type is None


def test_small_drag_is_discarded(visual_record):
    record = visual_record()
    canvas = CanvasController(record)

    canvas.arm_defect("Crack")
    handle = _drag(canvas, (10, 10), (13, 14))

    assert handle is None
    assert len(record.annotations) == 0
    assert canvas.state is InteractionState.IDLE


def test_cancel_drops_candidate(visual_record):
    record = visual_record()
    canvas = CanvasController(record)

    canvas.arm_defect("Rust")
    canvas.pointer_down((10, 10))
    canvas.pointer_move((80, 90))
    assert canvas.viewport.candidate is not None

    canvas.cancel()
    canvas.pointer_up((80, 90))

    assert canvas.state is InteractionState.IDLE
    assert canvas.viewport.candidate is None
    assert len(record.annotations) == 0


def test_drag_while_idle_pans(visual_record):
    canvas = CanvasController(visual_record())

    canvas.pointer_down((10, 10))
    assert canvas.state is InteractionState.PANNING
    canvas.pointer_move((25, 20))
    canvas.pointer_move((30, 25))
    canvas.pointer_up((30, 25))

    assert (canvas.viewport.pan_x, canvas.viewport.pan_y) == (20, 15)
    assert canvas.state is InteractionState.IDLE


def test_drawing_under_zoom_stores_logical_geometry(visual_record):
    record = visual_record()
    canvas = CanvasController(record)
    assert canvas.zoom_to((0, 0), 2.0)

    canvas.arm_defect("Seepage")
    handle = _drag(canvas, (100, 100), (200, 160))

    ann = record.annotations.get(handle)
    assert (ann.x, ann.y, ann.width, ann.height) == pytest.approx((50, 50, 50, 30))


def test_wheel_zooms_about_pointer(visual_record):
    canvas = CanvasController(visual_record(), zoom_step=2.0)
    pointer = (300.0, 200.0)
    before = canvas.viewport.screen_to_logical(pointer)

    assert canvas.wheel(pointer, delta_y=-120)
    assert canvas.viewport.scale == pytest.approx(2.0)
    assert canvas.viewport.screen_to_logical(pointer) == pytest.approx(before)

    assert canvas.wheel(pointer, delta_y=120)
    assert canvas.viewport.scale == pytest.approx(1.0)


def test_zoom_disabled_while_drawing(visual_record):
    canvas = CanvasController(visual_record())
    canvas.arm_defect("Crack")

    assert not canvas.zoom_enabled
    assert not canvas.wheel((10, 10), -1)
    assert not canvas.zoom_in()
    assert canvas.viewport.scale == 1.0


def test_reset_zoom(visual_record):
    canvas = CanvasController(visual_record())
    canvas.zoom_in()
    canvas.pointer_down((0, 0))
    canvas.pointer_move((40, 40))
    canvas.pointer_up((40, 40))

    canvas.reset_zoom()

    assert (canvas.viewport.scale, canvas.viewport.pan_x, canvas.viewport.pan_y) == (1.0, 0.0, 0.0)


def test_secondary_view_ignores_input(visual_record):
    record = visual_record()
    view = CanvasController(record, interactive=False)

    view.pointer_down((10, 10))
    view.pointer_move((50, 50))

    assert view.state is InteractionState.IDLE
    assert (view.viewport.pan_x, view.viewport.pan_y) == (0.0, 0.0)
    assert not view.wheel((10, 10), -1)
    with pytest.raises(InvalidInputError):
        view.arm_defect("Crack")


def test_click_selects_topmost_annotation(visual_record):
    selected = []
    record = visual_record(
        annotations=[
            Annotation(x=10, y=10, width=100, height=100, defect_type="Crack"),
            Annotation(x=50, y=50, width=100, height=100, defect_type="Rust"),
        ]
    )
    canvas = CanvasController(record, on_select=selected.append)

    canvas.pointer_down((60, 60))
    canvas.pointer_up((61, 60))

    assert len(selected) == 1
    assert record.annotations.get(selected[0]).defect_type == "Rust"
    assert record.annotations.index_of(selected[0]) == 1


def test_click_on_empty_area_selects_nothing(visual_record, crack):
    selected = []
    canvas = CanvasController(visual_record(annotations=[crack]), on_select=selected.append)

    canvas.pointer_down((500, 500))
    canvas.pointer_up((500, 500))

    assert selected == []


def test_location_plan_accepts_only_extent_markers(location_plan):
    plan = location_plan()
    canvas = CanvasController(plan)

    with pytest.raises(InvalidInputError):
        canvas.arm_defect("Crack")

    canvas.arm_location_extent()
    handle = _drag(canvas, (10, 10), (60, 40))

    ann = plan.annotations.get(handle)
    assert ann.is_location_extent
    assert ann.is_location_plan
    assert ann.label == "Location Extent"


def test_extent_marker_rejected_on_photo(visual_record):
    canvas = CanvasController(visual_record())
    with pytest.raises(InvalidInputError):
        canvas.arm_location_extent()


def test_empty_defect_type_rejected(visual_record):
    canvas = CanvasController(visual_record())
    with pytest.raises(InvalidInputError):
        canvas.arm_defect("  ")


def test_custom_defect_type_is_kept(visual_record):
    record = visual_record()
    canvas = CanvasController(record)

    canvas.arm_defect("Efflorescence")
    handle = _drag(canvas, (0, 0), (40, 40))

    assert record.annotations.get(handle).defect_type == "Efflorescence"


def test_bind_resets_viewport(visual_record):
    canvas = CanvasController(visual_record(name="a.jpg"))
    canvas.zoom_in()
    canvas.arm_defect("Crack")

    canvas.bind(visual_record(name="b.jpg"))

    assert canvas.viewport.scale == 1.0
    assert canvas.state is InteractionState.IDLE


def test_zoom_buttons_anchor_on_view_centre(visual_record):
    canvas = CanvasController(visual_record(), zoom_step=2.0)
    centre = (400.0, 300.0)

    canvas.zoom_in()
    assert canvas.viewport.logical_to_screen(centre) == pytest.approx(centre)

    canvas.zoom_out()
    assert canvas.viewport.scale == pytest.approx(1.0)
    assert (canvas.viewport.pan_x, canvas.viewport.pan_y) == pytest.approx((0.0, 0.0))
