import pytest
from pydantic import ValidationError

from inspection_report_builder.models.annotation import LOCATION_EXTENT_LABEL, Annotation, AnnotationList


def _ann(defect_type="Crack", x=0.0):
    return Annotation(x=x, y=0, width=10, height=10, defect_type=defect_type)


def test_append_preserves_insertion_order():
    annotations = AnnotationList()
    for name in ["Crack", "Rust", "Dirt"]:
        annotations.append(_ann(name))

    assert [a.defect_type for a in annotations] == ["Crack", "Rust", "Dirt"]
    assert len(annotations) == 3


def test_handle_resolves_until_removed():
    annotations = AnnotationList([_ann("Crack")])
    handle = annotations.append(_ann("Rust"))

    assert annotations.get(handle).defect_type == "Rust"
    assert annotations.remove(handle)
    assert annotations.get(handle) is None
    assert not annotations.remove(handle)


def test_handle_survives_removal_of_other_items():
    annotations = AnnotationList()
    first = annotations.append(_ann("Crack"))
    second = annotations.append(_ann("Rust"))

    annotations.remove(first)

    assert annotations.index_of(second) == 0
    assert annotations.get(second).defect_type == "Rust"


def test_replace_all_invalidates_outstanding_handles():
    annotations = AnnotationList()
    handle = annotations.append(_ann("Crack"))

    annotations.replace_all([_ann("Crack")])

    assert annotations.get(handle) is None
    assert annotations.update(handle, notes="x") is None


def test_handles_do_not_cross_lists():
    a, b = AnnotationList(), AnnotationList()
    handle = a.append(_ann())
    b.append(_ann())

    assert b.get(handle) is None


def test_update_changes_fields_and_revalidates():
    annotations = AnnotationList()
    handle = annotations.append(_ann())

    updated = annotations.update(handle, defect_type="Seepage", notes="behind tiles")

    assert updated.defect_type == "Seepage"
    assert annotations[0].notes == "behind tiles"
    with pytest.raises(ValidationError):
        annotations.update(handle, width=-1)


def test_location_extent_label():
    ann = Annotation(
        x=0, y=0, width=5, height=5, defect_type="Crack", is_location_plan=True, is_location_extent=True
    )
    assert ann.label == LOCATION_EXTENT_LABEL
    assert _ann("Aged Sealant").label == "Aged Sealant"


def test_to_list_is_a_snapshot():
    annotations = AnnotationList([_ann("Crack")])
    snapshot = annotations.to_list()

    annotations.append(_ann("Rust"))

    assert [a.defect_type for a in snapshot] == ["Crack"]
