import pytest

from inspection_report_builder.models.image import DecodeStatus, ImageSource, Modality
from inspection_report_builder.processing.registry import ModalityRegistry
from inspection_report_builder.utils.exceptions import InvalidInputError
from inspection_report_builder.utils.tasks import BackgroundTaskRunner


def test_positional_lookup_across_modalities(image_source):
    registry = ModalityRegistry()
    registry.append(Modality.VISUAL, [image_source("a.png"), image_source("b.png"), image_source("c.png")])
    registry.append(Modality.INFRARED, [image_source("a_ir.png")])

    assert registry.get(Modality.VISUAL, 2).name == "c.png"
    assert registry.get(Modality.INFRARED, 0).name == "a_ir.png"
    assert registry.get(Modality.INFRARED, 1) is None
    assert registry.get(Modality.HYPERSPECTRAL, 0) is None
    assert registry.get(Modality.VISUAL, -1) is None


def test_append_extends_existing_collection(image_source):
    registry = ModalityRegistry()
    registry.append(Modality.VISUAL, [image_source("a.png")])
    added = registry.append(Modality.VISUAL, [image_source("b.png")])

    assert [r.name for r in added] == ["b.png"]
    assert [r.name for r in registry.records(Modality.VISUAL)] == ["a.png", "b.png"]


def test_decoded_record_exposes_source_size(image_source):
    registry = ModalityRegistry()
    (record,) = registry.append(Modality.VISUAL, [image_source("a.png", width=160, height=120)])

    assert record.status is DecodeStatus.DECODED
    assert record.source_size == (160, 120)
    assert registry.get_decoded(Modality.VISUAL, 0) is record


def test_undecodable_bytes_are_registered_but_flagged():
    registry = ModalityRegistry()
    registry.append(Modality.VISUAL, [ImageSource(name="broken.jpg", data=b"not a jpeg", content_type="image/jpeg")])

    record = registry.get(Modality.VISUAL, 0)
    assert record is not None
    assert record.status is DecodeStatus.FAILED
    assert record.error
    assert registry.get_decoded(Modality.VISUAL, 0) is None


def test_non_image_uploads_are_skipped(image_source):
    registry = ModalityRegistry()
    added = registry.append(
        Modality.VISUAL,
        [ImageSource(name="notes.txt", data=b"hello"), image_source("a.png")],
    )

    assert [r.name for r in added] == ["a.png"]
    assert registry.count(Modality.VISUAL) == 1


def test_attach_location_plan(image_source):
    registry = ModalityRegistry()
    registry.append(Modality.VISUAL, [image_source("a.png")])

    plan = registry.attach_location_plan(0, image_source("plan.png", width=200, height=100))

    assert registry.get(Modality.VISUAL, 0).location_plan is plan
    assert plan.decoded
    assert plan.source_size == (200, 100)


def test_attach_location_plan_requires_visual_record(image_source):
    registry = ModalityRegistry()
    with pytest.raises(InvalidInputError):
        registry.attach_location_plan(0, image_source("plan.png"))


def test_background_decode(image_source):
    with BackgroundTaskRunner(max_workers=2) as runner:
        registry = ModalityRegistry(runner)
        records = registry.append(Modality.INFRARED, [image_source("a.png"), image_source("b.png")])

        assert registry.wait_until_decoded(timeout=10)
        assert all(r.decoded for r in records)

    events = runner.poll_events()

    assert sorted(e.name for e in events) == ["decode:a.png", "decode:b.png"]
    assert all(e.ok for e in events)


def test_decode_applies_default_fit_to_every_record(image_source):
    registry = ModalityRegistry()
    registry.append(Modality.VISUAL, [image_source("a.png", 1600, 1200), image_source("b.png", 320, 240)])
    registry.append(Modality.HYPERSPECTRAL, [image_source("a_hs.png", 1000, 2000)])
    plan = registry.attach_location_plan(1, image_source("plan.png", 1200, 600))

    sizes = [
        registry.get(Modality.VISUAL, 0).logical_size,
        registry.get(Modality.VISUAL, 1).logical_size,
        registry.get(Modality.HYPERSPECTRAL, 0).logical_size,
        plan.logical_size,
    ]
    assert [(s.width, s.height) for s in sizes] == [(800, 600), (320, 240), (300, 600), (800, 400)]


def test_failed_decode_has_no_logical_size():
    registry = ModalityRegistry()
    registry.append(Modality.VISUAL, [ImageSource(name="broken.png", data=b"", content_type="image/png")])

    assert registry.get(Modality.VISUAL, 0).logical_size is None
