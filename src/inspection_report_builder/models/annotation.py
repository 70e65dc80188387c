"""Data models for defect annotations and annotation lists."""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator

from pydantic import BaseModel, Field


LOCATION_EXTENT_LABEL = "Location Extent"


class DefectType(str, Enum):
    """Predefined defect categories offered by the drawing toolbar."""

    CRACK = "Crack"
    SPALLING = "Spalling"
    SEEPAGE = "Seepage"
    STAIN_TILES = "Stain Tiles"
    CHIPPING_TILES = "Chipping Tiles"
    RUST = "Rust"
    DELAMINATION = "Delamination"
    AGED_SEALANT = "Aged Sealant"
    HOT_ABNORMAL = "Hot Abnormal"
    COLD_ABNORMAL = "Cold Abnormal"
    DIRT = "Dirt"


class LogicalSize(BaseModel):
    """Bounded, aspect-preserving size an image is fitted into for display."""

    width: float = Field(gt=0, description="Logical width")
    height: float = Field(gt=0, description="Logical height")


class Annotation(BaseModel):
    """
    Rectangle marked on an image, in logical display units.

    Geometry is stored in the logical space of the canvas it was drawn on,
    never in source pixels or zoomed screen pixels. Conversion to source
    pixels happens when the annotation is rendered.
    """

    x: float
    y: float
    width: float = Field(ge=0)
    height: float = Field(ge=0)
    defect_type: str = Field(description="Predefined or free-text defect type")
    notes: str = ""
    is_location_plan: bool = False
    is_location_extent: bool = False

    @property
    def label(self) -> str:
        """Text painted above the rectangle."""
        if self.is_location_extent:
            return LOCATION_EXTENT_LABEL
        return self.defect_type


@dataclass(frozen=True)
class AnnotationHandle:
    """Opaque reference to one annotation inside one list generation."""

    list_token: int
    item_id: int


_list_tokens = itertools.count(1)
_token_lock = threading.Lock()


def _next_list_token() -> int:
    with _token_lock:
        return next(_list_tokens)


class AnnotationList:
    """
    Ordered annotations for one raster. Insertion order is paint order.

    ``append`` hands back an ``AnnotationHandle``. A handle resolves until
    its item is removed or the whole list is replaced, after which every
    lookup through it returns ``None``.
    """

    def __init__(self, annotations: Iterable[Annotation] = ()):
        self._token = _next_list_token()
        self._ids = itertools.count(1)
        self._items: list[tuple[int, Annotation]] = []
        for annotation in annotations:
            self.append(annotation)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Annotation]:
        return (annotation for _, annotation in self._items)

    def __getitem__(self, index: int) -> Annotation:
        return self._items[index][1]

    def __repr__(self) -> str:
        return f"AnnotationList({list(self)!r})"

    def append(self, annotation: Annotation) -> AnnotationHandle:
        item_id = next(self._ids)
        self._items.append((item_id, annotation))
        return AnnotationHandle(list_token=self._token, item_id=item_id)

    def handle_at(self, index: int) -> AnnotationHandle:
        return AnnotationHandle(list_token=self._token, item_id=self._items[index][0])

    def index_of(self, handle: AnnotationHandle | None) -> int | None:
        if handle is None or handle.list_token != self._token:
            return None
        for index, (item_id, _) in enumerate(self._items):
            if item_id == handle.item_id:
                return index
        return None

    def get(self, handle: AnnotationHandle | None) -> Annotation | None:
        index = self.index_of(handle)
        return None if index is None else self._items[index][1]

    def update(self, handle: AnnotationHandle | None, **changes: object) -> Annotation | None:
        """Apply field changes to the referenced annotation and return it."""
        index = self.index_of(handle)
        if index is None:
            return None
        item_id, current = self._items[index]
        updated = current.model_copy(update=changes)
        # model_copy skips validation
        updated = Annotation.model_validate(updated.model_dump())
        self._items[index] = (item_id, updated)
        return updated

    def remove(self, handle: AnnotationHandle | None) -> bool:
        index = self.index_of(handle)
        if index is None:
            return False
        del self._items[index]
        return True

    def remove_at(self, index: int) -> Annotation:
        return self._items.pop(index)[1]

    def replace_all(self, annotations: Iterable[Annotation]) -> None:
        """Swap in a new set of annotations; outstanding handles stop resolving."""
        self._token = _next_list_token()
        self._items = []
        for annotation in annotations:
            self.append(annotation)

    def to_list(self) -> list[Annotation]:
        return [annotation for _, annotation in self._items]
