"""Session manifest written by an external producer for batch runs."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, Field

from .annotation import Annotation, LogicalSize


class LocationPlanEntry(BaseModel):
    path: Path
    logical_size: LogicalSize | None = None
    annotations: list[Annotation] = Field(default_factory=list)


class VisualEntry(BaseModel):
    path: Path
    logical_size: LogicalSize | None = None
    annotations: list[Annotation] = Field(default_factory=list)
    location_plan: LocationPlanEntry | None = None


class SessionManifest(BaseModel):
    """
    Root structure for a session manifest file.

    Expected format:
    {
        "location": "Block A",
        "location_map": "map.png",
        "drawing": null,
        "visual": [
            {
                "path": "a.jpg",
                "logical_size": {"width": 800, "height": 600},
                "annotations": [{"x": 1, "y": 2, "width": 30, "height": 40, "defect_type": "Crack"}],
                "location_plan": {"path": "plan.png", "annotations": []}
            }
        ],
        "infrared": ["a_ir.jpg"],
        "hyperspectral": []
    }
    """

    location: str = ""
    location_map: Path | None = None
    drawing: Path | None = None
    visual: list[VisualEntry] = Field(default_factory=list)
    infrared: list[Path] = Field(default_factory=list)
    hyperspectral: list[Path] = Field(default_factory=list)

    @classmethod
    def from_json_file(cls, path: Path) -> "SessionManifest":
        """Load a manifest and resolve relative paths against its directory."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        manifest = cls.model_validate(data)
        return manifest.resolved(Path(path).parent)

    def resolved(self, base_dir: Path) -> "SessionManifest":
        def fix(p: Path | None) -> Path | None:
            if p is None or p.is_absolute():
                return p
            return base_dir / p

        copy = self.model_copy(deep=True)
        copy.location_map = fix(copy.location_map)
        copy.drawing = fix(copy.drawing)
        copy.infrared = [fix(p) for p in copy.infrared]
        copy.hyperspectral = [fix(p) for p in copy.hyperspectral]
        for entry in copy.visual:
            entry.path = fix(entry.path)
            if entry.location_plan is not None:
                entry.location_plan.path = fix(entry.location_plan.path)
        return copy
