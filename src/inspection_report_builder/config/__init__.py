"""Configuration management for the inspection report builder."""

from .settings import settings, Settings
from .constants import (
    DEFECT_COLORS,
    DEFAULT_DEFECT_COLOR,
    LOCATION_EXTENT_LABEL,
    get_defect_color,
)

__all__ = [
    "settings",
    "Settings",
    "DEFECT_COLORS",
    "DEFAULT_DEFECT_COLOR",
    "LOCATION_EXTENT_LABEL",
    "get_defect_color",
]
