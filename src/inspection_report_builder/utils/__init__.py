"""Utility modules for logging, exceptions, and background tasks."""

from .logger import setup_logging, get_logger
from .exceptions import (
    InspectionError,
    DecodeFailure,
    RenderSurfaceUnavailable,
    ArchiveAssemblyError,
    ReportGenerationError,
    InvalidInputError,
    OperationCancelled,
    ImageProcessingError,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "InspectionError",
    "DecodeFailure",
    "RenderSurfaceUnavailable",
    "ArchiveAssemblyError",
    "ReportGenerationError",
    "InvalidInputError",
    "OperationCancelled",
    "ImageProcessingError",
]
