"""Custom exception classes for error handling."""


class InspectionError(Exception):
    """Base exception for all inspection annotator errors."""

    pass


class DecodeFailure(InspectionError):
    """Source bytes could not be decoded into a raster."""

    pass


class RenderSurfaceUnavailable(InspectionError):
    """A drawing surface could not be created for an image."""

    pass


class ArchiveAssemblyError(InspectionError):
    """Error assembling or serializing the batch archive."""

    pass


class ReportGenerationError(InspectionError):
    """Error during report generation."""

    pass


class InvalidInputError(InspectionError):
    """Invalid input data or parameters."""

    pass


class OperationCancelled(InspectionError):
    """A long-running operation observed a cancellation request."""

    pass


class ImageProcessingError(InspectionError):
    """Error during image encoding or other image operations."""

    pass
