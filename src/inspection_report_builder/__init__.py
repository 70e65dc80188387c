"""Inspection Report Builder - annotated inspection imagery, exports and PDF reports."""

__version__ = "0.1.0"
