"""Application services."""

from .analysis import AnalysisService, ExportedFile

__all__ = [
    "AnalysisService",
    "ExportedFile",
]
