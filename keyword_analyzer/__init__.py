"""Bulk keyword relevance analysis service."""

__version__ = "0.1.0"
