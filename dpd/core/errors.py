"""
Exceptions raised by the Dark Pattern Detector.

Detection itself never raises for page content: detector faults are caught by
the engine and reported alongside the findings. These errors cover the edges
around detection (loading pages, detector modules and pattern tables).
"""

from __future__ import annotations


class DPDError(Exception):
    """Base class for detector errors."""


class DocumentLoadError(DPDError):
    """The page could not be read, fetched or parsed as HTML."""


class DetectorLoadError(DPDError):
    """A detector module is missing or does not follow the detector contract."""


class PatternTableError(DPDError):
    """A pattern table is malformed or contains an invalid pattern."""
