"""
Dark Pattern Detector Core Components
Severity model, document primitives, annotation and errors

The engine itself lives in `dpd.core.engine`.
"""

from .annotator import Annotator
from .errors import DetectorLoadError, DocumentLoadError, DPDError, PatternTableError
from .model import Finding, risk_tier

__all__ = [
    "Annotator",
    "DPDError",
    "DetectorLoadError",
    "DocumentLoadError",
    "PatternTableError",
    "Finding",
    "risk_tier",
]
