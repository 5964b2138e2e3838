"""
Dark Pattern Detector Utility Modules
HTTP client, logging, reporting and overlay utilities
"""

from .http_client import HTTPClient
from .logger import setup_logger
from .report import ReportGenerator

__all__ = [
    "HTTPClient",
    "setup_logger",
    "ReportGenerator",
]
