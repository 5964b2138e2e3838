"""
Dark Pattern Detector
Rule-based inspection of rendered pages for manipulative interface patterns

Scans an HTML document with a fixed set of detectors, records deduplicated
findings tied to page elements, scores them by severity and can annotate the
page with an overlay panel summarising the result.

Licensed under MIT License
"""

__version__ = "3.0.0"
__author__ = "Dark Pattern Detector Team"
__description__ = "Dark Pattern Detector"

import logging

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())
