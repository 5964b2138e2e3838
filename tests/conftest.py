"""
Shared fixtures for the Dark Pattern Detector test suite
"""

import pytest

from dpd.core.document import load_document
from dpd.core.engine import ScanEngine


def make_page(body: str):
    """Parse a body fragment into a full document."""
    return load_document(f"<html><head><title>Test</title></head><body>{body}</body></html>")


@pytest.fixture
def page():
    return make_page


@pytest.fixture
def engine():
    return ScanEngine()


@pytest.fixture
def scan():
    """Run selected detectors (default: all) over a body fragment."""

    def _scan(body: str, detectors=None):
        soup = make_page(body)
        report = ScanEngine(detectors=detectors).run(soup)
        return report, soup

    return _scan
