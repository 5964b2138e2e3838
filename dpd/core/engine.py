"""
Dark Pattern Detector Scan Engine
Runs the detector set over one document snapshot and aggregates the result
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Pattern, Union

from bs4 import BeautifulSoup, Tag

from .annotator import Annotator
from .document import (
    BUTTON_INPUT_TYPES,
    EXCERPT_LENGTH,
    NodeArena,
    collapse_whitespace,
    css_path,
    document_root,
    element_text,
    find_self_surface,
    in_self_surface,
    is_element,
    make_excerpt,
    remove_self_surface,
    walk_text_nodes,
)
from .errors import PatternTableError
from .layout import Layout, StaticLayout
from .model import Finding
from .plugin_loader import DetectorLoader
from .report import ScanReport, aggregate
from ..data.patterns import PatternTable, load_pattern_tables
from ..utils.overlay import attach_panel


@dataclass
class ScanSettings:
    """Thresholds and sizes the detectors read from the session."""

    viewport_width: float = 1280.0
    viewport_height: float = 800.0
    min_ad_size: float = 20.0
    min_popup_height: float = 80.0
    small_font_px: float = 12.0
    excerpt_length: int = EXCERPT_LENGTH


def build_finding(index: int,
                  detector: str,
                  category: str,
                  severity: str,
                  message: str,
                  text: str = "",
                  node_id: Optional[int] = None,
                  selector: Optional[str] = None,
                  excerpt_length: int = EXCERPT_LENGTH) -> Finding:
    """Decide what a finding looks like. Touches no document state."""
    return Finding(
        index=index,
        detector=detector,
        category=category,
        severity=severity,
        message=message,
        excerpt=make_excerpt(text, excerpt_length),
        node_id=node_id,
        selector=selector,
    )


class DetectionSession:
    """State shared by all detectors during one run.

    Owns the findings collection, the node arena and the annotator, and
    offers the traversal helpers detectors are written against.
    """

    def __init__(self,
                 soup: BeautifulSoup,
                 tables: Mapping[str, PatternTable],
                 layout: Optional[Layout] = None,
                 annotator: Optional[Annotator] = None,
                 settings: Optional[ScanSettings] = None,
                 logger: Optional[logging.Logger] = None):
        self.soup = soup
        self.root = document_root(soup)
        self.tables = tables
        self.settings = settings or ScanSettings()
        self.layout = layout or StaticLayout(self.settings.viewport_width, self.settings.viewport_height)
        self.annotator = annotator or Annotator()
        self.logger = logger or logging.getLogger(__name__)
        self.arena = NodeArena()
        self.findings: List[Finding] = []
        self.detector: Optional[str] = None
        self._start = 0
        self._claimed: set = set()
        self._candidate: Optional[Tag] = None

    def begin(self, detector_id: str) -> None:
        """Start a detector's turn: findings and claimed elements are tracked from here."""
        self.detector = detector_id
        self._start = len(self.findings)
        self._claimed = set()
        self._candidate = None

    def collected(self) -> List[Finding]:
        """Findings recorded by the current detector."""
        return self.findings[self._start:]

    def table(self, detector_id: Optional[str] = None) -> PatternTable:
        detector_id = detector_id or self.detector
        if detector_id not in self.tables:
            raise PatternTableError(f"No pattern table for detector '{detector_id}'")
        return self.tables[detector_id]

    # Queries

    def select(self, selector: str) -> List[Tag]:
        """Elements matching selector, outside the self-surface, in document order."""
        if not selector:
            return []
        return [el for el in self.root.select(selector) if not in_self_surface(el)]

    def candidates(self, selector: str) -> Iterator[Tag]:
        """Like select, but skips elements inside a candidate the current detector already flagged.

        A finding recorded while a candidate is being checked claims that
        candidate, whichever element the finding itself points at.
        """
        try:
            for el in self.select(selector):
                if self._inside_claimed(el):
                    self.logger.debug(f"[{self.detector}] skipping <{el.name}> nested in a flagged element")
                    continue
                self._candidate = el
                yield el
        finally:
            self._candidate = None

    def _inside_claimed(self, el: Tag) -> bool:
        current = el
        while is_element(current):
            if id(current) in self._claimed:
                return True
            current = current.parent
        return False

    def display_text(self, el: Optional[Tag]) -> str:
        """Visible label of an element: its text, or the value of a button-like input."""
        if el is None:
            return ""
        if el.name == "input":
            if str(el.get("type", "")).lower() not in BUTTON_INPUT_TYPES:
                return ""
            return collapse_whitespace(str(el.get("value", "")))
        return element_text(el)

    def text(self, el: Optional[Tag]) -> str:
        """Lowercased display text used for pattern matching."""
        return self.display_text(el).lower()

    # Iteration helpers

    def each(self, elements: Iterable[Tag], check: Callable[[Tag], Any]) -> None:
        """Apply check to every element; a failing element is skipped, not fatal."""
        for el in elements:
            try:
                check(el)
            except Exception as e:
                self.logger.warning(f"[{self.detector}] skipped <{getattr(el, 'name', '?')}>: {e}")

    def walk_text(self, patterns: Iterable[Pattern], callback: Callable[[Tag, str], Any]) -> int:
        def guarded(el: Tag, text: str) -> None:
            try:
                callback(el, text)
            except Exception as e:
                self.logger.warning(f"[{self.detector}] skipped text in <{el.name}>: {e}")

        return walk_text_nodes(self.root, patterns, guarded)

    # Recording

    def record(self,
               el: Optional[Tag],
               category: str,
               severity: str,
               message: str) -> Optional[Finding]:
        """Append a finding and annotate its element on first contact."""
        if el is not None and in_self_surface(el):
            return None

        node_id = self.arena.add(el) if el is not None else None
        finding = build_finding(
            index=len(self.findings),
            detector=self.detector or "unknown",
            category=category,
            severity=severity,
            message=message,
            text=self.display_text(el),
            node_id=node_id,
            selector=css_path(el) if el is not None else None,
            excerpt_length=self.settings.excerpt_length,
        )
        self.findings.append(finding)

        if el is not None:
            self._claimed.add(id(self._candidate if self._candidate is not None else el))
            self.annotator.mark(el, finding.severity, message)
        return finding


class ScanEngine:
    """Orchestrates detector runs, annotation clean-up and aggregation."""

    def __init__(self,
                 detectors: Optional[List[str]] = None,
                 patterns_file: Optional[Union[str, Path]] = None,
                 pattern_overrides: Optional[Mapping[str, Any]] = None,
                 viewport_width: float = 1280.0,
                 viewport_height: float = 800.0,
                 min_ad_size: float = 20.0,
                 min_popup_height: float = 80.0,
                 small_font_px: float = 12.0,
                 excerpt_length: int = EXCERPT_LENGTH,
                 layout_factory: Optional[Callable[[ScanSettings], Layout]] = None,
                 logger: Optional[logging.Logger] = None,
                 progress_manager=None):
        self.logger = logger or logging.getLogger(__name__)
        self.settings = ScanSettings(
            viewport_width=viewport_width,
            viewport_height=viewport_height,
            min_ad_size=min_ad_size,
            min_popup_height=min_popup_height,
            small_font_px=small_font_px,
            excerpt_length=excerpt_length,
        )
        self.layout_factory = layout_factory or (
            lambda settings: StaticLayout(settings.viewport_width, settings.viewport_height)
        )
        self.progress_manager = progress_manager

        self.detector_loader = DetectorLoader()
        self.detector_loader.load_all_detectors()
        self.selected = self.detector_loader.filter_detectors(detectors)
        self.tables = load_pattern_tables(patterns_file, pattern_overrides)
        self.annotator = Annotator()

        # Statistics of the last run
        self.start_time: Optional[datetime] = None
        self.end_time: Optional[datetime] = None
        self.last_errors: List[Dict[str, str]] = []

    def clean(self, soup: BeautifulSoup) -> Dict[str, Any]:
        """Remove a previous panel and reverse every annotation."""
        panel_removed = remove_self_surface(soup)
        restored = self.annotator.reverse(soup)
        if panel_removed or restored:
            self.logger.info(f"Cleaned page: panel removed={panel_removed}, restored {restored} elements")
        return {"panel_removed": panel_removed, "restored": restored}

    def run_detector(self, detector_id: str, module: Any, session: DetectionSession) -> List[Finding]:
        """Run one detector; its failure is logged and recorded, never raised."""
        session.begin(detector_id)
        try:
            findings = module.run(session)
            self.logger.debug(f"Detector {detector_id} produced {len(findings)} findings")
            return findings
        except Exception as e:
            self.logger.warning(f"Detector {detector_id} failed: {e}")
            self.last_errors.append({"detector": detector_id, "error": str(e)})
            return session.collected()

    def detect(self, soup: BeautifulSoup) -> ScanReport:
        """One detection pass over the current tree, without cleaning first."""
        self.start_time = datetime.now()
        self.last_errors = []
        started = time.perf_counter()

        session = DetectionSession(
            soup,
            self.tables,
            layout=self.layout_factory(self.settings),
            annotator=self.annotator,
            settings=self.settings,
            logger=self.logger,
        )

        per_detector: Dict[str, int] = {}
        for detector_id, module in self.selected.items():
            if self.progress_manager:
                self.progress_manager.log_detector_start(detector_id)
            per_detector[detector_id] = len(self.run_detector(detector_id, module, session))

        self.end_time = datetime.now()
        stats = {
            "detectors_run": len(self.selected),
            "findings_by_detector": per_detector,
            "elapsed_ms": round((time.perf_counter() - started) * 1000, 2),
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
        }
        report = aggregate(session.findings, errors=list(self.last_errors), stats=stats, arena=session.arena)
        self.logger.info(f"Scan complete: {len(report.findings)} findings, score {report.score} ({report.tier})")
        return report

    def run(self, soup: BeautifulSoup) -> ScanReport:
        """Clean up any previous run, then detect."""
        self.clean(soup)
        return self.detect(soup)

    def toggle(self, soup: BeautifulSoup) -> Optional[ScanReport]:
        """Dismiss an existing panel, or scan and attach a fresh one.

        Returns None when the call only cleaned the page.
        """
        if find_self_surface(soup) is not None:
            self.clean(soup)
            return None

        report = self.run(soup)
        attach_panel(soup, report)
        return report

    def get_scan_stats(self) -> Dict[str, Any]:
        duration = None
        if self.start_time and self.end_time:
            duration = (self.end_time - self.start_time).total_seconds()
        return {
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_seconds": duration,
            "detectors": list(self.selected),
            "errors": list(self.last_errors),
        }
