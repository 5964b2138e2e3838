"""
Progress Manager for the Dark Pattern Detector
Handles colored console output of scan progress and findings
"""

from datetime import datetime
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..core.model import CATEGORY_ICONS, SEVERITY_ORDER
from ..core.report import ScanReport

SEVERITY_STYLES = {
    "critical": "bold red",
    "high": "dark_orange",
    "medium": "yellow",
    "low": "green",
}

TIER_STYLES = {
    "Clean": "bold green",
    "Low": "green",
    "Moderate": "yellow",
    "High": "dark_orange",
    "Very High": "bold red",
}


class ProgressManager:
    """Manages console output for a detection run."""

    def __init__(self, console: Optional[Console] = None, verbosity: int = 1):
        self.console = console or Console()
        self.verbosity = verbosity
        self.start_time: Optional[datetime] = None
        self.total_detectors = 0
        self.completed_detectors = 0

    def start_scan(self, source: str, total_detectors: int):
        self.start_time = datetime.now()
        self.total_detectors = total_detectors
        self.completed_detectors = 0
        if self.verbosity >= 1:
            self.log_message("INFO", f"Scanning {source} with {total_detectors} detectors...")

    def log_message(self, level: str, message: str):
        """Log a message with timestamp and color coding."""
        colors = {
            "INFO": "cyan",
            "DEBUG": "dim",
            "FOUND": "red bold",
            "SUCCESS": "green bold",
            "WARNING": "yellow",
            "ERROR": "red",
        }
        if level == "DEBUG" and self.verbosity < 2:
            return
        if self.verbosity >= 1 or level in ("FOUND", "ERROR"):
            self.console.print(f"[{self._get_timestamp()}] [{level}] {message}",
                               style=colors.get(level, "white"), markup=False, highlight=False)

    def log_detector_start(self, detector_id: str):
        self.completed_detectors += 1
        self.log_message("DEBUG", f"Running detector: {detector_id} [{self.completed_detectors}/{self.total_detectors}]")

    def show_findings(self, report: ScanReport):
        """Grouped findings table followed by the score line."""
        if report.is_clean:
            self.console.print(Panel("✅ No dark patterns detected.\nThis page appears clean.",
                                     title="Dark Pattern Detector", border_style="green"))
            return

        table = Table(title="Dark Patterns Found", show_header=True, header_style="bold magenta")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Category", style="cyan")
        table.add_column("Severity", justify="center")
        table.add_column("Message")
        table.add_column("Excerpt", style="italic")

        for category, findings in report.grouped.items():
            icon = CATEGORY_ICONS.get(category, "⚠️")
            for finding in findings:
                style = SEVERITY_STYLES.get(finding.severity, "white")
                table.add_row(
                    str(finding.index),
                    f"{icon} {category}",
                    f"[{style}]{finding.severity.upper()}[/{style}]",
                    Text(finding.message),
                    Text(finding.excerpt),
                )

        self.console.print(table)
        self.show_score(report)

    def show_score(self, report: ScanReport):
        style = TIER_STYLES.get(report.tier, "white")
        counts = report.severity_counts()
        breakdown = " | ".join(f"{counts[s]} {s.title()}" for s in SEVERITY_ORDER if counts[s])
        self.console.print(
            f"\n[bold]Risk:[/bold] [{style}]{report.tier}[/{style}] "
            f"(score {report.score}, {len(report.findings)} findings in {len(report.grouped)} categories)"
        )
        if breakdown:
            self.console.print(f"[{self._get_timestamp()}] [SUMMARY] {breakdown}", markup=False)

    def complete_scan(self, report: ScanReport):
        duration = self._format_duration(self._calculate_duration())
        for error in report.errors:
            self.log_message("WARNING", f"Detector {error['detector']} failed: {error['error']}")
        self.log_message("SUCCESS", f"Scan completed in {duration}")
        self.show_findings(report)

    def _get_timestamp(self) -> str:
        return datetime.now().strftime("%H:%M:%S")

    def _calculate_duration(self) -> float:
        if not self.start_time:
            return 0.0
        return (datetime.now() - self.start_time).total_seconds()

    def _format_duration(self, seconds: float) -> str:
        if seconds < 60:
            return f"{seconds:.1f}s"
        minutes = int(seconds // 60)
        return f"{minutes}m{seconds % 60:.0f}s"
