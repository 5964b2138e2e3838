"""
Report Generation Utilities for the Dark Pattern Detector
CSV, plain-text summary and console summary formats
"""

import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from tabulate import tabulate

from ..core.model import CATEGORY_ICONS, SEVERITY_ORDER

SEVERITY_ICONS = {
    "critical": "🔴",
    "high": "🟠",
    "medium": "🟡",
    "low": "🟢",
}


class ReportGenerator:
    """Generate various report formats from a scan report dictionary."""

    def __init__(self, output_dir: str = "./reports"):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.logger = logging.getLogger(__name__)

    def _default_name(self, prefix: str, extension: str) -> str:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"{prefix}_{timestamp}.{extension}"

    def generate_csv_report(self, report: Dict[str, Any],
                            filename: Optional[str] = None) -> str:
        """Generate CSV report, one row per finding."""
        filepath = self.output_dir / (filename or self._default_name("findings", "csv"))

        columns = ["Index", "Detector", "Category", "Severity", "Weight", "Message", "Excerpt", "Selector"]

        with open(filepath, "w", newline="", encoding="utf-8") as csvfile:
            writer = csv.writer(csvfile)
            writer.writerow(columns)
            for finding in report.get("findings", []):
                writer.writerow([
                    finding.get("index", ""),
                    finding.get("detector", ""),
                    finding.get("category", ""),
                    finding.get("severity", ""),
                    finding.get("weight", 0),
                    finding.get("message", ""),
                    finding.get("excerpt", ""),
                    finding.get("selector") or "",
                ])

        self.logger.info(f"CSV report generated: {filepath}")
        return str(filepath)

    def build_summary_text(self, report: Dict[str, Any], source: str = "") -> str:
        findings = report.get("findings", [])
        severity_counts = report.get("severity_counts", {})

        content = []
        content.append("=" * 70)
        content.append("DARK PATTERN SCAN SUMMARY REPORT")
        content.append("=" * 70)
        content.append("")
        content.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        if source:
            content.append(f"Page: {source}")
        content.append("")

        content.append("SCAN OVERVIEW")
        content.append("-" * 20)
        content.append(f"Risk Score: {report.get('score', 0)}")
        content.append(f"Risk Level: {report.get('tier', 'Clean')}")
        content.append(f"Total Findings: {len(findings)}")
        content.append(f"Categories: {len(report.get('categories', []))}")
        content.append("")

        content.append("FINDINGS BY SEVERITY")
        content.append("-" * 25)
        for severity in SEVERITY_ORDER:
            content.append(f"{severity.capitalize():>8}: {severity_counts.get(severity, 0)}")
        content.append("")

        if report.get("categories"):
            content.append("FINDINGS BY CATEGORY")
            content.append("-" * 20)
            for group in report["categories"]:
                content.append(f"{group['category']:>26}: {group['count']}")
            content.append("")

        high_priority = [f for f in findings if f.get("severity") in ("critical", "high")]
        if high_priority:
            content.append("HIGH PRIORITY FINDINGS")
            content.append("-" * 25)
            for finding in high_priority[:10]:
                content.append(f"• {finding.get('message', '')} [{finding.get('severity', '')}]")
                if finding.get("excerpt"):
                    content.append(f"  \"{finding['excerpt']}\"")
                content.append("")

        if report.get("errors"):
            content.append("DETECTOR ERRORS")
            content.append("-" * 15)
            for error in report["errors"]:
                content.append(f"{error.get('detector', '?')}: {error.get('error', '')}")
            content.append("")

        if not findings:
            content.append("No dark patterns detected. This page appears clean.")
            content.append("")

        content.append("=" * 70)
        return "\n".join(content)

    def generate_summary_report(self, report: Dict[str, Any],
                                source: str = "",
                                filename: Optional[str] = None) -> str:
        """Generate plain-text summary report."""
        filepath = self.output_dir / (filename or self._default_name("summary", "txt"))

        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.build_summary_text(report, source))

        self.logger.info(f"Summary report generated: {filepath}")
        return str(filepath)

    def generate_console_summary(self, report: Dict[str, Any]) -> str:
        """Console-friendly summary with severity and category tables."""
        severity_counts = report.get("severity_counts", {})
        severity_data = [
            [f"{SEVERITY_ICONS[severity]} {severity.capitalize()}", severity_counts.get(severity, 0)]
            for severity in SEVERITY_ORDER
        ]
        severity_table = tabulate(severity_data, headers=["Severity", "Count"], tablefmt="grid")

        category_rows: List[List[Any]] = [
            [f"{CATEGORY_ICONS.get(group['category'], '⚠️')} {group['category']}", group["count"]]
            for group in report.get("categories", [])
        ]
        category_table = (
            tabulate(category_rows, headers=["Category", "Findings"], tablefmt="grid")
            if category_rows else "No dark patterns detected."
        )

        return (
            f"\nRisk: {report.get('tier', 'Clean')} (score {report.get('score', 0)}), "
            f"{len(report.get('findings', []))} findings\n\n"
            f"{severity_table}\n\n{category_table}\n"
        )
