"""
Result Manager for the Dark Pattern Detector
Handles storage of scan reports as JSON and HTML
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from jinja2 import Template

from .. import __version__
from .model import CATEGORY_ICONS, SEVERITY_COLORS
from .report import ScanReport

HTML_TEMPLATE = """
<!DOCTYPE html>
<html>
<head>
    <title>Dark Pattern Scan Report</title>
    <meta charset="utf-8">
    <style>
        body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif; margin: 40px; background: #f5f5f7; color: #1d1d1f; }
        .header { background: #111; color: #fff; padding: 24px 30px; border-radius: 12px; }
        .header h1 { margin: 0 0 6px 0; font-size: 24px; }
        .score { display: inline-block; margin-top: 12px; padding: 6px 14px; border-radius: 20px; font-weight: 700; color: #111; }
        .summary { display: flex; gap: 16px; margin: 24px 0; }
        .card { flex: 1; background: #fff; padding: 16px; border-radius: 10px; text-align: center; box-shadow: 0 1px 3px rgba(0,0,0,0.08); }
        .card .count { font-size: 26px; font-weight: 700; }
        .category { background: #fff; margin: 18px 0; border-radius: 10px; padding: 16px 20px; box-shadow: 0 1px 3px rgba(0,0,0,0.08); }
        .category h2 { font-size: 17px; margin: 0 0 10px 0; }
        .finding { border-left: 4px solid #aaa; padding: 8px 12px; margin: 8px 0; background: #fafafa; }
        .finding .message { font-weight: 600; }
        .finding .excerpt { color: #555; font-style: italic; margin-top: 4px; }
        .finding .selector { color: #888; font-family: monospace; font-size: 12px; margin-top: 4px; }
        .badge { display: inline-block; padding: 2px 8px; border-radius: 10px; font-size: 11px; font-weight: 700; text-transform: uppercase; color: #111; }
        .errors { background: #fff3f3; border-radius: 10px; padding: 16px 20px; }
        .clean { background: #fff; padding: 30px; border-radius: 10px; text-align: center; font-size: 18px; }
    </style>
</head>
<body>
    <div class="header">
        <h1>🕵️ Dark Pattern Scan Report</h1>
        <div>{{ source or "Local document" }}</div>
        <div>Generated: {{ generated_at }}</div>
        <span class="score" style="background: {{ color }};">{{ report.tier }} · score {{ report.score }}</span>
    </div>

    <div class="summary">
        {% for severity, count in report.severity_counts.items() %}
        <div class="card">
            <div class="count" style="color: {{ severity_colors[severity] }};">{{ count }}</div>
            <div>{{ severity|capitalize }}</div>
        </div>
        {% endfor %}
    </div>

    {% if not report.findings %}
    <div class="clean">✅ No dark patterns detected.<br>This page appears clean.</div>
    {% endif %}

    {% for group in report.categories %}
    <div class="category">
        <h2>{{ icons.get(group.category, "⚠️") }} {{ group.category }} ({{ group.count }})</h2>
        {% for index in group.findings %}
        {% set finding = report.findings[index] %}
        <div class="finding" style="border-left-color: {{ severity_colors[finding.severity] }};">
            <span class="badge" style="background: {{ severity_colors[finding.severity] }};">{{ finding.severity }}</span>
            <span class="message">{{ finding.message }}</span>
            {% if finding.excerpt %}<div class="excerpt">"{{ finding.excerpt }}"</div>{% endif %}
            {% if finding.selector %}<div class="selector">{{ finding.selector }}</div>{% endif %}
        </div>
        {% endfor %}
    </div>
    {% endfor %}

    {% if report.errors %}
    <div class="errors">
        <h2>Detector errors</h2>
        <ul>
        {% for error in report.errors %}
            <li><strong>{{ error.detector }}</strong>: {{ error.error }}</li>
        {% endfor %}
        </ul>
    </div>
    {% endif %}

    <p style="text-align: center; color: #888; margin-top: 40px;">Dark Pattern Detector v{{ version }}</p>
</body>
</html>
"""


class ResultManager:
    """Manages scan report storage and rendering."""

    def __init__(self, output_dir: str = "./reports"):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.logger = logging.getLogger(__name__)

    def _filepath(self, prefix: str, extension: str, filename: Optional[str]) -> Path:
        if not filename:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"{prefix}_{timestamp}.{extension}"
        return self.output_dir / filename

    def build_json(self, report: ScanReport, source: str = "", scan_stats: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        data = report.to_dict()
        data["scan_metadata"] = {
            "generated_at": datetime.now().isoformat(),
            "source": source,
            "total_findings": len(report.findings),
            "tool": f"Dark Pattern Detector v{__version__}",
            "scan_stats": scan_stats if scan_stats is not None else report.stats,
        }
        return data

    def generate_json_report(self, report: ScanReport, source: str = "",
                             filename: Optional[str] = None) -> str:
        """Save the report dictionary with scan metadata."""
        filepath = self._filepath("report", "json", filename)
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(self.build_json(report, source), f, indent=2, ensure_ascii=False)

        self.logger.info(f"JSON report generated: {filepath}")
        return str(filepath)

    def render_html(self, report: ScanReport, source: str = "") -> str:
        template = Template(HTML_TEMPLATE, autoescape=True)
        return template.render(
            report=report.to_dict(),
            source=source,
            color=report.color,
            icons=CATEGORY_ICONS,
            severity_colors=SEVERITY_COLORS,
            generated_at=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            version=__version__,
        )

    def generate_html_report(self, report: ScanReport, source: str = "",
                             filename: Optional[str] = None) -> str:
        filepath = self._filepath("report", "html", filename)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.render_html(report, source))

        self.logger.info(f"HTML report generated: {filepath}")
        return str(filepath)

    def generate_reports(self, report: ScanReport, source: str = "",
                         formats: Iterable[str] = ("json", "html")) -> Dict[str, str]:
        """Generate the requested formats handled here (json, html)."""
        generators = {
            "json": self.generate_json_report,
            "html": self.generate_html_report,
        }
        reports = {}
        for name in formats:
            if name in generators:
                reports[name] = generators[name](report, source)
        return reports

    def load_report(self, filepath: str) -> Dict[str, Any]:
        """Load a saved JSON report."""
        with open(filepath, "r", encoding="utf-8") as f:
            return json.load(f)
