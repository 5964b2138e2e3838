"""
Overlay panel for annotated pages

Renders the `#__dpd_panel__` summary (score, tier, grouped findings) and
attaches it to the scanned document. The panel is the detector's own
surface: everything inside it is ignored by later scans.
"""

import logging
from typing import Any, Dict, List

from bs4 import BeautifulSoup, Tag
from jinja2 import Template

from .. import __version__
from ..core.document import SELF_SURFACE_ID, remove_self_surface
from ..core.model import CATEGORY_ICONS, severity_color
from ..core.report import ScanReport

logger = logging.getLogger(__name__)

# Score at which the risk bar is full
FULL_BAR_SCORE = 60

PANEL_TEMPLATE = """
<div id="{{ panel_id }}" role="complementary" aria-label="Dark pattern findings">
<style>
#{{ panel_id }} { position: fixed; top: 16px; right: 16px; width: 360px; max-height: 80vh; overflow-y: auto; z-index: 2147483647; background: #111; color: #f5f5f7; font: 13px/1.4 -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif; border-radius: 14px; box-shadow: 0 10px 40px rgba(0,0,0,0.45); padding: 16px; }
#{{ panel_id }} .dpd-head { display: flex; justify-content: space-between; align-items: center; }
#{{ panel_id }} .dpd-close { background: none; border: none; color: #aaa; font-size: 18px; cursor: pointer; }
#{{ panel_id }} .dpd-score { font-size: 28px; font-weight: 800; }
#{{ panel_id }} .dpd-bar { height: 6px; background: #333; border-radius: 3px; margin: 8px 0 12px; }
#{{ panel_id }} .dpd-fill { height: 6px; border-radius: 3px; }
#{{ panel_id }} .dpd-cat { margin-top: 12px; font-weight: 700; }
#{{ panel_id }} .dpd-row { border-left: 3px solid #aaa; padding: 6px 8px; margin: 6px 0; background: #1c1c1e; border-radius: 4px; cursor: pointer; }
#{{ panel_id }} .dpd-sev { font-size: 10px; font-weight: 800; text-transform: uppercase; }
#{{ panel_id }} .dpd-excerpt { color: #aaa; font-style: italic; }
#{{ panel_id }} .dpd-empty { text-align: center; padding: 18px 0; }
#{{ panel_id }} .dpd-foot { display: flex; justify-content: space-between; color: #777; font-size: 11px; margin-top: 12px; }
</style>
<div class="dpd-head">
<strong>🕵️ Dark Pattern Detector</strong>
<button class="dpd-close" type="button" aria-label="Close">✕</button>
</div>
<div class="dpd-score" style="color: {{ color }};">{{ score }} <span style="font-size: 14px;">{{ tier }}</span></div>
<div class="dpd-bar"><div class="dpd-fill" style="width: {{ "%.0f"|format(fill) }}%; background: {{ color }};"></div></div>
<div>{{ total }} finding{{ "" if total == 1 else "s" }} in {{ groups|length }} categor{{ "y" if groups|length == 1 else "ies" }}</div>
{% if not groups %}
<div class="dpd-empty">✅ No dark patterns detected.<br>This page appears clean.</div>
{% endif %}
{% for group in groups %}
<div class="dpd-cat">{{ group.icon }} {{ group.category }} ({{ group.rows|length }})</div>
{% for row in group.rows %}
<div class="dpd-row" data-idx="{{ row.index }}"{% if row.selector %} data-selector="{{ row.selector }}"{% endif %} data-color="{{ row.color }}" style="border-left-color: {{ row.color }};">
<div class="dpd-sev" style="color: {{ row.color }};">{{ row.severity }}</div>
<div>{{ row.message }}</div>
{% if row.excerpt %}<div class="dpd-excerpt">"{{ row.excerpt }}"</div>{% endif %}
</div>
{% endfor %}
{% endfor %}
<div class="dpd-foot"><span>Click any finding to scroll to element</span><span>v{{ version }}</span></div>
<script>
(function () {
  var panel = document.getElementById("{{ panel_id }}");
  if (!panel) return;
  var attrs = ["data-dpd-marked", "data-dpd", "data-dpd-severity", "data-dpd-style"];
  function restore() {
    document.querySelectorAll("[data-dpd-marked]").forEach(function (el) {
      var original = el.getAttribute("data-dpd-style");
      if (original === null) { el.removeAttribute("style"); } else { el.setAttribute("style", original); }
      attrs.forEach(function (name) { el.removeAttribute(name); });
    });
  }
  panel.querySelectorAll(".dpd-row[data-selector]").forEach(function (row) {
    row.addEventListener("click", function () {
      var el = document.querySelector(row.getAttribute("data-selector"));
      if (!el) return;
      var color = row.getAttribute("data-color");
      el.scrollIntoView({ behavior: "smooth", block: "center" });
      el.style.outline = "5px solid " + color;
      el.style.boxShadow = "0 0 18px " + color + "88";
      setTimeout(function () {
        el.style.outline = "3px solid " + color;
        el.style.boxShadow = "";
      }, 1500);
    });
  });
  panel.querySelector(".dpd-close").addEventListener("click", function () {
    restore();
    panel.remove();
  });
})();
</script>
</div>
"""


def bar_fill(score: int) -> float:
    """Percentage of the risk bar to fill."""
    return min(score / FULL_BAR_SCORE * 100, 100.0)


def panel_context(report: ScanReport) -> Dict[str, Any]:
    groups: List[Dict[str, Any]] = []
    for category, findings in report.grouped.items():
        groups.append({
            "category": category,
            "icon": CATEGORY_ICONS.get(category, "⚠️"),
            "rows": [
                {
                    "index": finding.index,
                    "severity": finding.severity,
                    "color": severity_color(finding.severity),
                    "message": finding.message,
                    "excerpt": finding.excerpt,
                    "selector": finding.selector,
                }
                for finding in findings
            ],
        })

    return {
        "panel_id": SELF_SURFACE_ID,
        "score": report.score,
        "tier": report.tier,
        "color": report.color,
        "fill": bar_fill(report.score),
        "total": len(report.findings),
        "groups": groups,
        "version": __version__,
    }


def render_panel(report: ScanReport) -> str:
    template = Template(PANEL_TEMPLATE, autoescape=True)
    return template.render(**panel_context(report))


def attach_panel(soup: BeautifulSoup, report: ScanReport) -> Tag:
    """Replace any existing panel with a fresh one at the end of the body."""
    remove_self_surface(soup)

    fragment = BeautifulSoup(render_panel(report), "html.parser")
    panel = fragment.find(id=SELF_SURFACE_ID).extract()

    host = soup.body if soup.body is not None else soup
    host.append(panel)
    logger.debug(f"Attached panel with {len(report.findings)} findings")
    return panel
