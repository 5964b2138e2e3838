"""
Test suite for the Dark Pattern Detector scan engine
"""

from types import SimpleNamespace

import pytest

from dpd.core.annotator import MARKER_ATTR, MESSAGE_ATTR, SEVERITY_ATTR
from dpd.core.document import SELF_SURFACE_ID
from dpd.core.engine import DetectionSession, ScanEngine, build_finding
from dpd.core.errors import DetectorLoadError, PatternTableError
from dpd.data.patterns import load_pattern_tables
from dpd.utils.overlay import attach_panel


class TestScenarios:
    """End-to-end behaviour of the full detector set."""

    def test_prechecked_newsletter_box(self, scan):
        report, soup = scan("<label><input type='checkbox' checked> Subscribe to our newsletter</label>")

        assert len(report.findings) == 1
        finding = report.findings[0]
        assert finding.category == "Forced Continuity"
        assert finding.severity == "critical"
        assert report.locate(0) is soup.label

    def test_stock_claim_is_social_proof_only(self, scan):
        report, _ = scan("<div><section><div><p><span><em>Only 3 left in stock</em></span></p></div></section></div>")

        assert len(report.findings) == 1
        assert report.findings[0].category == "Social Proof Manipulation"
        assert report.findings[0].severity == "medium"
        assert report.score == 3
        assert report.tier == "Low"

    def test_countdown_without_time_token(self, scan):
        report, _ = scan("<span class='countdown-badge'>Hurry!</span>")

        assert report.stats["findings_by_detector"]["countdowns"] == 0
        assert [f.detector for f in report.findings] == ["urgency"]

    @pytest.mark.parametrize("attrs,severity", [("autoplay muted", "low"), ("autoplay", "medium")])
    def test_autoplay_video(self, scan, attrs, severity):
        report, _ = scan(f"<video src='promo.mp4' {attrs}></video>")

        assert len(report.findings) == 1
        assert report.findings[0].category == "Intrusive UX"
        assert report.findings[0].severity == severity

    def test_clean_page(self, scan):
        report, soup = scan("<h1>About us</h1><p>We make tea.</p>")

        assert report.findings == []
        assert report.score == 0
        assert report.tier == "Clean"
        assert report.grouped == {}
        assert report.is_clean
        assert not soup.select(f"[{MARKER_ATTR}]")


class TestInvariants:

    def test_repeated_phrase_reported_once(self, scan):
        report, _ = scan("<p>Limited time! Really, a limited time offer.</p>")
        assert len(report.findings) == 1

    def test_self_surface_never_scanned(self, scan):
        report, _ = scan(f"<div id='{SELF_SURFACE_ID}'><p>Act now! Only 2 left in stock</p>"
                         "<label><input type='checkbox' checked> newsletter</label></div>")
        assert report.findings == []

    def test_first_finding_decides_annotation(self, scan):
        report, soup = scan("<p>Limited time: only 3 left in stock</p>")

        assert [f.detector for f in report.findings] == ["urgency", "social_proof"]
        assert report.findings[0].node_id == report.findings[1].node_id
        assert soup.p[SEVERITY_ATTR] == "high"
        assert soup.p[MESSAGE_ATTR] == report.findings[0].message

    def test_adding_a_pattern_never_lowers_the_score(self, scan):
        base = "<p>A service fee applies.</p><s>$40</s>"
        before, _ = scan(base)
        after, _ = scan(base + "<p>Act now!</p>")

        assert after.score >= before.score
        assert after.score - before.score == 6

    def test_nested_candidates_flagged_once(self, scan):
        report, _ = scan("<div class='modal' style='height: 300px'>"
                         "<div class='modal-body' style='height: 200px'>Sign in</div></div>",
                         detectors=["popups"])
        assert len(report.findings) == 1
        assert report.findings[0].selector.endswith("div")

    def test_grouping_follows_first_appearance(self, scan):
        report, _ = scan("<p>Hurry up</p><p>A booking fee applies</p><p>Act now</p>")

        assert list(report.grouped) == ["Scarcity / Urgency", "Hidden Costs"]
        assert [f.index for f in report.grouped["Scarcity / Urgency"]] == [0, 1]
        assert report.score == 18
        assert report.tier == "Moderate"


class TestEngineLifecycle:

    BODY = ("<p style='color: blue'>Limited time!</p>"
            "<label><input type='checkbox' checked> Send me partner offers</label>")

    def test_run_is_idempotent(self, engine, page):
        soup = page(self.BODY)
        first = engine.run(soup)
        annotated = str(soup)
        second = engine.run(soup)

        assert len(first.findings) == len(second.findings) == 2
        assert str(soup) == annotated

    def test_clean_restores_page(self, engine, page):
        soup = page(self.BODY)
        original = str(soup)

        engine.run(soup)
        assert str(soup) != original
        result = engine.clean(soup)

        assert result == {"panel_removed": False, "restored": 2}
        assert str(soup) == original

    def test_toggle_round_trip(self, engine, page):
        soup = page(self.BODY)
        original = str(soup)

        report = engine.toggle(soup)
        assert report is not None
        assert soup.find(id=SELF_SURFACE_ID) is not None

        assert engine.toggle(soup) is None
        assert str(soup) == original

    def test_panel_is_ignored_by_later_scans(self, engine, page):
        soup = page(self.BODY)
        report = engine.run(soup)
        attach_panel(soup, report)

        again = engine.detect(soup)
        assert len(again.findings) == len(report.findings)

    def test_detector_selection(self, page):
        engine = ScanEngine(detectors=["urgency"])
        report = engine.run(page(self.BODY))

        assert list(engine.selected) == ["urgency"]
        assert [f.detector for f in report.findings] == ["urgency"]
        assert report.stats["detectors_run"] == 1

    def test_unknown_detector(self):
        with pytest.raises(DetectorLoadError):
            ScanEngine(detectors=["urgency", "dark_magic"])

    def test_scan_stats(self, engine, page):
        engine.run(page("<p>calm</p>"))
        stats = engine.get_scan_stats()

        assert stats["duration_seconds"] is not None
        assert len(stats["detectors"]) == 14
        assert stats["errors"] == []


class TestFaultIsolation:

    def test_failing_detector_does_not_stop_the_scan(self, engine, page):
        def explode(session):
            session.record(session.root.find("p"), "Intrusive UX", "low", "partial")
            raise RuntimeError("boom")

        engine.selected = {"broken": SimpleNamespace(run=explode), **engine.selected}
        report = engine.run(page("<p>Act now</p>"))

        assert report.errors == [{"detector": "broken", "error": "boom"}]
        assert [f.detector for f in report.findings] == ["broken", "urgency"]

    def test_failing_element_is_skipped(self, page):
        soup = page("<p>a</p><p>b</p>")
        session = DetectionSession(soup, load_pattern_tables())
        session.begin("popups")
        seen = []

        def check(el):
            if el.get_text() == "a":
                raise ValueError("bad element")
            seen.append(el)

        session.each(soup.find_all("p"), check)
        assert [el.get_text() for el in seen] == ["b"]


class TestSession:

    def test_missing_table(self, page):
        session = DetectionSession(page("<p>x</p>"), {})
        session.begin("urgency")
        with pytest.raises(PatternTableError):
            session.table()

    def test_input_value_is_display_text(self, page):
        soup = page("<input type='submit' value='  Stay   subscribed '>")
        session = DetectionSession(soup, {})
        assert session.display_text(soup.input) == "Stay subscribed"
        assert session.text(soup.input) == "stay subscribed"
        assert session.display_text(None) == ""

    def test_non_button_input_has_no_display_text(self, page):
        soup = page("<input type='checkbox' value='yes'><input type='text' value='hello'>")
        session = DetectionSession(soup, {})
        assert [session.display_text(el) for el in soup.find_all("input")] == ["", ""]

    def test_record_skips_self_surface(self, page):
        soup = page(f"<div id='{SELF_SURFACE_ID}'><p>x</p></div>")
        session = DetectionSession(soup, {})
        session.begin("urgency")

        assert session.record(soup.p, "Scarcity / Urgency", "high", "m") is None
        assert session.findings == []

    def test_collected_is_per_detector(self, page):
        soup = page("<p>a</p><p>b</p>")
        first, second = soup.find_all("p")
        session = DetectionSession(soup, {})

        session.begin("urgency")
        session.record(first, "Scarcity / Urgency", "high", "m")
        session.begin("hidden_costs")
        session.record(second, "Hidden Costs", "high", "m")

        assert [f.detector for f in session.collected()] == ["hidden_costs"]
        assert [f.index for f in session.findings] == [0, 1]


def test_build_finding_is_pure():
    finding = build_finding(4, "urgency", "Scarcity / Urgency", "High", "Hurry",
                            text="  word " * 20, node_id=7, selector="p")

    assert finding.index == 4
    assert finding.severity == "high"
    assert finding.excerpt.endswith("…")
    assert len(finding.excerpt) == 61
    assert finding.node_id == 7
