"""
Test suite for the command-line interface
"""

import json

import pytest
from typer.testing import CliRunner

from dpd import __version__
from dpd.cli import app, parse_list
from dpd.core.document import SELF_SURFACE_ID

runner = CliRunner()

PAGE = """<html><head><title>Shop</title></head><body>
<p>Limited time offer!</p>
<label><input type="checkbox" checked> Subscribe to our newsletter</label>
</body></html>"""


@pytest.fixture
def page_file(tmp_path):
    path = tmp_path / "shop.html"
    path.write_text(PAGE, encoding="utf-8")
    return path


def test_parse_list():
    assert parse_list(None) is None
    assert parse_list(" urgency, ,popups ") == ["urgency", "popups"]
    assert parse_list(" , ") is None


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_list_detectors():
    result = runner.invoke(app, ["list-detectors"])
    assert result.exit_code == 0
    assert "Available Detectors" in result.output


class TestScanCommand:

    def test_scan_writes_reports(self, page_file, tmp_path):
        out = tmp_path / "reports"
        result = runner.invoke(app, [
            "scan", "--file", str(page_file), "--output-dir", str(out),
            "--format", "json,csv,txt", "--verbose", "0",
        ])

        assert result.exit_code == 0, result.output
        json_files = list(out.glob("*.json"))
        assert len(json_files) == 1
        data = json.loads(json_files[0].read_text(encoding="utf-8"))
        assert data["total_findings"] == 2
        assert data["tier"] == "Moderate"
        assert len(list(out.glob("*.csv"))) == 1
        assert len(list(out.glob("*.txt"))) == 1
        assert "Risk: Moderate" in result.output

    def test_scan_annotated_output(self, page_file, tmp_path):
        annotated = tmp_path / "annotated.html"
        result = runner.invoke(app, [
            "scan", "--file", str(page_file), "--output-dir", str(tmp_path / "r"),
            "--annotate-out", str(annotated),
        ])

        assert result.exit_code == 0, result.output
        html = annotated.read_text(encoding="utf-8")
        assert SELF_SURFACE_ID in html
        assert "data-dpd-marked" in html

    def test_scan_selected_detectors(self, page_file, tmp_path):
        out = tmp_path / "reports"
        result = runner.invoke(app, [
            "scan", "--file", str(page_file), "--output-dir", str(out),
            "--detectors", "urgency", "--verbose", "0",
        ])

        assert result.exit_code == 0, result.output
        data = json.loads(next(out.glob("*.json")).read_text(encoding="utf-8"))
        assert [f["detector"] for f in data["findings"]] == ["urgency"]

    def test_unknown_detector(self, page_file, tmp_path):
        result = runner.invoke(app, [
            "scan", "--file", str(page_file), "--output-dir", str(tmp_path),
            "--detectors", "nope",
        ])
        assert result.exit_code == 1
        assert "ERROR" in result.output

    def test_unknown_format(self, page_file, tmp_path):
        result = runner.invoke(app, [
            "scan", "--file", str(page_file), "--output-dir", str(tmp_path), "--format", "pdf",
        ])
        assert result.exit_code == 1

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, [
            "scan", "--file", str(tmp_path / "missing.html"), "--output-dir", str(tmp_path),
        ])
        assert result.exit_code == 1

    def test_requires_a_source(self, tmp_path):
        result = runner.invoke(app, ["scan", "--output-dir", str(tmp_path)])
        assert result.exit_code != 0


class TestToggleAndClean:

    def test_toggle_twice_restores_page(self, page_file, tmp_path):
        first = tmp_path / "first.html"
        second = tmp_path / "second.html"

        result = runner.invoke(app, ["toggle", str(page_file), str(first)])
        assert result.exit_code == 0, result.output
        assert SELF_SURFACE_ID in first.read_text(encoding="utf-8")

        result = runner.invoke(app, ["toggle", str(first), str(second)])
        assert result.exit_code == 0, result.output
        restored = second.read_text(encoding="utf-8")
        assert SELF_SURFACE_ID not in restored
        assert "data-dpd" not in restored

    def test_clean(self, page_file, tmp_path):
        annotated = tmp_path / "annotated.html"
        cleaned = tmp_path / "cleaned.html"
        runner.invoke(app, ["toggle", str(page_file), str(annotated)])

        result = runner.invoke(app, ["clean", str(annotated), str(cleaned)])
        assert result.exit_code == 0, result.output
        assert "Restored 2 elements" in result.output
        assert "data-dpd" not in cleaned.read_text(encoding="utf-8")
