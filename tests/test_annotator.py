"""
Test suite for element annotation and its reversal
"""

import pytest

from dpd.core.annotator import (
    MARKER_ATTR,
    MESSAGE_ATTR,
    SEVERITY_ATTR,
    STYLE_BACKUP_ATTR,
    Annotator,
    merge_style,
)
from dpd.core.document import SELF_SURFACE_ID


@pytest.fixture
def annotator():
    return Annotator()


class TestMarking:

    def test_mark_sets_outline_and_message(self, annotator, page):
        soup = page("<p>Act now</p>")
        assert annotator.mark(soup.p, "critical", "Urgency!")

        assert soup.p[MARKER_ATTR] == "1"
        assert soup.p[MESSAGE_ATTR] == "Urgency!"
        assert soup.p[SEVERITY_ATTR] == "critical"
        assert soup.p["style"] == "outline: 3px solid #ff2d55; outline-offset: 2px"
        assert not soup.p.has_attr(STYLE_BACKUP_ATTR)

    def test_existing_style_is_kept(self, annotator, page):
        soup = page('<p style="color: red;">x</p>')
        annotator.mark(soup.p, "low", "m")

        assert soup.p[STYLE_BACKUP_ATTR] == "color: red;"
        assert soup.p["style"] == "color: red; outline: 3px solid #34c759; outline-offset: 2px"

    def test_first_mark_wins(self, annotator, page):
        soup = page("<p>x</p>")
        assert annotator.mark(soup.p, "high", "first")
        assert not annotator.mark(soup.p, "critical", "second")

        assert soup.p[MESSAGE_ATTR] == "first"
        assert soup.p[SEVERITY_ATTR] == "high"

    def test_self_surface_never_marked(self, annotator, page):
        soup = page(f'<div id="{SELF_SURFACE_ID}"><p>x</p></div>')
        assert not annotator.mark(soup.p, "high", "m")
        assert not soup.p.has_attr(MARKER_ATTR)


class TestReversal:

    @pytest.mark.parametrize("body", [
        "<p>plain</p><div><span>nested</span></div>",
        '<p style="color: red">styled</p><p style="">empty style</p>',
    ])
    def test_round_trip(self, annotator, page, body):
        soup = page(body)
        original = str(soup)

        for el in soup.body.find_all(True):
            annotator.mark(el, "medium", "m")
        assert str(soup) != original

        annotator.reverse(soup)
        assert str(soup) == original

    def test_reverse_includes_root(self, annotator, page):
        soup = page("<div><p>x</p></div>")
        annotator.mark(soup.div, "low", "a")
        annotator.mark(soup.p, "low", "b")

        assert annotator.reverse(soup.div) == 2
        assert not annotator.is_marked(soup.div)
        assert annotator.reverse(soup) == 0

    def test_unmark_unmarked(self, annotator, page):
        soup = page("<p>x</p>")
        assert not annotator.unmark(soup.p)


class TestEmphasis:

    def test_emphasize_and_relax(self, annotator, page):
        soup = page('<p style="margin: 0">x</p>')
        annotator.mark(soup.p, "high", "m")

        assert annotator.emphasize(soup.p)
        assert soup.p["style"] == ("margin: 0; outline: 5px solid #ff6b00; outline-offset: 2px; "
                                   "box-shadow: 0 0 18px #ff6b0088")

        assert annotator.relax(soup.p)
        assert soup.p["style"] == "margin: 0; outline: 3px solid #ff6b00; outline-offset: 2px"

    def test_emphasize_requires_mark(self, annotator, page):
        soup = page("<p>x</p>")
        assert not annotator.emphasize(soup.p)
        assert not annotator.relax(soup.p)


def test_merge_style():
    assert merge_style(None, "a: b") == "a: b"
    assert merge_style("  ", "a: b") == "a: b"
    assert merge_style("color: red;", "a: b") == "color: red; a: b"
