"""
Test suite for the static layout estimate
"""

import pytest

from dpd.core.document import load_document
from dpd.core.layout import Box, StaticLayout, Unmeasurable, parse_length, parse_style


@pytest.fixture
def layout():
    return StaticLayout()


def body_of(markup):
    return load_document(f"<html><body>{markup}</body></html>")


class TestParsing:

    @pytest.mark.parametrize("value,expected", [
        ("10px", 10.0),
        ("2em", 32.0),
        ("1rem", 16.0),
        ("12pt", 16.0),
        ("0", 0.0),
        ("50%", 100.0),
        ("10vw", 128.0),
    ])
    def test_lengths(self, value, expected):
        assert parse_length(value, 16.0, percent_base=200.0) == pytest.approx(expected)

    def test_auto_values(self):
        assert parse_length("auto", 16.0) is None
        assert parse_length("50%", 16.0) is None

    @pytest.mark.parametrize("value", ["calc(100% - 4px)", "var(--w)", "12", "wide"])
    def test_unmeasurable(self, value):
        with pytest.raises(Unmeasurable):
            parse_length(value, 16.0)

    def test_parse_style(self):
        style = parse_style("Color: red; width:10px !important;; height: 5px; width: 20px")
        assert style == {"color": "red", "width": "20px", "height": "5px"}


class TestDisplay:

    def test_display_none_ancestor(self, layout):
        soup = body_of('<div style="display: none"><p id="x">text</p></div>')
        el = soup.find(id="x")
        assert not layout.is_displayed(el)
        assert layout.box(el) == Box(0.0, 0.0)

    def test_hidden_attribute(self, layout):
        soup = body_of('<div hidden>a</div><div hidden style="display: block">b</div>')
        first, second = soup.find_all("div")
        assert not layout.is_displayed(first)
        assert layout.is_displayed(second)

    def test_non_rendering_elements(self, layout):
        soup = body_of('<input type="hidden" name="t"><audio src="a.mp3"></audio>'
                       '<audio src="b.mp3" controls></audio>')
        hidden_input = soup.find("input")
        silent, player = soup.find_all("audio")
        assert not layout.is_displayed(hidden_input)
        assert not layout.is_displayed(silent)
        assert layout.is_displayed(player)
        assert layout.box(player) == Box(300.0, 54.0)

    def test_nearest_visibility_wins(self, layout):
        soup = body_of('<div style="visibility: hidden"><p>a</p>'
                       '<p style="visibility: visible">b</p></div>')
        hidden, shown = soup.find_all("p")
        assert not layout.is_visible(hidden)
        assert layout.is_visible(shown)


class TestBoxes:

    def test_explicit_size(self, layout):
        soup = body_of('<div style="width: 300px; height: 250px">ad</div>')
        assert layout.box(soup.div) == Box(300.0, 250.0)

    def test_block_fills_container(self, layout):
        soup = body_of("<div>hello</div>")
        box = layout.box(soup.div)
        # body has an 8px margin on both sides
        assert box.width == pytest.approx(1264.0)
        assert box.height == pytest.approx(16 * 1.2)

    def test_viewport_setting(self):
        soup = body_of("<div>hello</div>")
        assert StaticLayout(viewport_width=400).box(soup.div).width == pytest.approx(384.0)

    def test_image_without_dimensions_is_unmeasurable(self, layout):
        soup = body_of('<img src="a.png"><img src="b.png" width="300" height="250">')
        unknown, sized = soup.find_all("img")
        assert layout.box(unknown) is None
        assert layout.box(sized) == Box(300.0, 250.0)

    def test_replaced_defaults(self, layout):
        soup = body_of('<video src="a.mp4"></video><input type="checkbox">')
        assert layout.box(soup.video) == Box(300.0, 150.0)
        assert layout.box(soup.input) == Box(13.0, 13.0)

    def test_bad_explicit_dimension_is_unmeasurable(self, layout):
        soup = body_of('<div style="height: calc(100vh - 10px)">x</div>')
        assert layout.box(soup.div) is None

    def test_inline_text_has_height(self, layout):
        soup = body_of("<p><span>$129.00</span></p>")
        box = layout.box(soup.span)
        assert box.height > 0
        assert box.width == pytest.approx(7 * 16 * 0.5)


class TestFontSize:

    def test_inherited_inline_font_size(self, layout):
        soup = body_of('<p style="font-size: 10px"><span>tiny</span></p>')
        assert layout.font_size(soup.p) == pytest.approx(10.0)
        assert layout.font_size(soup.span) == pytest.approx(10.0)

    def test_relative_units(self, layout):
        soup = body_of('<div style="font-size: 20px"><p style="font-size: 0.5em">a</p>'
                       '<small>b</small></div>')
        assert layout.font_size(soup.p) == pytest.approx(10.0)
        assert layout.font_size(soup.small) == pytest.approx(20 / 1.2)

    def test_tag_defaults(self, layout):
        soup = body_of("<h1>Title</h1><p>text</p>")
        assert layout.font_size(soup.h1) == pytest.approx(32.0)
        assert layout.font_size(soup.p) == pytest.approx(16.0)

    def test_keywords(self, layout):
        soup = body_of('<p style="font-size: x-small">a</p>')
        assert layout.font_size(soup.p) == pytest.approx(10.0)


class TestDeepNesting:

    DEPTH = 400

    def deep(self, inner):
        return body_of("<div>" * self.DEPTH + inner + "</div>" * self.DEPTH)

    def test_metrics_of_deeply_nested_element(self, layout):
        soup = self.deep('<span style="font-size: 10px">Ends in 09:59</span>')

        assert layout.is_displayed(soup.span)
        assert layout.font_size(soup.span) == pytest.approx(10.0)
        box = layout.box(soup.span)
        assert box is not None
        assert box.height > 0

    def test_hidden_ancestor_far_above(self, layout):
        soup = body_of('<div style="display: none">' + "<div>" * self.DEPTH + "<p>x</p>"
                       + "</div>" * self.DEPTH + "</div>")
        assert not layout.is_displayed(soup.p)
