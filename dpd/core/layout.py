"""
Rendered metrics without a browser

Detectors ask whether an element is displayed, how big it renders and what
font size it ends up with. StaticLayout answers from inline styles, HTML
attributes and user-agent defaults; stylesheets are not evaluated. Any
dimension that cannot be resolved makes the box unmeasurable, which callers
treat as "below threshold".
"""

from __future__ import annotations

import logging
import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from bs4 import Tag

from .document import BUTTON_INPUT_TYPES, collapse_whitespace, is_element, is_text_leaf

logger = logging.getLogger(__name__)

ROOT_FONT_PX = 16.0
LINE_HEIGHT = 1.2
CHAR_WIDTH = 0.5  # average glyph width as a fraction of font size

NON_RENDERED_TAGS = frozenset({
    "head", "script", "style", "template", "noscript", "meta", "link", "title", "base",
})

BLOCK_TAGS = frozenset({
    "html", "body", "div", "p", "section", "article", "aside", "header", "footer", "nav",
    "main", "form", "fieldset", "legend", "h1", "h2", "h3", "h4", "h5", "h6", "ul", "ol",
    "li", "dl", "dt", "dd", "blockquote", "figure", "figcaption", "pre", "table", "thead",
    "tbody", "tfoot", "tr", "td", "th", "caption", "hr", "address", "details", "summary",
    "dialog", "hgroup", "center", "menu",
})

# Laid out as atomic boxes inside a line
ATOMIC_INLINE_TAGS = frozenset({
    "img", "video", "audio", "iframe", "canvas", "embed", "object", "svg",
    "input", "button", "select", "textarea",
})

# Tags whose width/height attributes are presentational hints
SIZE_ATTR_TAGS = frozenset({
    "img", "video", "iframe", "canvas", "embed", "object", "svg", "table", "td", "th",
})

REPLACED_DEFAULTS: Dict[str, Tuple[float, float]] = {
    "video": (300.0, 150.0),
    "iframe": (300.0, 150.0),
    "canvas": (300.0, 150.0),
    "embed": (300.0, 150.0),
    "object": (300.0, 150.0),
    "svg": (300.0, 150.0),
    "audio": (300.0, 54.0),
    "select": (60.0, 19.0),
    "textarea": (182.0, 36.0),
}

INPUT_DEFAULTS: Dict[str, Tuple[float, float]] = {
    "checkbox": (13.0, 13.0),
    "radio": (13.0, 13.0),
    "range": (129.0, 21.0),
    "color": (50.0, 27.0),
    "file": (250.0, 21.0),
}
TEXT_INPUT_SIZE = (150.0, 21.0)

TAG_FONT_FACTORS: Dict[str, float] = {
    "h1": 2.0,
    "h2": 1.5,
    "h3": 1.17,
    "h5": 0.83,
    "h6": 0.67,
    "small": 1 / 1.2,
    "sub": 1 / 1.2,
    "sup": 1 / 1.2,
    "code": 0.8125,
    "kbd": 0.8125,
    "samp": 0.8125,
    "pre": 0.8125,
}

FONT_KEYWORDS: Dict[str, float] = {
    "xx-small": 9.0,
    "x-small": 10.0,
    "small": 13.0,
    "medium": 16.0,
    "large": 18.0,
    "x-large": 24.0,
    "xx-large": 32.0,
    "xxx-large": 48.0,
}

# Default vertical margins (top, bottom) in em of the element's font
DEFAULT_MARGINS_EM: Dict[str, Tuple[float, float]] = {
    "p": (1.0, 1.0),
    "h1": (0.67, 0.67),
    "h2": (0.83, 0.83),
    "h3": (1.0, 1.0),
    "h4": (1.33, 1.33),
    "h5": (1.67, 1.67),
    "h6": (2.33, 2.33),
    "ul": (1.0, 1.0),
    "ol": (1.0, 1.0),
    "dl": (1.0, 1.0),
    "blockquote": (1.0, 1.0),
    "figure": (1.0, 1.0),
    "pre": (1.0, 1.0),
}

# Default padding in px (top, right, bottom, left)
DEFAULT_PADDING: Dict[str, Tuple[float, float, float, float]] = {
    "button": (1.0, 6.0, 1.0, 6.0),
    "ul": (0.0, 0.0, 0.0, 40.0),
    "ol": (0.0, 0.0, 0.0, 40.0),
}

_AUTO_VALUES = frozenset({
    "auto", "initial", "inherit", "unset", "revert", "fit-content", "max-content",
    "min-content", "none", "normal",
})
_ABSOLUTE_UNITS = {
    "px": 1.0,
    "pt": 4 / 3,
    "pc": 16.0,
    "in": 96.0,
    "cm": 96 / 2.54,
    "mm": 96 / 25.4,
}
_LENGTH_RE = re.compile(r"^(-?(?:\d+\.?\d*|\.\d+))(px|pt|pc|in|cm|mm|em|rem|vw|vh|%)?$")
_ATTR_LENGTH_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(%|px)?")
_IMPORTANT_RE = re.compile(r"\s*!\s*important\s*$", re.IGNORECASE)
_SIDES = ("top", "right", "bottom", "left")


class Unmeasurable(Exception):
    """An explicit dimension could not be resolved to pixels."""


@dataclass(frozen=True)
class Box:
    width: float
    height: float


def parse_style(style: Optional[str]) -> Dict[str, str]:
    """Inline style declarations as a property -> value mapping (last one wins)."""
    declarations: Dict[str, str] = {}
    if not style:
        return declarations
    for chunk in style.split(";"):
        if ":" not in chunk:
            continue
        prop, value = chunk.split(":", 1)
        prop = prop.strip().lower()
        value = _IMPORTANT_RE.sub("", value).strip()
        if prop and value:
            declarations[prop] = value
    return declarations


def parse_length(value: str,
                 font_px: float,
                 percent_base: Optional[float] = None,
                 viewport: Tuple[float, float] = (1280.0, 800.0)) -> Optional[float]:
    """Resolve a CSS length to pixels.

    Returns None for values that leave the size to the layout ("auto" and
    friends, percentages with no definite base). Raises Unmeasurable for
    anything else that is not a plain length (calc(), var(), unknown units).
    """
    value = value.strip().lower()
    if not value or value in _AUTO_VALUES:
        return None

    match = _LENGTH_RE.match(value)
    if not match:
        raise Unmeasurable(value)

    number = float(match.group(1))
    unit = match.group(2)
    if unit is None:
        if number == 0:
            return 0.0
        raise Unmeasurable(value)
    if unit in _ABSOLUTE_UNITS:
        return number * _ABSOLUTE_UNITS[unit]
    if unit == "em":
        return number * font_px
    if unit == "rem":
        return number * ROOT_FONT_PX
    if unit == "vw":
        return number * viewport[0] / 100
    if unit == "vh":
        return number * viewport[1] / 100
    if percent_base is None:
        return None
    return number * percent_base / 100


class Layout(ABC):
    """Read-only rendered metrics for elements of one document snapshot."""

    @abstractmethod
    def box(self, el: Tag) -> Optional[Box]:
        """Rendered size, or None when it cannot be determined."""

    @abstractmethod
    def font_size(self, el: Tag) -> float:
        """Computed font size in px."""

    @abstractmethod
    def is_displayed(self, el: Tag) -> bool:
        """False when the element or an ancestor generates no box."""

    @abstractmethod
    def is_visible(self, el: Tag) -> bool:
        """False when the effective visibility is hidden or collapse."""


class _LineFlow:
    """Accumulates block and inline content heights for one container."""

    def __init__(self, width: float):
        self.width = max(width, 1.0)
        self.total = 0.0
        self.used = 0.0
        self.line_height = 0.0

    def add_inline(self, width: float, height: float) -> None:
        self.used += width
        self.line_height = max(self.line_height, height)

    def break_line(self, empty_line_height: float) -> None:
        if self.used or self.line_height:
            self.close()
        else:
            self.total += empty_line_height

    def add_block(self, height: float) -> None:
        self.close()
        self.total += height

    def close(self) -> None:
        if self.used or self.line_height:
            lines = max(1, math.ceil(self.used / self.width))
            self.total += lines * self.line_height
        self.used = 0.0
        self.line_height = 0.0


class StaticLayout(Layout):
    """Layout estimate from inline styles and HTML defaults."""

    def __init__(self,
                 viewport_width: float = 1280.0,
                 viewport_height: float = 800.0,
                 base_font_px: float = ROOT_FONT_PX):
        self.viewport_width = float(viewport_width)
        self.viewport_height = float(viewport_height)
        self.base_font_px = float(base_font_px)
        self._styles: Dict[int, Dict[str, str]] = {}
        self._fonts: Dict[int, float] = {}
        self._displayed: Dict[int, bool] = {}
        self._widths: Dict[int, float] = {}
        self._heights: Dict[int, float] = {}
        self._primed: set = set()
        self._priming = False

    # Public queries

    def box(self, el: Tag) -> Optional[Box]:
        self._prime(el)
        if not self.is_displayed(el):
            return Box(0.0, 0.0)
        try:
            return Box(self._width(el), self._height(el))
        except Unmeasurable as e:
            logger.debug(f"Unmeasurable box for <{el.name}>: {e}")
            return None
        except RecursionError:
            logger.warning(f"Subtree under <{el.name}> is nested too deeply to measure")
            return None

    def font_size(self, el: Tag) -> float:
        if not is_element(el):
            return self.base_font_px

        key = id(el)
        if key in self._fonts:
            return self._fonts[key]
        self._prime(el)

        parent = el.parent
        parent_font = self.font_size(parent) if is_element(parent) else self.base_font_px

        size = None
        value = self._style(el).get("font-size")
        if value:
            size = self._parse_font_size(value, parent_font)
        if size is None:
            size = parent_font * TAG_FONT_FACTORS.get(el.name, 1.0)

        self._fonts[key] = size
        return size

    def is_displayed(self, el: Tag) -> bool:
        if not is_element(el):
            return True

        key = id(el)
        if key in self._displayed:
            return self._displayed[key]
        self._prime(el)

        displayed = self._generates_box(el) and self.is_displayed(el.parent)
        self._displayed[key] = displayed
        return displayed

    def _prime(self, el: Tag) -> None:
        """Resolve ancestor metrics root-first so lookups on deep elements stay shallow."""
        if self._priming:
            return
        chain = []
        current = el.parent
        while is_element(current) and id(current) not in self._primed:
            chain.append(current)
            current = current.parent
        if not chain:
            return

        self._priming = True
        try:
            for ancestor in reversed(chain):
                self.font_size(ancestor)
                self.is_displayed(ancestor)
                try:
                    self._width(ancestor)
                except Unmeasurable:
                    pass
                except RecursionError:
                    logger.warning(f"Content under <{ancestor.name}> is nested too deeply to measure")
                self._primed.add(id(ancestor))
        finally:
            self._priming = False

    def is_visible(self, el: Tag) -> bool:
        current = el
        while is_element(current):
            value = self._style(current).get("visibility")
            if value:
                return value.lower() not in ("hidden", "collapse")
            current = current.parent
        return True

    # Styles

    def _style(self, el: Tag) -> Dict[str, str]:
        key = id(el)
        if key not in self._styles:
            self._styles[key] = parse_style(el.get("style"))
        return self._styles[key]

    def _display(self, el: Tag) -> str:
        value = self._style(el).get("display")
        if value:
            return value.split()[0].lower()
        if el.name in BLOCK_TAGS:
            return "block"
        if el.name in ATOMIC_INLINE_TAGS:
            return "inline-block"
        return "inline"

    def _is_block(self, el: Tag) -> bool:
        display = self._display(el)
        return not display.startswith("inline") and display != "contents"

    def _is_atomic_inline(self, el: Tag) -> bool:
        display = self._display(el)
        return display.startswith("inline-") or (display == "inline" and el.name in ATOMIC_INLINE_TAGS)

    def _generates_box(self, el: Tag) -> bool:
        if el.name in NON_RENDERED_TAGS:
            return False

        display = self._style(el).get("display")
        if display is not None:
            if display.lower() == "none":
                return False
        elif el.has_attr("hidden"):
            return False

        if el.name == "input" and str(el.get("type", "")).lower() == "hidden":
            return False
        if el.name == "audio" and not el.has_attr("controls"):
            return False
        return True

    def _parse_font_size(self, value: str, parent_font: float) -> Optional[float]:
        value = value.strip().lower()
        if value in FONT_KEYWORDS:
            return FONT_KEYWORDS[value]
        if value == "smaller":
            return parent_font / 1.2
        if value == "larger":
            return parent_font * 1.2
        try:
            return parse_length(value, parent_font, parent_font,
                                (self.viewport_width, self.viewport_height))
        except Unmeasurable:
            return None

    def _sides(self, el: Tag, prop: str, base: float,
               default: Tuple[float, float, float, float]) -> Tuple[float, ...]:
        style = self._style(el)
        font = self.font_size(el)
        values = list(default)

        def resolve(raw: str, fallback: float) -> float:
            try:
                resolved = parse_length(raw, font, base, (self.viewport_width, self.viewport_height))
            except Unmeasurable:
                return fallback
            return 0.0 if resolved is None else resolved

        shorthand = style.get(prop)
        if shorthand:
            parts = shorthand.split()[:4]
            expanded = {
                1: lambda p: [p[0]] * 4,
                2: lambda p: [p[0], p[1], p[0], p[1]],
                3: lambda p: [p[0], p[1], p[2], p[1]],
                4: lambda p: p,
            }[len(parts)](parts)
            values = [resolve(raw, values[i]) for i, raw in enumerate(expanded)]

        for i, side in enumerate(_SIDES):
            longhand = style.get(f"{prop}-{side}")
            if longhand:
                values[i] = resolve(longhand, values[i])

        return tuple(values)

    def _padding(self, el: Tag, base: float) -> Tuple[float, ...]:
        return self._sides(el, "padding", base, DEFAULT_PADDING.get(el.name, (0.0, 0.0, 0.0, 0.0)))

    def _margin(self, el: Tag, base: float) -> Tuple[float, ...]:
        font = self.font_size(el)
        top, bottom = DEFAULT_MARGINS_EM.get(el.name, (0.0, 0.0))
        horizontal = 40.0 if el.name in ("blockquote", "figure") else 0.0
        if el.name == "body":
            default = (8.0, 8.0, 8.0, 8.0)
        else:
            default = (top * font, horizontal, bottom * font, horizontal)
        return self._sides(el, "margin", base, default)

    def _explicit(self, el: Tag, prop: str, percent_base: Optional[float]) -> Optional[float]:
        """Size set by inline style or a presentational attribute, if any."""
        value = self._style(el).get(prop)
        if value:
            return parse_length(value, self.font_size(el), percent_base,
                                (self.viewport_width, self.viewport_height))

        if el.name in SIZE_ATTR_TAGS and el.has_attr(prop):
            match = _ATTR_LENGTH_RE.match(str(el.get(prop)))
            if not match:
                return None
            number = float(match.group(1))
            if match.group(2) == "%":
                return None if percent_base is None else number * percent_base / 100
            return number
        return None

    # Widths never depend on heights, so they are resolved top-down

    def _container_width(self, el: Tag) -> float:
        parent = el.parent
        if not is_element(parent):
            return self.viewport_width
        return self._content_width(parent)

    def _content_width(self, el: Tag) -> float:
        try:
            width = self._width(el)
        except Unmeasurable:
            width = self._container_width(el)
        padding = self._padding(el, width)
        return max(width - padding[1] - padding[3], 0.0)

    def _width(self, el: Tag) -> float:
        key = id(el)
        if key in self._widths:
            return self._widths[key]

        container = self._container_width(el)
        if not self.is_displayed(el):
            width = 0.0
        else:
            padding = self._padding(el, container)
            explicit = self._explicit(el, "width", container)
            replaced = self._replaced_size(el)
            if explicit is not None:
                width = explicit + padding[1] + padding[3]
            elif replaced is not None:
                width = replaced[0]
            elif self._is_block(el):
                margin = self._margin(el, container)
                width = max(container - margin[1] - margin[3], 0.0)
            else:
                # Provisional value for children that resolve against this box
                self._widths[key] = container
                width = min(container, self._intrinsic_width(el) + padding[1] + padding[3])

        self._widths[key] = width
        return width

    def _intrinsic_width(self, el: Tag) -> float:
        """Width of the element's content laid out on a single line."""
        font = self.font_size(el)
        width = 0.0
        for child in el.children:
            if is_text_leaf(child):
                width += len(collapse_whitespace(str(child))) * font * CHAR_WIDTH
            elif is_element(child) and self.is_displayed(child):
                try:
                    if self._replaced_size(child) is not None or self._is_atomic_inline(child):
                        width += self._width(child)
                    else:
                        width += self._intrinsic_width(child)
                except Unmeasurable:
                    continue
        return width

    def _replaced_size(self, el: Tag) -> Optional[Tuple[float, float]]:
        """Default box of replaced elements, None for everything else."""
        if el.name == "img":
            # Natural size is unknown without fetching the image
            if self._explicit(el, "width", None) is None or self._explicit(el, "height", None) is None:
                raise Unmeasurable("image without explicit dimensions")
            return None
        if el.name == "input":
            input_type = str(el.get("type", "text")).lower()
            if input_type in BUTTON_INPUT_TYPES:
                return None
            if input_type == "image":
                raise Unmeasurable("image input without natural size")
            return INPUT_DEFAULTS.get(input_type, TEXT_INPUT_SIZE)
        return REPLACED_DEFAULTS.get(el.name)

    # Heights

    def _height(self, el: Tag) -> float:
        key = id(el)
        if key in self._heights:
            return self._heights[key]

        if not self.is_displayed(el):
            height = 0.0
        else:
            container = self._container_width(el)
            padding = self._padding(el, container)
            explicit = self._explicit(el, "height", None)
            if explicit is not None:
                height = explicit + padding[0] + padding[2]
            else:
                replaced = self._replaced_size(el)
                if replaced is not None:
                    height = replaced[1]
                elif el.name == "input":
                    # Submit-like inputs render their value as a button label
                    height = self.font_size(el) * LINE_HEIGHT + padding[0] + padding[2] + 4.0
                else:
                    height = self._content_height(el) + padding[0] + padding[2]

        self._heights[key] = height
        return height

    def _content_height(self, el: Tag) -> float:
        flow = _LineFlow(self._content_width(el))
        self._flow(el, flow)
        flow.close()
        return flow.total

    def _flow(self, el: Tag, flow: _LineFlow) -> None:
        font = self.font_size(el)
        for child in el.children:
            if is_text_leaf(child):
                if getattr(child.parent, "name", None) in NON_RENDERED_TAGS:
                    continue
                text = collapse_whitespace(str(child))
                if text:
                    flow.add_inline(len(text) * font * CHAR_WIDTH, font * LINE_HEIGHT)
                continue

            if not is_element(child) or not self.is_displayed(child):
                continue

            if child.name == "br":
                flow.break_line(self.font_size(child) * LINE_HEIGHT)
                continue

            try:
                if self._is_block(child):
                    margin = self._margin(child, flow.width)
                    flow.add_block(self._height(child) + margin[0] + margin[2])
                elif self._is_atomic_inline(child) or self._replaced_size(child) is not None:
                    flow.add_inline(self._width(child), self._height(child))
                else:
                    self._flow(child, flow)
            except Unmeasurable as e:
                logger.debug(f"Skipping unmeasurable <{child.name}> in <{el.name}>: {e}")
