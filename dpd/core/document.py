"""
Document traversal primitives

Loading pages into a BeautifulSoup tree, self-surface exclusion, the leaf
deduplicating text walker and the node arena that findings point into.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Pattern, Union

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from .errors import DocumentLoadError

logger = logging.getLogger(__name__)

SELF_SURFACE_ID = "__dpd_panel__"

# Text under these parents is never content
SKIP_PARENT_TAGS = frozenset({"script", "style", "noscript", "meta", "template"})

# Inputs whose value is their visible label
BUTTON_INPUT_TYPES = frozenset({"submit", "button", "reset"})

EXCERPT_LENGTH = 60

_WHITESPACE_RE = re.compile(r"\s+")
_SIMPLE_ID_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_-]*$")


def load_document(markup: Union[str, bytes]) -> BeautifulSoup:
    """Parse markup into a document tree."""
    if markup is None:
        raise DocumentLoadError("No markup to parse")
    try:
        return BeautifulSoup(markup, "html.parser")
    except Exception as e:
        raise DocumentLoadError(f"Could not parse document: {e}") from e


def load_document_file(path: Union[str, Path]) -> BeautifulSoup:
    path = Path(path)
    try:
        markup = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise DocumentLoadError(f"Could not read {path}: {e}") from e
    return load_document(markup)


def document_root(soup: BeautifulSoup) -> Tag:
    """The body element, or the whole document when there is none."""
    body = soup.body if isinstance(soup, BeautifulSoup) else soup.find("body")
    return body if body is not None else soup


def is_element(node) -> bool:
    return isinstance(node, Tag) and not isinstance(node, BeautifulSoup)


def is_text_leaf(node) -> bool:
    """Plain text node. Comments, CDATA, doctypes and the like do not count."""
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def in_self_surface(node) -> bool:
    """True when the node or any of its ancestors is the detector's own panel."""
    current = node if isinstance(node, Tag) else getattr(node, "parent", None)
    while current is not None and not isinstance(current, BeautifulSoup):
        if current.get("id") == SELF_SURFACE_ID:
            return True
        current = current.parent
    return False


def find_self_surface(soup: BeautifulSoup) -> Optional[Tag]:
    return soup.find(id=SELF_SURFACE_ID)


def remove_self_surface(soup: BeautifulSoup) -> bool:
    """Remove a previously injected panel. Returns True if one was present."""
    panel = find_self_surface(soup)
    if panel is None:
        return False
    panel.decompose()
    return True


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text or "").strip()


def element_text(el: Tag) -> str:
    """Whitespace-collapsed text content of an element, skipping script-like parents."""
    if el is None:
        return ""
    parts = [
        str(node)
        for node in el.descendants
        if is_text_leaf(node) and getattr(node.parent, "name", None) not in SKIP_PARENT_TAGS
    ]
    return collapse_whitespace("".join(parts))


def make_excerpt(text: str, limit: int = EXCERPT_LENGTH) -> str:
    """Collapse whitespace and cap at `limit` characters, marking truncation with an ellipsis."""
    text = collapse_whitespace(text)
    if len(text) <= limit:
        return text
    return text[:limit] + "…"


def matches_any(text: str, patterns: Iterable[Pattern]) -> bool:
    for pattern in patterns:
        if pattern.search(text):
            return True
    return False


def walk_text_nodes(root: Tag,
                    patterns: Iterable[Pattern],
                    callback: Callable[[Tag, str], None]) -> int:
    """Visit text leaves under root in document order and report matching parents.

    A parent element is reported at most once per walk, no matter how many of
    its text leaves match. Returns the number of callback invocations.
    """
    patterns = list(patterns)
    yielded = set()
    hits = 0

    for node in list(root.descendants):
        if not is_text_leaf(node):
            continue
        parent = node.parent
        if parent is None or id(parent) in yielded:
            continue
        if parent.name in SKIP_PARENT_TAGS or in_self_surface(parent):
            continue

        text = str(node).strip().lower()
        if not text:
            continue

        if matches_any(text, patterns):
            yielded.add(id(parent))
            hits += 1
            callback(parent, text)

    return hits


def css_path(el: Tag) -> Optional[str]:
    """CSS selector that locates the element again in the serialized page."""
    if not is_element(el):
        return None

    parts: List[str] = []
    current = el
    while is_element(current):
        element_id = current.get("id")
        if isinstance(element_id, str) and _SIMPLE_ID_RE.match(element_id):
            parts.append(f"#{element_id}")
            break

        segment = current.name
        parent = current.parent
        if parent is not None:
            same_tag = [sibling for sibling in parent.find_all(current.name, recursive=False)]
            if len(same_tag) > 1:
                position = next(i for i, sibling in enumerate(same_tag, 1) if sibling is current)
                segment += f":nth-of-type({position})"
        parts.append(segment)
        current = parent

    return " > ".join(reversed(parts))


class NodeArena:
    """Integer handles for the elements findings refer to.

    The document tree owns the elements. Handles stay valid for as long as the
    tree does and are compared by identity, never by markup equality.
    """

    def __init__(self):
        self._nodes: List[Tag] = []
        self._index: Dict[int, int] = {}

    def add(self, el: Tag) -> int:
        key = id(el)
        if key in self._index:
            return self._index[key]
        handle = len(self._nodes)
        self._nodes.append(el)
        self._index[key] = handle
        return handle

    def get(self, handle: Optional[int]) -> Optional[Tag]:
        if handle is None or handle < 0 or handle >= len(self._nodes):
            return None
        return self._nodes[handle]

    def handle_of(self, el: Tag) -> Optional[int]:
        return self._index.get(id(el))

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Tag]:
        return iter(self._nodes)
