"""
Element annotation

Marks flagged elements in place with a severity coloured outline and the
finding message, and reverses those marks exactly.
"""

from __future__ import annotations

import logging
from typing import Optional

from bs4 import Tag

from .document import in_self_surface, is_element
from .model import severity_color

logger = logging.getLogger(__name__)

MARKER_ATTR = "data-dpd-marked"
MESSAGE_ATTR = "data-dpd"
SEVERITY_ATTR = "data-dpd-severity"
STYLE_BACKUP_ATTR = "data-dpd-style"

OUTLINE_WIDTH = 3
EMPHASIS_WIDTH = 5


def outline_declarations(color: str, width: int = OUTLINE_WIDTH) -> str:
    return f"outline: {width}px solid {color}; outline-offset: 2px"


def merge_style(original: Optional[str], extra: str) -> str:
    """Append declarations to an existing inline style."""
    base = (original or "").strip().rstrip(";").strip()
    if not base:
        return extra
    return f"{base}; {extra}"


class Annotator:
    """Applies and reverses visual markers on document elements.

    Marking is idempotent per element: the first finding to reach an element
    decides its outline and message, later ones leave it untouched. The
    element's original inline style is kept in a backup attribute so reversal
    restores it byte for byte.
    """

    def is_marked(self, el: Tag) -> bool:
        return is_element(el) and el.has_attr(MARKER_ATTR)

    def mark(self, el: Tag, severity: str, message: str) -> bool:
        """Annotate an element. Returns False when it was already marked or is off limits."""
        if not is_element(el) or in_self_surface(el):
            return False
        if self.is_marked(el):
            return False

        original = el.get("style")
        if original is not None:
            el[STYLE_BACKUP_ATTR] = original
        el[MARKER_ATTR] = "1"
        el[MESSAGE_ATTR] = message
        el[SEVERITY_ATTR] = severity
        el["style"] = merge_style(original, outline_declarations(severity_color(severity)))
        return True

    def unmark(self, el: Tag) -> bool:
        if not self.is_marked(el):
            return False

        original = el.attrs.pop(STYLE_BACKUP_ATTR, None)
        if original is None:
            el.attrs.pop("style", None)
        else:
            el["style"] = original
        for attr in (MARKER_ATTR, MESSAGE_ATTR, SEVERITY_ATTR):
            el.attrs.pop(attr, None)
        return True

    def reverse(self, root: Tag) -> int:
        """Restore every marked element under root (inclusive). Returns how many were restored."""
        marked = root.select(f"[{MARKER_ATTR}]")
        if self.is_marked(root):
            marked.insert(0, root)

        restored = sum(1 for el in marked if self.unmark(el))
        if restored:
            logger.debug(f"Reversed annotations on {restored} elements")
        return restored

    def emphasize(self, el: Tag, severity: Optional[str] = None) -> bool:
        """Pulse a marked element: thicker outline plus a glow of the severity colour."""
        if not self.is_marked(el):
            return False
        color = severity_color(severity or el.get(SEVERITY_ATTR, ""))
        extra = f"{outline_declarations(color, EMPHASIS_WIDTH)}; box-shadow: 0 0 18px {color}88"
        el["style"] = merge_style(el.get(STYLE_BACKUP_ATTR), extra)
        return True

    def relax(self, el: Tag) -> bool:
        """Return an emphasized element to its regular outline."""
        if not self.is_marked(el):
            return False
        color = severity_color(el.get(SEVERITY_ATTR, ""))
        el["style"] = merge_style(el.get(STYLE_BACKUP_ATTR), outline_declarations(color))
        return True
