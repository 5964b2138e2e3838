"""
Roach Motel Detector for the Dark Pattern Detector
Detects subscription calls to action with no cancellation terms in sight

The nearest section-like container stands in for "nearby": a sign-up button
whose section never mentions cancelling, commitment or contracts is flagged.
"""

from typing import List, Optional

from bs4 import Tag

from ..core.document import is_element, matches_any
from ..core.model import Finding

METADATA = {
    "id": "roach_motel",
    "name": "Roach Motel",
    "category": "Roach Motel",
    "severity_hint": "medium",
    "description": "Subscribe and sign-up buttons lacking nearby cancellation info",
    "implemented": True,
}

DEFAULT_SECTION_SELECTOR = "section, article, form, [class*='plan'], [class*='pricing']"


def find_section(session, el: Tag, selector: str) -> Optional[Tag]:
    """Nearest section-like ancestor, else the grandparent, else the page root."""
    parent = el.parent
    if is_element(parent):
        section = parent.css.closest(selector)
        if section is not None:
            return section
        if is_element(parent.parent):
            return parent.parent
    return session.root


def run(session) -> List[Finding]:
    table = session.table(METADATA["id"])
    call_to_action = table.get("call_to_action")
    cancellation = table.get("cancellation")
    section_selector = table.option("section_selector", DEFAULT_SECTION_SELECTOR)
    message = table.message()

    def check(el: Tag) -> None:
        if not matches_any(session.text(el), call_to_action):
            return
        section = find_section(session, el, section_selector)
        if matches_any(session.text(section), cancellation):
            return
        session.record(el, METADATA["category"], "medium", message)

    session.each(session.candidates(table.selector), check)
    return session.collected()
