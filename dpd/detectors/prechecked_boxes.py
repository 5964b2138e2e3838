"""
Pre-checked Boxes Detector for the Dark Pattern Detector
Detects checkboxes and radio buttons that arrive already selected
"""

from typing import List, Optional

from bs4 import Tag

from ..core.document import is_element, matches_any
from ..core.model import Finding

METADATA = {
    "id": "prechecked_boxes",
    "name": "Pre-checked Boxes",
    "category": "Forced Continuity",
    "severity_hint": "critical",
    "description": "Checked opt-in boxes enrol users unless they notice and untick them",
    "implemented": True,
}


def find_label(session, el: Tag) -> Optional[Tag]:
    """Enclosing label, else a label pointing at the input's id."""
    label = el.find_parent("label")
    if label is not None:
        return label

    element_id = el.get("id")
    if element_id:
        return session.soup.find("label", attrs={"for": element_id})
    return None


def run(session) -> List[Finding]:
    table = session.table(METADATA["id"])
    enrollment = table.get("enrollment")

    def check(el: Tag) -> None:
        label = find_label(session, el)
        if label is not None:
            context = label
        elif is_element(el.parent):
            context = el.parent
        else:
            context = el

        if matches_any(session.text(context), enrollment):
            severity, message = "critical", table.message("enrolled")
        else:
            severity, message = "medium", table.message("default")

        target = label if label is not None else el
        session.record(target, METADATA["category"], severity, message)

    session.each(session.candidates(table.selector), check)
    return session.collected()
