"""
Trick Questions Detector for the Dark Pattern Detector
Detects double-negative opt-out labels
"""

from typing import List

from bs4 import Tag

from ..core.document import matches_any
from ..core.model import Finding

METADATA = {
    "id": "trick_questions",
    "name": "Trick Questions",
    "category": "Trick Questions",
    "severity_hint": "critical",
    "description": "Labels like 'Uncheck this box if you do not want to receive offers'",
    "implemented": True,
}


def run(session) -> List[Finding]:
    table = session.table(METADATA["id"])
    double_negative = table.get("double_negative")
    message = table.message()

    def check(el: Tag) -> None:
        if matches_any(session.text(el), double_negative):
            session.record(el, METADATA["category"], "critical", message)

    session.each(session.candidates(table.selector), check)
    return session.collected()
