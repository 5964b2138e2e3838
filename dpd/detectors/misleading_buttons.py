"""
Misleading Buttons Detector for the Dark Pattern Detector
Detects re-subscribe buttons dressed up as the way out of an unsubscribe flow
"""

from typing import List

from bs4 import Tag

from ..core.document import matches_any
from ..core.model import Finding

METADATA = {
    "id": "misleading_buttons",
    "name": "Misleading Re-subscribe Buttons",
    "category": "Forced Continuity",
    "severity_hint": "high",
    "description": "Buttons like 'Yes, keep my plan' or 'Stay subscribed'",
    "implemented": True,
}


def run(session) -> List[Finding]:
    table = session.table(METADATA["id"])
    resubscribe = table.get("resubscribe")
    message = table.message()

    def check(el: Tag) -> None:
        if matches_any(session.text(el), resubscribe):
            session.record(el, METADATA["category"], "high", message)

    session.each(session.candidates(table.selector), check)
    return session.collected()
