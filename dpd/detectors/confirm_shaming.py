"""
Confirm-shaming Detector for the Dark Pattern Detector
Detects decline options worded to make users feel bad for saying no
"""

from typing import List

from bs4 import Tag

from ..core.document import matches_any
from ..core.model import Finding

METADATA = {
    "id": "confirm_shaming",
    "name": "Confirm-shaming",
    "category": "Confirm-shaming",
    "severity_hint": "high",
    "description": "Links, buttons and labels like 'No thanks, I hate saving money'",
    "implemented": True,
}


def run(session) -> List[Finding]:
    table = session.table(METADATA["id"])
    shame = table.get("shame")
    message = table.message()

    def check(el: Tag) -> None:
        if matches_any(session.text(el), shame):
            session.record(el, METADATA["category"], "high", message)

    session.each(session.candidates(table.selector), check)
    return session.collected()
