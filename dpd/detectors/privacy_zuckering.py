"""
Privacy Zuckering Detector for the Dark Pattern Detector
Detects bundled consent and data-sharing wording, rated higher when set in small print
"""

from typing import List

from bs4 import Tag

from ..core.model import Finding

METADATA = {
    "id": "privacy_zuckering",
    "name": "Privacy Zuckering",
    "category": "Privacy Zuckering",
    "severity_hint": "medium",
    "description": "'We may share your data with partners' and implied-consent wording",
    "implemented": True,
}


def run(session) -> List[Finding]:
    table = session.table(METADATA["id"])
    small_font = session.settings.small_font_px
    message = table.message()

    def flag(el: Tag, text: str) -> None:
        severity = "high" if session.layout.font_size(el) < small_font else "medium"
        session.record(el, METADATA["category"], severity, message)

    session.walk_text(table.get("consent"), flag)
    return session.collected()
