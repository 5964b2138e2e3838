"""
Autoplay Media Detector for the Dark Pattern Detector
Detects audio and video that start playing without user action
"""

from typing import List

from bs4 import Tag

from ..core.model import Finding

METADATA = {
    "id": "autoplay_media",
    "name": "Autoplay Media",
    "category": "Intrusive UX",
    "severity_hint": "medium",
    "description": "Autoplaying media; muted playback is rated lower",
    "implemented": True,
}


def run(session) -> List[Finding]:
    table = session.table(METADATA["id"])

    def check(el: Tag) -> None:
        if el.has_attr("muted"):
            session.record(el, METADATA["category"], "low", table.message("muted"))
        else:
            session.record(el, METADATA["category"], "medium", table.message("default"))

    session.each(session.candidates(table.selector), check)
    return session.collected()
