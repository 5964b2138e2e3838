"""
Disguised Ads Detector for the Dark Pattern Detector
Detects visible ad slots that do not say they are ads
"""

from typing import List

from bs4 import Tag

from ..core.document import matches_any
from ..core.model import Finding

METADATA = {
    "id": "disguised_ads",
    "name": "Disguised Ads",
    "category": "Disguised Ads",
    "severity_hint": "medium",
    "description": "Sponsored or ad-marked elements without a disclosure word",
    "implemented": True,
}


def run(session) -> List[Finding]:
    table = session.table(METADATA["id"])
    disclosure = table.get("disclosure")
    min_size = session.settings.min_ad_size
    message = table.message()

    def check(el: Tag) -> None:
        box = session.layout.box(el)
        if box is None or box.width < min_size or box.height < min_size:
            return
        if matches_any(session.text(el), disclosure):
            return
        session.record(el, METADATA["category"], "medium", message)

    session.each(session.candidates(table.selector), check)
    return session.collected()
