"""
Countdown Timer Detector for the Dark Pattern Detector
Detects rendered timer widgets that display a time-like deadline
"""

from typing import List

from bs4 import Tag

from ..core.document import matches_any
from ..core.model import Finding

METADATA = {
    "id": "countdowns",
    "name": "Countdown Timers",
    "category": "Scarcity / Urgency",
    "severity_hint": "high",
    "description": "Timer and countdown elements showing hours, minutes or seconds",
    "implemented": True,
}


def run(session) -> List[Finding]:
    table = session.table(METADATA["id"])
    time_patterns = table.get("time")
    message = table.message()

    def check(el: Tag) -> None:
        box = session.layout.box(el)
        if box is None or box.height <= 0:
            return
        # Timer markup without a time-like token is only a label
        if not matches_any(session.text(el), time_patterns):
            return
        session.record(el, METADATA["category"], "high", message)

    session.each(session.candidates(table.selector), check)
    return session.collected()
