"""
Urgency Detector for the Dark Pattern Detector
Detects copy that pushes users with artificial time or stock pressure
"""

from typing import List

from ..core.model import Finding

METADATA = {
    "id": "urgency",
    "name": "Urgency Language",
    "category": "Scarcity / Urgency",
    "severity_hint": "high",
    "description": "Phrases like 'limited time' or 'act now' in page text",
    "implemented": True,
}


def run(session) -> List[Finding]:
    table = session.table(METADATA["id"])
    message = table.message()

    session.walk_text(
        table.get("urgency"),
        lambda el, text: session.record(el, METADATA["category"], "high", message),
    )
    return session.collected()
