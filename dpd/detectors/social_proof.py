"""
Social Proof Detector for the Dark Pattern Detector
Detects popularity claims users cannot verify
"""

from typing import List

from ..core.model import Finding

METADATA = {
    "id": "social_proof",
    "name": "Social Proof Manipulation",
    "category": "Social Proof Manipulation",
    "severity_hint": "medium",
    "description": "Viewer counts, recent purchase counts, low-stock and trending claims",
    "implemented": True,
}


def run(session) -> List[Finding]:
    table = session.table(METADATA["id"])
    message = table.message()

    session.walk_text(
        table.get("popularity"),
        lambda el, text: session.record(el, METADATA["category"], "medium", message),
    )
    return session.collected()
