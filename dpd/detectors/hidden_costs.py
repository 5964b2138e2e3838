"""
Hidden Costs Detector for the Dark Pattern Detector
Detects fee and surcharge wording that hints at costs added late
"""

from typing import List

from ..core.model import Finding

METADATA = {
    "id": "hidden_costs",
    "name": "Hidden Costs",
    "category": "Hidden Costs",
    "severity_hint": "high",
    "description": "Processing, service and booking fees or surcharges in page text",
    "implemented": True,
}


def run(session) -> List[Finding]:
    table = session.table(METADATA["id"])
    message = table.message()

    session.walk_text(
        table.get("fees"),
        lambda el, text: session.record(el, METADATA["category"], "high", message),
    )
    return session.collected()
