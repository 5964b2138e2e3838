"""
Price Anchoring Detector for the Dark Pattern Detector
Detects struck-through reference prices shown next to a sale price
"""

from typing import List

from bs4 import Tag

from ..core.document import matches_any
from ..core.model import Finding

METADATA = {
    "id": "price_anchoring",
    "name": "Price Anchoring",
    "category": "Price Anchoring",
    "severity_hint": "low",
    "description": "Strikethrough and 'was/MRP' prices whose original may not be genuine",
    "implemented": True,
}


def run(session) -> List[Finding]:
    table = session.table(METADATA["id"])
    price = table.get("price")
    message = table.message()

    def check(el: Tag) -> None:
        box = session.layout.box(el)
        if box is None or box.height <= 0:
            return
        if matches_any(session.text(el), price):
            session.record(el, METADATA["category"], "low", message)

    session.each(session.candidates(table.selector), check)
    return session.collected()
