"""
Popup Detector for the Dark Pattern Detector
Detects visible modal and overlay elements large enough to block the page
"""

from typing import List

from bs4 import Tag

from ..core.model import Finding

METADATA = {
    "id": "popups",
    "name": "Intrusive Popups",
    "category": "Intrusive UX",
    "severity_hint": "medium",
    "description": "Dialogs, modals, lightboxes and overlays that are on screen",
    "implemented": True,
}


def run(session) -> List[Finding]:
    table = session.table(METADATA["id"])
    min_height = session.settings.min_popup_height
    message = table.message()

    def check(el: Tag) -> None:
        layout = session.layout
        if not layout.is_displayed(el) or not layout.is_visible(el):
            return
        box = layout.box(el)
        if box is None or box.height < min_height:
            return
        session.record(el, METADATA["category"], "medium", message)

    session.each(session.candidates(table.selector), check)
    return session.collected()
