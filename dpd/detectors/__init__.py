"""
Dark Pattern Detectors
One module per detector; each exposes METADATA and run(session)
"""

from . import (
    prechecked_boxes,
    urgency,
    countdowns,
    hidden_costs,
    confirm_shaming,
    roach_motel,
    disguised_ads,
    trick_questions,
    price_anchoring,
    autoplay_media,
    popups,
    misleading_buttons,
    social_proof,
    privacy_zuckering,
)

# Invocation order; findings are displayed in this order
DETECTOR_ORDER = (
    "prechecked_boxes",
    "urgency",
    "countdowns",
    "hidden_costs",
    "confirm_shaming",
    "roach_motel",
    "disguised_ads",
    "trick_questions",
    "price_anchoring",
    "autoplay_media",
    "popups",
    "misleading_buttons",
    "social_proof",
    "privacy_zuckering",
)

__all__ = list(DETECTOR_ORDER)
