"""
Score to risk tier mapping.

percentage = round(score * 100); SAFE up to 25, WARNING 26-50, PHISHING from 51.
Ties at exactly 25 and 50 resolve to the lower-risk tier.
"""

from __future__ import annotations

import math
from enum import Enum

SAFE_MAX_PERCENT = 25
WARNING_MAX_PERCENT = 50

# Popup reads the score as a binary verdict
POPUP_PHISHING_THRESHOLD = 0.5


class Tier(str, Enum):
    SAFE = "safe"
    WARNING = "warning"
    PHISHING = "phishing"


def score_to_percentage(score: float) -> int:
    """Score in [0, 1] to an integer percentage, rounding halves up."""
    s = min(max(float(score), 0.0), 1.0)
    return int(math.floor(s * 100 + 0.5))


def percentage_to_tier(percentage: int) -> Tier:
    if percentage <= SAFE_MAX_PERCENT:
        return Tier.SAFE
    if percentage <= WARNING_MAX_PERCENT:
        return Tier.WARNING
    return Tier.PHISHING


def score_to_tier(score: float) -> Tier:
    """Map P(phishing) to SAFE / WARNING / PHISHING."""
    return percentage_to_tier(score_to_percentage(score))


def popup_verdict(score: float) -> tuple[Tier, float]:
    """
    Binary verdict shown in the toolbar popup.

    Returns (PHISHING, score) when score > 0.5, else (SAFE, 1 - score); the
    second value is the confidence in that verdict.
    """
    if score > POPUP_PHISHING_THRESHOLD:
        return Tier.PHISHING, float(score)
    return Tier.SAFE, 1.0 - float(score)
