"""
Read-time risk classification from aggregated activity counts. Never persisted.
"""
from typing import Mapping

RISK_WEIGHTS = {
    'TAB_BLUR': 1.0,
    'ATTEMPTED_DEVTOOLS': 2.0,
    'SCREENSHOT_ATTEMPT': 1.0,
    'RIGHT_CLICK': 0.3,
    'COPY_ATTEMPT': 0.5,
    'PASTE_ATTEMPT': 0.5,
    'SESSION_VIOLATION': 3.0,
    'EXIT_FULLSCREEN': 0.5,
}

RISK_HIGH = 'high'
RISK_MEDIUM = 'medium'
RISK_LOW = 'low'
RISK_ORDER = {RISK_HIGH: 3, RISK_MEDIUM: 2, RISK_LOW: 1}

HIGH_THRESHOLD = 5
MEDIUM_THRESHOLD = 3


def weighted_risk(counts: Mapping[str, int]) -> float:
    """Sum of count * weight; unweighted types (PAGE_REFRESH, ANSWER_CHANGE, ...) add nothing."""
    total = 0.0
    for activity_type, count in counts.items():
        total += RISK_WEIGHTS.get(activity_type, 0.0) * max(0, count or 0)
    return round(total, 2)


def risk_level(value: float) -> str:
    if value >= HIGH_THRESHOLD:
        return RISK_HIGH
    if value >= MEDIUM_THRESHOLD:
        return RISK_MEDIUM
    return RISK_LOW
