"""
Sensitivity-keyed scoring and decision policy.

Turns the per-word detections of one analysis into the aggregate severity,
the accumulated confidence, the flag decision and the recommended action.
"""

from __future__ import annotations

from typing import Dict, Iterable, Sequence

from modsentry.datatypes.moderation_datatypes import ActionType, DetectionDetail, Sensitivity, Severity

CONFIDENCE_THRESHOLDS: Dict[Sensitivity, float] = {
    Sensitivity.LOW: 0.98,
    Sensitivity.MEDIUM: 0.85,
    Sensitivity.HIGH: 0.70,
}

HIGH_CONFIDENCE = 0.95
MEDIUM_CONFIDENCE = 0.85
CONFIDENCE_WEIGHT = 0.3


def confidence_threshold(sensitivity: Sensitivity) -> float:
    """Minimum match confidence for a detection to count at ``sensitivity``."""
    return CONFIDENCE_THRESHOLDS.get(sensitivity, CONFIDENCE_THRESHOLDS[Sensitivity.MEDIUM])


def max_severity(severities: Iterable[Severity]) -> Severity:
    """Highest severity in ``severities``; LOW when empty."""
    return max(severities, key=lambda severity: severity.rank, default=Severity.LOW)


def accumulate_confidence(total: float, confidence: float) -> float:
    """Add one detection's weighted confidence, capped at 1.0."""
    return min(1.0, total + confidence * CONFIDENCE_WEIGHT)


def should_flag(details: Sequence[DetectionDetail], severity: Severity, sensitivity: Sensitivity) -> bool:
    """
    Decide whether the detections warrant action.

    - low: a high-severity word and at least one detection at 0.95 or above
    - medium: any high-severity word, or a medium-severity word with a
      detection in [0.85, 0.95)
    - high: any detection at all
    """
    if not details:
        return False

    if sensitivity is Sensitivity.LOW:
        return severity is Severity.HIGH and any(d.confidence >= HIGH_CONFIDENCE for d in details)
    if sensitivity is Sensitivity.MEDIUM:
        if severity is Severity.HIGH:
            return True
        return severity is Severity.MEDIUM and any(
            MEDIUM_CONFIDENCE <= d.confidence < HIGH_CONFIDENCE for d in details
        )
    return True


def recommended_action(severity: Severity, detection_count: int) -> ActionType:
    """Escalate with severity, and within a severity with the number of detections."""
    if severity is Severity.HIGH:
        return ActionType.KICK if detection_count > 2 else ActionType.TIMEOUT
    if severity is Severity.MEDIUM:
        return ActionType.TIMEOUT if detection_count > 3 else ActionType.DELETE
    return ActionType.WARN
