"""
Outcome Classifier
Maps provider-reported call duration to a coarse outcome label
"""
from typing import Optional

from crm.domain.models.call import CallOutcome


# Duration thresholds in seconds
NO_ANSWER_BELOW_SECONDS = 10
BRIEF_CONTACT_BELOW_SECONDS = 30


def classify_call_outcome(duration_seconds: Optional[float]) -> CallOutcome:
    """
    Classify a call by its duration.
    
    Very short calls most likely hit voicemail or were not picked up,
    10-30 seconds is a brief pickup, anything longer is a conversation.
    Missing or negative durations count as zero.
    """
    duration = duration_seconds if duration_seconds and duration_seconds > 0 else 0
    
    if duration < NO_ANSWER_BELOW_SECONDS:
        return CallOutcome.NO_ANSWER
    if duration < BRIEF_CONTACT_BELOW_SECONDS:
        return CallOutcome.BRIEF_CONTACT
    return CallOutcome.CONNECTED


def duration_to_minutes(duration_seconds: Optional[float]) -> int:
    """Whole minutes, rounding halves up (45s -> 1, 29.5s -> 0)."""
    duration = duration_seconds if duration_seconds and duration_seconds > 0 else 0
    return int((duration + 30) // 60)
