"""Domain models"""

from .call import (
    PendingCallStatus,
    CallDirection,
    CallOutcome,
    ClaimResult,
    PendingCallRecord,
    CallRecord,
    ServiceResult,
)

from .webhook import (
    WebhookEventType,
    SUBSCRIBED_EVENTS,
    WebhookEnvelope,
    CallEventData,
    MessageEventData,
    WebhookResponse,
    to_naive_utc,
)
