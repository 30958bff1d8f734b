"""
Reconciliation Matcher
Finds the pending call a completed outbound call event belongs to.

The provider never echoes a client correlation id, so the join is
phone number + time proximity. The stored number is compared verbatim:
a formatting difference between dispatch time and the provider report
is a miss.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from crm.domain.models.call import CallDirection, PendingCallStatus
from crm.domain.models.webhook import CallEventData
from crm.infrastructure.storage.models import PendingCall

logger = logging.getLogger(__name__)


MATCH_WINDOW = timedelta(seconds=60)


def find_matching_pending_call(
    session: Session,
    phone_number: str,
    start_time: datetime,
    window: timedelta = MATCH_WINDOW
) -> Optional[PendingCall]:
    """
    Most recent `initiated` pending call for phone_number whose initiation
    lies within +/- window of start_time (bounds inclusive).
    """
    return (
        session.query(PendingCall)
        .filter(
            PendingCall.status == PendingCallStatus.INITIATED.value,
            PendingCall.phone_number == phone_number,
            PendingCall.initiated_at >= start_time - window,
            PendingCall.initiated_at <= start_time + window,
        )
        .order_by(PendingCall.initiated_at.desc())
        .first()
    )


def match_call_event(session: Session, event: CallEventData) -> Optional[PendingCall]:
    """
    Match a call.completed event to its pending call.
    
    Only outbound events are eligible. A miss is logged and returns None;
    nothing is queued for retry.
    """
    if event.direction != CallDirection.OUTBOUND.value:
        return None
    
    start_time = event.start_time
    if not event.to_number or start_time is None:
        logger.warning(
            f"Call event {event.id} missing destination or start time, cannot match"
        )
        return None
    
    pending_call = find_matching_pending_call(session, event.to_number, start_time)
    if pending_call is None:
        logger.warning(
            f"No matching pending call found for webhook: phone={event.to_number}, "
            f"start={start_time.isoformat()}, provider_call_id={event.id}"
        )
    return pending_call
