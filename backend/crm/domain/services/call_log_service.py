"""
Call Log Service
Provider events that write to the call log outside of reconciliation:
inbound calls, recordings, SMS activity, and manual post-call notes.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from crm.domain.models.call import CallOutcome, CallRecord, ServiceResult
from crm.domain.models.webhook import CallEventData, MessageEventData
from crm.domain.services.outcome_classifier import duration_to_minutes
from crm.infrastructure.storage.database import Database
from crm.infrastructure.storage.models import Call, Contact

logger = logging.getLogger(__name__)


class CallNotFoundError(Exception):
    """Raised when a call id does not exist."""
    def __init__(self, call_id: str):
        self.call_id = call_id
        self.message = f"Call not found: {call_id}"
        super().__init__(self.message)


def _find_owned_contact(session: Session, phone_number: Optional[str]) -> Optional[Contact]:
    if not phone_number:
        return None
    return (
        session.query(Contact)
        .filter(Contact.phone == phone_number, Contact.assigned_to.isnot(None))
        .first()
    )


class CallLogService:
    """Writes Call rows for provider events and user edits"""
    
    def __init__(self, database: Database):
        self.database = database
    
    def log_inbound_call(self, event: CallEventData, now: Optional[datetime] = None) -> ServiceResult:
        """
        Log a completed inbound call against the owned contact whose phone
        equals the caller number.
        """
        now = now or datetime.utcnow()
        
        with self.database.session() as session:
            if session.query(Call).filter(Call.provider_call_id == event.id).first():
                return ServiceResult.ok("Call already logged", duplicate=True)
            
            contact = _find_owned_contact(session, event.from_number)
            if contact is None:
                logger.warning(
                    f"No contact found for inbound call: provider_call_id={event.id}, "
                    f"from={event.from_number}"
                )
                return ServiceResult.fail("No contact found for inbound call")
            
            call_date = event.start_time or now
            call = Call(
                contact_id=contact.id,
                user_id=contact.assigned_to,
                date=call_date,
                duration=duration_to_minutes(event.duration),
                notes=f"OpenPhone Call ID: {event.id}\nDirection: {event.direction or 'unknown'}",
                outcome=CallOutcome.RECEIVED_CALL.value,
                is_deal=False,
                provider_call_id=event.id,
            )
            session.add(call)
            contact.last_call_outcome = call.outcome
            contact.last_call_date = call_date
            session.flush()
            
            logger.info(f"Inbound call logged: call={call.id}, contact={contact.id}")
            return ServiceResult.ok("Inbound call logged", call=CallRecord.model_validate(call))
    
    def attach_recording(self, event: CallEventData) -> ServiceResult:
        """Store the recording URL on the call logged for the provider call."""
        if not event.recording_url:
            return ServiceResult.fail("Recording event without recording URL")
        
        with self.database.session() as session:
            call = session.query(Call).filter(Call.provider_call_id == event.id).first()
            if call is None:
                logger.warning(f"No logged call for recording: provider_call_id={event.id}")
                return ServiceResult.fail("No call found for recording")
            
            call.recording_url = event.recording_url
            recording_line = f"Recording: {event.recording_url}"
            call.notes = f"{call.notes}\n{recording_line}" if call.notes else recording_line
            
            logger.info(f"Recording attached to call {call.id}")
            return ServiceResult.ok("Recording attached", call_id=call.id)
    
    def log_message(
        self,
        event: MessageEventData,
        outcome: CallOutcome,
        now: Optional[datetime] = None
    ) -> ServiceResult:
        """
        Record SMS activity as a zero-duration call row.
        
        Received messages are matched on the sender, delivered ones on the
        recipient.
        """
        now = now or datetime.utcnow()
        if outcome == CallOutcome.SMS_RECEIVED:
            phone_number = event.from_number
        else:
            phone_number = event.to_number
        
        with self.database.session() as session:
            contact = _find_owned_contact(session, phone_number)
            if contact is None:
                logger.info(f"No contact for message {event.id} ({phone_number}), not logged")
                return ServiceResult.fail("No contact found for message")
            
            call = Call(
                contact_id=contact.id,
                user_id=contact.assigned_to,
                date=event.created_at or now,
                duration=0,
                notes=f"{outcome.value}: {event.text or ''}",
                outcome=outcome.value,
                is_deal=False,
            )
            session.add(call)
            session.flush()
            
            return ServiceResult.ok(f"{outcome.value} logged", call_id=call.id)
    
    def update_call_notes(
        self,
        call_id: str,
        notes: Optional[str],
        outcome: Optional[str],
        is_deal: bool = False
    ) -> CallRecord:
        """
        Apply post-call notes entered by the user.
        
        Raises:
            CallNotFoundError: If call_id does not exist
        """
        with self.database.session() as session:
            call = session.get(Call, call_id)
            if call is None:
                raise CallNotFoundError(call_id)
            
            call.notes = notes or ""
            call.outcome = outcome or "Completed"
            call.is_deal = is_deal
            
            contact = session.get(Contact, call.contact_id)
            if contact is not None:
                contact.last_call_outcome = call.outcome
            
            session.flush()
            return CallRecord.model_validate(call)
