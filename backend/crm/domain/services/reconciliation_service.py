"""
Call Reconciliation Service
Turns a completed outbound call event into a logged call.

Claiming the pending call, creating the Call and refreshing the contact's
last-call summary happen in one transaction.
"""
import logging
from datetime import datetime
from typing import Optional

from crm.domain.models.call import CallRecord, ClaimResult, ServiceResult
from crm.domain.models.webhook import CallEventData
from crm.domain.services.call_matcher import match_call_event
from crm.domain.services.outcome_classifier import classify_call_outcome, duration_to_minutes
from crm.domain.services.pending_call_ledger import PendingCallLedger
from crm.infrastructure.storage.database import Database
from crm.infrastructure.storage.models import Call, Contact

logger = logging.getLogger(__name__)


def build_call_reference(provider_call_id: str, pending_call_id: str) -> str:
    """Notes text identifying the provider call and the pending call it closed."""
    return f"OpenPhone Call ID: {provider_call_id}\nPending Call ID: {pending_call_id}"


class CallReconciliationService:
    """
    Reconciles provider call events against pending calls.
    
    Usage:
        service = CallReconciliationService(database)
        result = service.reconcile(event)
        if result.success and result.data["should_show_popup"]:
            ...
    """
    
    def __init__(self, database: Database):
        self.database = database
    
    def reconcile(self, event: CallEventData, now: Optional[datetime] = None) -> ServiceResult:
        """
        Reconcile a call.completed event.
        
        Args:
            event: Parsed call event data
            now: Clock override, used as completion time when the event has none
        
        Returns:
            ServiceResult; on success data carries call, contact_id,
            pending_call_id and should_show_popup
        """
        now = now or datetime.utcnow()
        
        try:
            with self.database.session() as session:
                existing = (
                    session.query(Call)
                    .filter(Call.provider_call_id == event.id)
                    .first()
                )
                if existing is not None:
                    logger.info(f"Provider call {event.id} already logged as call {existing.id}")
                    return ServiceResult.ok(
                        "Call already logged",
                        call=CallRecord.model_validate(existing),
                        duplicate=True,
                        should_show_popup=False,
                    )
                
                pending_call = match_call_event(session, event)
                if pending_call is None:
                    return ServiceResult.fail("No matching pending call found")
                
                ledger = PendingCallLedger(session)
                claim = ledger.mark_completed(
                    pending_call.id,
                    provider_call_id=event.id,
                    completed_at=event.end_time or now,
                )
                
                if claim == ClaimResult.ALREADY_COMPLETED:
                    return ServiceResult.ok(
                        "Pending call already completed",
                        pending_call_id=pending_call.id,
                        duplicate=True,
                        should_show_popup=False,
                    )
                if claim != ClaimResult.CLAIMED:
                    return ServiceResult.fail(
                        f"Pending call {pending_call.id} could not be claimed ({claim.value})"
                    )
                
                outcome = classify_call_outcome(event.duration)
                call_date = event.start_time
                call = Call(
                    contact_id=pending_call.contact_id,
                    user_id=pending_call.user_id,
                    date=call_date,
                    duration=duration_to_minutes(event.duration),
                    notes=build_call_reference(event.id, pending_call.id),
                    outcome=outcome.value,
                    is_deal=False,
                    provider_call_id=event.id,
                )
                session.add(call)
                
                contact = session.get(Contact, pending_call.contact_id)
                if contact is None:
                    raise LookupError(f"Contact {pending_call.contact_id} not found")
                contact.last_call_outcome = outcome.value
                contact.last_call_date = call_date
                
                session.flush()
                record = CallRecord.model_validate(call)
                
                logger.info(
                    f"System-initiated call logged: call={call.id}, contact={contact.id}, "
                    f"provider_call_id={event.id}, pending_call={pending_call.id}, "
                    f"duration={event.duration}s, outcome={outcome.value}"
                )
                
                return ServiceResult.ok(
                    "Call reconciled",
                    call=record,
                    contact_id=contact.id,
                    pending_call_id=pending_call.id,
                    should_show_popup=True,
                )
        
        except Exception as e:
            logger.error(f"Error reconciling provider call {event.id}: {e}", exc_info=True)
            return ServiceResult.fail(str(e))
