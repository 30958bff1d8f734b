"""
Pending Call Ledger
Persistent record of outbound calls dispatched via click-to-call and
awaiting their provider event.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from crm.domain.models.call import ClaimResult, PendingCallStatus
from crm.infrastructure.storage.models import PendingCall

logger = logging.getLogger(__name__)


class PendingCallLedger:
    """
    Pending call operations bound to a single session.
    
    The caller owns the transaction, so a claim and the writes that follow it
    commit or roll back together.
    """
    
    def __init__(self, session: Session):
        self.session = session
    
    def create_pending(
        self,
        contact_id: str,
        user_id: str,
        phone_number: str,
        now: datetime
    ) -> PendingCall:
        """
        Insert a new pending call with status `initiated`.
        
        No deduplication: two rapid clicks produce two rows and the matcher
        picks the most recent one.
        """
        pending_call = PendingCall(
            contact_id=contact_id,
            user_id=user_id,
            phone_number=phone_number,
            initiated_at=now,
            status=PendingCallStatus.INITIATED.value,
        )
        self.session.add(pending_call)
        self.session.flush()
        
        logger.info(
            f"Pending call created: id={pending_call.id}, contact={contact_id}, "
            f"phone={phone_number}"
        )
        return pending_call
    
    def mark_completed(
        self,
        pending_call_id: str,
        provider_call_id: str,
        completed_at: datetime
    ) -> ClaimResult:
        """
        Transition a pending call to `completed`.
        
        The update only applies while the row is still `initiated`, so two
        concurrent deliveries cannot both claim it.
        
        Returns:
            CLAIMED if this call performed the transition,
            ALREADY_COMPLETED if it was completed earlier with the same provider id,
            CONFLICT if it was completed with a different provider id,
            NOT_FOUND if no such pending call exists
        """
        result = self.session.execute(
            update(PendingCall)
            .where(
                PendingCall.id == pending_call_id,
                PendingCall.status == PendingCallStatus.INITIATED.value,
            )
            .values(
                status=PendingCallStatus.COMPLETED.value,
                provider_call_id=provider_call_id,
                completed_at=completed_at,
                updated_at=datetime.utcnow(),
            )
            .execution_options(synchronize_session="evaluate")
        )
        
        if result.rowcount == 1:
            return ClaimResult.CLAIMED
        
        existing = self.session.get(PendingCall, pending_call_id, populate_existing=True)
        if existing is None:
            logger.warning(f"Pending call not found: {pending_call_id}")
            return ClaimResult.NOT_FOUND
        
        if existing.status == PendingCallStatus.COMPLETED.value:
            if existing.provider_call_id == provider_call_id:
                return ClaimResult.ALREADY_COMPLETED
            logger.warning(
                f"Pending call {pending_call_id} already completed by provider call "
                f"{existing.provider_call_id}, ignoring {provider_call_id}"
            )
            return ClaimResult.CONFLICT
        
        logger.warning(
            f"Pending call {pending_call_id} is {existing.status}, cannot complete "
            f"with provider call {provider_call_id}"
        )
        return ClaimResult.CONFLICT
    
    def list_for_user(
        self,
        user_id: str,
        status: Optional[PendingCallStatus] = None
    ) -> List[PendingCall]:
        """Pending calls owned by user, newest first."""
        query = self.session.query(PendingCall).filter(PendingCall.user_id == user_id)
        if status:
            query = query.filter(PendingCall.status == status.value)
        return query.order_by(PendingCall.initiated_at.desc()).all()
    
    def acknowledge_notification(self, pending_call_id: str, user_id: str) -> Optional[PendingCall]:
        """Record that the post-call popup was shown. Returns None if not owned by user."""
        pending_call = (
            self.session.query(PendingCall)
            .filter(PendingCall.id == pending_call_id, PendingCall.user_id == user_id)
            .first()
        )
        if pending_call is None:
            return None
        
        pending_call.notification_shown = True
        self.session.flush()
        return pending_call
    
    def expire_stale(self, older_than: datetime) -> int:
        """
        Mark `initiated` pending calls dispatched before older_than as `expired`.
        
        Returns:
            Number of rows expired
        """
        result = self.session.execute(
            update(PendingCall)
            .where(
                PendingCall.status == PendingCallStatus.INITIATED.value,
                PendingCall.initiated_at < older_than,
            )
            .values(status=PendingCallStatus.EXPIRED.value, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            logger.info(f"Expired {result.rowcount} stale pending calls")
        return result.rowcount
