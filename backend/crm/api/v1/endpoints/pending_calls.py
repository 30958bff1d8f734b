"""
Pending Call Endpoints
Lets the UI find reconciled calls that still need the post-call popup
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from crm.api.v1.dependencies import get_database
from crm.domain.models.call import PendingCallRecord, PendingCallStatus
from crm.domain.services.pending_call_ledger import PendingCallLedger
from crm.infrastructure.storage.database import Database

router = APIRouter(prefix="/pending-calls", tags=["pending-calls"])


@router.get("/", response_model=List[PendingCallRecord])
def list_pending_calls(
    user_id: str = Query(..., description="Owner of the pending calls"),
    status: Optional[PendingCallStatus] = Query(None, description="Filter by status"),
    database: Database = Depends(get_database)
):
    """Pending calls for a user, newest first."""
    with database.session() as session:
        pending_calls = PendingCallLedger(session).list_for_user(user_id, status)
        return [PendingCallRecord.model_validate(p) for p in pending_calls]


@router.post("/{pending_call_id}/acknowledge", response_model=PendingCallRecord)
def acknowledge_pending_call(
    pending_call_id: str,
    user_id: str = Query(..., description="Owner of the pending call"),
    database: Database = Depends(get_database)
):
    """Mark the post-call popup for a pending call as shown."""
    with database.session() as session:
        pending_call = PendingCallLedger(session).acknowledge_notification(pending_call_id, user_id)
        if pending_call is None:
            raise HTTPException(status_code=404, detail="Pending call not found")
        return PendingCallRecord.model_validate(pending_call)
