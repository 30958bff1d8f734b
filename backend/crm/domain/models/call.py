"""
Call Domain Models
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime
from enum import Enum


class PendingCallStatus(str, Enum):
    """Lifecycle of a pending (click-to-call) record"""
    INITIATED = "initiated"
    COMPLETED = "completed"
    EXPIRED = "expired"


class CallDirection(str, Enum):
    """Direction reported by the provider"""
    INBOUND = "inbound"
    OUTBOUND = "outbound"


class CallOutcome(str, Enum):
    """Outcome labels written to Call.outcome and Contact.last_call_outcome"""
    NO_ANSWER = "No Answer / Voicemail"
    BRIEF_CONTACT = "Brief Contact"
    CONNECTED = "Connected"
    RECEIVED_CALL = "Received Call"
    SMS_RECEIVED = "SMS Received"
    SMS_DELIVERED = "SMS Delivered"


class ClaimResult(str, Enum):
    """Result of marking a pending call completed"""
    CLAIMED = "claimed"
    ALREADY_COMPLETED = "already_completed"  # same provider call id, no-op
    CONFLICT = "conflict"                    # completed by a different provider call
    NOT_FOUND = "not_found"


class PendingCallRecord(BaseModel):
    """Pending call as returned by the API"""
    model_config = ConfigDict(from_attributes=True)
    
    id: str
    contact_id: str
    user_id: str
    phone_number: str
    initiated_at: datetime
    status: PendingCallStatus
    provider_call_id: Optional[str] = None
    completed_at: Optional[datetime] = None
    notification_shown: bool = False


class CallRecord(BaseModel):
    """Durable call log entry"""
    model_config = ConfigDict(from_attributes=True)
    
    id: str
    contact_id: str
    user_id: Optional[str] = None
    date: datetime
    duration: int = Field(..., ge=0, description="Duration in whole minutes")
    notes: Optional[str] = None
    outcome: str
    is_deal: bool = False
    provider_call_id: Optional[str] = None
    recording_url: Optional[str] = None
    created_at: Optional[datetime] = None


class ServiceResult(BaseModel):
    """
    Structured result returned across service boundaries.
    
    Expected misses (no matching pending call, unknown contact) come back as
    success=False with an error message instead of raising.
    """
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    data: Optional[dict] = None
    
    @classmethod
    def ok(cls, message: Optional[str] = None, **data) -> "ServiceResult":
        return cls(success=True, message=message, data=data or None)
    
    @classmethod
    def fail(cls, error: str) -> "ServiceResult":
        return cls(success=False, error=error)
