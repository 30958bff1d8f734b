"""
OpenPhone Webhook Models
Envelope and event payloads posted to the ingress endpoint
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, Optional
from datetime import datetime, timezone
from enum import Enum


class WebhookEventType(str, Enum):
    """Event types the ingress routes explicitly"""
    CALL_RINGING = "call.ringing"
    CALL_COMPLETED = "call.completed"
    CALL_RECORDING_COMPLETED = "call.recording.completed"
    MESSAGE_RECEIVED = "message.received"
    MESSAGE_DELIVERED = "message.delivered"


SUBSCRIBED_EVENTS = [event.value for event in WebhookEventType]


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC already."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class _ProviderModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class WebhookEnvelope(_ProviderModel):
    """Top-level webhook body"""
    type: str = Field(..., min_length=1)
    data: Dict[str, Any] = Field(default_factory=dict)
    id: Optional[str] = None
    api_version: Optional[str] = Field(None, alias="apiVersion")
    created_at: Optional[datetime] = Field(None, alias="createdAt")


class CallEventData(_ProviderModel):
    """`data` of call.* events"""
    id: str
    direction: Optional[str] = None
    from_number: Optional[str] = Field(None, alias="from")
    to_number: Optional[str] = Field(None, alias="to")
    status: Optional[str] = None
    duration: Optional[float] = None  # seconds, may be fractional
    started_at: Optional[datetime] = Field(None, alias="startedAt")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    ended_at: Optional[datetime] = Field(None, alias="endedAt")
    completed_at: Optional[datetime] = Field(None, alias="completedAt")
    recording_url: Optional[str] = Field(None, alias="recordingUrl")
    
    @field_validator("started_at", "created_at", "ended_at", "completed_at")
    @classmethod
    def _normalize_timestamp(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)
    
    @property
    def start_time(self) -> Optional[datetime]:
        """When the call started, falling back to when the provider created it."""
        return self.started_at or self.created_at
    
    @property
    def end_time(self) -> Optional[datetime]:
        return self.ended_at or self.completed_at


class MessageEventData(_ProviderModel):
    """`data` of message.* events"""
    id: str
    from_number: Optional[str] = Field(None, alias="from")
    to_number: Optional[str] = Field(None, alias="to")
    text: Optional[str] = None
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    
    @field_validator("created_at")
    @classmethod
    def _normalize_timestamp(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class WebhookResponse(BaseModel):
    """Body returned to the provider"""
    success: bool
    message: str
    type: Optional[str] = None
