"""
Call Endpoints
Click-to-call, post-call notes and OpenPhone account setup
"""
import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from crm.api.v1.dependencies import get_call_log_service, get_click_to_call_service, get_settings
from crm.core.config import Settings
from crm.domain.models.call import CallRecord
from crm.domain.models.webhook import SUBSCRIBED_EVENTS
from crm.domain.services.call_log_service import CallLogService, CallNotFoundError
from crm.domain.services.click_to_call_service import ClickToCallService
from crm.infrastructure.telephony.openphone_client import OpenPhoneClient, OpenPhoneError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/calls", tags=["calls"])


class ClickToCallRequest(BaseModel):
    """Dial a contact on behalf of a user"""
    contact_id: str
    user_id: str


class ClickToCallResponse(BaseModel):
    success: bool
    url: str
    pending_call_id: str


class CallNotesUpdate(BaseModel):
    """Post-call details entered by the user"""
    notes: Optional[str] = None
    outcome: Optional[str] = None
    is_deal: bool = False


class WebhookSetupResponse(BaseModel):
    success: bool
    message: str
    webhook_url: str
    data: Optional[dict] = None


@router.post("/click-to-call", response_model=ClickToCallResponse)
def click_to_call(
    request: ClickToCallRequest,
    service: ClickToCallService = Depends(get_click_to_call_service)
):
    """
    Create a pending call and return the OpenPhone dial link.
    
    The pending call is matched against the provider's call.completed
    webhook when it arrives.
    """
    return service.generate_click_to_call(request.contact_id, request.user_id)


@router.put("/{call_id}/notes", response_model=CallRecord)
def update_call_notes(
    call_id: str,
    update: CallNotesUpdate,
    service: CallLogService = Depends(get_call_log_service)
):
    """Save notes, outcome and deal flag for a logged call."""
    try:
        return service.update_call_notes(call_id, update.notes, update.outcome, update.is_deal)
    except CallNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.get("/test-connection")
async def test_connection(
    user_id: str = Query(..., description="User whose OpenPhone key is tested"),
    service: ClickToCallService = Depends(get_click_to_call_service)
):
    """Verify the user's OpenPhone API key."""
    client = OpenPhoneClient(service.get_api_key(user_id))
    return await client.test_connection()


@router.post("/setup-webhook", response_model=WebhookSetupResponse)
async def setup_webhook(
    user_id: str = Query(..., description="User whose OpenPhone account receives the webhook"),
    settings: Settings = Depends(get_settings),
    service: ClickToCallService = Depends(get_click_to_call_service)
):
    """
    Register this service's webhook endpoint with OpenPhone for call and
    message events, signed with OPENPHONE_WEBHOOK_SECRET when configured.
    """
    webhook_url = f"{settings.public_base_url.rstrip('/')}{settings.api_prefix}/webhooks/openphone"
    client = OpenPhoneClient(service.get_api_key(user_id))
    
    try:
        data = await client.create_webhook(
            url=webhook_url,
            events=SUBSCRIBED_EVENTS,
            secret=settings.openphone_webhook_secret
        )
    except (OpenPhoneError, httpx.HTTPError) as e:
        logger.error(f"Failed to set up OpenPhone webhook: {e}")
        raise HTTPException(status_code=502, detail=f"Failed to setup webhooks: {e}")
    
    logger.info(f"Webhook created: url={webhook_url}, events={SUBSCRIBED_EVENTS}")
    return WebhookSetupResponse(
        success=True,
        message="Webhooks configured successfully",
        webhook_url=webhook_url,
        data=data
    )
