"""
Webhooks API Endpoints
Handles incoming webhooks from OpenPhone (calls, recordings, messages)

Once a payload is authenticated and parsed, the provider always gets a 200,
even if processing fails, so it does not retry deliveries that would fail
the same way again.
"""
import json
import asyncio
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from crm.api.v1.dependencies import get_settings, get_webhook_dispatcher
from crm.core.config import Settings
from crm.core.signature import SIGNATURE_HEADER, verify_signature
from crm.domain.models.webhook import WebhookEnvelope, WebhookResponse
from crm.domain.services.webhook_dispatcher import WebhookDispatcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/openphone", response_model=WebhookResponse)
async def openphone_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    dispatcher: WebhookDispatcher = Depends(get_webhook_dispatcher)
):
    """
    Handle OpenPhone webhook events.
    
    - call.ringing: logged only
    - call.completed: outbound calls reconciled against pending calls,
      inbound calls logged against the caller's contact
    - call.recording.completed: recording URL attached to the logged call
    - message.received / message.delivered: SMS activity logged
    
    Signature (X-Provider-Signature, hex HMAC-SHA256 of the raw body) is
    required when OPENPHONE_WEBHOOK_SECRET is set and ignored otherwise.
    """
    body = await request.body()
    
    signature = request.headers.get(SIGNATURE_HEADER)
    if not verify_signature(body, signature, settings.openphone_webhook_secret):
        logger.warning("Invalid OpenPhone webhook signature")
        return JSONResponse(
            status_code=401,
            content={"success": False, "message": "Invalid signature"}
        )
    
    try:
        envelope = WebhookEnvelope.model_validate(json.loads(body))
    except ValueError as e:  # JSONDecodeError and pydantic ValidationError
        logger.warning(f"Rejected malformed OpenPhone webhook: {e}")
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": "Invalid webhook payload"}
        )
    
    try:
        result = await asyncio.to_thread(dispatcher.dispatch, envelope)
    except Exception as e:
        logger.error(f"Error processing OpenPhone webhook {envelope.id}: {e}", exc_info=True)
        return WebhookResponse(
            success=False,
            message="Webhook processing failed",
            type=envelope.type
        )
    
    if not result.success:
        logger.warning(f"Webhook {envelope.type} ({envelope.id}) not applied: {result.error}")
    
    return WebhookResponse(success=True, message="Webhook processed", type=envelope.type)


@router.api_route("/openphone", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def openphone_webhook_wrong_method(request: Request):
    return JSONResponse(
        status_code=405,
        content={"success": False, "message": "Method not allowed. Use POST."},
        headers={"Allow": "POST"}
    )
