"""
Webhook Dispatcher
Routes OpenPhone webhook events to the service that handles them.
"""
import logging
from typing import Callable, Dict

from crm.domain.models.call import CallDirection, CallOutcome, ServiceResult
from crm.domain.models.webhook import (
    CallEventData,
    MessageEventData,
    WebhookEnvelope,
    WebhookEventType,
)
from crm.domain.services.call_log_service import CallLogService
from crm.domain.services.reconciliation_service import CallReconciliationService

logger = logging.getLogger(__name__)


class WebhookDispatcher:
    """
    Dispatches a verified webhook envelope by its event type.
    
    Unknown event types are logged and acknowledged without side effects.
    Malformed event data raises (pydantic ValidationError); the ingress
    endpoint catches it.
    """
    
    def __init__(
        self,
        reconciliation: CallReconciliationService,
        call_log: CallLogService
    ):
        self.reconciliation = reconciliation
        self.call_log = call_log
        self._handlers: Dict[str, Callable[[dict], ServiceResult]] = {
            WebhookEventType.CALL_RINGING.value: self._handle_call_ringing,
            WebhookEventType.CALL_COMPLETED.value: self._handle_call_completed,
            WebhookEventType.CALL_RECORDING_COMPLETED.value: self._handle_recording_completed,
            WebhookEventType.MESSAGE_RECEIVED.value: self._handle_message_received,
            WebhookEventType.MESSAGE_DELIVERED.value: self._handle_message_delivered,
        }
    
    def dispatch(self, envelope: WebhookEnvelope) -> ServiceResult:
        logger.info(
            f"Received OpenPhone webhook: type={envelope.type}, id={envelope.id}, "
            f"api_version={envelope.api_version}, created_at={envelope.created_at}"
        )
        
        handler = self._handlers.get(envelope.type)
        if handler is None:
            logger.info(f"Unhandled webhook type: {envelope.type}")
            return ServiceResult.ok("Unhandled event type")
        
        return handler(envelope.data)
    
    def _handle_call_ringing(self, data: dict) -> ServiceResult:
        event = CallEventData.model_validate(data)
        logger.info(
            f"Call ringing: id={event.id}, direction={event.direction}, "
            f"from={event.from_number}, to={event.to_number}"
        )
        return ServiceResult.ok("Ringing noted")
    
    def _handle_call_completed(self, data: dict) -> ServiceResult:
        event = CallEventData.model_validate(data)
        logger.info(
            f"Call completed: id={event.id}, direction={event.direction}, "
            f"duration={event.duration}, from={event.from_number}, to={event.to_number}"
        )
        
        if event.direction == CallDirection.INBOUND.value:
            return self.call_log.log_inbound_call(event)
        
        if event.direction != CallDirection.OUTBOUND.value:
            logger.info(f"Call {event.id} has unknown direction {event.direction!r}, skipping")
            return ServiceResult.ok("Unknown call direction, skipped")
        
        result = self.reconciliation.reconcile(event)
        if result.success and result.data and result.data.get("should_show_popup"):
            logger.info(
                f"Call logged, popup should be shown: call={result.data['call'].id}, "
                f"contact={result.data['contact_id']}"
            )
        return result
    
    def _handle_recording_completed(self, data: dict) -> ServiceResult:
        event = CallEventData.model_validate(data)
        logger.info(f"Call recording completed: id={event.id}, url={event.recording_url}")
        return self.call_log.attach_recording(event)
    
    def _handle_message_received(self, data: dict) -> ServiceResult:
        event = MessageEventData.model_validate(data)
        preview = (event.text or "")[:100]
        logger.info(f"Message received: id={event.id}, from={event.from_number}, text={preview!r}")
        return self.call_log.log_message(event, CallOutcome.SMS_RECEIVED)
    
    def _handle_message_delivered(self, data: dict) -> ServiceResult:
        event = MessageEventData.model_validate(data)
        logger.info(f"Message delivered: id={event.id}, to={event.to_number}")
        return self.call_log.log_message(event, CallOutcome.SMS_DELIVERED)
