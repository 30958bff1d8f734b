"""
Click-to-Call Service
Builds the dial link for a contact and records the pending call that the
provider's webhook will later be reconciled against.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from crm.domain.services.pending_call_ledger import PendingCallLedger
from crm.infrastructure.storage.database import Database
from crm.infrastructure.storage.models import Contact, User
from crm.infrastructure.telephony.openphone_client import OpenPhoneClient

logger = logging.getLogger(__name__)


class ProviderNotConfiguredError(Exception):
    """Raised when the user has no OpenPhone credentials."""
    def __init__(self, message: str = "OpenPhone API key not configured for user"):
        self.message = message
        super().__init__(self.message)


class ContactNotFoundError(Exception):
    """Raised when a contact is missing or cannot be dialed."""
    def __init__(self, message: str = "Contact not found or has no phone number"):
        self.message = message
        super().__init__(self.message)


class ClickToCallService:
    """Creates pending calls for user-initiated outbound calls"""
    
    def __init__(self, database: Database):
        self.database = database
    
    def generate_click_to_call(
        self,
        contact_id: str,
        user_id: str,
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Create a pending call and return the dial URL.
        
        The pending call stores the contact's phone exactly as saved; only the
        URL gets E.164 formatting.
        
        Returns:
            Dict with success, url and pending_call_id
        
        Raises:
            ProviderNotConfiguredError: If the user has no OpenPhone API key
            ContactNotFoundError: If the contact is missing or has no phone
        """
        now = now or datetime.utcnow()
        
        with self.database.session() as session:
            user = session.get(User, user_id)
            if user is None or not user.openphone_api_key:
                raise ProviderNotConfiguredError()
            
            contact = session.get(Contact, contact_id)
            if contact is None or not contact.phone:
                raise ContactNotFoundError()
            
            url = OpenPhoneClient.generate_click_to_call_url(
                contact.phone,
                user.openphone_phone_number_id
            )
            
            pending_call = PendingCallLedger(session).create_pending(
                contact_id=contact.id,
                user_id=user.id,
                phone_number=contact.phone,
                now=now,
            )
            
            return {"success": True, "url": url, "pending_call_id": pending_call.id}
    
    def get_api_key(self, user_id: str) -> str:
        """
        OpenPhone API key of user.
        
        Raises:
            ProviderNotConfiguredError: If the user has none
        """
        with self.database.session() as session:
            user = session.get(User, user_id)
            if user is None or not user.openphone_api_key:
                raise ProviderNotConfiguredError()
            return user.openphone_api_key
