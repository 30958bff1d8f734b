"""
OpenPhone API Client
REST client for the OpenPhone public API plus the click-to-call deep link.
"""
import re
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote
import httpx

logger = logging.getLogger(__name__)


def format_phone_number(phone: Optional[str]) -> Optional[str]:
    """
    Format a phone number as E.164, assuming US numbers when no country code.
    
    "(555) 123-4567" -> "+15551234567", "15551234567" -> "+15551234567"
    """
    if not phone:
        return phone
    
    digits = re.sub(r"\D", "", phone)
    
    if len(digits) == 10:
        return f"+1{digits}"
    if len(digits) == 11 and digits.startswith("1"):
        return f"+{digits}"
    
    return phone if phone.startswith("+") else f"+{digits}"


class OpenPhoneError(Exception):
    """Raised when the OpenPhone API rejects a request."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class OpenPhoneClient:
    """
    Thin async wrapper around the OpenPhone REST API.
    
    Setup Required:
    - Each user stores their own OpenPhone API key
    - Webhook secret comes from OPENPHONE_WEBHOOK_SECRET
    """
    
    API_BASE_URL = "https://api.openphone.com/v1"
    TIMEOUT_SECONDS = 30.0
    
    def __init__(self, api_key: str, http_client: Optional[httpx.AsyncClient] = None):
        if not api_key:
            raise ValueError("OpenPhone API key is required")
        
        self.api_key = api_key
        self._http_client = http_client
    
    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
    
    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.API_BASE_URL}{path}"
        
        if self._http_client is not None:
            response = await self._http_client.request(method, url, headers=self.headers, **kwargs)
        else:
            async with httpx.AsyncClient(timeout=self.TIMEOUT_SECONDS) as client:
                response = await client.request(method, url, headers=self.headers, **kwargs)
        
        if response.status_code >= 400:
            logger.error(f"OpenPhone API error {response.status_code} on {method} {path}: {response.text}")
            raise OpenPhoneError(
                f"OpenPhone API returned {response.status_code}",
                status_code=response.status_code
            )
        
        return response.json() if response.content else {}
    
    async def test_connection(self) -> Dict[str, Any]:
        """Check the API key by fetching the current user."""
        try:
            data = await self._request("GET", "/user")
            return {"success": True, "data": data}
        except (OpenPhoneError, httpx.HTTPError) as e:
            return {"success": False, "error": str(e)}
    
    async def create_webhook(self, url: str, events: List[str], secret: Optional[str] = None) -> Dict[str, Any]:
        """
        Register a webhook.
        
        Raises:
            ValueError: If url is empty
            OpenPhoneError: If the API rejects the request
        """
        if not url:
            raise ValueError("Webhook URL is required")
        
        payload: Dict[str, Any] = {"url": url, "events": events}
        if secret:
            payload["secret"] = secret
        
        return await self._request("POST", "/webhooks", json=payload)
    
    @staticmethod
    def generate_click_to_call_url(phone_number: str, phone_number_id: Optional[str] = None) -> str:
        """Deep link that opens the OpenPhone app dialing phone_number."""
        number = quote(format_phone_number(phone_number), safe="")
        
        if phone_number_id:
            return f"openphone://call?number={number}&phoneNumberId={phone_number_id}"
        return f"openphone://call?number={number}"
