"""
Webhook Signature Verification
HMAC-SHA256 over the raw request body, hex encoded
"""
import hmac
import hashlib
from typing import Optional


SIGNATURE_HEADER = "X-Provider-Signature"


def compute_signature(body: bytes, secret: str) -> str:
    """Hex HMAC-SHA256 digest of body using secret."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(body: bytes, signature: Optional[str], secret: Optional[str]) -> bool:
    """
    Check a webhook signature.
    
    Args:
        body: Raw request body exactly as received
        signature: Value of the signature header (may be missing)
        secret: Shared secret; when empty, verification is skipped
    
    Returns:
        True if the payload should be accepted
    """
    if not secret:
        return True
    
    if not signature:
        return False
    
    expected = compute_signature(body, secret)
    return hmac.compare_digest(expected, signature.strip().lower())
