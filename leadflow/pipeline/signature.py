"""
Webhook signature verification + credential generation.

Security trade-off: a website config with no webhook_secret opts out of
signature verification entirely, and any request carrying its API key is
accepted. Operators enable signing per site by setting a secret.
"""
import hashlib
import hmac
import secrets
from typing import Optional, Union


API_KEY_PREFIX = 'bba_'


def compute_signature(raw_body: Union[bytes, str], secret: str) -> str:
    """Hex HMAC-SHA256 of the raw request body."""
    if isinstance(raw_body, str):
        raw_body = raw_body.encode('utf-8')
    return hmac.new(secret.encode('utf-8'), raw_body, hashlib.sha256).hexdigest()


def verify_signature(raw_body: Union[bytes, str], signature: Optional[str], secret: Optional[str]) -> bool:
    """
    Check a presented signature against the tenant's secret.

    Returns True without looking at the signature when no secret is configured.
    Missing, mis-encoded or wrong-length signatures are a plain False.
    """
    if not secret:
        return True
    if not signature:
        return False

    expected = compute_signature(raw_body, secret)
    presented = signature.strip()
    if presented.lower().startswith('sha256='):
        presented = presented[len('sha256='):]

    try:
        presented_bytes = bytes.fromhex(presented)
    except ValueError:
        return False

    return hmac.compare_digest(presented_bytes, bytes.fromhex(expected))


def generate_api_key() -> str:
    """bba_ + 32 hex chars (128 bits of entropy)."""
    return API_KEY_PREFIX + secrets.token_hex(16)


def generate_webhook_secret() -> str:
    """32 random hex chars for HMAC signing."""
    return secrets.token_hex(16)
