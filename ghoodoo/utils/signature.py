"""GitHub webhook signature verification.

GitHub signs each delivery with HMAC-SHA256 over the raw request body
and sends ``sha256=<hexdigest>`` in the X-Hub-Signature-256 header.
"""

import hashlib
import hmac

from ghoodoo.exceptions import WebhookSignatureError

SIGNATURE_PREFIX = "sha256="


def compute_signature(payload: bytes, secret: str) -> str:
    """Return the X-Hub-Signature-256 value GitHub would send for payload."""
    digest = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_webhook_signature(payload: bytes, signature: str | None, secret: str) -> bool:
    """Verify a GitHub webhook signature.

    Args:
        payload: Raw request body, exactly as received
        signature: Value of the X-Hub-Signature-256 header
        secret: Shared webhook secret

    Returns:
        True only if the header carries a sha256 HMAC of payload under secret.
    """
    if not signature or not signature.startswith(SIGNATURE_PREFIX):
        return False

    return hmac.compare_digest(signature, compute_signature(payload, secret))


def require_valid_signature(payload: bytes, signature: str | None, secret: str) -> None:
    """Raise WebhookSignatureError unless the signature is valid."""
    if not verify_webhook_signature(payload, signature, secret):
        raise WebhookSignatureError("Invalid signature")
