"""Webhook payload signature verification.

Deliveries are signed with HMAC-SHA1 over the raw request body using the
shared webhook secret, and the result is sent as ``sha1=<hexdigest>`` in the
``X-Hub-Signature`` header. The digest must be computed over the bytes exactly
as received: re-serializing the parsed JSON can change whitespace and key
order and would never match.
"""

import hashlib
import hmac

SIGNATURE_HEADER = "X-Hub-Signature"
SIGNATURE_PREFIX = "sha1="


def compute_signature(body: bytes, secret: str) -> str:
    """Return the ``sha1=<hex>`` signature of ``body`` under ``secret``."""
    mac = hmac.new(secret.encode("utf-8"), body, hashlib.sha1)
    return SIGNATURE_PREFIX + mac.hexdigest()


def verify_signature(body: bytes, signature: str | None, secret: str) -> bool:
    """Check a delivery signature.

    Args:
        body: Raw request body
        signature: Value of the ``X-Hub-Signature`` header, if any
        secret: Shared webhook secret

    Returns:
        True only if the signature matches. A missing header, a wrong scheme
        prefix and any differing digest are all rejected.
    """
    if not signature or not signature.startswith(SIGNATURE_PREFIX):
        return False

    expected = compute_signature(body, secret)
    return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))
