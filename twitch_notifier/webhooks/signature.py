"""
EventSub webhook signature verification.

Twitch signs every delivery with HMAC-SHA256 over
``message_id + message_timestamp + raw_body`` keyed by the secret we gave it
when the subscription was created, and sends the result as
``sha256=<lowercase hex>``.
"""

import hashlib
import hmac

HMAC_PREFIX = "sha256="


def compute_signature(
    secret: str, message_id: str, message_timestamp: str, raw_body: bytes
) -> str:
    """
    Compute the signature header value Twitch would send for a message.

    Args:
        secret: Shared webhook secret
        message_id: Value of the message-id header
        message_timestamp: Value of the message-timestamp header
        raw_body: Request body exactly as received

    Returns:
        ``sha256=`` followed by the lowercase hex HMAC-SHA256 digest
    """
    message = message_id.encode("utf-8") + message_timestamp.encode("utf-8") + raw_body
    digest = hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()
    return HMAC_PREFIX + digest


def verify(
    secret: str,
    message_id: str,
    message_timestamp: str,
    raw_body: bytes,
    provided_signature: str | None,
) -> bool:
    """
    Check a delivered signature against the one computed locally.

    Never raises on bad input: a missing or differently sized signature is
    simply a mismatch. The comparison is constant time for equal lengths.

    Returns:
        True if the signature matches, False otherwise
    """
    if not provided_signature:
        return False

    expected = compute_signature(secret, message_id, message_timestamp, raw_body)
    return hmac.compare_digest(
        expected.encode("utf-8"), provided_signature.encode("utf-8")
    )
