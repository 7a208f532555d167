"""
GitHub Webhook Intake

Signature verification and body decoding for inbound GitHub webhooks.
GitHub delivers either ``application/json`` bodies or
``application/x-www-form-urlencoded`` bodies with a single ``payload``
field, depending on how the webhook was configured.
"""

import hashlib
import hmac
import json
import logging
import re
from typing import Any, Optional
from urllib.parse import unquote_plus


logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = "sha256="
FORM_PAYLOAD_PREFIX = b"payload="

_BAD_PERCENT_ESCAPE = re.compile(r'%(?![0-9A-Fa-f]{2})')


class DecodeError(Exception):
    """Inbound webhook body could not be decoded"""
    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


def verify_signature(secret: Optional[str], raw_body: bytes, signature_header: Optional[str]) -> bool:
    """
    Verify an ``X-Hub-Signature-256`` header against the raw request body.

    Fails closed: any missing input, unknown algorithm prefix or malformed
    digest returns False instead of raising.

    Args:
        secret: Shared webhook secret
        raw_body: Exact bytes of the request body
        signature_header: Header value, e.g. ``sha256=<hex digest>``

    Returns:
        True only if the digest matches
    """
    if not secret or not signature_header:
        return False

    if not signature_header.startswith(SIGNATURE_PREFIX):
        logger.warning("Unsupported webhook signature format")
        return False

    try:
        supplied = bytes.fromhex(signature_header[len(SIGNATURE_PREFIX):])
    except ValueError:
        return False

    expected = hmac.new(secret.encode('utf-8'), raw_body, hashlib.sha256).digest()
    return hmac.compare_digest(expected, supplied)


def decode_payload(raw_body: bytes) -> Any:
    """
    Decode a webhook body into a JSON document.

    Args:
        raw_body: Raw request body

    Returns:
        Parsed JSON value (normally a dict)

    Raises:
        DecodeError: If percent-decoding or JSON parsing fails
    """
    if raw_body.startswith(FORM_PAYLOAD_PREFIX):
        logger.debug("Detected form-encoded payload")
        text = _percent_decode(raw_body[len(FORM_PAYLOAD_PREFIX):])
    else:
        try:
            text = raw_body.decode('utf-8')
        except UnicodeDecodeError as e:
            raise DecodeError("Payload is not valid UTF-8", e) from e

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Invalid JSON payload: {e.msg}", e) from e


def _percent_decode(encoded: bytes) -> str:
    try:
        text = encoded.decode('ascii')
    except UnicodeDecodeError as e:
        raise DecodeError("Form payload contains non-ASCII bytes", e) from e

    if _BAD_PERCENT_ESCAPE.search(text):
        raise DecodeError("Form payload contains a malformed percent escape")

    try:
        return unquote_plus(text, encoding='utf-8', errors='strict')
    except UnicodeDecodeError as e:
        raise DecodeError("Form payload is not valid UTF-8 after decoding", e) from e
