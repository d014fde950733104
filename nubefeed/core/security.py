"""
Security helpers: redaction before logging and webhook signatures.
"""

import hashlib
import hmac
import re
from typing import Any, Dict, Optional


SENSITIVE_KEYS = frozenset({
    'access_token',
    'client_secret',
    'code',
    'password',
    'secret',
    'token',
})

REDACTED = '***REDACTED***'


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        return sanitize_dict_for_logging(value)
    if isinstance(value, list):
        return [_redact(item) for item in value]
    return value


def sanitize_dict_for_logging(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Copy of a dict (e.g. an OAuth response) with token-like fields masked.

    Args:
        data: Dictionary that may contain secrets, at any depth.

    Returns:
        New dictionary; the input is not modified.
    """
    return {
        key: REDACTED if key in SENSITIVE_KEYS else _redact(value)
        for key, value in data.items()
    }


def sanitize_string_for_logging(text: str) -> str:
    """
    Remove bearer tokens from a string (error bodies, URLs).

    Args:
        text: String that may contain secrets.

    Returns:
        Sanitized string.
    """
    if not text:
        return text

    patterns = [
        (r'(?i)bearer\s+[A-Za-z0-9._\-]+', 'bearer ***'),
        (r'(?i)(access_token["\']?\s*[:=]\s*["\']?)[^"\'&,\s]+', r'\1***'),
    ]

    result = text
    for pattern, replacement in patterns:
        result = re.sub(pattern, replacement, result)

    return result


def compute_webhook_signature(body: bytes, secret: str) -> str:
    """Hex HMAC-SHA256 of a webhook body keyed with the app secret."""
    return hmac.new(secret.encode('utf-8'), body, hashlib.sha256).hexdigest()


def verify_webhook_signature(body: bytes, signature: Optional[str], secret: str) -> bool:
    """
    Check a Tiendanube webhook signature.

    Args:
        body: Raw request body, exactly as received.
        signature: Value of the X-Linkedstore-Hmac-Sha256 header.
        secret: App client secret.

    Returns:
        True only if a secret is configured and the signature matches.
    """
    if not signature or not secret:
        return False
    expected = compute_webhook_signature(body, secret)
    return hmac.compare_digest(expected, signature.strip().lower())
