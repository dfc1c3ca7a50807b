"""Redaction helpers for safe logging.

Contact names, phones, emails and message content reach the workers from the
database and from external services. None of it may be logged verbatim: log
hashes, lengths and presence flags instead.
"""

import hashlib
import re
from typing import Any

_PHONE_PATTERN = re.compile(r"\+?\d[\d\s\-()]{8,}\d")
_EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
# Output of hash_identifier; logged under "*_hash" keys as is
_HASH_PATTERN = re.compile(r"[0-9a-f]{12}")

_REDACTED = "[REDACTED]"


def hash_identifier(value: str) -> str:
    """Create non-reversible hash for logging. Returns first 12 chars of sha256."""
    return hashlib.sha256(value.encode()).hexdigest()[:12]


def redact_string(value: str) -> str:
    """Redact PII patterns from a string."""
    result = _PHONE_PATTERN.sub(_REDACTED, value)
    result = _EMAIL_PATTERN.sub(_REDACTED, result)
    return result


def redact_value(value: Any) -> str:
    """Redact any value for safe logging. Returns string representation."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return redact_string(value)
    if isinstance(value, dict):
        # Structure only, never values
        return f"dict(keys={list(value.keys())})"
    if isinstance(value, (list, tuple)):
        return f"list(len={len(value)})"
    return f"<{type(value).__name__}>"


def _is_hash(key: str, value: Any) -> bool:
    if not key.endswith("_hash") or not isinstance(value, str):
        return False
    return _HASH_PATTERN.fullmatch(value) is not None


def safe_log_context(**kwargs: Any) -> dict[str, str]:
    """Build a context dict safe for logging.

    All values are redacted, except hash_identifier output under a key ending
    in "_hash": a digit run inside a hash can look like a phone number.
    """
    return {k: v if _is_hash(k, v) else redact_value(v) for k, v in kwargs.items()}
