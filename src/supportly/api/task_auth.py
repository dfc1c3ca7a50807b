"""Authentication for task and internal endpoints.

Cloud Tasks (and the http backend outside local dev) sign requests with a
Google OIDC token. Local dev may use a shared secret instead.
"""

from __future__ import annotations

import os

from fastapi import Request
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from supportly.observability.logging import get_logger
from supportly.observability.redaction import safe_log_context

logger = get_logger(__name__)

# Local dev audience - enables X-Internal-Task-Secret fallback
LOCAL_DEV_AUDIENCE = "supportly-tasks-local"


def extract_bearer_token(request: Request) -> str | None:
    """Return the Bearer token from the Authorization header, if any."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    return auth_header[len("Bearer "):]


def verify_task_oidc(token: str) -> bool:
    """Verify a Google-signed OIDC token.

    Fail-closed: returns False if TASKS_OIDC_AUDIENCE is not set. When
    TASKS_OIDC_SERVICE_ACCOUNT is set, the token email must match it.
    """
    if not token:
        return False

    audience = os.environ.get("TASKS_OIDC_AUDIENCE")
    if not audience:
        logger.error(
            "TASKS_OIDC_AUDIENCE not configured - fail closed",
            extra={"extra_fields": safe_log_context(reason="missing_audience_env")},
        )
        return False

    try:
        claims = id_token.verify_oauth2_token(token, google_requests.Request(), audience=audience)
    except ValueError as e:
        logger.warning(
            "OIDC token verification failed",
            extra={"extra_fields": safe_log_context(error_type=type(e).__name__)},
        )
        return False

    expected_email = os.environ.get("TASKS_OIDC_SERVICE_ACCOUNT")
    if expected_email and claims.get("email", "") != expected_email:
        logger.warning(
            "OIDC service account mismatch",
            extra={"extra_fields": safe_log_context(reason="service_account_mismatch")},
        )
        return False

    return True


def verify_task_auth(request: Request) -> bool:
    """Verify task authentication via OIDC or internal secret (local dev only)."""
    if os.environ.get("TASKS_OIDC_AUDIENCE", "") == LOCAL_DEV_AUDIENCE:
        internal_secret = os.environ.get("INTERNAL_TASK_SECRET", "")
        request_secret = request.headers.get("X-Internal-Task-Secret", "")
        if internal_secret and request_secret == internal_secret:
            return True

    token = extract_bearer_token(request)
    if not token:
        logger.warning(
            "task auth failed: missing Bearer token",
            extra={"extra_fields": safe_log_context(reason="missing_bearer_token")},
        )
        return False
    return verify_task_oidc(token)
