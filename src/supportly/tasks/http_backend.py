"""HTTP backend for tasks - POSTs tasks straight to the worker.

Used where api and worker run as separate containers on the same network.
"""

import os

import requests
from google.auth.transport.requests import Request as GoogleRequest
from google.oauth2.id_token import fetch_id_token

from supportly.observability.correlation import CORRELATION_ID_HEADER
from supportly.observability.logging import get_logger
from supportly.observability.redaction import safe_log_context

logger = get_logger(__name__)

HTTP_TIMEOUT = int(os.environ.get("TASKS_HTTP_TIMEOUT", "30"))

# Must match task_auth.LOCAL_DEV_AUDIENCE
LOCAL_DEV_AUDIENCE = "supportly-tasks-local"


def _fetch_oidc_token(audience: str) -> str | None:
    """Fetch a Google-signed ID token for the worker audience, or None."""
    try:
        return fetch_id_token(GoogleRequest(), audience)
    except Exception as e:
        logger.error(
            "failed to fetch OIDC ID token",
            extra={"extra_fields": safe_log_context(audience=audience, error_type=type(e).__name__)},
        )
        return None


def enqueue_http(
    task_id: str,
    url_path: str,
    payload: dict,
    correlation_id: str | None = None,
) -> bool:
    """Send task to the worker via HTTP POST.

    Args:
        task_id: Unique task identifier (for logging/tracing).
        url_path: Worker endpoint path (e.g., "/tasks/bots/respond").
        payload: Task payload (record ids only).
        correlation_id: Optional correlation ID for tracing.

    Returns:
        True if the worker answered 2xx, False otherwise.
    """
    worker_base_url = os.environ.get("WORKER_BASE_URL", "http://worker:8000")
    url = f"{worker_base_url.rstrip('/')}{url_path}"
    headers = {
        "Content-Type": "application/json",
        CORRELATION_ID_HEADER: correlation_id or "",
        "X-Task-Id": task_id,
    }

    # Shared secret for local dev, real OIDC token elsewhere
    if os.environ.get("TASKS_OIDC_AUDIENCE", "") == LOCAL_DEV_AUDIENCE:
        secret = os.environ.get("INTERNAL_TASK_SECRET", "")
        if secret:
            headers["X-Internal-Task-Secret"] = secret
    else:
        audience = os.environ.get("TASKS_OIDC_AUDIENCE") or worker_base_url
        token = _fetch_oidc_token(audience)
        if not token:
            logger.error(
                "HTTP task enqueue aborted: OIDC token unavailable",
                extra={"extra_fields": safe_log_context(task_id=task_id, url_path=url_path)},
            )
            return False
        headers["Authorization"] = f"Bearer {token}"

    try:
        response = requests.post(url, json=payload, headers=headers, timeout=HTTP_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(
            "HTTP task enqueue failed",
            extra={
                "extra_fields": safe_log_context(
                    task_id=task_id, url_path=url_path, error_type=type(e).__name__
                )
            },
        )
        return False

    logger.info(
        "HTTP task enqueued",
        extra={"extra_fields": safe_log_context(task_id=task_id, url_path=url_path)},
    )
    return True
