"""Cloud Tasks backend for GCP deployment.

The queue owns retry policy: any non-2xx answer from the worker (including
404 for records that vanished) is retried with the queue's backoff.
"""

import json
import os

from google.cloud import tasks_v2

from supportly.observability.correlation import CORRELATION_ID_HEADER
from supportly.observability.logging import get_logger
from supportly.observability.redaction import safe_log_context

logger = get_logger(__name__)

# Queue per job family, mirroring the worker route prefixes
QUEUE_BY_PREFIX = {
    "/tasks/bots/": "GCP_BOTS_QUEUE",
    "/tasks/contacts/": "GCP_CONTACTS_QUEUE",
}
DEFAULT_QUEUE = "supportly-default"


def _queue_for(url_path: str) -> str:
    default = os.environ.get("GCP_TASKS_QUEUE", DEFAULT_QUEUE)
    for prefix, env_name in QUEUE_BY_PREFIX.items():
        if url_path.startswith(prefix):
            return os.environ.get(env_name, default)
    return default


def enqueue_cloud_task(
    task_id: str,
    url_path: str,
    payload: dict,
    correlation_id: str | None = None,
) -> bool:
    """Enqueue task via Google Cloud Tasks.

    Args:
        task_id: Unique task identifier, used as the task name for dedupe.
        url_path: Worker endpoint path.
        payload: Task payload (record ids only).
        correlation_id: Optional correlation ID for tracing.

    Returns:
        True if the task was created or already existed.

    Raises:
        RuntimeError: If required env vars are not set.
    """
    project = os.environ.get("GOOGLE_CLOUD_PROJECT") or os.environ.get("GCP_PROJECT_ID")
    location = os.environ.get("GCP_LOCATION", "us-central1")
    worker_url = os.environ.get("WORKER_BASE_URL")
    oidc_service_account = os.environ.get("TASKS_OIDC_SERVICE_ACCOUNT")

    if not project:
        raise RuntimeError("GOOGLE_CLOUD_PROJECT or GCP_PROJECT_ID required")
    if not worker_url:
        raise RuntimeError("WORKER_BASE_URL required for Cloud Tasks")
    if not oidc_service_account:
        raise RuntimeError("TASKS_OIDC_SERVICE_ACCOUNT required for Cloud Tasks")

    audience = os.environ.get("TASKS_OIDC_AUDIENCE") or worker_url

    client = tasks_v2.CloudTasksClient()
    parent = client.queue_path(project, location, _queue_for(url_path))

    headers = {"Content-Type": "application/json"}
    if correlation_id:
        headers[CORRELATION_ID_HEADER] = correlation_id

    safe_task_id = task_id.replace(":", "-").replace("/", "-")
    task = {
        "name": f"{parent}/tasks/{safe_task_id}",
        "http_request": {
            "http_method": tasks_v2.HttpMethod.POST,
            "url": f"{worker_url.rstrip('/')}{url_path}",
            "headers": headers,
            "body": json.dumps(payload).encode(),
            "oidc_token": {
                "service_account_email": oidc_service_account,
                "audience": audience,
            },
        },
    }

    try:
        response = client.create_task(parent=parent, task=task)
    except Exception as e:
        if "ALREADY_EXISTS" in str(e):
            logger.info(
                "cloud task already exists (dedupe)",
                extra={"extra_fields": safe_log_context(task_id=task_id)},
            )
            return True
        logger.exception(
            "failed to enqueue cloud task",
            extra={"extra_fields": safe_log_context(task_id=task_id, url_path=url_path)},
        )
        raise

    logger.info(
        "cloud task enqueued",
        extra={"extra_fields": safe_log_context(task_name=response.name, url_path=url_path)},
    )
    return True
