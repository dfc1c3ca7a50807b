"""Internal event intake.

POST /internal/events receives domain events from the core application and
schedules the matching worker task. Callers authenticate like task senders
(OIDC, or the shared secret in local dev).

Body: {"event": "message.created" | "contact.created" | "contact.updated",
       "data": {...record ids...}}
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel, Field

from supportly.api.task_auth import verify_task_auth
from supportly.events.listeners import dispatch
from supportly.observability.correlation import get_correlation_id
from supportly.observability.logging import get_logger
from supportly.observability.redaction import safe_log_context
from supportly.tasks.client import TasksClient

router = APIRouter(prefix="/internal", tags=["internal"])

logger = get_logger(__name__)

# Module-level tasks client (singleton per process)
_tasks_client = TasksClient()


def _get_tasks_client() -> TasksClient:
    """Get tasks client (allows override in tests)."""
    return _tasks_client


class EventRequest(BaseModel):
    event: str
    data: dict[str, Any] = Field(default_factory=dict)


@router.post("/events")
async def receive_event(request: Request, req: EventRequest):
    """Schedule the worker task for a domain event.

    Returns:
        200 {"ok": true, "enqueued": bool}
        400 for unsupported events or malformed ids
        401 if auth fails
    """
    correlation_id = get_correlation_id()

    if not verify_task_auth(request):
        logger.warning(
            "event auth failed",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
        )
        raise HTTPException(status_code=401, detail="Unauthorized")

    try:
        enqueued = dispatch(_get_tasks_client(), req.event, req.data, correlation_id)
    except (ValueError, TypeError):
        logger.warning(
            "event rejected",
            extra={"extra_fields": safe_log_context(event=req.event)},
        )
        return Response(status_code=400, content="invalid event")

    return {"ok": True, "enqueued": enqueued}
