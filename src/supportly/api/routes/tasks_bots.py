"""Worker route for bot responses to inbound messages.

POST /tasks/bots/respond runs the bot orchestrator for one message.
- 200: run finished (any outcome, including service failures)
- 404: message or agent bot not found; the queue retries per its policy
- 500: unexpected failure (e.g. database), retried by the queue
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel

from supportly.api.task_auth import verify_task_auth
from supportly.bots.orchestrator import BotOrchestrator
from supportly.errors import NotFoundError
from supportly.infra.settings import BotServiceSettings, HttpSettings
from supportly.integrations.http_client import IntegrationClient
from supportly.observability.correlation import ensure_correlation_id, reset_correlation_id
from supportly.observability.logging import get_logger
from supportly.observability.redaction import safe_log_context

router = APIRouter(prefix="/tasks/bots", tags=["tasks"])

logger = get_logger(__name__)

# Module-level orchestrator (lazy init, can be overridden for tests)
_orchestrator: BotOrchestrator | None = None


def _get_orchestrator() -> BotOrchestrator:
    """Get orchestrator, building it from the environment on first use."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = BotOrchestrator(
            BotServiceSettings.from_env(),
            IntegrationClient(HttpSettings.from_env()),
        )
    return _orchestrator


def _set_orchestrator(orchestrator: BotOrchestrator | None) -> None:
    """Set orchestrator (for tests)."""
    global _orchestrator
    _orchestrator = orchestrator


class BotResponseRequest(BaseModel):
    """Request for the bot response task. Record ids only, no PII."""

    agent_bot_id: int
    message_id: int
    correlation_id: str | None = None


@router.post("/respond")
async def respond(request: Request, req: BotResponseRequest):
    """Forward an inbound message to the bot service and act on the reply."""
    token = ensure_correlation_id(req.correlation_id)
    try:
        log_ctx = safe_log_context(agent_bot_id=req.agent_bot_id, message_id=req.message_id)

        if not verify_task_auth(request):
            logger.warning("task auth failed", extra={"extra_fields": log_ctx})
            raise HTTPException(status_code=401, detail="Unauthorized")

        logger.info("bot response task received", extra={"extra_fields": log_ctx})

        try:
            outcome = _get_orchestrator().run(req.agent_bot_id, req.message_id)
        except NotFoundError as e:
            logger.warning(
                "bot response task target missing",
                extra={"extra_fields": safe_log_context(**log_ctx, entity=e.entity)},
            )
            return Response(status_code=404, content=f"{e.entity}_not_found")
        except Exception:
            logger.exception("bot response task failed", extra={"extra_fields": log_ctx})
            return Response(status_code=500, content="processing failed")

        return {"ok": True, "outcome": outcome.value}
    finally:
        reset_correlation_id(token)
