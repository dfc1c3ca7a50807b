"""Worker route for contact identity enrichment.

POST /tasks/contacts/fetch-details resolves one contact against the identity
service and persists any external id and backfilled fields.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel

from supportly.api.task_auth import verify_task_auth
from supportly.contacts.enrichment import IdentityResolver, fetch_contact_details
from supportly.errors import ContactNotFoundError
from supportly.infra.settings import HttpSettings, IdentitySettings
from supportly.integrations.http_client import IntegrationClient
from supportly.observability.correlation import ensure_correlation_id, reset_correlation_id
from supportly.observability.logging import get_logger
from supportly.observability.redaction import safe_log_context

router = APIRouter(prefix="/tasks/contacts", tags=["tasks"])

logger = get_logger(__name__)

_resolver: IdentityResolver | None = None


def _get_resolver() -> IdentityResolver:
    """Get resolver, building it from the environment on first use.

    Raises:
        RuntimeError: If IDENTITY_SERVICE_URL is not configured.
    """
    global _resolver
    if _resolver is None:
        _resolver = IdentityResolver(
            IdentitySettings.from_env(),
            IntegrationClient(HttpSettings.from_env()),
        )
    return _resolver


def _set_resolver(resolver: IdentityResolver | None) -> None:
    """Set resolver (for tests)."""
    global _resolver
    _resolver = resolver


class ContactDetailsRequest(BaseModel):
    contact_id: int
    correlation_id: str | None = None


@router.post("/fetch-details")
async def fetch_details(request: Request, req: ContactDetailsRequest):
    """Enrich one contact from the identity service.

    Returns:
        200 {"ok": true, "outcome": ...} once the run finished.
        404 if the contact does not exist.
        500 on configuration or database failures (retried by the queue).
    """
    token = ensure_correlation_id(req.correlation_id)
    try:
        log_ctx = safe_log_context(contact_id=req.contact_id)

        if not verify_task_auth(request):
            logger.warning("task auth failed", extra={"extra_fields": log_ctx})
            raise HTTPException(status_code=401, detail="Unauthorized")

        logger.info("contact details task received", extra={"extra_fields": log_ctx})

        try:
            outcome = fetch_contact_details(_get_resolver(), req.contact_id)
        except ContactNotFoundError:
            logger.warning("contact details task target missing", extra={"extra_fields": log_ctx})
            return Response(status_code=404, content="contact_not_found")
        except Exception:
            logger.exception("contact details task failed", extra={"extra_fields": log_ctx})
            return Response(status_code=500, content="processing failed")

        logger.info(
            "contact details task completed",
            extra={"extra_fields": safe_log_context(**log_ctx, outcome=outcome.value)},
        )
        return {"ok": True, "outcome": outcome.value}
    finally:
        reset_correlation_id(token)
