"""Correlation ID propagation between HTTP requests, tasks and logs."""

import uuid
from contextvars import ContextVar, Token

# Shared by the request middleware, task handlers and the JSON formatter
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

CORRELATION_ID_HEADER = "X-Correlation-ID"


def generate_correlation_id() -> str:
    """Generate a new correlation ID."""
    return str(uuid.uuid4())


def get_correlation_id() -> str:
    """Get current correlation ID from context."""
    return correlation_id_var.get()


def set_correlation_id(cid: str) -> Token[str]:
    """Set correlation ID in context."""
    return correlation_id_var.set(cid)


def reset_correlation_id(token: Token[str]) -> None:
    """Reset correlation ID to previous value."""
    correlation_id_var.reset(token)


def ensure_correlation_id(cid: str | None) -> Token[str]:
    """Bind the given correlation ID, or a fresh one, for the current task.

    Worker handlers receive the id in the task body rather than a header,
    so they bind it explicitly before doing any work.
    """
    return correlation_id_var.set(cid or get_correlation_id() or generate_correlation_id())
