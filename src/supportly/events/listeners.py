"""Event listeners that schedule the integration workers.

message.created  -> bot response task, for incoming messages in an inbox
                    served by an agent bot.
contact.created  -> contact details task.
contact.updated  -> contact details task (no-op in the worker once the
                    contact carries an external id).
"""

from __future__ import annotations

import uuid
from typing import Any

from supportly.observability.logging import get_logger
from supportly.observability.redaction import safe_log_context
from supportly.tasks.client import TasksClient
from supportly.tasks.contracts import BotResponseTaskV1, ContactDetailsTaskV1

logger = get_logger(__name__)

MESSAGE_CREATED = "message.created"
CONTACT_CREATED = "contact.created"
CONTACT_UPDATED = "contact.updated"

SUPPORTED_EVENTS = frozenset({MESSAGE_CREATED, CONTACT_CREATED, CONTACT_UPDATED})


def on_message_created(
    tasks_client: TasksClient,
    data: dict[str, Any],
    correlation_id: str | None = None,
) -> bool:
    """Schedule a bot response for an inbound message.

    Args:
        tasks_client: Queue to enqueue on.
        data: Event data with message_id, message_type and agent_bot_id
              (the agent bot attached to the message's inbox, if any).
        correlation_id: Optional correlation ID for tracing.

    Returns:
        True if a task was enqueued.
    """
    agent_bot_id = data.get("agent_bot_id")
    message_id = data.get("message_id")

    if data.get("message_type") != "incoming" or not agent_bot_id or not message_id:
        return False

    return tasks_client.enqueue(
        BotResponseTaskV1(agent_bot_id=int(agent_bot_id), message_id=int(message_id)),
        correlation_id=correlation_id,
    )


def on_contact_saved(
    tasks_client: TasksClient,
    data: dict[str, Any],
    correlation_id: str | None = None,
) -> bool:
    """Schedule identity enrichment after a contact create/update."""
    contact_id = data.get("contact_id")
    if not contact_id:
        return False

    event_id = str(data.get("event_id") or uuid.uuid4())
    return tasks_client.enqueue(
        ContactDetailsTaskV1(contact_id=int(contact_id), event_id=event_id),
        correlation_id=correlation_id,
    )


def dispatch(
    tasks_client: TasksClient,
    event: str,
    data: dict[str, Any],
    correlation_id: str | None = None,
) -> bool:
    """Route an event to its listener.

    Raises:
        ValueError: If the event name is not supported.
    """
    if event not in SUPPORTED_EVENTS:
        raise ValueError(f"Unsupported event: {event}")

    if event == MESSAGE_CREATED:
        enqueued = on_message_created(tasks_client, data, correlation_id)
    else:
        enqueued = on_contact_saved(tasks_client, data, correlation_id)

    logger.info(
        "event dispatched",
        extra={"extra_fields": safe_log_context(event=event, enqueued=enqueued)},
    )
    return enqueued
