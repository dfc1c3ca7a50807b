"""Task contracts - payloads exchanged between event intake and the worker.

Payloads carry record ids only, never contact PII: the worker re-reads the
records it needs when the task runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar


@dataclass(frozen=True)
class BotResponseTaskV1:
    """Ask the bot service to answer one inbound message.

    Attributes:
        agent_bot_id: Agent bot that authors the reply.
        message_id: Inbound message to forward.
    """

    url_path: ClassVar[str] = "/tasks/bots/respond"

    agent_bot_id: int
    message_id: int

    @property
    def task_id(self) -> str:
        # One bot response per inbound message
        return f"bots-respond-{self.agent_bot_id}-{self.message_id}"

    def to_payload(self, correlation_id: str | None = None) -> dict[str, Any]:
        return {
            "agent_bot_id": self.agent_bot_id,
            "message_id": self.message_id,
            "correlation_id": correlation_id,
        }


@dataclass(frozen=True)
class ContactDetailsTaskV1:
    """Resolve one contact against the identity service.

    Attributes:
        contact_id: Contact to enrich.
        event_id: Id of the create/update event that triggered the task.
                  Contacts are updated many times, so the event id keeps
                  task ids distinct; the resolver itself is idempotent.
    """

    url_path: ClassVar[str] = "/tasks/contacts/fetch-details"

    contact_id: int
    event_id: str

    @property
    def task_id(self) -> str:
        return f"contact-details-{self.contact_id}-{self.event_id}"

    def to_payload(self, correlation_id: str | None = None) -> dict[str, Any]:
        return {
            "contact_id": self.contact_id,
            "correlation_id": correlation_id,
        }
