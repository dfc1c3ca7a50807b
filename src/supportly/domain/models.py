"""Records read and written by the integration workers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

SenderType = Literal["contact", "agent_bot", "user"]
MessageType = Literal["incoming", "outgoing", "activity", "template"]

EXTERNAL_ID_KEY = "external_id"


class ConversationStatus(str, Enum):
    OPEN = "open"
    RESOLVED = "resolved"
    PENDING = "pending"
    SNOOZED = "snoozed"


@dataclass(frozen=True)
class AgentBot:
    """Automated sender used when posting bot-generated messages."""

    id: int
    name: str


@dataclass(frozen=True)
class Message:
    id: int
    conversation_id: int
    content: str | None
    message_type: MessageType
    sender_type: SenderType | None
    sender_id: int | None


@dataclass(frozen=True)
class SenderSnapshot:
    """Read-only projection of a message and its sender.

    Captured once per orchestration run; it is the exact payload sent to the
    bot service and is never re-read mid-run.
    """

    conversation_id: int
    content: str | None
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    external_id: str | None = None

    def to_bot_payload(self) -> dict[str, Any]:
        return {
            "sender": self.conversation_id,
            "message": self.content,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "user_id": self.external_id,
        }


@dataclass
class Contact:
    """Mutable contact record; the resolver edits it in memory before one save."""

    id: int
    account_id: int
    name: str | None = None
    email: str | None = None
    phone_number: str | None = None
    custom_attributes: dict[str, Any] = field(default_factory=dict)

    @property
    def external_id(self) -> Any:
        return (self.custom_attributes or {}).get(EXTERNAL_ID_KEY)
