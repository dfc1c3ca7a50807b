"""Message creation on behalf of automated senders.

The orchestrator does not construct messages: it hands a sender, a
conversation and params to a MessageBuilder. build_message is the default
builder and writes through the caller's cursor, so the message and the
conversation status commit together.
"""

from __future__ import annotations

from typing import Any, Protocol

from psycopg2.extensions import cursor as PgCursor

from supportly.domain.models import AgentBot, Message
from supportly.errors import ConversationNotFoundError
from supportly.infra.repositories.messages_repository import insert_bot_message


class MessageBuilder(Protocol):
    """Protocol for message builders."""

    def __call__(
        self,
        cur: PgCursor,
        sender: AgentBot,
        conversation_id: int,
        params: dict[str, Any],
    ) -> Message:
        """Create a message from sender in the conversation."""
        ...


def build_message(
    cur: PgCursor,
    sender: AgentBot,
    conversation_id: int,
    params: dict[str, Any],
) -> Message:
    """Create an outgoing message authored by an agent bot.

    Args:
        cur: Database cursor (within transaction).
        sender: Agent bot the message is attributed to.
        conversation_id: Target conversation.
        params: Message params; "content" is required.

    Raises:
        ValueError: If content is missing.
        ConversationNotFoundError: If the conversation does not exist.
    """
    content = params.get("content")
    if not content:
        raise ValueError("message content is required")

    message = insert_bot_message(
        cur,
        sender=sender,
        conversation_id=conversation_id,
        content=content,
    )
    if message is None:
        raise ConversationNotFoundError(conversation_id)
    return message
