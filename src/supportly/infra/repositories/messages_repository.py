"""Messages repository - raw SQL with psycopg2 (no ORM).

The sender of a message is polymorphic (sender_type, sender_id). Only
contact senders carry profile fields; for any other sender the snapshot
fields are NULL.
"""

from __future__ import annotations

from psycopg2.extensions import cursor as PgCursor

from supportly.domain.models import AgentBot, Message, SenderSnapshot
from supportly.infra.db import fetchone


def get_sender_snapshot(cur: PgCursor, message_id: int) -> SenderSnapshot | None:
    """Load a message together with its contact sender's profile.

    Args:
        cur: Database cursor.
        message_id: Message primary key.

    Returns:
        SenderSnapshot, or None if the message does not exist.
    """
    row = fetchone(
        cur,
        """
        SELECT m.conversation_id,
               m.content,
               c.name,
               c.email,
               c.phone_number,
               c.custom_attributes ->> 'external_id'
        FROM messages m
        LEFT JOIN contacts c
          ON m.sender_type = 'contact' AND c.id = m.sender_id
        WHERE m.id = %s
        """,
        (message_id,),
    )
    if row is None:
        return None

    conversation_id, content, name, email, phone, external_id = row
    return SenderSnapshot(
        conversation_id=conversation_id,
        content=content,
        name=name,
        email=email,
        phone=phone,
        external_id=external_id,
    )


def insert_bot_message(
    cur: PgCursor,
    *,
    sender: AgentBot,
    conversation_id: int,
    content: str,
) -> Message | None:
    """Insert an outgoing message authored by an agent bot.

    The account is copied from the conversation row.

    Returns:
        The created Message, or None if the conversation does not exist.
    """
    row = fetchone(
        cur,
        """
        INSERT INTO messages
            (account_id, conversation_id, content, message_type, sender_type, sender_id)
        SELECT account_id, id, %s, 'outgoing', 'agent_bot', %s
        FROM conversations
        WHERE id = %s
        RETURNING id
        """,
        (content, sender.id, conversation_id),
    )
    if row is None:
        return None

    return Message(
        id=row[0],
        conversation_id=conversation_id,
        content=content,
        message_type="outgoing",
        sender_type="agent_bot",
        sender_id=sender.id,
    )
