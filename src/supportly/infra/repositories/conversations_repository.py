"""Conversations repository - status writes."""

from __future__ import annotations

from psycopg2.extensions import cursor as PgCursor

from supportly.domain.models import ConversationStatus


def update_conversation_status(
    cur: PgCursor,
    conversation_id: int,
    status: ConversationStatus,
) -> bool:
    """Persist a conversation status.

    The write is unconditional: a status equal to the stored one is still
    written, so every orchestration run leaves an explicit update.

    Returns:
        True if a row was updated, False if the conversation does not exist.
    """
    cur.execute(
        """
        UPDATE conversations
        SET status = %s, updated_at = now()
        WHERE id = %s
        """,
        (status.value, conversation_id),
    )
    return cur.rowcount > 0
