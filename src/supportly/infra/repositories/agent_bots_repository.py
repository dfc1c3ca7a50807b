"""Agent bots repository."""

from __future__ import annotations

from psycopg2.extensions import cursor as PgCursor

from supportly.domain.models import AgentBot
from supportly.infra.db import fetchone


def get_agent_bot(cur: PgCursor, agent_bot_id: int) -> AgentBot | None:
    """Get agent bot by ID, or None if not found."""
    row = fetchone(cur, "SELECT id, name FROM agent_bots WHERE id = %s", (agent_bot_id,))
    if row is None:
        return None
    return AgentBot(id=row[0], name=row[1])
