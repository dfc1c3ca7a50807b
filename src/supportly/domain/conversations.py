"""Conversation status transitions driven by bot orchestration.

Every orchestration run that reaches the bot service ends with exactly one
status write, whichever branch it took. Only a posted bot reply leaves the
conversation pending; every other outcome routes it to a human (open).
"""

from __future__ import annotations

from enum import Enum

from psycopg2.extensions import cursor as PgCursor

from supportly.domain.models import ConversationStatus
from supportly.infra.repositories.conversations_repository import update_conversation_status
from supportly.observability.logging import get_logger
from supportly.observability.redaction import safe_log_context

logger = get_logger(__name__)


class BotOutcome(str, Enum):
    DISABLED = "disabled"
    SERVICE_UNREACHABLE = "service_unreachable"
    BAD_RESPONSE = "bad_response"
    EMPTY_REPLY = "empty_reply"
    HANDOFF = "handoff"
    REPLIED = "replied"


def status_for_outcome(outcome: BotOutcome) -> ConversationStatus | None:
    """Map an orchestration outcome to the status it must persist.

    Returns:
        PENDING after a posted reply, OPEN for every failure or handoff,
        None for DISABLED (the run must not touch the conversation).
    """
    if outcome is BotOutcome.DISABLED:
        return None
    if outcome is BotOutcome.REPLIED:
        return ConversationStatus.PENDING
    return ConversationStatus.OPEN


def apply_bot_outcome_status(
    cur: PgCursor,
    conversation_id: int,
    outcome: BotOutcome,
) -> ConversationStatus | None:
    """Write the status implied by outcome.

    Args:
        cur: Database cursor (within transaction).
        conversation_id: Conversation to update.
        outcome: Result of the orchestration run.

    Returns:
        The status written, or None when nothing was written.
    """
    status = status_for_outcome(outcome)
    if status is None:
        return None

    updated = update_conversation_status(cur, conversation_id, status)
    if not updated:
        logger.warning(
            "conversation missing on status write",
            extra={
                "extra_fields": safe_log_context(
                    conversation_id=conversation_id,
                    outcome=outcome.value,
                )
            },
        )
    return status
