"""Bot response orchestration for inbound messages.

Flow for one (agent_bot_id, message_id) task:
  1. Bot endpoint not configured -> no-op (conversation untouched).
  2. Snapshot the message and its sender (txn 1, read only).
  3. POST the snapshot to the bot service (no transaction held).
  4. Interpret the body into Reply / Handoff / Empty / Malformed.
  5. txn 2: on Reply, post it as the agent bot; then write the status
     implied by the outcome (pending after a reply, open otherwise).

Integration failures never raise: they route the conversation to a human.
Only missing records (message, agent bot) raise, for the queue to retry.

Security: message content and sender profile are NEVER logged.
"""

from __future__ import annotations

from supportly.bots.interpreter import BotReply, Empty, Handoff, Malformed, Reply, interpret
from supportly.domain.conversations import BotOutcome, apply_bot_outcome_status
from supportly.domain.messages import MessageBuilder, build_message
from supportly.domain.models import SenderSnapshot
from supportly.errors import AgentBotNotFoundError, MessageNotFoundError, TransportError
from supportly.infra.db import txn
from supportly.infra.repositories.agent_bots_repository import get_agent_bot
from supportly.infra.repositories.messages_repository import get_sender_snapshot
from supportly.infra.settings import BotServiceSettings
from supportly.integrations.http_client import IntegrationClient
from supportly.observability.logging import get_logger
from supportly.observability.redaction import safe_log_context

logger = get_logger(__name__)


class BotOrchestrator:
    """Forwards inbound messages to the bot service and acts on its reply."""

    def __init__(
        self,
        settings: BotServiceSettings,
        client: IntegrationClient,
        message_builder: MessageBuilder = build_message,
    ) -> None:
        self._settings = settings
        self._client = client
        self._message_builder = message_builder

    def run(self, agent_bot_id: int, message_id: int) -> BotOutcome:
        """Run orchestration for one inbound message.

        Args:
            agent_bot_id: Agent bot that authors any reply.
            message_id: Inbound message to forward.

        Returns:
            The outcome of the run.

        Raises:
            MessageNotFoundError: Message does not exist (nothing written).
            AgentBotNotFoundError: Reply received but the agent bot does not
                exist (transaction rolled back, nothing written).
        """
        log_ctx = safe_log_context(agent_bot_id=agent_bot_id, message_id=message_id)

        if not self._settings.enabled:
            logger.info(
                "bot service not configured, skipping",
                extra={"extra_fields": log_ctx},
            )
            return BotOutcome.DISABLED

        with txn() as cur:
            snapshot = get_sender_snapshot(cur, message_id)
        if snapshot is None:
            raise MessageNotFoundError(message_id)

        outcome, reply = self._request_reply(snapshot)

        with txn() as cur:
            if isinstance(reply, Reply):
                agent_bot = get_agent_bot(cur, agent_bot_id)
                if agent_bot is None:
                    raise AgentBotNotFoundError(agent_bot_id)
                self._message_builder(
                    cur,
                    agent_bot,
                    snapshot.conversation_id,
                    {"content": reply.text},
                )
            status = apply_bot_outcome_status(cur, snapshot.conversation_id, outcome)

        logger.info(
            "bot orchestration completed",
            extra={
                "extra_fields": safe_log_context(
                    **log_ctx,
                    conversation_id=snapshot.conversation_id,
                    outcome=outcome.value,
                    status=status.value if status else None,
                )
            },
        )
        return outcome

    def _request_reply(self, snapshot: SenderSnapshot) -> tuple[BotOutcome, BotReply | None]:
        """Call the bot service and classify the answer."""
        log_ctx = safe_log_context(
            conversation_id=snapshot.conversation_id,
            content_len=len(snapshot.content or ""),
            has_external_id=snapshot.external_id is not None,
        )

        try:
            response = self._client.call(
                "POST", self._settings.endpoint, snapshot.to_bot_payload()
            )
        except TransportError as e:
            logger.warning(
                "bot service unreachable",
                extra={
                    "extra_fields": safe_log_context(
                        **log_ctx, error_type=type(e.cause).__name__
                    )
                },
            )
            return BotOutcome.SERVICE_UNREACHABLE, None

        if not response.ok:
            logger.error(
                "bot service returned non-200",
                extra={
                    "extra_fields": safe_log_context(
                        **log_ctx, status_code=response.status_code
                    )
                },
            )
            return BotOutcome.SERVICE_UNREACHABLE, None

        reply = interpret(response.body)

        if isinstance(reply, Malformed):
            logger.warning(
                "bot service response malformed",
                extra={"extra_fields": safe_log_context(**log_ctx, reason=reply.reason)},
            )
            return BotOutcome.BAD_RESPONSE, reply
        if isinstance(reply, Empty):
            logger.info("bot service reply empty", extra={"extra_fields": log_ctx})
            return BotOutcome.EMPTY_REPLY, reply
        if isinstance(reply, Handoff):
            logger.info("bot requested human handoff", extra={"extra_fields": log_ctx})
            return BotOutcome.HANDOFF, reply
        return BotOutcome.REPLIED, reply
