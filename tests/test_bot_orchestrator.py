"""Tests for bot response orchestration.

Database access is replaced by an in-memory FakeStore and the bot service by
a scripted FakeIntegrationClient, so every branch can be driven from a test.
"""

from __future__ import annotations

import json
from contextlib import ExitStack
from unittest.mock import patch

import pytest
from helpers import FakeIntegrationClient, LogRecorder, json_response, transport_error

from supportly.bots.orchestrator import BotOrchestrator
from supportly.domain.conversations import BotOutcome
from supportly.errors import AgentBotNotFoundError, MessageNotFoundError
from supportly.infra.settings import BotServiceSettings
from supportly.integrations.http_client import HttpResponse

BOT_URL = "http://bot.test/webhooks/rest/webhook"

AGENT_BOT_ID = 7
MESSAGE_ID = 11
CONVERSATION_ID = 3


@pytest.fixture
def seeded(store):
    store.add_agent_bot(AGENT_BOT_ID)
    store.add_message(MESSAGE_ID, CONVERSATION_ID, content="I need help", status="pending")
    return store


@pytest.fixture
def patched(seeded):
    """Route orchestrator persistence through the FakeStore."""
    with ExitStack() as stack:
        stack.enter_context(patch("supportly.bots.orchestrator.txn", seeded.txn))
        stack.enter_context(
            patch("supportly.bots.orchestrator.get_sender_snapshot", seeded.get_sender_snapshot)
        )
        stack.enter_context(
            patch("supportly.bots.orchestrator.get_agent_bot", seeded.get_agent_bot)
        )
        stack.enter_context(
            patch(
                "supportly.domain.conversations.update_conversation_status",
                seeded.update_conversation_status,
            )
        )
        yield seeded


def _orchestrator(store, client, endpoint=BOT_URL):
    return BotOrchestrator(
        BotServiceSettings(endpoint=endpoint),
        client,
        message_builder=store.build_message,
    )


class TestDisabled:
    def test_no_endpoint_is_noop(self, patched):
        client = FakeIntegrationClient()

        outcome = _orchestrator(patched, client, endpoint=None).run(AGENT_BOT_ID, MESSAGE_ID)

        assert outcome is BotOutcome.DISABLED
        assert client.calls == []
        assert patched.txn_count == 0
        assert patched.messages == []
        assert patched.status_writes == []
        assert patched.conversations[CONVERSATION_ID] == "pending"

    def test_empty_endpoint_is_noop(self, patched):
        client = FakeIntegrationClient()

        outcome = _orchestrator(patched, client, endpoint="").run(AGENT_BOT_ID, MESSAGE_ID)

        assert outcome is BotOutcome.DISABLED
        assert client.calls == []


class TestReplied:
    def test_reply_posted_and_conversation_pending(self, patched):
        client = FakeIntegrationClient([json_response([{"recipient_id": "3", "text": "Hello!"}])])

        outcome = _orchestrator(patched, client).run(AGENT_BOT_ID, MESSAGE_ID)

        assert outcome is BotOutcome.REPLIED
        assert len(patched.messages) == 1
        message = patched.messages[0]
        assert message.content == "Hello!"
        assert message.conversation_id == CONVERSATION_ID
        assert message.sender_type == "agent_bot"
        assert message.sender_id == AGENT_BOT_ID
        assert message.message_type == "outgoing"
        assert patched.status_writes == [(CONVERSATION_ID, "pending")]

    def test_request_payload_carries_snapshot(self, patched):
        patched.add_message(
            12,
            CONVERSATION_ID,
            content="where is my order",
            name="Asha",
            email="asha@example.com",
            phone="+919812345678",
            external_id="u-55",
        )
        client = FakeIntegrationClient([json_response([{"text": "Checking"}])])

        _orchestrator(patched, client).run(AGENT_BOT_ID, 12)

        assert client.calls == [
            (
                "POST",
                BOT_URL,
                {
                    "sender": CONVERSATION_ID,
                    "message": "where is my order",
                    "name": "Asha",
                    "email": "asha@example.com",
                    "phone": "+919812345678",
                    "user_id": "u-55",
                },
            )
        ]

    def test_non_contact_sender_sends_null_profile(self, patched):
        patched.add_message(13, CONVERSATION_ID, name=None, email=None, phone=None)
        client = FakeIntegrationClient([json_response([{"text": "ok"}])])

        _orchestrator(patched, client).run(AGENT_BOT_ID, 13)

        payload = client.calls[0][2]
        assert payload["name"] is None
        assert payload["email"] is None
        assert payload["phone"] is None
        assert payload["user_id"] is None

    def test_status_written_even_when_already_pending(self, patched):
        client = FakeIntegrationClient([json_response([{"text": "Hi"}])])

        _orchestrator(patched, client).run(AGENT_BOT_ID, MESSAGE_ID)

        assert patched.status_writes == [(CONVERSATION_ID, "pending")]


class TestRoutedToHuman:
    def test_handoff_opens_without_message(self, patched):
        client = FakeIntegrationClient([json_response([{"text": "human_handoff"}])])

        outcome = _orchestrator(patched, client).run(AGENT_BOT_ID, MESSAGE_ID)

        assert outcome is BotOutcome.HANDOFF
        assert patched.messages == []
        assert patched.status_writes == [(CONVERSATION_ID, "open")]
        assert patched.conversations[CONVERSATION_ID] == "open"

    @pytest.mark.parametrize("body", [[], [{}], [{"text": ""}]])
    def test_empty_reply_opens(self, patched, body):
        client = FakeIntegrationClient([json_response(body)])

        outcome = _orchestrator(patched, client).run(AGENT_BOT_ID, MESSAGE_ID)

        assert outcome is BotOutcome.EMPTY_REPLY
        assert patched.messages == []
        assert patched.status_writes == [(CONVERSATION_ID, "open")]

    @pytest.mark.parametrize("raw", ["not json", json.dumps({"text": "hi"})])
    def test_bad_response_opens(self, patched, raw):
        client = FakeIntegrationClient([HttpResponse(status_code=200, body=raw)])

        outcome = _orchestrator(patched, client).run(AGENT_BOT_ID, MESSAGE_ID)

        assert outcome is BotOutcome.BAD_RESPONSE
        assert patched.messages == []
        assert patched.status_writes == [(CONVERSATION_ID, "open")]

    def test_transport_failure_opens(self, patched):
        client = FakeIntegrationClient([transport_error(url=BOT_URL)])

        outcome = _orchestrator(patched, client).run(AGENT_BOT_ID, MESSAGE_ID)

        assert outcome is BotOutcome.SERVICE_UNREACHABLE
        assert patched.messages == []
        assert patched.status_writes == [(CONVERSATION_ID, "open")]

    @pytest.mark.parametrize("status_code", [201, 204, 400, 500, 503])
    def test_non_200_opens_even_with_usable_body(self, patched, status_code):
        client = FakeIntegrationClient(
            [json_response([{"text": "Hello!"}], status_code=status_code)]
        )

        outcome = _orchestrator(patched, client).run(AGENT_BOT_ID, MESSAGE_ID)

        assert outcome is BotOutcome.SERVICE_UNREACHABLE
        assert patched.messages == []
        assert patched.status_writes == [(CONVERSATION_ID, "open")]

    def test_exactly_one_status_write_per_run(self, patched):
        client = FakeIntegrationClient([transport_error(), json_response([{"text": "hi"}])])
        orchestrator = _orchestrator(patched, client)

        orchestrator.run(AGENT_BOT_ID, MESSAGE_ID)
        orchestrator.run(AGENT_BOT_ID, MESSAGE_ID)

        assert patched.status_writes == [
            (CONVERSATION_ID, "open"),
            (CONVERSATION_ID, "pending"),
        ]


class TestMissingRecords:
    def test_missing_message_raises_without_calls(self, patched):
        client = FakeIntegrationClient()

        with pytest.raises(MessageNotFoundError) as exc_info:
            _orchestrator(patched, client).run(AGENT_BOT_ID, 999)

        assert exc_info.value.record_id == 999
        assert client.calls == []
        assert patched.status_writes == []

    def test_missing_agent_bot_rolls_back(self, patched):
        client = FakeIntegrationClient([json_response([{"text": "Hello!"}])])

        with pytest.raises(AgentBotNotFoundError):
            _orchestrator(patched, client).run(404, MESSAGE_ID)

        assert patched.messages == []
        assert patched.status_writes == []
        assert patched.conversations[CONVERSATION_ID] == "pending"

    def test_missing_agent_bot_ignored_when_no_reply(self, patched):
        client = FakeIntegrationClient([json_response([{"text": "human_handoff"}])])

        outcome = _orchestrator(patched, client).run(404, MESSAGE_ID)

        assert outcome is BotOutcome.HANDOFF
        assert patched.status_writes == [(CONVERSATION_ID, "open")]


class TestLogging:
    def test_message_content_never_logged(self, patched):
        patched.add_message(
            20,
            CONVERSATION_ID,
            content="my card is 4111",
            email="secret@example.com",
        )
        client = FakeIntegrationClient([json_response([{"text": "Private answer"}])])
        recorder = LogRecorder()

        with patch("supportly.bots.orchestrator.logger", recorder):
            _orchestrator(patched, client).run(AGENT_BOT_ID, 20)

        logged = recorder.get_all_logged_content()
        assert "4111" not in logged
        assert "secret@example.com" not in logged
        assert "Private answer" not in logged
        assert "bot orchestration completed" in recorder.messages("info")
        assert recorder.has_extra_field("outcome")

    def test_non_200_logged_as_error(self, patched):
        client = FakeIntegrationClient([json_response([], status_code=502)])
        recorder = LogRecorder()

        with patch("supportly.bots.orchestrator.logger", recorder):
            _orchestrator(patched, client).run(AGENT_BOT_ID, MESSAGE_ID)

        assert "bot service returned non-200" in recorder.messages("error")

    def test_transport_failure_logged_as_warning(self, patched):
        client = FakeIntegrationClient([transport_error(url=BOT_URL)])
        recorder = LogRecorder()

        with patch("supportly.bots.orchestrator.logger", recorder):
            _orchestrator(patched, client).run(AGENT_BOT_ID, MESSAGE_ID)

        assert "bot service unreachable" in recorder.messages("warning")
