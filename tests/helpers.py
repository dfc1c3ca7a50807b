"""Shared test helpers for supportly tests.

Regular classes and functions (not fixtures): in-memory stand-ins for the
database and for outbound HTTP, importable by conftest.py and test files.
"""

from __future__ import annotations

import copy
import json
from contextlib import contextmanager
from typing import Any

import requests

from supportly.domain.models import AgentBot, Contact, ConversationStatus, Message, SenderSnapshot
from supportly.errors import TransportError
from supportly.integrations.http_client import HttpResponse


def json_response(body: Any, status_code: int = 200) -> HttpResponse:
    """Build an HttpResponse with a JSON-encoded body."""
    return HttpResponse(status_code=status_code, body=json.dumps(body))


def transport_error(method: str = "POST", url: str = "http://service.test") -> TransportError:
    return TransportError(method, url, requests.ConnectionError("connection refused"))


class FakeIntegrationClient:
    """Scripted IntegrationClient: returns (or raises) queued results in order."""

    def __init__(self, results: list[HttpResponse | Exception] | None = None):
        self.results = list(results or [])
        self.calls: list[tuple[str, str, dict | None]] = []

    def call(self, method: str, url: str, payload: dict | None = None) -> HttpResponse:
        self.calls.append((method, url, payload))
        if not self.results:
            raise AssertionError(f"unexpected call: {method} {url}")
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class FakeStore:
    """In-memory stand-in for the tables the workers touch.

    txn() mimics infra.db.txn: state changes inside a transaction that raises
    are rolled back.
    """

    def __init__(self):
        self.snapshots: dict[int, SenderSnapshot] = {}
        self.agent_bots: dict[int, AgentBot] = {}
        self.conversations: dict[int, str] = {}
        self.contacts: dict[int, Contact] = {}
        self.messages: list[Message] = []
        self.status_writes: list[tuple[int, str]] = []
        self.contact_saves: list[Contact] = []
        self.txn_count = 0

    # -- transactions -----------------------------------------------------

    @contextmanager
    def txn(self, conn=None):
        self.txn_count += 1
        saved = (
            list(self.messages),
            list(self.status_writes),
            dict(self.conversations),
            copy.deepcopy(self.contacts),
            list(self.contact_saves),
        )
        try:
            yield self
        except Exception:
            (
                self.messages,
                self.status_writes,
                self.conversations,
                self.contacts,
                self.contact_saves,
            ) = saved
            raise

    # -- seeding ----------------------------------------------------------

    def add_message(
        self,
        message_id: int,
        conversation_id: int,
        content: str | None = "hi there",
        *,
        status: str = "pending",
        name: str | None = "Jane Doe",
        email: str | None = "jane@example.com",
        phone: str | None = "+919876543210",
        external_id: str | None = None,
    ) -> SenderSnapshot:
        snapshot = SenderSnapshot(
            conversation_id=conversation_id,
            content=content,
            name=name,
            email=email,
            phone=phone,
            external_id=external_id,
        )
        self.snapshots[message_id] = snapshot
        self.conversations.setdefault(conversation_id, status)
        return snapshot

    def add_agent_bot(self, agent_bot_id: int, name: str = "Helper") -> AgentBot:
        bot = AgentBot(id=agent_bot_id, name=name)
        self.agent_bots[agent_bot_id] = bot
        return bot

    def add_contact(self, contact: Contact) -> Contact:
        self.contacts[contact.id] = copy.deepcopy(contact)
        return contact

    # -- repository functions ---------------------------------------------

    def get_sender_snapshot(self, cur, message_id: int) -> SenderSnapshot | None:
        return self.snapshots.get(message_id)

    def get_agent_bot(self, cur, agent_bot_id: int) -> AgentBot | None:
        return self.agent_bots.get(agent_bot_id)

    def update_conversation_status(self, cur, conversation_id: int, status: ConversationStatus) -> bool:
        self.status_writes.append((conversation_id, status.value))
        if conversation_id not in self.conversations:
            return False
        self.conversations[conversation_id] = status.value
        return True

    def build_message(self, cur, sender: AgentBot, conversation_id: int, params: dict) -> Message:
        message = Message(
            id=1000 + len(self.messages),
            conversation_id=conversation_id,
            content=params["content"],
            message_type="outgoing",
            sender_type="agent_bot",
            sender_id=sender.id,
        )
        self.messages.append(message)
        return message

    def get_contact(self, cur, contact_id: int) -> Contact | None:
        contact = self.contacts.get(contact_id)
        return copy.deepcopy(contact) if contact else None

    def save_contact(self, cur, contact: Contact) -> bool:
        if contact.id not in self.contacts:
            return False
        stored = self.contacts[contact.id]
        # Same rules as the UPDATE: fill blanks, merge the external id
        if not (stored.email or "").strip():
            stored.email = contact.email.strip().lower() if contact.email else None
        if not (stored.phone_number or "").strip():
            stored.phone_number = contact.phone_number
        stored.custom_attributes = {
            **(stored.custom_attributes or {}),
            "external_id": contact.external_id,
        }
        self.contact_saves.append(copy.deepcopy(contact))
        return True


class LogRecorder:
    """Stand-in logger that records calls; patch it over a module's logger."""

    def __init__(self):
        self.calls: list[tuple[str, tuple, dict]] = []

    def _record(self, level: str, *args, **kwargs):
        self.calls.append((level, args, kwargs))

    def debug(self, *args, **kwargs):
        self._record("debug", *args, **kwargs)

    def info(self, *args, **kwargs):
        self._record("info", *args, **kwargs)

    def warning(self, *args, **kwargs):
        self._record("warning", *args, **kwargs)

    def error(self, *args, **kwargs):
        self._record("error", *args, **kwargs)

    def exception(self, *args, **kwargs):
        self._record("exception", *args, **kwargs)

    def get_all_logged_content(self) -> str:
        """Concatenate all args and kwargs from all calls into one string."""
        return " ".join(f"{args} {kwargs}" for _, args, kwargs in self.calls)

    def messages(self, level: str | None = None) -> list[str]:
        return [args[0] for lvl, args, _ in self.calls if level is None or lvl == level]

    def has_extra_field(self, key: str) -> bool:
        for _, _, kwargs in self.calls:
            if key in kwargs.get("extra", {}).get("extra_fields", {}):
                return True
        return False
