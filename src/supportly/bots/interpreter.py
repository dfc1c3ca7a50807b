"""Interpretation of bot-service response bodies.

The bot service answers with a JSON array of reply candidates, e.g.
``[{"recipient_id": "42", "text": "Hello!"}]``. Only the first candidate is
consulted. The body is untrusted: every shape problem maps onto a variant
instead of raising.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Union

HANDOFF_TOKEN = "human_handoff"


@dataclass(frozen=True)
class Reply:
    """Usable reply text to post as the agent bot."""

    text: str


@dataclass(frozen=True)
class Handoff:
    """The bot asked for a human to take over."""


@dataclass(frozen=True)
class Empty:
    """Well-formed array without usable text."""


@dataclass(frozen=True)
class Malformed:
    """Body is not JSON, or not a JSON array."""

    reason: str


BotReply = Union[Reply, Handoff, Empty, Malformed]


def interpret(raw_body: str | bytes | None) -> BotReply:
    """Map a raw response body onto a BotReply variant.

    Args:
        raw_body: Body of a 200 response from the bot service.

    Returns:
        Reply(text) for a non-empty ``text`` in the first element,
        Handoff() when that text is the handoff token,
        Empty() for ``[]``, ``[{}]`` or a non-object first element,
        Malformed(reason) for invalid JSON or a non-array document.
    """
    if raw_body is None:
        return Malformed("empty body")

    try:
        body = json.loads(raw_body)
    except (TypeError, ValueError):
        return Malformed("invalid json")

    if not isinstance(body, list):
        return Malformed(f"expected array, got {type(body).__name__}")

    if not body:
        return Empty()

    first = body[0]
    if not isinstance(first, dict):
        return Empty()

    text = first.get("text")
    if not isinstance(text, str) or not text.strip():
        return Empty()

    if text == HANDOFF_TOKEN:
        return Handoff()

    return Reply(text=text)
