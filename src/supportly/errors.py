"""Error taxonomy for the integration workers.

Only ``NotFoundError`` escapes a job: it tells the queue that an entity
vanished between enqueue and execution. Integration failures are absorbed
by the workers and converted into a safe default state.
"""


class SupportlyError(Exception):
    """Base class for supportly errors."""


class NotFoundError(SupportlyError):
    """A record referenced by a task does not exist."""

    entity = "record"

    def __init__(self, record_id: int | str) -> None:
        self.record_id = record_id
        super().__init__(f"{self.entity} not found: {record_id}")


class MessageNotFoundError(NotFoundError):
    entity = "message"


class AgentBotNotFoundError(NotFoundError):
    entity = "agent_bot"


class ContactNotFoundError(NotFoundError):
    entity = "contact"


class IntegrationError(SupportlyError):
    """An external service could not be used."""


class TransportError(IntegrationError):
    """DNS, connect or timeout failure: no HTTP response was received."""

    def __init__(self, method: str, url: str, cause: Exception) -> None:
        self.method = method
        self.url = url
        self.cause = cause
        super().__init__(f"{method} {url} failed: {type(cause).__name__}")


class ConversationNotFoundError(NotFoundError):
    entity = "conversation"
