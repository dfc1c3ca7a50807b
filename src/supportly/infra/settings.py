"""Typed configuration for the integration workers.

Settings are read from the environment once, at construction time, and
injected into the components that need them. An absent bot endpoint is a
valid "disabled" configuration, not an error.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_HTTP_TIMEOUT = 10.0
DEFAULT_COUNTRY_PREFIX = "+91"


@dataclass(frozen=True)
class HttpSettings:
    """Outbound HTTP settings shared by integration clients."""

    timeout: float = DEFAULT_HTTP_TIMEOUT

    @classmethod
    def from_env(cls) -> HttpSettings:
        raw = os.environ.get("INTEGRATIONS_HTTP_TIMEOUT", "")
        try:
            timeout = float(raw) if raw else DEFAULT_HTTP_TIMEOUT
        except ValueError:
            timeout = DEFAULT_HTTP_TIMEOUT
        if timeout <= 0:
            timeout = DEFAULT_HTTP_TIMEOUT
        return cls(timeout=timeout)


@dataclass(frozen=True)
class BotServiceSettings:
    """Conversational-agent (bot) service endpoint.

    Attributes:
        endpoint: Full URL messages are POSTed to. None disables bot
                  orchestration entirely.
    """

    endpoint: str | None = None

    @property
    def enabled(self) -> bool:
        return bool(self.endpoint)

    @classmethod
    def from_env(cls) -> BotServiceSettings:
        endpoint = os.environ.get("BOT_SERVICE_URL", "").strip()
        return cls(endpoint=endpoint or None)


@dataclass(frozen=True)
class IdentitySettings:
    """External identity service used for contact enrichment.

    Attributes:
        base_url: Service root, e.g. "http://identity.internal".
        country_prefix: Prefix applied to bare 10-digit phone numbers
                        returned by the service.
    """

    base_url: str
    country_prefix: str = DEFAULT_COUNTRY_PREFIX

    def url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}{path}"

    @classmethod
    def from_env(cls) -> IdentitySettings:
        """Load identity settings.

        Raises:
            RuntimeError: If IDENTITY_SERVICE_URL is not set.
        """
        base_url = os.environ.get("IDENTITY_SERVICE_URL", "").strip()
        if not base_url:
            raise RuntimeError("Missing identity config: IDENTITY_SERVICE_URL required")
        prefix = os.environ.get("IDENTITY_COUNTRY_PREFIX", DEFAULT_COUNTRY_PREFIX)
        return cls(base_url=base_url, country_prefix=prefix)
