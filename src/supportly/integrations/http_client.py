"""Outbound HTTP client shared by the integration workers.

One synchronous call per invocation, no retries. A transport failure (DNS,
connect, timeout) raises TransportError; any HTTP response, including a
non-200 one, is returned to the caller, who decides what "usable" means.

Security: request and response bodies carry contact PII and are NEVER logged.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

import requests

from supportly.errors import TransportError
from supportly.infra.settings import HttpSettings
from supportly.observability.correlation import CORRELATION_ID_HEADER, get_correlation_id
from supportly.observability.logging import get_logger
from supportly.observability.redaction import safe_log_context

logger = get_logger(__name__)


@dataclass(frozen=True)
class HttpResponse:
    """Status code and raw body of an outbound call."""

    status_code: int
    body: str

    @property
    def ok(self) -> bool:
        return self.status_code == 200

    def json(self) -> Any:
        """Parse the body. Raises ValueError on invalid JSON."""
        return json.loads(self.body)


class IntegrationClient:
    """Thin wrapper around a requests.Session.

    Usage:
        client = IntegrationClient(HttpSettings.from_env())
        response = client.call("POST", "http://bot/webhook", {"sender": 1})
        if response.ok:
            ...
    """

    def __init__(
        self,
        settings: HttpSettings | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._settings = settings or HttpSettings()
        self._session = session or requests.Session()

    def call(self, method: str, url: str, payload: dict[str, Any] | None = None) -> HttpResponse:
        """Perform one HTTP call.

        Args:
            method: HTTP method ("GET" or "POST").
            url: Absolute URL.
            payload: JSON body for POST; ignored for GET.

        Returns:
            HttpResponse for any status code.

        Raises:
            TransportError: If no response was received (including timeout).
        """
        method = method.upper()
        headers = {"Accept": "application/json"}
        correlation_id = get_correlation_id()
        if correlation_id:
            headers[CORRELATION_ID_HEADER] = correlation_id

        log_ctx = safe_log_context(method=method, host=urlsplit(url).netloc)

        try:
            response = self._session.request(
                method,
                url,
                json=payload if method != "GET" else None,
                headers=headers,
                timeout=self._settings.timeout,
            )
        except requests.RequestException as e:
            logger.warning(
                "integration call failed without response",
                extra={
                    "extra_fields": safe_log_context(**log_ctx, error_type=type(e).__name__)
                },
            )
            raise TransportError(method, url, e) from e

        logger.info(
            "integration call completed",
            extra={
                "extra_fields": safe_log_context(
                    **log_ctx,
                    status_code=response.status_code,
                    body_len=len(response.content or b""),
                )
            },
        )
        return HttpResponse(status_code=response.status_code, body=response.text)
