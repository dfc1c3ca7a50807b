"""Contact enrichment from the external identity service.

Identity resolution strategy
─────────────────────────────
A contact is resolved at most once: the external id is stored in
custom_attributes["external_id"] and its presence skips every later run.

  1. Look up by the last 10 digits of phone_number (if present).
  2. If no id yet, look up by email (if present).
  3. No id → stop; nothing is written and a later run may retry.
  4. Id found → store it. If phone or email is missing, fetch the profile
     and fill only the missing fields (merge_missing).

Lookup failures of any kind (unreachable, non-200, bad JSON) count as "no
id". A failed profile fetch keeps the external id already assigned.

Security: phones and emails are NEVER logged.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from supportly.domain.models import EXTERNAL_ID_KEY, Contact
from supportly.errors import ContactNotFoundError, TransportError
from supportly.infra.db import txn
from supportly.infra.repositories.contacts_repository import get_contact, save_contact
from supportly.infra.settings import IdentitySettings
from supportly.integrations.http_client import HttpResponse, IntegrationClient
from supportly.observability.logging import get_logger
from supportly.observability.redaction import hash_identifier, safe_log_context

logger = get_logger(__name__)

PHONE_LOOKUP_DIGITS = 10

_NON_DIGITS = re.compile(r"\D")


class ResolutionOutcome(str, Enum):
    SKIPPED = "skipped"
    NOT_FOUND = "not_found"
    RESOLVED = "resolved"
    RESOLVED_PARTIAL = "resolved_partial"

    @property
    def needs_save(self) -> bool:
        return self in (ResolutionOutcome.RESOLVED, ResolutionOutcome.RESOLVED_PARTIAL)


@dataclass(frozen=True)
class ContactDetails:
    """The profile fields enrichment may fill."""

    phone_number: str | None = None
    email: str | None = None


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def lookup_phone(phone_number: str) -> str:
    """Last 10 digits of a phone number, dropping any country code."""
    digits = _NON_DIGITS.sub("", phone_number)
    return digits[-PHONE_LOOKUP_DIGITS:]


def normalize_phone(phone: Any, country_prefix: str) -> str | None:
    """Prefix a bare number of exactly 10 digits with the country code.

    Any other value is returned unmodified (as a string).
    """
    if phone is None:
        return None
    phone = str(phone)
    if len(phone) == PHONE_LOOKUP_DIGITS and phone.isdigit():
        return f"{country_prefix}{phone}"
    return phone


def merge_missing(
    existing: ContactDetails,
    incoming: dict[str, Any],
    country_prefix: str,
) -> ContactDetails:
    """Fill fields missing from existing with values from an external profile.

    Populated fields are kept even when the profile disagrees.

    Args:
        existing: Current contact fields.
        incoming: Profile object from the identity service ("phone", "email").
        country_prefix: Prefix for bare 10-digit phone numbers.

    Returns:
        New ContactDetails; existing is not modified.
    """
    phone_number = existing.phone_number
    if _is_blank(phone_number) and not _is_blank(incoming.get("phone")):
        phone_number = normalize_phone(incoming.get("phone"), country_prefix)

    email = existing.email
    if _is_blank(email) and not _is_blank(incoming.get("email")):
        email = str(incoming["email"])

    return ContactDetails(phone_number=phone_number, email=email)


class IdentityResolver:
    """Resolves contacts against the external identity service."""

    def __init__(self, settings: IdentitySettings, client: IntegrationClient) -> None:
        self._settings = settings
        self._client = client

    def resolve(self, contact: Contact) -> ResolutionOutcome:
        """Resolve contact in memory. The caller persists it.

        Args:
            contact: Contact to enrich; edited in place.

        Returns:
            SKIPPED if already resolved, NOT_FOUND if no lookup matched,
            RESOLVED, or RESOLVED_PARTIAL when the profile fetch failed.
        """
        log_ctx = safe_log_context(contact_id=contact.id)

        if contact.external_id is not None:
            logger.info("contact already resolved", extra={"extra_fields": log_ctx})
            return ResolutionOutcome.SKIPPED

        user_id = self._find_user_id(contact)
        if user_id is None:
            logger.info("contact not found in identity service", extra={"extra_fields": log_ctx})
            return ResolutionOutcome.NOT_FOUND

        if contact.custom_attributes is None:
            contact.custom_attributes = {}
        contact.custom_attributes[EXTERNAL_ID_KEY] = user_id

        outcome = ResolutionOutcome.RESOLVED
        if _is_blank(contact.phone_number) or _is_blank(contact.email):
            profile = self._fetch_user(user_id)
            if profile is None:
                outcome = ResolutionOutcome.RESOLVED_PARTIAL
            else:
                merged = merge_missing(
                    ContactDetails(phone_number=contact.phone_number, email=contact.email),
                    profile,
                    self._settings.country_prefix,
                )
                contact.phone_number = merged.phone_number
                contact.email = merged.email

        logger.info(
            "contact resolved",
            extra={
                "extra_fields": safe_log_context(
                    **log_ctx,
                    external_id_hash=hash_identifier(str(user_id)),
                    outcome=outcome.value,
                )
            },
        )
        return outcome

    def _find_user_id(self, contact: Contact) -> Any:
        """Walk the lookup chain: phone first, then email."""
        user_id = None
        if not _is_blank(contact.phone_number):
            digits = lookup_phone(contact.phone_number)
            if digits:
                user_id = self._find_by({"phone": digits}, key="phone")
        if user_id is None and not _is_blank(contact.email):
            user_id = self._find_by({"email": contact.email}, key="email")
        return user_id

    def _find_by(self, body: dict[str, str], *, key: str) -> Any:
        """POST /v1/users/findBy; returns the first user's id or None."""
        response = self._safe_call("POST", self._settings.url("/v1/users/findBy"), body, key)
        if response is None:
            return None

        try:
            users = response.json()
        except ValueError:
            logger.warning(
                "identity lookup returned invalid json",
                extra={"extra_fields": safe_log_context(lookup=key)},
            )
            return None

        if not isinstance(users, list) or not users or not isinstance(users[0], dict):
            return None
        return users[0].get("id")

    def _fetch_user(self, user_id: Any) -> dict[str, Any] | None:
        """GET /v1/users/<id>; returns the profile object or None."""
        response = self._safe_call(
            "GET", self._settings.url(f"/v1/users/{user_id}"), None, "details"
        )
        if response is None:
            return None

        try:
            profile = response.json()
        except ValueError:
            logger.warning(
                "identity profile returned invalid json",
                extra={"extra_fields": safe_log_context(lookup="details")},
            )
            return None
        return profile if isinstance(profile, dict) else None

    def _safe_call(
        self,
        method: str,
        url: str,
        body: dict[str, Any] | None,
        lookup: str,
    ) -> HttpResponse | None:
        try:
            response = self._client.call(method, url, body)
        except TransportError as e:
            logger.warning(
                "identity service unreachable",
                extra={
                    "extra_fields": safe_log_context(
                        lookup=lookup, error_type=type(e.cause).__name__
                    )
                },
            )
            return None

        if not response.ok:
            logger.warning(
                "identity service returned non-200",
                extra={
                    "extra_fields": safe_log_context(
                        lookup=lookup, status_code=response.status_code
                    )
                },
            )
            return None
        return response


def fetch_contact_details(resolver: IdentityResolver, contact_id: int) -> ResolutionOutcome:
    """Job body: load, resolve and persist one contact.

    The contact is read in one transaction and written in another; no
    transaction is held during the identity service calls.

    Raises:
        ContactNotFoundError: If the contact does not exist.
    """
    with txn() as cur:
        contact = get_contact(cur, contact_id)
    if contact is None:
        raise ContactNotFoundError(contact_id)

    outcome = resolver.resolve(contact)

    if outcome.needs_save:
        with txn() as cur:
            saved = save_contact(cur, contact)
        if not saved:
            # Deleted while we were resolving
            raise ContactNotFoundError(contact_id)

    return outcome
