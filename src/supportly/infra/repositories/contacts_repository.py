"""Contacts repository - load and save for identity enrichment.

Uses raw SQL with psycopg2 (no ORM).

Saving fills blank email/phone_number columns and merges the external id into
custom_attributes; values written by others since the load are kept. Email is
normalised before saving: blank becomes NULL so the per-account unique index
ignores it, anything else is lower-cased.
"""

from __future__ import annotations

import json

from psycopg2.extensions import cursor as PgCursor

from supportly.domain.models import EXTERNAL_ID_KEY, Contact
from supportly.infra.db import fetchone


def normalize_email(email: str | None) -> str | None:
    """Return None for blank emails, otherwise the stripped lower-cased email."""
    if email is None or not email.strip():
        return None
    return email.strip().lower()


def get_contact(cur: PgCursor, contact_id: int) -> Contact | None:
    """Get contact by ID.

    Args:
        cur: Database cursor.
        contact_id: Contact primary key.

    Returns:
        Contact, or None if not found.
    """
    row = fetchone(
        cur,
        """
        SELECT id, account_id, name, email, phone_number, custom_attributes
        FROM contacts
        WHERE id = %s
        """,
        (contact_id,),
    )
    if row is None:
        return None

    custom_attributes = row[5] if isinstance(row[5], dict) else {}
    return Contact(
        id=row[0],
        account_id=row[1],
        name=row[2],
        email=row[3],
        phone_number=row[4],
        custom_attributes=custom_attributes,
    )


def save_contact(cur: PgCursor, contact: Contact) -> bool:
    """Persist enrichment results in a single UPDATE.

    Only gaps are filled: a phone_number or email that is non-empty in the
    row keeps its current value, even if it changed after the contact was
    loaded. The external id is merged into custom_attributes; other keys
    are left as they are in the row.

    Args:
        cur: Database cursor (within transaction).
        contact: Contact edited in memory.

    Returns:
        True if a row was updated, False if the contact no longer exists.
    """
    contact.email = normalize_email(contact.email)

    cur.execute(
        """
        UPDATE contacts
        SET email = COALESCE(NULLIF(btrim(email), ''), %s),
            phone_number = COALESCE(NULLIF(btrim(phone_number), ''), %s),
            custom_attributes = COALESCE(custom_attributes, '{}'::jsonb) || %s::jsonb,
            updated_at = now()
        WHERE id = %s
        """,
        (
            contact.email,
            contact.phone_number,
            json.dumps({EXTERNAL_ID_KEY: contact.external_id}),
            contact.id,
        ),
    )
    return cur.rowcount > 0
