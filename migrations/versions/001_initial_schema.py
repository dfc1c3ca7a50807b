"""Initial schema: accounts, contacts, agent bots, conversations, messages.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op

revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

SQL = """
CREATE TABLE accounts (
    id          BIGSERIAL PRIMARY KEY,
    name        TEXT NOT NULL,
    created_at  TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at  TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE contacts (
    id                    BIGSERIAL PRIMARY KEY,
    account_id            BIGINT NOT NULL REFERENCES accounts(id) ON DELETE CASCADE,
    name                  TEXT,
    email                 TEXT,
    phone_number          TEXT,
    identifier            TEXT,
    custom_attributes     JSONB NOT NULL DEFAULT '{}'::jsonb,
    additional_attributes JSONB NOT NULL DEFAULT '{}'::jsonb,
    created_at            TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at            TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE UNIQUE INDEX uniq_email_per_account_contact ON contacts (lower(email), account_id);
CREATE UNIQUE INDEX uniq_identifier_per_account_contact ON contacts (identifier, account_id);
CREATE INDEX idx_contacts_phone_number_account ON contacts (phone_number, account_id);

CREATE TABLE agent_bots (
    id           BIGSERIAL PRIMARY KEY,
    name         TEXT NOT NULL,
    description  TEXT,
    outgoing_url TEXT,
    created_at   TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at   TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE conversations (
    id          BIGSERIAL PRIMARY KEY,
    account_id  BIGINT NOT NULL REFERENCES accounts(id) ON DELETE CASCADE,
    contact_id  BIGINT REFERENCES contacts(id) ON DELETE CASCADE,
    status      TEXT NOT NULL DEFAULT 'open'
                CHECK (status IN ('open', 'resolved', 'pending', 'snoozed')),
    created_at  TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at  TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE INDEX idx_conversations_account_status ON conversations (account_id, status);

CREATE TABLE messages (
    id               BIGSERIAL PRIMARY KEY,
    account_id       BIGINT NOT NULL REFERENCES accounts(id) ON DELETE CASCADE,
    conversation_id  BIGINT NOT NULL REFERENCES conversations(id) ON DELETE CASCADE,
    content          TEXT,
    message_type     TEXT NOT NULL
                     CHECK (message_type IN ('incoming', 'outgoing', 'activity', 'template')),
    sender_type      TEXT CHECK (sender_type IN ('contact', 'agent_bot', 'user')),
    sender_id        BIGINT,
    created_at       TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE INDEX idx_messages_conversation ON messages (conversation_id, created_at);
CREATE INDEX idx_messages_sender ON messages (sender_type, sender_id);
"""


def upgrade() -> None:
    conn = op.get_bind()
    conn.exec_driver_sql(SQL)


def downgrade() -> None:
    conn = op.get_bind()
    conn.exec_driver_sql(
        """
        DROP TABLE IF EXISTS messages;
        DROP TABLE IF EXISTS conversations;
        DROP TABLE IF EXISTS agent_bots;
        DROP TABLE IF EXISTS contacts;
        DROP TABLE IF EXISTS accounts;
        """
    )
