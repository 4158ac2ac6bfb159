"""Schema for the under-attack table."""

from __future__ import annotations

from sqlalchemy import text

_STATEMENTS = (
    """CREATE TABLE IF NOT EXISTS under_attack (
        group_id BIGINT PRIMARY KEY,
        is_under_attack BOOLEAN NOT NULL,
        expires_at TIMESTAMP NOT NULL,
        notification_message_id BIGINT NOT NULL,
        updated_at TIMESTAMP NOT NULL
    )""",
    "CREATE INDEX IF NOT EXISTS idx_updated_at ON under_attack (updated_at)",
)


def migrate(engine) -> None:
    """Create the under_attack table and index; safe to run repeatedly."""
    with engine.connect().execution_options(isolation_level="SERIALIZABLE") as conn:
        with conn.begin():
            for statement in _STATEMENTS:
                conn.execute(text(statement))