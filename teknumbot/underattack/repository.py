"""Stored under-attack state of each group, cached in memory."""

from __future__ import annotations

import json
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Boolean, DateTime, bindparam, text

from ..analytics.models import ZERO_TIME
from ..memory import EntryNotFoundError
from ..shared import handle_error

CACHE_PREFIX = "underattack:"

_SELECT_ENTRY = text(
    "SELECT * FROM under_attack WHERE group_id = :group_id ORDER BY updated_at DESC"
).columns(is_under_attack=Boolean, expires_at=DateTime, updated_at=DateTime)

_INSERT_ENTRY = text(
    """INSERT INTO under_attack
        (group_id, is_under_attack, expires_at, notification_message_id, updated_at)
    VALUES
        (:group_id, :under_attack, :expires_at, :notification_message_id, :now)
    ON CONFLICT (group_id) DO NOTHING"""
).bindparams(
    bindparam("under_attack", type_=Boolean),
    bindparam("expires_at", type_=DateTime),
    bindparam("now", type_=DateTime),
)

_UPSERT_ENTRY = text(
    """INSERT INTO under_attack
        (group_id, is_under_attack, expires_at, notification_message_id, updated_at)
    VALUES
        (:group_id, :under_attack, :expires_at, :notification_message_id, :now)
    ON CONFLICT (group_id) DO UPDATE
    SET is_under_attack = :under_attack,
        expires_at = :expires_at,
        notification_message_id = :notification_message_id,
        updated_at = :now"""
).bindparams(
    bindparam("under_attack", type_=Boolean),
    bindparam("expires_at", type_=DateTime),
    bindparam("now", type_=DateTime),
)


def _format_time(moment: datetime) -> str:
    return moment.isoformat()


def _parse_time(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


@dataclass
class UnderAttackEntry:
    """One group's under-attack state."""

    group_id: int = 0
    is_under_attack: bool = False
    notification_message_id: int = 0
    expires_at: datetime = ZERO_TIME
    updated_at: datetime = ZERO_TIME

    def to_json(self) -> str:
        return json.dumps(
            {
                "GroupID": self.group_id,
                "IsUnderAttack": self.is_under_attack,
                "NotificationMessageID": self.notification_message_id,
                "ExpiresAt": _format_time(self.expires_at),
                "UpdatedAt": _format_time(self.updated_at),
            },
            separators=(",", ":"),
        )

    def active(self) -> bool:
        """Whether the group is under attack and the mode has not expired."""
        now = datetime.now(timezone.utc) if self.expires_at.tzinfo else datetime.now()
        return self.is_under_attack and self.expires_at > now


def parse_entry(data: str | bytes) -> UnderAttackEntry:
    """Read an entry from the JSON that to_json writes."""
    decoded: dict[str, Any] = json.loads(data)
    if not isinstance(decoded, dict):
        raise ValueError("an under-attack entry must be a JSON object")
    return UnderAttackEntry(
        group_id=int(decoded.get("GroupID", 0)),
        is_under_attack=bool(decoded.get("IsUnderAttack", False)),
        notification_message_id=int(decoded.get("NotificationMessageID", 0)),
        expires_at=_parse_time(decoded["ExpiresAt"]) if "ExpiresAt" in decoded else ZERO_TIME,
        updated_at=_parse_time(decoded["UpdatedAt"]) if "UpdatedAt" in decoded else ZERO_TIME,
    )


class UnderAttack:
    """Reads and writes the under_attack table."""

    create_delay = 5.0

    def __init__(self, engine, memory, logger) -> None:
        self.engine = engine
        self.memory = memory
        self.logger = logger

    @contextmanager
    def _transaction(self, isolation_level: str | None = None) -> Iterator:
        with self.engine.connect() as conn:
            if isolation_level and self.engine.dialect.name == "postgresql":
                conn = conn.execution_options(isolation_level=isolation_level)
            with conn.begin():
                yield conn

    def _create_later(self, group_id: int) -> None:
        def create() -> None:
            try:
                self.create_entry(group_id)
            except Exception as error:  # noqa: BLE001
                handle_error(error, self.logger)

        timer = threading.Timer(self.create_delay, create)
        timer.daemon = True
        timer.start()

    def get_entry(self, group_id: int) -> UnderAttackEntry:
        """The group's entry; an empty one, created shortly after, when there is none."""
        with self._transaction("READ COMMITTED") as conn:
            row = conn.execute(_SELECT_ENTRY, {"group_id": group_id}).mappings().first()
        if row is None:
            self._create_later(group_id)
            return UnderAttackEntry()
        return UnderAttackEntry(
            group_id=row["group_id"],
            is_under_attack=bool(row["is_under_attack"]),
            notification_message_id=row["notification_message_id"],
            expires_at=row["expires_at"] or ZERO_TIME,
            updated_at=row["updated_at"] or ZERO_TIME,
        )

    def create_entry(self, group_id: int) -> None:
        """Insert a calm entry for the group unless it already has one."""
        with self._transaction("READ COMMITTED") as conn:
            conn.execute(
                _INSERT_ENTRY,
                {
                    "group_id": group_id,
                    "under_attack": False,
                    "expires_at": ZERO_TIME,
                    "notification_message_id": 0,
                    "now": datetime.now(),
                },
            )

    def set_status(
        self,
        group_id: int,
        under_attack: bool,
        expires_at: datetime,
        notification_message_id: int,
    ) -> None:
        """Write the group's state, creating its entry when needed."""
        with self._transaction("READ COMMITTED") as conn:
            conn.execute(
                _UPSERT_ENTRY,
                {
                    "group_id": group_id,
                    "under_attack": under_attack,
                    "expires_at": expires_at,
                    "notification_message_id": notification_message_id,
                    "now": datetime.now(),
                },
            )

    def are_we(self, chat_id: int) -> bool:
        """Whether the chat is in under-attack mode now, consulting the cache first."""
        key = f"{CACHE_PREFIX}{chat_id}"
        try:
            cached = self.memory.get(key)
        except EntryNotFoundError:
            pass
        else:
            return parse_entry(cached).active()

        entry = self.get_entry(chat_id)
        self.memory.set(key, entry.to_json().encode())
        return entry.active()