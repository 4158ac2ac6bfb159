"""Captcha state kept in the in-memory cache."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from ..memory import EntryNotFoundError

USERS_PREFIX = "captcha:users:"

# How long a user stays banned from the group.
BAN_DURATION = timedelta(days=7)
# How long a captcha question stays valid before the user is kicked.
TIMEOUT = timedelta(minutes=1)

_ZERO = datetime(1, 1, 1, tzinfo=timezone.utc)


def _record_key(group_id: int, user_id: int) -> str:
    return f"{group_id}:{user_id}"


def _users_key(group_id: int) -> str:
    return f"{USERS_PREFIX}{group_id}"


def _parse_time(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


@dataclass
class CaptchaRecord:
    """Everything needed to check one user's captcha and clean up after it."""

    answer: str
    expiry: datetime
    chat_id: int
    question_id: str
    additional_messages: list[str] = field(default_factory=list)
    user_messages: list[str] = field(default_factory=list)

    def to_json(self) -> str:
        return json.dumps(
            {
                "answer": self.answer,
                "expiry": self.expiry.isoformat(),
                "chat_id": self.chat_id,
                "question_id": self.question_id,
                "additional_messages": list(self.additional_messages),
                "user_messages": list(self.user_messages),
            },
            separators=(",", ":"),
            ensure_ascii=False,
        )

    def remaining_seconds(self) -> int:
        """Whole seconds left until the captcha expires; negative once it has."""
        now = datetime.now(timezone.utc) if self.expiry.tzinfo else datetime.now()
        return int((self.expiry - now).total_seconds())


def parse_captcha(data: str | bytes) -> CaptchaRecord:
    """Read a CaptchaRecord from the JSON that to_json writes."""
    decoded: Any = json.loads(data)
    if not isinstance(decoded, dict):
        raise ValueError("a captcha record must be a JSON object")
    expiry = decoded.get("expiry")
    return CaptchaRecord(
        answer=decoded.get("answer", ""),
        expiry=_parse_time(expiry) if expiry else _ZERO,
        chat_id=int(decoded.get("chat_id", 0)),
        question_id=decoded.get("question_id", ""),
        additional_messages=list(decoded.get("additional_messages") or []),
        user_messages=list(decoded.get("user_messages") or []),
    )


class CaptchaStore:
    """Keeps pending captchas and the list of users who must answer one."""

    def __init__(self, memory) -> None:
        self.memory = memory

    def user_exists(self, user_id: int, group_id: int) -> bool:
        """Whether the user is waiting on a captcha in the group."""
        try:
            users = self.memory.get(_users_key(group_id)).decode()
        except EntryNotFoundError:
            return False
        return str(user_id) in users.split(";")

    def has_captcha(self, group_id: int, user_id: int) -> bool:
        """Whether a captcha record is cached for the user in the group."""
        try:
            self.memory.get(_record_key(group_id, user_id))
        except EntryNotFoundError:
            return False
        return True

    def load(self, group_id: int, user_id: int) -> CaptchaRecord:
        """The user's captcha; EntryNotFoundError when there is none."""
        return parse_captcha(self.memory.get(_record_key(group_id, user_id)))

    def save(self, group_id: int, user_id: int, record: CaptchaRecord) -> None:
        self.memory.set(_record_key(group_id, user_id), record.to_json().encode())

    def register(self, group_id: int, user_id: int) -> None:
        """Add the user to the group's list of users waiting on a captcha."""
        self.memory.append(_users_key(group_id), f";{user_id}".encode())

    def remove_user(self, user_id: int, group_id: int) -> None:
        """Take the user off the waiting list and drop their captcha record."""
        users = self.memory.get(_users_key(group_id)).decode()
        self.memory.set(_users_key(group_id), users.replace(f";{user_id}", "", 1).encode())
        try:
            self.memory.delete(_record_key(group_id, user_id))
        except EntryNotFoundError:
            pass

    def add_additional_message(
        self, group_id: int, user_id: int, record: CaptchaRecord, message_id: int
    ) -> None:
        """Remember a message the bot sent about this captcha, for deletion later."""
        record.additional_messages.append(str(message_id))
        self.save(group_id, user_id, record)

    def add_user_message(
        self, group_id: int, user_id: int, record: CaptchaRecord, message_id: int
    ) -> None:
        """Remember a message the user sent while answering, for deletion later."""
        record.user_messages.append(str(message_id))
        self.save(group_id, user_id, record)