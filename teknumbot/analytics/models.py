"""Records kept by the analytics feature and their JSON forms."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..utils import should_add_space

HOUR_MAPPER = (
    "zero_hour", "one_hour", "two_hour", "three_hour", "four_hour", "five_hour",
    "six_hour", "seven_hour", "eight_hour", "nine_hour", "ten_hour", "eleven_hour",
    "twelve_hour", "thirteen_hour", "fourteen_hour", "fifteen_hour", "sixteen_hour",
    "seventeen_hour", "eighteen_hour", "nineteen_hour", "twenty_hour", "twentyone_hour",
    "twentytwo_hour", "twentythree_hour",
)

ZERO_TIME = datetime(1, 1, 1)

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


@dataclass
class NullInt64:
    """A 64-bit integer that may be absent, as a nullable column holds it."""

    int64: int = 0
    valid: bool = False

    def value(self) -> int | None:
        """The value to store: the integer, or None when it is absent."""
        return self.int64 if self.valid else None

    def to_json(self) -> str:
        return json.dumps(self.int64) if self.valid else "null"


def parse_null_int64(text: str | bytes) -> NullInt64:
    """Read a NullInt64 from JSON; null reads as a valid zero."""
    decoded = json.loads(text)
    if decoded is None:
        return NullInt64(0, True)
    if isinstance(decoded, bool) or not isinstance(decoded, int) or not _INT64_MIN <= decoded <= _INT64_MAX:
        raise ValueError(f"cannot read {text!r} as a 64-bit integer")
    return NullInt64(decoded, True)


def _time(value: datetime | None) -> datetime:
    return value if value is not None else ZERO_TIME


@dataclass
class GroupMember:
    """What the bot knows about one member of a group."""

    user_id: int
    group_id: NullInt64 = field(default_factory=NullInt64)
    username: str = ""
    display_name: str = ""
    counter: int = 0
    created_at: datetime = ZERO_TIME
    updated_at: datetime = ZERO_TIME
    joined_at: datetime = ZERO_TIME

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> GroupMember:
        group_id = row.get("group_id")
        return cls(
            user_id=row["user_id"],
            group_id=NullInt64(0, False) if group_id is None else NullInt64(group_id, True),
            username=row.get("username") or "",
            display_name=row.get("display_name") or "",
            counter=row.get("counter") or 0,
            created_at=_time(row.get("created_at")),
            updated_at=_time(row.get("updated_at")),
            joined_at=_time(row.get("joined_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        """The JSON form; empty names are left out."""
        data: dict[str, Any] = {"group_id": self.group_id.value(), "user_id": self.user_id}
        if self.username:
            data["username"] = self.username
        if self.display_name:
            data["display_name"] = self.display_name
        data["counter"] = self.counter
        data["created_at"] = self.created_at.isoformat()
        data["updated_at"] = self.updated_at.isoformat()
        data["joined_at"] = self.joined_at.isoformat()
        return data


@dataclass
class HourlyMap:
    """Message counts for each hour of one day."""

    todays_date: str
    hours: list[int] = field(default_factory=lambda: [0] * len(HOUR_MAPPER))

    def __post_init__(self) -> None:
        if len(self.hours) != len(HOUR_MAPPER):
            raise ValueError(f"expected {len(HOUR_MAPPER)} hourly counts, got {len(self.hours)}")

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> HourlyMap:
        return cls(row["todays_date"], [row.get(name) or 0 for name in HOUR_MAPPER])

    def to_dict(self) -> dict[str, Any]:
        return {"todays_date": self.todays_date, **dict(zip(HOUR_MAPPER, self.hours))}


def parse_group_member(message) -> GroupMember:
    """The GroupMember describing the sender of a group message."""
    user = message.sender
    return GroupMember(
        user_id=user.id,
        group_id=NullInt64(message.chat.id, True),
        display_name=user.first_name + should_add_space(user) + user.last_name,
        username=user.username,
    )