"""Cached analytics data served to other sites."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any

from ..dukun import DukunStore
from ..memory import EntryNotFoundError
from .repository import Analytics

_ZERO = datetime(1, 1, 1, tzinfo=timezone.utc)


class Endpoint(IntEnum):
    USER = 0
    HOURLY = 1
    TOTAL = 2
    DUKUN = 3


class InvalidEndpointError(ValueError):
    """Raised for an endpoint that is not known."""

    def __init__(self, endpoint: object) -> None:
        super().__init__(f"invalid value: {endpoint!r}")


_LAST_UPDATED_KEYS = {
    Endpoint.USER: "analytics:last_updated:users",
    Endpoint.HOURLY: "analytics:last_updated:hourly",
    Endpoint.TOTAL: "analytics:last_updated:total",
    Endpoint.DUKUN: "analytics:last_updated:dukun",
}


def _dump(items: list[dict[str, Any]]) -> bytes:
    # An empty result is written as null, as the stored format has it.
    return json.dumps(items or None, separators=(",", ":"), ensure_ascii=False).encode()


def _format_rfc3339(moment: datetime) -> str:
    formatted = moment.isoformat(timespec="seconds")
    return formatted[:-6] + "Z" if formatted.endswith("+00:00") else formatted


def _parse_rfc3339(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


class AnalyticsData:
    """Reads analytics from the cache, falling back to the databases."""

    def __init__(self, engine, memory, mongo, mongo_db_name: str) -> None:
        self.engine = engine
        self.memory = memory
        self.mongo = mongo
        self.mongo_db_name = mongo_db_name

    def _cached(self, key: str) -> bytes:
        try:
            return self.memory.get(key)
        except EntryNotFoundError:
            return b""

    def _store(self, key: str, stamp_key: str, data: bytes) -> bytes:
        self.memory.set(key, data)
        now = datetime.now().astimezone()
        self.memory.set(stamp_key, _format_rfc3339(now).encode())
        return data

    def _analytics(self) -> Analytics:
        return Analytics(self.engine, None, None, "")

    def get_all(self) -> bytes:
        """The members' data as JSON."""
        cached = self._cached("analytics:analytics")
        if cached:
            return cached
        users = self._analytics().get_user_data()
        return self._store(
            "analytics:analytics",
            "analytics:last_updated:users",
            _dump([user.to_dict() for user in users]),
        )

    def get_total(self) -> bytes:
        """The total count of messages, as decimal text."""
        cached = self._cached("analytics:total")
        if cached:
            return cached
        total = sum(user.counter for user in self._analytics().get_user_data())
        return self._store("analytics:total", "analytics:last_updated:total", str(total).encode())

    def get_hourly(self) -> bytes:
        """The hourly message counts per day as JSON."""
        cached = self._cached("analytics:hourly")
        if cached:
            return cached
        hourly = self._analytics().get_hourly_data()
        return self._store(
            "analytics:hourly",
            "analytics:last_updated:hourly",
            _dump([day.to_dict() for day in hourly]),
        )

    def get_dukun_points(self) -> bytes:
        """The dukun points as JSON."""
        cached = self._cached("analytics:dukun")
        if cached:
            return cached
        dukuns = DukunStore(self.mongo, self.mongo_db_name).get_all()
        return self._store(
            "analytics:dukun",
            "analytics:last_updated:dukun",
            _dump([dukun.to_dict() for dukun in dukuns]),
        )

    def last_updated(self, endpoint) -> datetime:
        """When the endpoint's cached data was written; the zero time if never."""
        try:
            key = _LAST_UPDATED_KEYS[Endpoint(endpoint)]
        except ValueError:
            raise InvalidEndpointError(endpoint) from None
        data = self._cached(key)
        if not data:
            return _ZERO
        return _parse_rfc3339(data.decode())