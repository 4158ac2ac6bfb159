"""Recording and reading group activity in the database."""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta

import httpx
from sqlalchemy import Boolean, DateTime, bindparam, text
from sqlalchemy.exc import SQLAlchemyError

from ..shared import handle_bot_error, handle_error
from ..telegram import TelegramError, User
from ..utils import is_admin, should_add_space
from .models import HOUR_MAPPER, GroupMember, HourlyMap, parse_group_member

_FAILURES = (SQLAlchemyError, TelegramError, httpx.HTTPError)
_RETENTION = timedelta(days=90)
_SWARM_WINDOW = timedelta(days=1)

_SELECT_USERS = (
    text("SELECT * FROM analytics WHERE counter > 0 AND created_at > :cutoff")
    .bindparams(bindparam("cutoff", type_=DateTime))
    .columns(created_at=DateTime, updated_at=DateTime, joined_at=DateTime)
)

_SELECT_HOURLY = text("SELECT * FROM analytics_hourly")

_UPSERT_MEMBER = text(
    """INSERT INTO analytics
        (user_id, username, display_name, counter, created_at, joined_at, updated_at, group_id)
    VALUES
        (:user_id, :username, :display_name, :counter, :now, :now, :now, :group_id)
    ON CONFLICT (user_id) DO UPDATE
    SET counter = analytics.counter + :counter,
        username = :username,
        display_name = :display_name,
        updated_at = :now"""
).bindparams(bindparam("now", type_=DateTime))

_INSERT_JOINED = text(
    """INSERT INTO analytics
        (user_id, group_id, username, display_name, counter, created_at, joined_at, updated_at)
    VALUES
        (:user_id, :group_id, :username, :display_name, 0, :now, :now, :now)
    ON CONFLICT (user_id) DO UPDATE
    SET joined_at = :now,
        updated_at = :now"""
).bindparams(bindparam("now", type_=DateTime))

_INSERT_SWARM = text(
    """INSERT INTO captcha_swarm
        (user_id, group_id, username, display_name, finished_captcha, joined_at)
    VALUES
        (:user_id, :group_id, :username, :display_name, :finished, :now)"""
).bindparams(bindparam("finished", type_=Boolean), bindparam("now", type_=DateTime))

_UPDATE_SWARM = text(
    """UPDATE captcha_swarm
    SET finished_captcha = :finished
    WHERE user_id = :user_id AND group_id = :group_id"""
).bindparams(bindparam("finished", type_=Boolean))

_SELECT_UNFINISHED = text(
    "SELECT user_id FROM captcha_swarm WHERE finished_captcha = :finished AND joined_at > :cutoff"
).bindparams(bindparam("finished", type_=Boolean), bindparam("cutoff", type_=DateTime))

_DELETE_SWARM = text("DELETE FROM captcha_swarm WHERE user_id = :user_id")


def _hourly_statement(column: str):
    return text(
        f"""INSERT INTO analytics_hourly (todays_date, {column})
        VALUES (:todays_date, 1)
        ON CONFLICT (todays_date) DO UPDATE
        SET {column} = analytics_hourly.{column} + 1"""
    )


def _day_of(todays_date: str) -> datetime:
    year, month, day = (int(part) for part in todays_date.split("-"))
    return datetime(year, month, day)


class Analytics:
    """Counts messages, remembers members and tracks captcha swarms."""

    purge_interval = 2.0

    def __init__(self, engine, bot, logger, teknum_id: str) -> None:
        self.engine = engine
        self.bot = bot
        self.logger = logger
        self.teknum_id = teknum_id

    @contextmanager
    def _transaction(self, isolation_level: str | None = None) -> Iterator:
        with self.engine.connect() as conn:
            # Other engines run with their own default isolation.
            if isolation_level and self.engine.dialect.name == "postgresql":
                conn = conn.execution_options(isolation_level=isolation_level)
            with conn.begin():
                yield conn

    def _is_teknum(self, chat_id: int) -> bool:
        return str(chat_id) == self.teknum_id

    def get_user_data(self) -> list[GroupMember]:
        """Members with messages, created within the last 90 days."""
        cutoff = datetime.now() - _RETENTION
        with self._transaction("READ COMMITTED") as conn:
            rows = conn.execute(_SELECT_USERS, {"cutoff": cutoff}).mappings().all()
        return [GroupMember.from_row(row) for row in rows]

    def get_hourly_data(self) -> list[HourlyMap]:
        """Hourly counts of the days within the last 90 days."""
        cutoff = datetime.now() - _RETENTION
        with self._transaction("READ COMMITTED") as conn:
            rows = conn.execute(_SELECT_HOURLY).mappings().all()
        return [HourlyMap.from_row(row) for row in rows if _day_of(row["todays_date"]) > cutoff]

    def increment_user(self, member: GroupMember) -> None:
        """Add the member's counter to their stored one and count this hour."""
        now = datetime.now()
        with self._transaction("READ COMMITTED") as conn:
            conn.execute(
                _UPSERT_MEMBER,
                {
                    "user_id": member.user_id,
                    "username": member.username,
                    "display_name": member.display_name,
                    "counter": member.counter,
                    "now": now,
                    "group_id": member.group_id.value(),
                },
            )
            conn.execute(
                _hourly_statement(HOUR_MAPPER[now.hour]),
                {"todays_date": f"{now.year}-{now.month}-{now.day}"},
            )

    def new_user(self, message, user) -> None:
        """Record a member who joined the group, or refresh their join date."""
        if not message.from_group() or not self._is_teknum(message.chat.id):
            return
        now = datetime.now()
        try:
            with self._transaction("READ COMMITTED") as conn:
                conn.execute(
                    _INSERT_JOINED,
                    {
                        "user_id": user.id,
                        "group_id": message.chat.id,
                        "username": user.username,
                        "display_name": user.first_name + should_add_space(user) + user.last_name,
                        "now": now,
                    },
                )
        except SQLAlchemyError as error:
            handle_bot_error(error, self.logger, self.bot, message)

    def new_message(self, message) -> None:
        """Count one message sent in the group."""
        if not message.from_group() or not self._is_teknum(message.chat.id):
            return
        member = parse_group_member(message)
        member.counter = 1
        self.increment_user(member)

    def swarm_log(self, user, group_id: int, finished_captcha: bool) -> None:
        """Note a joining user and whether they finished the captcha."""
        if not self._is_teknum(group_id):
            return
        try:
            with self._transaction("READ UNCOMMITTED") as conn:
                conn.execute(
                    _INSERT_SWARM,
                    {
                        "user_id": user.id,
                        "group_id": group_id,
                        "username": user.username,
                        "display_name": user.first_name,
                        "finished": finished_captcha,
                        "now": datetime.now(),
                    },
                )
        except SQLAlchemyError as error:
            handle_error(error, self.logger)

    def update_swarm(self, user, group_id: int, finished_captcha: bool) -> None:
        """Change whether a noted user finished the captcha."""
        if not self._is_teknum(group_id):
            return
        try:
            with self._transaction("READ UNCOMMITTED") as conn:
                conn.execute(
                    _UPDATE_SWARM,
                    {"finished": finished_captcha, "user_id": user.id, "group_id": group_id},
                )
        except SQLAlchemyError as error:
            handle_error(error, self.logger)

    def purge_bots(self, message) -> None:
        """Ban everyone who joined in the last day without finishing the captcha."""
        try:
            admins = self.bot.admins_of(message.chat)
        except _FAILURES as error:
            handle_error(error, self.logger)
            return
        if not is_admin(admins, message.sender):
            return

        banned: list[int] = []
        try:
            with self._transaction("REPEATABLE READ") as conn:
                user_ids = conn.execute(
                    _SELECT_UNFINISHED,
                    {"finished": False, "cutoff": datetime.now() - _SWARM_WINDOW},
                ).scalars().all()
                for user_id in user_ids:
                    self.bot.ban(message.chat, User(id=user_id), True)
                    banned.append(user_id)
                    time.sleep(self.purge_interval)
                for user_id in banned:
                    conn.execute(_DELETE_SWARM, {"user_id": user_id})
        except _FAILURES as error:
            handle_error(error, self.logger)
            return

        try:
            self.bot.send(message.chat, f"{len(banned)} bots have been banned")
        except _FAILURES as error:
            handle_error(error, self.logger)